"""
OCPP 2.0.1 payload schemas, grouped by profile.
"""

from ocpplink.models import (
    authorization,
    availability,
    data_transfer,
    display,
    firmware,
    iso15118,
    local_auth,
    provisioning,
    remote_control,
    reservation,
    security,
    smart_charging,
    transactions,
)
from ocpplink.models.base import Payload
from ocpplink.registry import FeatureRegistry


def all_profiles():
    """Fresh Profile objects for every OCPP 2.0.1 feature this package ships."""
    return [
        provisioning.profile(),
        authorization.profile(),
        availability.profile(),
        remote_control.profile(),
        reservation.profile(),
        transactions.profile(),
        transactions.meter_profile(),
        smart_charging.profile(),
        security.profile(),
        firmware.profile(),
        display.profile(),
        local_auth.profile(),
        iso15118.profile(),
        data_transfer.profile(),
    ]


def default_registry():
    """A new FeatureRegistry holding the full feature set."""
    return FeatureRegistry(*all_profiles())


__all__ = ["Payload", "all_profiles", "default_registry"]
