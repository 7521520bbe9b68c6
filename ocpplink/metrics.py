"""
OpenTelemetry request metrics.

Two histograms count requests by outcome:

    ocpp_requests_inbound    Calls received from a peer
    ocpp_requests_outbound   Calls sent to a peer

Each recording carries the charge point ID, the feature name and, for failed
requests, an ``error`` attribute holding one of the ErrorClass values.
"""

from enum import Enum
from typing import Optional

from opentelemetry.metrics import Meter

from ocpplink.errors import ErrorCode, OcppError

REQUESTS_INBOUND = "ocpp_requests_inbound"
REQUESTS_OUTBOUND = "ocpp_requests_outbound"

OCPP_VERSION = "2.0.1"


class ErrorClass(str, Enum):
    CHARGE_POINT = "charge_point_error"
    INTERNAL = "internal_error"
    NETWORK = "network_error"
    PAYLOAD = "payload_error"
    VALIDATION = "validation_error"


_VALIDATION_CODES = {
    ErrorCode.PROPERTY_CONSTRAINT_VIOLATION,
    ErrorCode.OCCURRENCE_CONSTRAINT_VIOLATION,
    ErrorCode.TYPE_CONSTRAINT_VIOLATION,
}


def classify(error: OcppError) -> ErrorClass:
    """Error class of a failure raised or received locally."""
    if error.code in _VALIDATION_CODES:
        return ErrorClass.VALIDATION
    if error.code in (ErrorCode.FORMATION_VIOLATION, ErrorCode.NOT_SUPPORTED):
        return ErrorClass.PAYLOAD
    return ErrorClass.INTERNAL


class OcppMetrics:
    """
    Records request outcomes on an OpenTelemetry meter.

    Args:
        meter: meter to create the histograms on
        charge_point_id: ID reported when the peer has none (the local
            station, on the charging station side)
    """

    def __init__(self, meter: Meter, charge_point_id: Optional[str] = None):
        self.charge_point_id = charge_point_id
        self._inbound = meter.create_histogram(REQUESTS_INBOUND, description="Number of inbound requests")
        self._outbound = meter.create_histogram(REQUESTS_OUTBOUND, description="Number of outbound requests")

    def inbound(self, peer_id: Optional[str], feature: str = "", error: Optional[ErrorClass] = None):
        self._inbound.record(1, self._attributes(peer_id, feature, error))

    def outbound(self, peer_id: Optional[str], feature: str = "", error: Optional[ErrorClass] = None):
        self._outbound.record(1, self._attributes(peer_id, feature, error))

    def _attributes(self, peer_id, feature: str, error: Optional[ErrorClass]) -> dict:
        attributes = {
            "charge_point_id": peer_id if peer_id is not None else (self.charge_point_id or ""),
            "ocpp_version": OCPP_VERSION,
        }
        # Missing when the request could not be decoded
        if feature:
            attributes["feature"] = feature
        if error is not None:
            attributes["error"] = error.value
        return attributes
