"""
ocpplink: OCPP 2.0.1 (OCPP-J) dispatch engine for charging stations and CSMS.
"""

from ocpplink.endpoint import CSMS, ChargingStation
from ocpplink.errors import ErrorCode, OcppError, ValidationError
from ocpplink.registry import Direction, Feature, FeatureRegistry, Profile, Role

__version__ = "0.1.0"

__all__ = [
    "CSMS",
    "ChargingStation",
    "Direction",
    "ErrorCode",
    "Feature",
    "FeatureRegistry",
    "OcppError",
    "Profile",
    "Role",
    "ValidationError",
]
