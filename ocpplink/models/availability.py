"""
Availability profile: heartbeats, connector status and operational state.
"""

from enum import Enum
from typing import Optional

from pydantic import Field

from ocpplink.models.base import Payload
from ocpplink.models.types import EVSE, StatusInfo
from ocpplink.registry import Direction, Feature, Profile
from ocpplink.utils import DateTime

PROFILE_NAME = "availability"


class OperationalStatus(str, Enum):
    INOPERATIVE = "Inoperative"
    OPERATIVE = "Operative"


class ChangeAvailabilityStatus(str, Enum):
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    SCHEDULED = "Scheduled"


class ConnectorStatus(str, Enum):
    AVAILABLE = "Available"
    OCCUPIED = "Occupied"
    RESERVED = "Reserved"
    UNAVAILABLE = "Unavailable"
    FAULTED = "Faulted"


class ChangeAvailabilityRequest(Payload):
    operational_status: OperationalStatus
    evse: Optional[EVSE] = None


class ChangeAvailabilityResponse(Payload):
    status: ChangeAvailabilityStatus
    status_info: Optional[StatusInfo] = None


class HeartbeatRequest(Payload):
    pass


class HeartbeatResponse(Payload):
    current_time: DateTime


class StatusNotificationRequest(Payload):
    timestamp: DateTime
    connector_status: ConnectorStatus
    evse_id: int = Field(ge=0)
    connector_id: int = Field(ge=0)


class StatusNotificationResponse(Payload):
    pass


CHANGE_AVAILABILITY = Feature(
    "ChangeAvailability",
    ChangeAvailabilityRequest,
    ChangeAvailabilityResponse,
    Direction.CSMS_TO_CHARGING_STATION,
)
HEARTBEAT = Feature("Heartbeat", HeartbeatRequest, HeartbeatResponse, Direction.CHARGING_STATION_TO_CSMS)
STATUS_NOTIFICATION = Feature(
    "StatusNotification",
    StatusNotificationRequest,
    StatusNotificationResponse,
    Direction.CHARGING_STATION_TO_CSMS,
)


def profile() -> Profile:
    return Profile(PROFILE_NAME, CHANGE_AVAILABILITY, HEARTBEAT, STATUS_NOTIFICATION)
