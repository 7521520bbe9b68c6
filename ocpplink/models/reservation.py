"""
Reservation profile.
"""

from enum import Enum
from typing import Optional

from pydantic import Field

from ocpplink.models.base import Payload
from ocpplink.models.types import IdToken, StatusInfo
from ocpplink.registry import Direction, Feature, Profile
from ocpplink.utils import DateTime

PROFILE_NAME = "reservation"


class ConnectorType(str, Enum):
    CCS1 = "cCCS1"
    CCS2 = "cCCS2"
    G105 = "cG105"
    TESLA = "cTesla"
    TYPE1 = "cType1"
    TYPE2 = "cType2"
    S309_1P_16A = "s309-1P-16A"
    S309_1P_32A = "s309-1P-32A"
    S309_3P_16A = "s309-3P-16A"
    S309_3P_32A = "s309-3P-32A"
    SBS1361 = "sBS1361"
    SCEE_7_7 = "sCEE-7-7"
    STYPE2 = "sType2"
    STYPE3 = "sType3"
    OTHER_1PH_MAX_16A = "Other1PhMax16A"
    OTHER_1PH_OVER_16A = "Other1PhOver16A"
    OTHER_3PH = "Other3Ph"
    PAN = "Pan"
    W_INDUCTIVE = "wInductive"
    W_RESONANT = "wResonant"
    UNDETERMINED = "Undetermined"
    UNKNOWN = "Unknown"


class ReserveNowStatus(str, Enum):
    ACCEPTED = "Accepted"
    FAULTED = "Faulted"
    OCCUPIED = "Occupied"
    REJECTED = "Rejected"
    UNAVAILABLE = "Unavailable"


class CancelReservationStatus(str, Enum):
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"


class ReservationUpdateStatus(str, Enum):
    EXPIRED = "Expired"
    REMOVED = "Removed"


class ReserveNowRequest(Payload):
    id: int = Field(ge=0)
    expiry_date_time: DateTime
    connector_type: Optional[ConnectorType] = None
    evse_id: Optional[int] = Field(None, ge=0)
    id_token: IdToken
    group_id_token: Optional[IdToken] = None


class ReserveNowResponse(Payload):
    status: ReserveNowStatus
    status_info: Optional[StatusInfo] = None


class CancelReservationRequest(Payload):
    reservation_id: int = Field(ge=0)


class CancelReservationResponse(Payload):
    status: CancelReservationStatus
    status_info: Optional[StatusInfo] = None


class ReservationStatusUpdateRequest(Payload):
    reservation_id: int = Field(ge=0)
    reservation_update_status: ReservationUpdateStatus


class ReservationStatusUpdateResponse(Payload):
    pass


RESERVE_NOW = Feature("ReserveNow", ReserveNowRequest, ReserveNowResponse, Direction.CSMS_TO_CHARGING_STATION)
CANCEL_RESERVATION = Feature(
    "CancelReservation",
    CancelReservationRequest,
    CancelReservationResponse,
    Direction.CSMS_TO_CHARGING_STATION,
)
RESERVATION_STATUS_UPDATE = Feature(
    "ReservationStatusUpdate",
    ReservationStatusUpdateRequest,
    ReservationStatusUpdateResponse,
    Direction.CHARGING_STATION_TO_CSMS,
)


def profile() -> Profile:
    return Profile(PROFILE_NAME, RESERVE_NOW, CANCEL_RESERVATION, RESERVATION_STATUS_UPDATE)
