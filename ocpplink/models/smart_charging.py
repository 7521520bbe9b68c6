"""
Smart charging profile.
"""

from enum import Enum
from typing import Optional

from pydantic import Field

from ocpplink.models.base import Payload
from ocpplink.models.types import ChargingProfile, ChargingRateUnit, ChargingSchedule, StatusInfo
from ocpplink.registry import Direction, Feature, Profile
from ocpplink.utils import DateTime

PROFILE_NAME = "smartCharging"


class GetCompositeScheduleStatus(str, Enum):
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"


class ChargingProfileStatus(str, Enum):
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"


class CompositeSchedule(Payload):
    start_date_time: Optional[DateTime] = None
    charging_schedule: Optional[ChargingSchedule] = None


class GetCompositeScheduleRequest(Payload):
    duration: int = Field(ge=0)
    charging_rate_unit: Optional[ChargingRateUnit] = None
    evse_id: int = Field(ge=0)


class GetCompositeScheduleResponse(Payload):
    status: GetCompositeScheduleStatus
    status_info: Optional[StatusInfo] = None
    schedule: Optional[CompositeSchedule] = None


class SetChargingProfileRequest(Payload):
    evse_id: int = Field(ge=0)
    charging_profile: ChargingProfile


class SetChargingProfileResponse(Payload):
    status: ChargingProfileStatus
    status_info: Optional[StatusInfo] = None


GET_COMPOSITE_SCHEDULE = Feature(
    "GetCompositeSchedule",
    GetCompositeScheduleRequest,
    GetCompositeScheduleResponse,
    Direction.CSMS_TO_CHARGING_STATION,
)
SET_CHARGING_PROFILE = Feature(
    "SetChargingProfile",
    SetChargingProfileRequest,
    SetChargingProfileResponse,
    Direction.CSMS_TO_CHARGING_STATION,
)


def profile() -> Profile:
    return Profile(PROFILE_NAME, GET_COMPOSITE_SCHEDULE, SET_CHARGING_PROFILE)
