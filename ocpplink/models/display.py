"""
Display message profile.
"""

from enum import Enum
from typing import List, Optional

from pydantic import Field

from ocpplink.models.base import Payload
from ocpplink.models.types import Component, MessageContent, StatusInfo
from ocpplink.registry import Direction, Feature, Profile
from ocpplink.utils import DateTime

PROFILE_NAME = "display"


class MessagePriority(str, Enum):
    ALWAYS_FRONT = "AlwaysFront"
    IN_FRONT = "InFront"
    NORMAL_CYCLE = "NormalCycle"


class MessageState(str, Enum):
    CHARGING = "Charging"
    FAULTED = "Faulted"
    IDLE = "Idle"
    UNAVAILABLE = "Unavailable"


class DisplayMessageStatus(str, Enum):
    ACCEPTED = "Accepted"
    NOT_SUPPORTED_MESSAGE_FORMAT = "NotSupportedMessageFormat"
    REJECTED = "Rejected"
    NOT_SUPPORTED_PRIORITY = "NotSupportedPriority"
    NOT_SUPPORTED_STATE = "NotSupportedState"
    UNKNOWN_TRANSACTION = "UnknownTransaction"


class MessageInfo(Payload):
    id: int = Field(ge=0)
    priority: MessagePriority
    state: Optional[MessageState] = None
    start_date_time: Optional[DateTime] = None
    end_date_time: Optional[DateTime] = None
    transaction_id: Optional[str] = Field(None, max_length=36)
    message: MessageContent
    display: Optional[Component] = None


class SetDisplayMessageRequest(Payload):
    message: MessageInfo


class SetDisplayMessageResponse(Payload):
    status: DisplayMessageStatus
    status_info: Optional[StatusInfo] = None


class NotifyDisplayMessagesRequest(Payload):
    request_id: int = Field(ge=0)
    tbc: Optional[bool] = None
    message_info: Optional[List[MessageInfo]] = None


class NotifyDisplayMessagesResponse(Payload):
    pass


SET_DISPLAY_MESSAGE = Feature(
    "SetDisplayMessage",
    SetDisplayMessageRequest,
    SetDisplayMessageResponse,
    Direction.CSMS_TO_CHARGING_STATION,
)
NOTIFY_DISPLAY_MESSAGES = Feature(
    "NotifyDisplayMessages",
    NotifyDisplayMessagesRequest,
    NotifyDisplayMessagesResponse,
    Direction.CHARGING_STATION_TO_CSMS,
)


def profile() -> Profile:
    return Profile(PROFILE_NAME, SET_DISPLAY_MESSAGE, NOTIFY_DISPLAY_MESSAGES)
