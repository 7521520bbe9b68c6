"""
Local authorization list management.
"""

from enum import Enum
from typing import List, Optional

from pydantic import Field

from ocpplink.models.base import Payload
from ocpplink.models.types import IdToken, IdTokenInfo, StatusInfo
from ocpplink.registry import Direction, Feature, Profile

PROFILE_NAME = "localAuthList"


class UpdateType(str, Enum):
    DIFFERENTIAL = "Differential"
    FULL = "Full"


class SendLocalListStatus(str, Enum):
    ACCEPTED = "Accepted"
    FAILED = "Failed"
    VERSION_MISMATCH = "VersionMismatch"


class AuthorizationData(Payload):
    id_token_info: Optional[IdTokenInfo] = None
    id_token: IdToken


class SendLocalListRequest(Payload):
    version_number: int = Field(ge=0)
    update_type: UpdateType
    local_authorization_list: Optional[List[AuthorizationData]] = None


class SendLocalListResponse(Payload):
    status: SendLocalListStatus
    status_info: Optional[StatusInfo] = None


class GetLocalListVersionRequest(Payload):
    pass


class GetLocalListVersionResponse(Payload):
    version_number: int = Field(ge=0)


SEND_LOCAL_LIST = Feature(
    "SendLocalList", SendLocalListRequest, SendLocalListResponse, Direction.CSMS_TO_CHARGING_STATION
)
GET_LOCAL_LIST_VERSION = Feature(
    "GetLocalListVersion",
    GetLocalListVersionRequest,
    GetLocalListVersionResponse,
    Direction.CSMS_TO_CHARGING_STATION,
)


def profile() -> Profile:
    return Profile(PROFILE_NAME, SEND_LOCAL_LIST, GET_LOCAL_LIST_VERSION)
