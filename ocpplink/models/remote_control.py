"""
Remote control profile: remote start/stop, triggered messages and connector unlock.
"""

from enum import Enum
from typing import Optional

from pydantic import Field

from ocpplink.models.base import Payload, Text
from ocpplink.models.types import EVSE, ChargingProfile, IdToken, StatusInfo
from ocpplink.registry import Direction, Feature, Profile

PROFILE_NAME = "remoteControl"


class RequestStartStopStatus(str, Enum):
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"


class MessageTrigger(str, Enum):
    BOOT_NOTIFICATION = "BootNotification"
    LOG_STATUS_NOTIFICATION = "LogStatusNotification"
    FIRMWARE_STATUS_NOTIFICATION = "FirmwareStatusNotification"
    HEARTBEAT = "Heartbeat"
    METER_VALUES = "MeterValues"
    SIGN_CHARGING_STATION_CERTIFICATE = "SignChargingStationCertificate"
    SIGN_V2G_CERTIFICATE = "SignV2GCertificate"
    STATUS_NOTIFICATION = "StatusNotification"
    TRANSACTION_EVENT = "TransactionEvent"
    SIGN_COMBINED_CERTIFICATE = "SignCombinedCertificate"
    PUBLISH_FIRMWARE_STATUS_NOTIFICATION = "PublishFirmwareStatusNotification"


class TriggerMessageStatus(str, Enum):
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    NOT_IMPLEMENTED = "NotImplemented"


class UnlockStatus(str, Enum):
    UNLOCKED = "Unlocked"
    UNLOCK_FAILED = "UnlockFailed"
    ONGOING_AUTHORIZED_TRANSACTION = "OngoingAuthorizedTransaction"
    UNKNOWN_CONNECTOR = "UnknownConnector"


class RequestStartTransactionRequest(Payload):
    evse_id: Optional[int] = Field(None, gt=0)
    remote_start_id: int = Field(ge=0)
    id_token: IdToken
    charging_profile: Optional[ChargingProfile] = None
    group_id_token: Optional[IdToken] = None


class RequestStartTransactionResponse(Payload):
    status: RequestStartStopStatus
    transaction_id: Optional[str] = Field(None, max_length=36)
    status_info: Optional[StatusInfo] = None


class RequestStopTransactionRequest(Payload):
    transaction_id: Text = Field(max_length=36)


class RequestStopTransactionResponse(Payload):
    status: RequestStartStopStatus
    status_info: Optional[StatusInfo] = None


class TriggerMessageRequest(Payload):
    requested_message: MessageTrigger
    evse: Optional[EVSE] = None


class TriggerMessageResponse(Payload):
    status: TriggerMessageStatus
    status_info: Optional[StatusInfo] = None


class UnlockConnectorRequest(Payload):
    evse_id: int = Field(ge=0)
    connector_id: int = Field(ge=0)


class UnlockConnectorResponse(Payload):
    status: UnlockStatus
    status_info: Optional[StatusInfo] = None


REQUEST_START_TRANSACTION = Feature(
    "RequestStartTransaction",
    RequestStartTransactionRequest,
    RequestStartTransactionResponse,
    Direction.CSMS_TO_CHARGING_STATION,
)
REQUEST_STOP_TRANSACTION = Feature(
    "RequestStopTransaction",
    RequestStopTransactionRequest,
    RequestStopTransactionResponse,
    Direction.CSMS_TO_CHARGING_STATION,
)
TRIGGER_MESSAGE = Feature(
    "TriggerMessage", TriggerMessageRequest, TriggerMessageResponse, Direction.CSMS_TO_CHARGING_STATION
)
UNLOCK_CONNECTOR = Feature(
    "UnlockConnector", UnlockConnectorRequest, UnlockConnectorResponse, Direction.CSMS_TO_CHARGING_STATION
)


def profile() -> Profile:
    return Profile(
        PROFILE_NAME,
        REQUEST_START_TRANSACTION,
        REQUEST_STOP_TRANSACTION,
        TRIGGER_MESSAGE,
        UNLOCK_CONNECTOR,
    )
