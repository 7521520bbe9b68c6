"""
Transactions and meter values.
"""

from enum import Enum
from typing import List, Optional

from pydantic import Field

from ocpplink.models.base import Payload, Text
from ocpplink.models.types import EVSE, IdToken, IdTokenInfo, MessageContent, MeterValue
from ocpplink.registry import Direction, Feature, Profile
from ocpplink.utils import DateTime

PROFILE_NAME = "transactions"
METER_PROFILE_NAME = "meter"


class TransactionEventType(str, Enum):
    ENDED = "Ended"
    STARTED = "Started"
    UPDATED = "Updated"


class TriggerReason(str, Enum):
    AUTHORIZED = "Authorized"
    CABLE_PLUGGED_IN = "CablePluggedIn"
    CHARGING_RATE_CHANGED = "ChargingRateChanged"
    CHARGING_STATE_CHANGED = "ChargingStateChanged"
    DEAUTHORIZED = "Deauthorized"
    ENERGY_LIMIT_REACHED = "EnergyLimitReached"
    EV_COMMUNICATION_LOST = "EVCommunicationLost"
    EV_CONNECT_TIMEOUT = "EVConnectTimeout"
    METER_VALUE_CLOCK = "MeterValueClock"
    METER_VALUE_PERIODIC = "MeterValuePeriodic"
    TIME_LIMIT_REACHED = "TimeLimitReached"
    TRIGGER = "Trigger"
    UNLOCK_COMMAND = "UnlockCommand"
    STOP_AUTHORIZED = "StopAuthorized"
    EV_DEPARTED = "EVDeparted"
    EV_DETECTED = "EVDetected"
    REMOTE_STOP = "RemoteStop"
    REMOTE_START = "RemoteStart"
    ABNORMAL_CONDITION = "AbnormalCondition"
    SIGNED_DATA_RECEIVED = "SignedDataReceived"
    RESET_COMMAND = "ResetCommand"


class ChargingState(str, Enum):
    CHARGING = "Charging"
    EV_CONNECTED = "EVConnected"
    SUSPENDED_EV = "SuspendedEV"
    SUSPENDED_EVSE = "SuspendedEVSE"
    IDLE = "Idle"


class StoppedReason(str, Enum):
    DEAUTHORIZED = "DeAuthorized"
    EMERGENCY_STOP = "EmergencyStop"
    ENERGY_LIMIT_REACHED = "EnergyLimitReached"
    EV_DISCONNECTED = "EVDisconnected"
    GROUND_FAULT = "GroundFault"
    IMMEDIATE_RESET = "ImmediateReset"
    LOCAL = "Local"
    LOCAL_OUT_OF_CREDIT = "LocalOutOfCredit"
    MASTER_PASS = "MasterPass"
    OTHER = "Other"
    OVERCURRENT_FAULT = "OvercurrentFault"
    POWER_LOSS = "PowerLoss"
    POWER_QUALITY = "PowerQuality"
    REBOOT = "Reboot"
    REMOTE = "Remote"
    SOC_LIMIT_REACHED = "SOCLimitReached"
    STOPPED_BY_EV = "StoppedByEV"
    TIME_LIMIT_REACHED = "TimeLimitReached"
    TIMEOUT = "Timeout"


class Transaction(Payload):
    transaction_id: Text = Field(max_length=36)
    charging_state: Optional[ChargingState] = None
    time_spent_charging: Optional[int] = Field(None, ge=0)
    stopped_reason: Optional[StoppedReason] = None
    remote_start_id: Optional[int] = None


class TransactionEventRequest(Payload):
    event_type: TransactionEventType
    timestamp: DateTime
    trigger_reason: TriggerReason
    seq_no: int = Field(ge=0)
    offline: Optional[bool] = None
    number_of_phases_used: Optional[int] = Field(None, ge=0, le=3)
    cable_max_current: Optional[int] = None
    reservation_id: Optional[int] = None
    transaction_info: Transaction
    id_token: Optional[IdToken] = None
    evse: Optional[EVSE] = None
    meter_value: Optional[List[MeterValue]] = None


class TransactionEventResponse(Payload):
    total_cost: Optional[float] = Field(None, ge=0)
    charging_priority: Optional[int] = Field(None, ge=-9, le=9)
    id_token_info: Optional[IdTokenInfo] = None
    updated_personal_message: Optional[MessageContent] = None


class MeterValuesRequest(Payload):
    evse_id: int = Field(ge=0)
    meter_value: List[MeterValue] = Field(min_length=1)


class MeterValuesResponse(Payload):
    pass


TRANSACTION_EVENT = Feature(
    "TransactionEvent",
    TransactionEventRequest,
    TransactionEventResponse,
    Direction.CHARGING_STATION_TO_CSMS,
)
METER_VALUES = Feature("MeterValues", MeterValuesRequest, MeterValuesResponse, Direction.CHARGING_STATION_TO_CSMS)


def profile() -> Profile:
    return Profile(PROFILE_NAME, TRANSACTION_EVENT)


def meter_profile() -> Profile:
    return Profile(METER_PROFILE_NAME, METER_VALUES)
