"""
Provisioning profile: station boot, device model reports and configuration.
"""

from enum import Enum
from typing import Annotated, List, Optional

from pydantic import Field

from ocpplink.models.base import Payload, Text, Url
from ocpplink.models.types import (
    Attribute,
    Component,
    GenericDeviceModelStatus,
    StatusInfo,
    Variable,
)
from ocpplink.registry import Direction, Feature, Profile
from ocpplink.utils import DateTime

PROFILE_NAME = "provisioning"


class BootReason(str, Enum):
    APPLICATION_RESET = "ApplicationReset"
    FIRMWARE_UPDATE = "FirmwareUpdate"
    LOCAL_RESET = "LocalReset"
    POWER_UP = "PowerUp"
    REMOTE_RESET = "RemoteReset"
    SCHEDULED_RESET = "ScheduledReset"
    TRIGGERED = "Triggered"
    UNKNOWN = "Unknown"
    WATCHDOG = "Watchdog"


class RegistrationStatus(str, Enum):
    ACCEPTED = "Accepted"
    PENDING = "Pending"
    REJECTED = "Rejected"


class ReportBase(str, Enum):
    CONFIGURATION_INVENTORY = "ConfigurationInventory"
    FULL_INVENTORY = "FullInventory"
    SUMMARY_INVENTORY = "SummaryInventory"


class ResetType(str, Enum):
    IMMEDIATE = "Immediate"
    ON_IDLE = "OnIdle"


class ResetStatus(str, Enum):
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    SCHEDULED = "Scheduled"


class OCPPVersion(str, Enum):
    OCPP12 = "OCPP12"
    OCPP15 = "OCPP15"
    OCPP16 = "OCPP16"
    OCPP20 = "OCPP20"


class OCPPTransport(str, Enum):
    JSON = "JSON"
    SOAP = "SOAP"


class OCPPInterface(str, Enum):
    WIRED0 = "Wired0"
    WIRED1 = "Wired1"
    WIRED2 = "Wired2"
    WIRED3 = "Wired3"
    WIRELESS0 = "Wireless0"
    WIRELESS1 = "Wireless1"
    WIRELESS2 = "Wireless2"
    WIRELESS3 = "Wireless3"


class VPNType(str, Enum):
    IKEV2 = "IKEv2"
    IPSEC = "IPSec"
    L2TP = "L2TP"
    PPTP = "PPTP"


class APNAuthentication(str, Enum):
    CHAP = "CHAP"
    NONE = "NONE"
    PAP = "PAP"
    AUTO = "AUTO"


class SetNetworkProfileStatus(str, Enum):
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    FAILED = "Failed"


class Mutability(str, Enum):
    READ_ONLY = "ReadOnly"
    WRITE_ONLY = "WriteOnly"
    READ_WRITE = "ReadWrite"


class DataType(str, Enum):
    STRING = "string"
    DECIMAL = "decimal"
    INTEGER = "integer"
    DATE_TIME = "dateTime"
    BOOLEAN = "boolean"
    OPTION_LIST = "OptionList"
    SEQUENCE_LIST = "SequenceList"
    MEMBER_LIST = "MemberList"


class GetVariableStatus(str, Enum):
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    UNKNOWN_COMPONENT = "UnknownComponent"
    UNKNOWN_VARIABLE = "UnknownVariable"
    NOT_SUPPORTED_ATTRIBUTE_TYPE = "NotSupportedAttributeType"


class SetVariableStatus(str, Enum):
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    UNKNOWN_COMPONENT = "UnknownComponent"
    UNKNOWN_VARIABLE = "UnknownVariable"
    NOT_SUPPORTED_ATTRIBUTE_TYPE = "NotSupportedAttributeType"
    REBOOT_REQUIRED = "RebootRequired"


# BootNotification (CS -> CSMS)


class Modem(Payload):
    iccid: Optional[str] = Field(None, max_length=20)
    imsi: Optional[str] = Field(None, max_length=20)


class ChargingStation(Payload):
    serial_number: Optional[str] = Field(None, max_length=25)
    model: Text = Field(max_length=20)
    vendor_name: Text = Field(max_length=50)
    firmware_version: Optional[str] = Field(None, max_length=50)
    modem: Optional[Modem] = None


class BootNotificationRequest(Payload):
    reason: BootReason
    charging_station: ChargingStation


class BootNotificationResponse(Payload):
    current_time: DateTime
    interval: int = Field(ge=0)
    status: RegistrationStatus
    status_info: Optional[StatusInfo] = None


# GetBaseReport (CSMS -> CS)


class GetBaseReportRequest(Payload):
    request_id: int = Field(ge=0)
    report_base: ReportBase


class GetBaseReportResponse(Payload):
    status: GenericDeviceModelStatus
    status_info: Optional[StatusInfo] = None


# NotifyReport (CS -> CSMS)


class VariableAttribute(Payload):
    type: Optional[Attribute] = None
    value: Optional[str] = Field(None, max_length=2500)
    mutability: Optional[Mutability] = None
    persistent: Optional[bool] = None
    constant: Optional[bool] = None


class VariableCharacteristics(Payload):
    unit: Optional[str] = Field(None, max_length=16)
    data_type: DataType
    min_limit: Optional[float] = None
    max_limit: Optional[float] = None
    values_list: Optional[str] = Field(None, max_length=1000)
    supports_monitoring: bool


class ReportData(Payload):
    component: Component
    variable: Variable
    variable_attribute: List[VariableAttribute] = Field(min_length=1, max_length=4)
    variable_characteristics: Optional[VariableCharacteristics] = None


class NotifyReportRequest(Payload):
    request_id: int = Field(ge=0)
    generated_at: DateTime
    tbc: Optional[bool] = None
    seq_no: int = Field(ge=0)
    report_data: Optional[List[ReportData]] = None


class NotifyReportResponse(Payload):
    pass


# Reset (CSMS -> CS)


class ResetRequest(Payload):
    type: ResetType
    evse_id: Optional[int] = Field(None, ge=0)


class ResetResponse(Payload):
    status: ResetStatus
    status_info: Optional[StatusInfo] = None


# SetNetworkProfile (CSMS -> CS)


class VPN(Payload):
    server: Text = Field(max_length=512)
    user: Text = Field(max_length=20)
    group: Optional[str] = Field(None, max_length=20)
    password: Text = Field(max_length=20)
    key: Text = Field(max_length=255)
    type: VPNType


class APN(Payload):
    apn: Text = Field(max_length=512)
    apn_user_name: Optional[str] = Field(None, max_length=20)
    apn_password: Optional[str] = Field(None, max_length=20)
    sim_pin: Optional[int] = Field(None, ge=0)
    preferred_network: Optional[str] = Field(None, max_length=6)
    use_only_preferred_network: Optional[bool] = None
    apn_authentication: APNAuthentication


class NetworkConnectionProfile(Payload):
    ocpp_version: Optional[OCPPVersion] = None
    ocpp_transport: OCPPTransport
    ocpp_csms_url: Annotated[Text, Url] = Field(max_length=512)
    message_timeout: int = Field(ge=-1)
    security_profile: int = Field(ge=0)
    ocpp_interface: OCPPInterface
    vpn: Optional[VPN] = None
    apn: Optional[APN] = None


class SetNetworkProfileRequest(Payload):
    configuration_slot: int = Field(ge=0)
    connection_data: NetworkConnectionProfile


class SetNetworkProfileResponse(Payload):
    status: SetNetworkProfileStatus
    status_info: Optional[StatusInfo] = None


# GetVariables (CSMS -> CS)


class GetVariableData(Payload):
    attribute_type: Optional[Attribute] = None
    component: Component
    variable: Variable


class GetVariableResult(Payload):
    attribute_status: GetVariableStatus
    attribute_type: Optional[Attribute] = None
    attribute_value: Optional[str] = Field(None, max_length=2500)
    component: Component
    variable: Variable
    attribute_status_info: Optional[StatusInfo] = None


class GetVariablesRequest(Payload):
    get_variable_data: List[GetVariableData] = Field(min_length=1)


class GetVariablesResponse(Payload):
    get_variable_result: List[GetVariableResult] = Field(min_length=1)


# SetVariables (CSMS -> CS)


class SetVariableData(Payload):
    attribute_type: Optional[Attribute] = None
    attribute_value: Text = Field(max_length=1000)
    component: Component
    variable: Variable


class SetVariableResult(Payload):
    attribute_type: Optional[Attribute] = None
    attribute_status: SetVariableStatus
    component: Component
    variable: Variable
    attribute_status_info: Optional[StatusInfo] = None


class SetVariablesRequest(Payload):
    set_variable_data: List[SetVariableData] = Field(min_length=1)


class SetVariablesResponse(Payload):
    set_variable_result: List[SetVariableResult] = Field(min_length=1)


BOOT_NOTIFICATION = Feature(
    "BootNotification",
    BootNotificationRequest,
    BootNotificationResponse,
    Direction.CHARGING_STATION_TO_CSMS,
)
GET_BASE_REPORT = Feature(
    "GetBaseReport", GetBaseReportRequest, GetBaseReportResponse, Direction.CSMS_TO_CHARGING_STATION
)
NOTIFY_REPORT = Feature(
    "NotifyReport", NotifyReportRequest, NotifyReportResponse, Direction.CHARGING_STATION_TO_CSMS
)
RESET = Feature("Reset", ResetRequest, ResetResponse, Direction.CSMS_TO_CHARGING_STATION)
SET_NETWORK_PROFILE = Feature(
    "SetNetworkProfile",
    SetNetworkProfileRequest,
    SetNetworkProfileResponse,
    Direction.CSMS_TO_CHARGING_STATION,
)
GET_VARIABLES = Feature(
    "GetVariables", GetVariablesRequest, GetVariablesResponse, Direction.CSMS_TO_CHARGING_STATION
)
SET_VARIABLES = Feature(
    "SetVariables", SetVariablesRequest, SetVariablesResponse, Direction.CSMS_TO_CHARGING_STATION
)


def profile() -> Profile:
    return Profile(
        PROFILE_NAME,
        BOOT_NOTIFICATION,
        GET_BASE_REPORT,
        NOTIFY_REPORT,
        RESET,
        SET_NETWORK_PROFILE,
        GET_VARIABLES,
        SET_VARIABLES,
    )
