"""
Data types shared by several OCPP 2.0.1 profiles.
"""

from enum import Enum
from typing import Annotated, List, Optional

from pydantic import Field, model_validator

from ocpplink.models.base import Payload, Text, Url, field_required
from ocpplink.utils import DateTime


class AuthorizationStatus(str, Enum):
    ACCEPTED = "Accepted"
    BLOCKED = "Blocked"
    CONCURRENT_TX = "ConcurrentTx"
    EXPIRED = "Expired"
    INVALID = "Invalid"
    NO_CREDIT = "NoCredit"
    NOT_ALLOWED_TYPE_EVSE = "NotAllowedTypeEVSE"
    NOT_AT_THIS_LOCATION = "NotAtThisLocation"
    NOT_AT_THIS_TIME = "NotAtThisTime"
    UNKNOWN = "Unknown"


class IdTokenType(str, Enum):
    CENTRAL = "Central"
    EMAID = "eMAID"
    ISO14443 = "ISO14443"
    ISO15693 = "ISO15693"
    KEY_CODE = "KeyCode"
    LOCAL = "Local"
    MAC_ADDRESS = "MacAddress"
    NO_AUTHORIZATION = "NoAuthorization"


class GenericStatus(str, Enum):
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"


class GenericDeviceModelStatus(str, Enum):
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    NOT_SUPPORTED = "NotSupported"
    EMPTY_RESULT_SET = "EmptyResultSet"


class HashAlgorithm(str, Enum):
    SHA256 = "SHA256"
    SHA384 = "SHA384"
    SHA512 = "SHA512"


class CertificateSigningUse(str, Enum):
    CHARGING_STATION_CERTIFICATE = "ChargingStationCertificate"
    V2G_CERTIFICATE = "V2GCertificate"


class MessageFormat(str, Enum):
    ASCII = "ASCII"
    HTML = "HTML"
    URI = "URI"
    UTF8 = "UTF8"


class Attribute(str, Enum):
    ACTUAL = "Actual"
    TARGET = "Target"
    MIN_SET = "MinSet"
    MAX_SET = "MaxSet"


class ChargingProfilePurpose(str, Enum):
    CHARGING_STATION_EXTERNAL_CONSTRAINTS = "ChargingStationExternalConstraints"
    CHARGING_STATION_MAX_PROFILE = "ChargingStationMaxProfile"
    TX_DEFAULT_PROFILE = "TxDefaultProfile"
    TX_PROFILE = "TxProfile"


class ChargingProfileKind(str, Enum):
    ABSOLUTE = "Absolute"
    RECURRING = "Recurring"
    RELATIVE = "Relative"


class RecurrencyKind(str, Enum):
    DAILY = "Daily"
    WEEKLY = "Weekly"


class ChargingRateUnit(str, Enum):
    WATTS = "W"
    AMPERES = "A"


class ReadingContext(str, Enum):
    INTERRUPTION_BEGIN = "Interruption.Begin"
    INTERRUPTION_END = "Interruption.End"
    OTHER = "Other"
    SAMPLE_CLOCK = "Sample.Clock"
    SAMPLE_PERIODIC = "Sample.Periodic"
    TRANSACTION_BEGIN = "Transaction.Begin"
    TRANSACTION_END = "Transaction.End"
    TRIGGER = "Trigger"


class Measurand(str, Enum):
    CURRENT_EXPORT = "Current.Export"
    CURRENT_IMPORT = "Current.Import"
    CURRENT_OFFERED = "Current.Offered"
    ENERGY_ACTIVE_EXPORT_REGISTER = "Energy.Active.Export.Register"
    ENERGY_ACTIVE_IMPORT_REGISTER = "Energy.Active.Import.Register"
    ENERGY_REACTIVE_EXPORT_REGISTER = "Energy.Reactive.Export.Register"
    ENERGY_REACTIVE_IMPORT_REGISTER = "Energy.Reactive.Import.Register"
    ENERGY_ACTIVE_EXPORT_INTERVAL = "Energy.Active.Export.Interval"
    ENERGY_ACTIVE_IMPORT_INTERVAL = "Energy.Active.Import.Interval"
    ENERGY_ACTIVE_NET = "Energy.Active.Net"
    ENERGY_REACTIVE_EXPORT_INTERVAL = "Energy.Reactive.Export.Interval"
    ENERGY_REACTIVE_IMPORT_INTERVAL = "Energy.Reactive.Import.Interval"
    ENERGY_REACTIVE_NET = "Energy.Reactive.Net"
    ENERGY_APPARENT_NET = "Energy.Apparent.Net"
    ENERGY_APPARENT_IMPORT = "Energy.Apparent.Import"
    ENERGY_APPARENT_EXPORT = "Energy.Apparent.Export"
    FREQUENCY = "Frequency"
    POWER_ACTIVE_EXPORT = "Power.Active.Export"
    POWER_ACTIVE_IMPORT = "Power.Active.Import"
    POWER_FACTOR = "Power.Factor"
    POWER_OFFERED = "Power.Offered"
    POWER_REACTIVE_EXPORT = "Power.Reactive.Export"
    POWER_REACTIVE_IMPORT = "Power.Reactive.Import"
    SOC = "SoC"
    TEMPERATURE = "Temperature"
    VOLTAGE = "Voltage"


class Phase(str, Enum):
    L1 = "L1"
    L2 = "L2"
    L3 = "L3"
    N = "N"
    L1_N = "L1-N"
    L2_N = "L2-N"
    L3_N = "L3-N"
    L1_L2 = "L1-L2"
    L2_L3 = "L2-L3"
    L3_L1 = "L3-L1"


class Location(str, Enum):
    BODY = "Body"
    CABLE = "Cable"
    EV = "EV"
    INLET = "Inlet"
    OUTLET = "Outlet"


class StatusInfo(Payload):
    """More information about a response status. Either absent or fully populated."""

    reason_code: Text = Field(max_length=20)
    additional_info: Optional[str] = Field(None, max_length=512)


class AdditionalInfo(Payload):
    additional_id_token: Text = Field(max_length=36)
    type: Text = Field(max_length=50)


class IdToken(Payload):
    id_token: str = Field(max_length=36)
    type: IdTokenType
    additional_info: Optional[List[AdditionalInfo]] = None

    @model_validator(mode="after")
    def _token_required(self):
        # The token value may only be left empty for NoAuthorization
        if self.type != IdTokenType.NO_AUTHORIZATION and not self.id_token:
            raise field_required("idToken")
        return self


class GroupIdToken(Payload):
    id_token: str = Field(max_length=36)
    type: IdTokenType


class MessageContent(Payload):
    format: MessageFormat
    language: Optional[str] = Field(None, max_length=8)
    content: Text = Field(max_length=512)


class IdTokenInfo(Payload):
    status: AuthorizationStatus
    cache_expiry_date_time: Optional[DateTime] = None
    charging_priority: Optional[int] = Field(None, ge=-9, le=9)
    language1: Optional[str] = Field(None, max_length=8)
    language2: Optional[str] = Field(None, max_length=8)
    group_id_token: Optional[GroupIdToken] = None
    personal_message: Optional[MessageContent] = None


class OCSPRequestData(Payload):
    hash_algorithm: HashAlgorithm
    issuer_name_hash: Text = Field(max_length=128)
    issuer_key_hash: Text = Field(max_length=128)
    serial_number: Text = Field(max_length=40)
    responder_url: Annotated[Text, Url] = Field(max_length=512, alias="responderURL")


class EVSE(Payload):
    id: int = Field(ge=0)
    connector_id: Optional[int] = Field(None, ge=0)


class Component(Payload):
    name: Text = Field(max_length=50)
    instance: Optional[str] = Field(None, max_length=50)
    evse: Optional[EVSE] = None


class Variable(Payload):
    name: Text = Field(max_length=50)
    instance: Optional[str] = Field(None, max_length=50)


class ChargingSchedulePeriod(Payload):
    start_period: int = Field(ge=0)
    limit: float = Field(ge=0)
    number_phases: Optional[int] = Field(None, ge=0, le=3)
    phase_to_use: Optional[int] = Field(None, ge=1, le=3)


class ChargingSchedule(Payload):
    id: int = Field(ge=0)
    start_schedule: Optional[DateTime] = None
    duration: Optional[int] = Field(None, ge=0)
    charging_rate_unit: ChargingRateUnit
    min_charging_rate: Optional[float] = Field(None, ge=0)
    charging_schedule_period: List[ChargingSchedulePeriod] = Field(min_length=1, max_length=1024)


class ChargingProfile(Payload):
    id: int = Field(ge=0)
    stack_level: int = Field(ge=0)
    charging_profile_purpose: ChargingProfilePurpose
    charging_profile_kind: ChargingProfileKind
    recurrency_kind: Optional[RecurrencyKind] = None
    valid_from: Optional[DateTime] = None
    valid_to: Optional[DateTime] = None
    transaction_id: Optional[str] = Field(None, max_length=36)
    charging_schedule: List[ChargingSchedule] = Field(min_length=1, max_length=3)


class UnitOfMeasure(Payload):
    unit: Optional[str] = Field(None, max_length=20)
    multiplier: Optional[int] = None


class SignedMeterValue(Payload):
    signed_meter_data: Text = Field(max_length=2500)
    signing_method: Text = Field(max_length=50)
    encoding_method: Text = Field(max_length=50)
    public_key: Text = Field(max_length=2500)


class SampledValue(Payload):
    value: float
    context: Optional[ReadingContext] = None
    measurand: Optional[Measurand] = None
    phase: Optional[Phase] = None
    location: Optional[Location] = None
    signed_meter_value: Optional[SignedMeterValue] = None
    unit_of_measure: Optional[UnitOfMeasure] = None


class MeterValue(Payload):
    timestamp: DateTime
    sampled_value: List[SampledValue] = Field(min_length=1)


