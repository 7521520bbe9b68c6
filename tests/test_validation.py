"""
Test payload constraint validation.
"""

from typing import Annotated, List, Literal, Optional

import pydantic
import pytest
from pydantic import Field

from ocpplink.errors import ErrorCode, ValidationError
from ocpplink.models.base import Payload, Text, Unique, Url, equal, not_equal
from ocpplink.models.provisioning import (
    BootNotificationRequest,
    BootNotificationResponse,
    BootReason,
    ChargingStation,
    GetBaseReportRequest,
    RegistrationStatus,
)
from ocpplink.models.types import AuthorizationStatus, IdToken, IdTokenInfo, IdTokenType, StatusInfo
from ocpplink.utils import DateTime
from ocpplink.validation import first_error, parse, validate


class Sample(Payload):
    name: Text = Field(max_length=5)
    tags: Optional[Annotated[List[Annotated[str, Field(max_length=3)]], Unique]] = None
    level: Optional[int] = Field(None, gt=0, lt=10)
    mode: Optional[Literal["fast", "slow"]] = None
    endpoint: Optional[Annotated[str, Url]] = None
    version: Optional[Annotated[int, not_equal(3)]] = None
    variant: Optional[Annotated[int, equal(1)]] = None


def _violation(payload, feature="") -> ValidationError:
    with pytest.raises(ValidationError) as excinfo:
        validate(payload, feature)
    return excinfo.value


def _parse_violation(payload_type, data, feature="") -> ValidationError:
    with pytest.raises(ValidationError) as excinfo:
        parse(payload_type, data, feature)
    return excinfo.value


def _boot(model="Model1"):
    return BootNotificationRequest.model_construct(
        reason=BootReason.POWER_UP,
        charging_station=ChargingStation.model_construct(model=model, vendor_name="Vendor1"),
    )


def test_valid_payload_passes():
    validate(_boot())


def test_string_length_at_limit():
    validate(_boot("x" * 20))


def test_string_length_over_limit():
    error = _violation(_boot("x" * 21), "BootNotification")

    assert error.code == ErrorCode.PROPERTY_CONSTRAINT_VIOLATION
    assert error.path == "chargingStation.model"
    assert error.tag == "max"
    assert error.param == "20"
    assert error.description == (
        "Field chargingStation.model must be maximum 20, but was 21 for feature BootNotification"
    )


def test_required_field_missing():
    error = _violation(BootNotificationRequest.model_construct(reason=BootReason.POWER_UP), "BootNotification")

    assert error.code == ErrorCode.OCCURRENCE_CONSTRAINT_VIOLATION
    assert error.path == "chargingStation"
    assert error.description == "Field chargingStation required but not found for feature BootNotification"


def test_required_string_empty():
    error = _violation(_boot(""))

    assert error.code == ErrorCode.OCCURRENCE_CONSTRAINT_VIOLATION
    assert error.path == "chargingStation.model"


def test_constructor_rejects_invalid_values():
    with pytest.raises(pydantic.ValidationError) as excinfo:
        ChargingStation(model="x" * 21, vendor_name="Vendor1")

    error = first_error(excinfo.value, "BootNotification")
    assert error.path == "model"
    assert error.tag == "max"


@pytest.mark.parametrize("priority", [-9, 0, 9])
def test_integer_bounds_accepted(priority):
    validate(IdTokenInfo(status=AuthorizationStatus.ACCEPTED, charging_priority=priority))


@pytest.mark.parametrize("priority, tag, param", [(-10, "gte", "-9"), (10, "lte", "9")])
def test_integer_bounds_rejected(priority, tag, param):
    info = IdTokenInfo.model_construct(status=AuthorizationStatus.ACCEPTED, charging_priority=priority)

    error = _violation(info)

    assert error.code == ErrorCode.PROPERTY_CONSTRAINT_VIOLATION
    assert error.path == "chargingPriority"
    assert error.tag == tag
    assert error.param == param


def test_absent_optional_field_is_not_checked():
    validate(IdTokenInfo(status=AuthorizationStatus.ACCEPTED))


def test_nested_empty_object_fails_required():
    response = BootNotificationResponse.model_construct(
        current_time=DateTime.now(),
        interval=60,
        status=RegistrationStatus.REJECTED,
        status_info=StatusInfo.model_construct(),
    )

    error = _violation(response)

    assert error.code == ErrorCode.OCCURRENCE_CONSTRAINT_VIOLATION
    assert error.path == "statusInfo.reasonCode"


def test_unknown_enum_value():
    request = GetBaseReportRequest.model_construct(request_id=1, report_base="invalidReportType")

    error = _violation(request, "GetBaseReport")

    assert error.code == ErrorCode.PROPERTY_CONSTRAINT_VIOLATION
    assert error.tag == "oneof"
    assert error.description == (
        "Field reportBase must be one of ConfigurationInventory FullInventory SummaryInventory, "
        "but was invalidReportType for feature GetBaseReport"
    )


def test_bad_timestamp():
    response = BootNotificationResponse.model_construct(
        current_time="yesterday", interval=60, status=RegistrationStatus.ACCEPTED
    )

    error = _violation(response)

    assert error.path == "currentTime"
    assert error.tag == "date-time"


@pytest.mark.parametrize(
    "timestamp",
    ["2024-13-45T99:99:99Z", "2024-02-30T12:00:00Z", "2024-01-01T12:61:00+01:00"],
)
def test_impossible_timestamp(timestamp):
    error = _parse_violation(
        BootNotificationResponse,
        {"currentTime": timestamp, "interval": 60, "status": "Accepted"},
        "BootNotification",
    )

    assert error.code == ErrorCode.PROPERTY_CONSTRAINT_VIOLATION
    assert error.path == "currentTime"
    assert error.tag == "date-time"


def test_impossible_timestamp_rejected_on_construction():
    with pytest.raises(pydantic.ValidationError):
        BootNotificationResponse(current_time="2024-13-45T99:99:99Z", interval=60, status=RegistrationStatus.ACCEPTED)


def test_id_token_required_unless_no_authorization():
    validate(IdToken(id_token="", type=IdTokenType.NO_AUTHORIZATION))

    error = _violation(IdToken.model_construct(id_token="", type=IdTokenType.CENTRAL))

    assert error.code == ErrorCode.OCCURRENCE_CONSTRAINT_VIOLATION
    assert error.path == "idToken"


def test_id_token_too_long():
    error = _violation(IdToken.model_construct(id_token="x" * 37, type=IdTokenType.CENTRAL))

    assert error.tag == "max"


def test_list_element_constraints():
    validate(Sample(name="a", tags=["one", "two"]))

    error = _violation(Sample.model_construct(name="a", tags=["one", "four"]))

    assert error.path == "tags[1]"
    assert error.tag == "max"


def test_unique():
    error = _violation(Sample.model_construct(name="a", tags=["one", "one"]))

    assert error.path == "tags"
    assert error.tag == "unique"


@pytest.mark.parametrize(
    "values, tag",
    [
        ({"level": 0}, "gt"),
        ({"level": 10}, "lt"),
        ({"mode": "medium"}, "oneof"),
        ({"endpoint": "not a url"}, "url"),
        ({"version": 3}, "ne"),
        ({"variant": 2}, "eq"),
    ],
)
def test_property_constraints(values, tag):
    error = _violation(Sample.model_construct(name="a", **values))

    assert error.code == ErrorCode.PROPERTY_CONSTRAINT_VIOLATION
    assert error.tag == tag


def test_sample_accepts_good_values():
    validate(Sample(name="abc", level=5, mode="slow", endpoint="wss://csms.example.com/ocpp", version=2))


def test_parse_reports_type_error_before_constraints():
    error = _parse_violation(Sample, {"name": "toolong", "level": "5"})

    assert error.code == ErrorCode.TYPE_CONSTRAINT_VIOLATION
    assert error.path == "level"
    assert error.description == "Field level must be of type int, but was str"


def test_parse_without_constraint_checks_keeps_payload():
    sample = parse(Sample, {"name": "toolong", "mode": "medium"}, check_constraints=False)

    assert sample.name == "toolong"
    assert sample.mode == "medium"


def test_parse_without_constraint_checks_still_rejects_wrong_types():
    with pytest.raises(ValidationError) as excinfo:
        parse(Sample, {"name": 5}, check_constraints=False)

    assert excinfo.value.code == ErrorCode.TYPE_CONSTRAINT_VIOLATION
