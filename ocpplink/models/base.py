"""
Base class for OCPP payload schemas.

Every request and response payload is a pydantic model deriving from Payload.
Constraints are declared with Field() and the annotated types below:

    class StatusInfo(Payload):
        reason_code: Text = Field(max_length=20)
        additional_info: Optional[str] = Field(None, max_length=512)

Field names are snake_case in Python and camelCase on the wire. A field may
override its wire name with Field(alias=...).

Payloads arriving from a peer are validated in strict JSON mode, so a value of
the wrong JSON type is rejected instead of coerced. Use Model.model_construct()
to build a payload that skips validation, e.g. to talk to a non-compliant peer
with message validation disabled.
"""

import json
import re
import typing
from enum import Enum
from typing import Annotated, Any, Dict, List
from urllib.parse import urlparse

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from ocpplink.utils import DateTime


def snake_case(action: str) -> str:
    """BootNotification -> boot_notification, NotifyEVChargingNeeds -> notify_ev_charging_needs"""
    return re.sub(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])", "_", action).lower()


def field_required(field: str = "") -> PydanticCustomError:
    """Error for a required value that is absent or empty; ``field`` names it when raised by a model validator."""
    return PydanticCustomError("required", "Field required", {"field": field} if field else None)


def _not_empty(value):
    if not value:
        raise field_required()
    return value


def _url(value: str) -> str:
    parsed = urlparse(value)
    if not (parsed.scheme and parsed.netloc):
        raise PydanticCustomError("url", "Input should be a valid URL")
    return value


def _uri(value: str) -> str:
    parsed = urlparse(value)
    if not parsed.scheme or not (parsed.netloc or parsed.path):
        raise PydanticCustomError("uri", "Input should be a valid URI")
    return value


def _unique(values):
    seen = []
    for value in values:
        if value in seen:
            raise PydanticCustomError("unique", "Input should only contain unique elements")
        seen.append(value)
    return values


# Required text: present and not empty
Text = Annotated[str, AfterValidator(_not_empty)]

Url = AfterValidator(_url)
Uri = AfterValidator(_uri)
Unique = AfterValidator(_unique)


def equal(expected) -> AfterValidator:
    def check(value):
        if value != expected:
            raise PydanticCustomError("eq", "Input should be equal to {eq}", {"eq": expected})
        return value

    return AfterValidator(check)


def not_equal(excluded) -> AfterValidator:
    def check(value):
        if value == excluded:
            raise PydanticCustomError("ne", "Input should not be equal to {ne}", {"ne": excluded})
        return value

    return AfterValidator(check)


class Payload(BaseModel):
    """Base model for OCPP payloads: camelCase wire names and JSON (de)serialization."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-ready dict. Fields set to None are omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True, warnings=False)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, warnings=False)

    @classmethod
    def from_dict(cls, data):
        """
        Validate a decoded JSON object.

        Unknown keys are ignored. Validation runs in strict JSON mode: enum
        members are given by value and timestamps as text, while numbers,
        strings, booleans, arrays and objects must have the declared JSON type.

        Raises:
            pydantic.ValidationError: listing every failing field
        """
        return cls.model_validate_json(json.dumps(data), strict=True)

    @classmethod
    def construct_from(cls, data: Dict[str, Any]):
        """
        Build a payload from a decoded JSON object without checking it.

        Nested objects become payloads, and enum values and timestamps are
        converted where they are valid and kept as received otherwise.
        """
        values = {}
        for name, field in cls.model_fields.items():
            key = field.alias or name
            if key in data:
                values[name] = _construct(field.annotation, data[key])
            elif field.is_required():
                values[name] = None
        return cls.model_construct(**values)


def unwrap_optional(type_hint):
    """Optional[X] -> X, Annotated[X, ...] -> X; other hints are returned unchanged."""
    if typing.get_origin(type_hint) is typing.Union:
        args = [a for a in typing.get_args(type_hint) if a is not type(None)]
        if len(args) == 1:
            type_hint = args[0]
    if typing.get_origin(type_hint) is Annotated:
        type_hint = typing.get_args(type_hint)[0]
    return type_hint


def _construct(type_hint, value):
    hint = unwrap_optional(type_hint)
    if value is None:
        return None
    if typing.get_origin(hint) in (list, List) and isinstance(value, list):
        (item_type,) = typing.get_args(hint) or (Any,)
        return [_construct(item_type, item) for item in value]
    if isinstance(hint, type) and issubclass(hint, Payload) and isinstance(value, dict):
        return hint.construct_from(value)
    if isinstance(hint, type) and issubclass(hint, (Enum, DateTime)):
        try:
            return hint(value)
        except (TypeError, ValueError):
            return value
    return value
