"""
Maps pydantic validation failures onto OCPP error codes.

Payload constraints are declared on the models themselves (see
ocpplink.models.base). This module turns each pydantic error into a
ValidationError carrying the JSON path of the failing field and a constraint
tag:

    required            field present and not empty
    max, min            string/sequence length
    gt, gte, lt, lte    numeric bounds
    eq, ne              equality/inequality
    oneof               enum or literal membership
    url, uri            syntactically valid URL/URI
    unique              sequence elements are distinct
    date-time           ISO-8601 timestamp with time zone
    type                value of the wrong JSON type

``required`` maps to OccurrenceConstraintViolation, ``type`` to
TypeConstraintViolation and every other tag to PropertyConstraintViolation.
"""

import re
from typing import List

import pydantic

from ocpplink.errors import ErrorCode, ValidationError

# pydantic error type -> (tag, ctx key holding the constraint parameter)
_PROPERTY_TAGS = {
    "string_too_long": ("max", "max_length"),
    "too_long": ("max", "max_length"),
    "string_too_short": ("min", "min_length"),
    "too_short": ("min", "min_length"),
    "greater_than": ("gt", "gt"),
    "greater_than_equal": ("gte", "ge"),
    "less_than": ("lt", "lt"),
    "less_than_equal": ("lte", "le"),
    "enum": ("oneof", "expected"),
    "literal_error": ("oneof", "expected"),
    "eq": ("eq", "eq"),
    "ne": ("ne", "ne"),
    "url": ("url", None),
    "uri": ("uri", None),
    "unique": ("unique", None),
    "date_time": ("date-time", None),
}

# pydantic error type -> expected JSON type
_TYPE_NAMES = {
    "string_type": "str",
    "int_type": "int",
    "int_from_float": "int",
    "int_parsing": "int",
    "float_type": "float",
    "float_parsing": "float",
    "bool_type": "bool",
    "bool_parsing": "bool",
    "list_type": "list",
    "dict_type": "object",
    "model_type": "object",
    "model_attributes_type": "object",
    "is_instance_of": "object",
    "date_time_type": "str",
}

_DETAILS = {
    "max": "maximum",
    "min": "minimum",
    "gte": ">=",
    "gt": ">",
    "lte": "<=",
    "lt": "<",
    "eq": "equal to",
    "ne": "not equal to",
    "oneof": "one of",
    "url": "a valid URL",
    "uri": "a valid URI",
    "unique": "unique",
    "date-time": "an ISO-8601 date-time with time zone",
}

_LENGTH_TAGS = {"max", "min"}


def _path(loc) -> str:
    path = ""
    for item in loc:
        if isinstance(item, int):
            path += f"[{item}]"
        else:
            path = f"{path}.{item}" if path else str(item)
    return path


def _suffix(feature: str) -> str:
    return f" for feature {feature}" if feature else ""


def _param(error_type: str, key, ctx: dict):
    if key is None or key not in ctx:
        return None
    if error_type in ("enum", "literal_error"):
        # "'a', 'b' or 'c'" -> "a b c"
        return " ".join(re.findall(r"'([^']*)'", str(ctx[key])))
    return str(ctx[key])


def _shown(tag: str, value):
    if tag in _LENGTH_TAGS and isinstance(value, (str, list, dict)):
        return len(value)
    return value


def _convert(error: dict, feature: str) -> ValidationError:
    error_type = error["type"]
    ctx = error.get("ctx") or {}
    value = error.get("input")
    loc = tuple(error["loc"])
    if error_type == "required" and ctx.get("field"):
        loc += (ctx["field"],)
    path = _path(loc)

    if error_type in ("missing", "required"):
        return ValidationError(
            ErrorCode.OCCURRENCE_CONSTRAINT_VIOLATION,
            f"Field {path} required but not found{_suffix(feature)}",
            path=path,
            tag="required",
        )

    expected = _TYPE_NAMES.get(error_type)
    if expected is None and error_type in ("enum", "literal_error") and not isinstance(value, str):
        expected = "str"
    if expected is not None:
        return ValidationError(
            ErrorCode.TYPE_CONSTRAINT_VIOLATION,
            f"Field {path} must be of type {expected}, but was {type(value).__name__}",
            path=path,
            tag="type",
            param=expected,
        )

    tag, key = _PROPERTY_TAGS.get(error_type, (error_type, None))
    param = _param(error_type, key, ctx)
    detail = _DETAILS.get(tag, tag) + (f" {param}" if param is not None else "")
    return ValidationError(
        ErrorCode.PROPERTY_CONSTRAINT_VIOLATION,
        f"Field {path} must be {detail}, but was {_shown(tag, value)}{_suffix(feature)}",
        path=path,
        tag=tag,
        param=param,
    )


def from_pydantic(exc: pydantic.ValidationError, feature: str = "") -> List[ValidationError]:
    """Every error of a pydantic failure, as OCPP validation errors in report order."""
    return [_convert(error, feature) for error in exc.errors()]


def first_error(exc: pydantic.ValidationError, feature: str = "") -> ValidationError:
    """The error reported on the wire: the first type error if any, otherwise the first violation."""
    errors = from_pydantic(exc, feature)
    for error in errors:
        if error.tag == "type":
            return error
    return errors[0]


def parse(payload_type, data, feature: str = "", check_constraints: bool = True):
    """
    Decode a JSON object received from a peer into a payload.

    Values of the wrong JSON type are always rejected. Other constraint
    violations are rejected only when ``check_constraints`` is set; otherwise
    the payload is built as received.

    Raises:
        ValidationError: naming the failing field path and tag
    """
    try:
        return payload_type.from_dict(data)
    except pydantic.ValidationError as exc:
        error = first_error(exc, feature)
    if check_constraints or error.tag == "type":
        raise error
    return payload_type.construct_from(data)


def validate(payload, feature: str = ""):
    """
    Check a payload against its declared constraints.

    Payloads built with model_construct() skip validation; this runs it.

    Raises:
        ValidationError: on the first violation, naming the failing field path and tag
    """
    try:
        type(payload).model_validate_json(payload.to_json(), strict=True)
    except pydantic.ValidationError as exc:
        raise first_error(exc, feature) from None
