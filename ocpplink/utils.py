"""
Utility functions for OCPP timestamps and message IDs.
"""

import random
import re
from datetime import datetime, timezone
from functools import total_ordering

from pydantic_core import PydanticCustomError, core_schema

# ISO-8601 with a mandatory time zone designator (Z or +hh:mm / -hh:mm)
_ISO_8601_TZ = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|[+-]\d{2}:\d{2})$"
)


def utc_now_iso():
    """
    Get current UTC time in ISO format with Z suffix for OCPP compliance.

    Returns:
        str: Current UTC time in ISO format with Z suffix (e.g., "2024-01-01T12:00:00.123456Z")
    """
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def is_ocpp_timestamp(value) -> bool:
    """Check whether a string is an ISO-8601 timestamp carrying a time zone."""
    return isinstance(value, str) and _ISO_8601_TZ.match(value) is not None


def parse_ocpp_timestamp(timestamp_str):
    """
    Parse an OCPP timestamp string to a timezone-aware datetime.

    Handles both Z suffix and +hh:mm timezone formats. Fractional seconds of
    any precision are accepted.

    Args:
        timestamp_str: ISO timestamp string from OCPP message

    Returns:
        datetime: Timezone-aware datetime

    Raises:
        ValueError: if the string is not an ISO-8601 timestamp with time zone
    """
    if not is_ocpp_timestamp(timestamp_str):
        raise ValueError(f"invalid OCPP timestamp {timestamp_str!r}")
    if timestamp_str.endswith("Z"):
        # Replace Z with +00:00 for parsing
        timestamp_str = timestamp_str[:-1] + "+00:00"
    main, _, rest = timestamp_str.partition(".")
    if rest:
        # fromisoformat only accepts 3 or 6 fractional digits on older interpreters
        fraction, tz = rest[:-6], rest[-6:]
        timestamp_str = f"{main}.{fraction[:6].ljust(6, '0')}{tz}"
    return datetime.fromisoformat(timestamp_str)


def format_ocpp_timestamp(dt: datetime) -> str:
    """Render a datetime as an OCPP timestamp; UTC is rendered with a Z suffix."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat().replace("+00:00", "Z")


@total_ordering
class DateTime:
    """
    Timestamp value type for OCPP payloads.

    Keeps the original wire text, so a timestamp received from a peer is sent
    back bit-exactly, while still exposing the parsed datetime.
    """

    __slots__ = ("_text", "_value")

    def __init__(self, value):
        if isinstance(value, DateTime):
            self._text, self._value = value._text, value._value
        elif isinstance(value, datetime):
            self._value = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
            self._text = format_ocpp_timestamp(self._value)
        elif isinstance(value, str):
            self._value = parse_ocpp_timestamp(value)
            self._text = value
        else:
            raise TypeError(f"cannot build DateTime from {type(value).__name__}")

    @classmethod
    def now(cls):
        return cls(datetime.now(timezone.utc).replace(microsecond=0))

    @classmethod
    def __get_pydantic_core_schema__(cls, source, handler):
        return core_schema.no_info_plain_validator_function(
            cls._validate, serialization=core_schema.to_string_ser_schema()
        )

    @classmethod
    def _validate(cls, value):
        if isinstance(value, DateTime):
            return value
        if isinstance(value, (str, datetime)):
            try:
                return cls(value)
            except ValueError:
                raise PydanticCustomError(
                    "date_time", "Input should be an ISO-8601 date-time with time zone"
                ) from None
        raise PydanticCustomError("date_time_type", "Input should be a valid string")

    @property
    def value(self) -> datetime:
        return self._value

    def isoformat(self) -> str:
        return self._text

    def __str__(self):
        return self._text

    def __repr__(self):
        return f"DateTime({self._text!r})"

    def __eq__(self, other):
        if isinstance(other, DateTime):
            return self._value == other._value
        if isinstance(other, datetime):
            return self._value == other
        return NotImplemented

    def __lt__(self, other):
        if isinstance(other, DateTime):
            return self._value < other._value
        if isinstance(other, datetime):
            return self._value < other
        return NotImplemented

    def __hash__(self):
        return hash(self._value)


def random_message_id() -> str:
    """Default message ID generator: a random unsigned 32-bit integer, as a string."""
    return str(random.getrandbits(32))
