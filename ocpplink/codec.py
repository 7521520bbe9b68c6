"""
OCPP-J wire codec.

Frames are JSON arrays whose first element is the message type:

    [2, "<messageId>", "<action>", {payload}]                       Call
    [3, "<messageId>", {payload}]                                   CallResult
    [4, "<messageId>", "<errorCode>", "<description>", {details}]   CallError
    [5, "<messageId>", "<errorCode>", "<description>", {details}]   CallResultError

Payloads stay plain dicts at this level; turning them into schema objects is
up to the dispatcher, which knows the feature involved.
"""

import json
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, Optional, Union

from ocpplink.errors import ErrorCode, FrameError


class MessageType(IntEnum):
    CALL = 2
    CALL_RESULT = 3
    CALL_ERROR = 4
    CALL_RESULT_ERROR = 5


@dataclass
class Call:
    unique_id: str
    action: str
    payload: Dict[str, Any] = field(default_factory=dict)

    message_type = MessageType.CALL

    def to_list(self) -> list:
        return [int(self.message_type), self.unique_id, self.action, self.payload]


@dataclass
class CallResult:
    unique_id: str
    payload: Dict[str, Any] = field(default_factory=dict)

    message_type = MessageType.CALL_RESULT

    def to_list(self) -> list:
        return [int(self.message_type), self.unique_id, self.payload]


@dataclass
class CallError:
    unique_id: str
    error_code: ErrorCode
    error_description: str = ""
    error_details: Optional[Dict[str, Any]] = None

    message_type = MessageType.CALL_ERROR

    def __post_init__(self):
        # Empty details are written as null, so they decode to None
        self.error_details = self.error_details or None

    def to_list(self) -> list:
        return [
            int(self.message_type),
            self.unique_id,
            ErrorCode(self.error_code).value,
            self.error_description,
            self.error_details,
        ]


@dataclass
class CallResultError(CallError):
    message_type = MessageType.CALL_RESULT_ERROR


Frame = Union[Call, CallResult, CallError, CallResultError]


def encode(frame: Frame) -> str:
    """Serialize a frame to compact OCPP-J text."""
    return json.dumps(frame.to_list(), separators=(",", ":"), ensure_ascii=False)


def _reject_constant(name):
    raise ValueError(f"non-finite number {name} not allowed")


def _formation(description: str, message_id: str = "", fields=None) -> FrameError:
    return FrameError(ErrorCode.FORMATION_VIOLATION, description, message_id, fields)


def _is_integral(value) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, int) or (isinstance(value, float) and value.is_integer())


def decode(data: Union[str, bytes], registry=None) -> Frame:
    """
    Parse OCPP-J text into a frame.

    When a registry is given, the action of a Call must be registered in it.

    Raises:
        FrameError: with FormationViolation for malformed frames, or
            NotSupported for a Call naming an unknown action
    """
    if isinstance(data, (bytes, bytearray)):
        data = data.decode("utf-8")
    try:
        arr = json.loads(data, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as e:
        raise _formation(f"Invalid JSON message: {e}")
    if not isinstance(arr, list):
        raise _formation("Invalid message. Expected array")
    if len(arr) < 3:
        raise _formation("Invalid message. Expected array length >= 3", fields=arr)

    raw_type = arr[0]
    if not _is_integral(raw_type):
        raise _formation(f"Invalid element {raw_type} at 0, expected message type (int)", fields=arr)
    unique_id = arr[1]
    if not isinstance(unique_id, str):
        raise _formation(f"Invalid element {unique_id} at 1, expected unique ID (string)", fields=arr)
    if unique_id == "":
        raise _formation("Invalid unique ID, cannot be empty", fields=arr)
    try:
        message_type = MessageType(int(raw_type))
    except ValueError:
        raise _formation(f"Invalid message type ID {raw_type}", fields=arr)

    if message_type == MessageType.CALL:
        if len(arr) != 4:
            raise _formation("Invalid Call message. Expected array length 4", unique_id, arr)
        action = arr[2]
        if not isinstance(action, str):
            raise FrameError(
                ErrorCode.NOT_SUPPORTED,
                f"Invalid element {action} at 2, expected action (string)",
                unique_id,
                arr,
            )
        if registry is not None and registry.lookup(action) is None:
            raise FrameError(ErrorCode.NOT_SUPPORTED, f"Unsupported feature {action}", unique_id, arr)
        if not isinstance(arr[3], dict):
            raise _formation(f"Invalid element {arr[3]} at 3, expected payload (object)", unique_id, arr)
        return Call(unique_id, action, arr[3])

    if message_type == MessageType.CALL_RESULT:
        if len(arr) != 3:
            raise _formation("Invalid Call Result message. Expected array length 3", unique_id, arr)
        if not isinstance(arr[2], dict):
            raise _formation(f"Invalid element {arr[2]} at 2, expected payload (object)", unique_id, arr)
        return CallResult(unique_id, arr[2])

    frame_class = CallError if message_type == MessageType.CALL_ERROR else CallResultError
    if message_type == MessageType.CALL_ERROR and len(arr) < 4:
        raise _formation("Invalid Call Error message. Expected array length >= 4", unique_id, arr)
    if message_type == MessageType.CALL_RESULT_ERROR and len(arr) < 5:
        raise _formation("Invalid Call Result Error message. Expected array length >= 5", unique_id, arr)
    raw_code = arr[2]
    if not isinstance(raw_code, str) or not ErrorCode.is_valid(raw_code):
        raise _formation(f"Invalid element {raw_code} at 2, expected error code (string)", unique_id, arr)
    description = arr[3] if isinstance(arr[3], str) else ""
    details = arr[4] if len(arr) > 4 else None
    if details is not None and not isinstance(details, dict):
        raise _formation(f"Invalid element {details} at 4, expected error details (object)", unique_id, arr)
    return frame_class(unique_id, ErrorCode(raw_code), description, details)
