"""
OCPP-J error codes and the error type surfaced to applications.
"""

from enum import Enum
from typing import Any, Optional


class ErrorCode(str, Enum):
    """Error codes that may appear in CallError/CallResultError frames."""

    FORMATION_VIOLATION = "FormationViolation"
    PROPERTY_CONSTRAINT_VIOLATION = "PropertyConstraintViolation"
    OCCURRENCE_CONSTRAINT_VIOLATION = "OccurrenceConstraintViolation"
    TYPE_CONSTRAINT_VIOLATION = "TypeConstraintViolation"
    NOT_SUPPORTED = "NotSupported"
    NOT_IMPLEMENTED = "NotImplemented"
    INTERNAL_ERROR = "InternalError"
    PROTOCOL_ERROR = "ProtocolError"
    SECURITY_ERROR = "SecurityError"
    GENERIC_ERROR = "GenericError"

    @classmethod
    def is_valid(cls, code) -> bool:
        return code in cls._value2member_map_


class OcppError(Exception):
    """
    An OCPP error, either received from a peer or raised locally.

    Applications receive this single error type for every failed request:
    protocol errors returned by the peer, validation failures, timeouts,
    lost connections and shutdowns.

    Args:
        code: one of the ErrorCode values
        description: human readable description
        details: optional JSON object with additional details
        peer_id: identity of the peer involved (server side only)
        message_id: the message ID of the frame that caused the error
    """

    def __init__(
        self,
        code,
        description: str = "",
        details: Optional[dict] = None,
        peer_id: Optional[str] = None,
        message_id: Optional[str] = None,
    ):
        self.code = ErrorCode(code)
        self.description = description
        self.details = details or {}
        self.peer_id = peer_id
        self.message_id = message_id
        super().__init__(str(self))

    def __str__(self):
        return f"ocpp message ({self.message_id or ''}): {self.code.value} - {self.description}"

    def __repr__(self):
        return (
            f"OcppError(code={self.code.value!r}, description={self.description!r}, "
            f"message_id={self.message_id!r}, peer_id={self.peer_id!r})"
        )

    def with_context(self, peer_id: Optional[str] = None, message_id: Optional[str] = None):
        """Fill in peer/message identity, when not already known."""
        if peer_id is not None and self.peer_id is None:
            self.peer_id = peer_id
        if message_id is not None and not self.message_id:
            self.message_id = message_id
        return self


class ValidationError(OcppError):
    """
    A payload failed a declared constraint.

    Carries the JSON path of the failing field and the failing tag, e.g.
    path="idToken.idToken", tag="max".
    """

    def __init__(self, code, description: str, path: str, tag: str, param: Any = None):
        super().__init__(code, description)
        self.path = path
        self.tag = tag
        self.param = param


def timeout_error(message_id: str, peer_id: Optional[str] = None) -> OcppError:
    return OcppError(ErrorCode.GENERIC_ERROR, "Request timed out", peer_id=peer_id, message_id=message_id)


def connection_lost_error(message_id: str, peer_id: Optional[str] = None) -> OcppError:
    return OcppError(ErrorCode.GENERIC_ERROR, "connection lost", peer_id=peer_id, message_id=message_id)


def shutdown_error(message_id: str, peer_id: Optional[str] = None) -> OcppError:
    return OcppError(ErrorCode.GENERIC_ERROR, "endpoint stopped", peer_id=peer_id, message_id=message_id)


class FrameError(OcppError):
    """
    An inbound frame could not be decoded.

    ``fields`` holds whatever elements were parsed before the failure (the raw
    JSON array, or None when the text was not an array at all).
    """

    def __init__(self, code, description: str, message_id: str = "", fields: Optional[list] = None):
        super().__init__(code, description, message_id=message_id)
        self.fields = fields
