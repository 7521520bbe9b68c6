"""
Vendor-specific data transfer, allowed in both directions.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import Field

from ocpplink.models.base import Payload, Text
from ocpplink.models.types import StatusInfo
from ocpplink.registry import Direction, Feature, Profile

PROFILE_NAME = "data"


class DataTransferStatus(str, Enum):
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    UNKNOWN_MESSAGE_ID = "UnknownMessageId"
    UNKNOWN_VENDOR_ID = "UnknownVendorId"


class DataTransferRequest(Payload):
    message_id: Optional[str] = Field(None, max_length=50)
    data: Optional[Any] = None
    vendor_id: Text = Field(max_length=255)


class DataTransferResponse(Payload):
    status: DataTransferStatus
    data: Optional[Any] = None
    status_info: Optional[StatusInfo] = None


DATA_TRANSFER = Feature("DataTransfer", DataTransferRequest, DataTransferResponse, Direction.BIDIRECTIONAL)


def profile() -> Profile:
    return Profile(PROFILE_NAME, DATA_TRANSFER)
