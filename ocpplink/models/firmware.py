"""
Firmware management profile.
"""

from enum import Enum
from typing import Annotated, Optional

from pydantic import Field

from ocpplink.models.base import Payload, Text, Uri
from ocpplink.models.types import StatusInfo
from ocpplink.registry import Direction, Feature, Profile
from ocpplink.utils import DateTime

PROFILE_NAME = "firmware"


class UpdateFirmwareStatus(str, Enum):
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    ACCEPTED_CANCELED = "AcceptedCanceled"
    INVALID_CERTIFICATE = "InvalidCertificate"
    REVOKED_CERTIFICATE = "RevokedCertificate"


class FirmwareStatus(str, Enum):
    DOWNLOADED = "Downloaded"
    DOWNLOAD_FAILED = "DownloadFailed"
    DOWNLOADING = "Downloading"
    DOWNLOAD_SCHEDULED = "DownloadScheduled"
    DOWNLOAD_PAUSED = "DownloadPaused"
    IDLE = "Idle"
    INSTALLATION_FAILED = "InstallationFailed"
    INSTALLING = "Installing"
    INSTALLED = "Installed"
    INSTALL_REBOOTING = "InstallRebooting"
    INSTALL_SCHEDULED = "InstallScheduled"
    INSTALL_VERIFICATION_FAILED = "InstallVerificationFailed"
    INVALID_SIGNATURE = "InvalidSignature"
    SIGNATURE_VERIFIED = "SignatureVerified"


class UnpublishFirmwareStatus(str, Enum):
    DOWNLOAD_ONGOING = "DownloadOngoing"
    NO_FIRMWARE = "NoFirmware"
    UNPUBLISHED = "Unpublished"


class Firmware(Payload):
    location: Annotated[Text, Uri] = Field(max_length=512)
    retrieve_date_time: DateTime
    install_date_time: Optional[DateTime] = None
    signing_certificate: Optional[str] = Field(None, max_length=5500)
    signature: Optional[str] = Field(None, max_length=800)


class UpdateFirmwareRequest(Payload):
    retries: Optional[int] = Field(None, ge=0)
    retry_interval: Optional[int] = Field(None, ge=0)
    request_id: int = Field(ge=0)
    firmware: Firmware


class UpdateFirmwareResponse(Payload):
    status: UpdateFirmwareStatus
    status_info: Optional[StatusInfo] = None


class FirmwareStatusNotificationRequest(Payload):
    status: FirmwareStatus
    request_id: Optional[int] = Field(None, ge=0)


class FirmwareStatusNotificationResponse(Payload):
    pass


class UnpublishFirmwareRequest(Payload):
    checksum: Text = Field(max_length=32)


class UnpublishFirmwareResponse(Payload):
    status: UnpublishFirmwareStatus


UPDATE_FIRMWARE = Feature(
    "UpdateFirmware", UpdateFirmwareRequest, UpdateFirmwareResponse, Direction.CSMS_TO_CHARGING_STATION
)
FIRMWARE_STATUS_NOTIFICATION = Feature(
    "FirmwareStatusNotification",
    FirmwareStatusNotificationRequest,
    FirmwareStatusNotificationResponse,
    Direction.CHARGING_STATION_TO_CSMS,
)
UNPUBLISH_FIRMWARE = Feature(
    "UnpublishFirmware",
    UnpublishFirmwareRequest,
    UnpublishFirmwareResponse,
    Direction.CSMS_TO_CHARGING_STATION,
)


def profile() -> Profile:
    return Profile(PROFILE_NAME, UPDATE_FIRMWARE, FIRMWARE_STATUS_NOTIFICATION, UNPUBLISH_FIRMWARE)
