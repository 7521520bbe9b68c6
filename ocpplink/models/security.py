"""
Security profile: certificate signing and security event reporting.
"""

from enum import Enum
from typing import Optional

from pydantic import Field

from ocpplink.models.base import Payload, Text
from ocpplink.models.types import CertificateSigningUse, GenericStatus, StatusInfo
from ocpplink.registry import Direction, Feature, Profile
from ocpplink.utils import DateTime

PROFILE_NAME = "security"


class CertificateSignedStatus(str, Enum):
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"


class SignCertificateRequest(Payload):
    csr: Text = Field(max_length=5500)
    certificate_type: Optional[CertificateSigningUse] = None


class SignCertificateResponse(Payload):
    status: GenericStatus
    status_info: Optional[StatusInfo] = None


class CertificateSignedRequest(Payload):
    certificate_chain: Text = Field(max_length=10000)
    certificate_type: Optional[CertificateSigningUse] = None


class CertificateSignedResponse(Payload):
    status: CertificateSignedStatus
    status_info: Optional[StatusInfo] = None


class SecurityEventNotificationRequest(Payload):
    type: Text = Field(max_length=50)
    timestamp: DateTime
    tech_info: Optional[str] = Field(None, max_length=255)


class SecurityEventNotificationResponse(Payload):
    pass


SIGN_CERTIFICATE = Feature(
    "SignCertificate", SignCertificateRequest, SignCertificateResponse, Direction.CHARGING_STATION_TO_CSMS
)
CERTIFICATE_SIGNED = Feature(
    "CertificateSigned",
    CertificateSignedRequest,
    CertificateSignedResponse,
    Direction.CSMS_TO_CHARGING_STATION,
)
SECURITY_EVENT_NOTIFICATION = Feature(
    "SecurityEventNotification",
    SecurityEventNotificationRequest,
    SecurityEventNotificationResponse,
    Direction.CHARGING_STATION_TO_CSMS,
)


def profile() -> Profile:
    return Profile(PROFILE_NAME, SIGN_CERTIFICATE, CERTIFICATE_SIGNED, SECURITY_EVENT_NOTIFICATION)
