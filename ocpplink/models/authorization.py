"""
Authorization profile.
"""

from enum import Enum
from typing import List, Optional

from pydantic import Field

from ocpplink.models.base import Payload
from ocpplink.models.types import IdToken, IdTokenInfo, OCSPRequestData, StatusInfo
from ocpplink.registry import Direction, Feature, Profile

PROFILE_NAME = "authorization"


class AuthorizeCertificateStatus(str, Enum):
    ACCEPTED = "Accepted"
    SIGNATURE_ERROR = "SignatureError"
    CERTIFICATE_EXPIRED = "CertificateExpired"
    CERTIFICATE_REVOKED = "CertificateRevoked"
    NO_CERTIFICATE_AVAILABLE = "NoCertificateAvailable"
    CERT_CHAIN_ERROR = "CertChainError"
    CONTRACT_CANCELLED = "ContractCancelled"


class ClearCacheStatus(str, Enum):
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"


class AuthorizeRequest(Payload):
    id_token: IdToken
    certificate: Optional[str] = Field(None, max_length=5500)
    iso15118_certificate_hash_data: Optional[List[OCSPRequestData]] = Field(None, max_length=4, alias="iso15118CertificateHashData")


class AuthorizeResponse(Payload):
    id_token_info: IdTokenInfo
    certificate_status: Optional[AuthorizeCertificateStatus] = None


class ClearCacheRequest(Payload):
    pass


class ClearCacheResponse(Payload):
    status: ClearCacheStatus
    status_info: Optional[StatusInfo] = None


AUTHORIZE = Feature("Authorize", AuthorizeRequest, AuthorizeResponse, Direction.CHARGING_STATION_TO_CSMS)
CLEAR_CACHE = Feature("ClearCache", ClearCacheRequest, ClearCacheResponse, Direction.CSMS_TO_CHARGING_STATION)


def profile() -> Profile:
    return Profile(PROFILE_NAME, AUTHORIZE, CLEAR_CACHE)
