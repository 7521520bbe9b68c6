"""
ISO 15118 profile: certificate status lookups on behalf of the EV.
"""

from typing import Optional

from pydantic import Field

from ocpplink.models.base import Payload
from ocpplink.models.types import GenericStatus, OCSPRequestData, StatusInfo
from ocpplink.registry import Direction, Feature, Profile

PROFILE_NAME = "iso15118"


class GetCertificateStatusRequest(Payload):
    ocsp_request_data: OCSPRequestData


class GetCertificateStatusResponse(Payload):
    status: GenericStatus
    ocsp_result: Optional[str] = Field(None, max_length=5500)
    status_info: Optional[StatusInfo] = None


GET_CERTIFICATE_STATUS = Feature(
    "GetCertificateStatus",
    GetCertificateStatusRequest,
    GetCertificateStatusResponse,
    Direction.CHARGING_STATION_TO_CSMS,
)


def profile() -> Profile:
    return Profile(PROFILE_NAME, GET_CERTIFICATE_STATUS)
