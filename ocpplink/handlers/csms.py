"""
Demo CSMS handlers for the Core charging station messages.

Keeps everything in memory: known stations, connector states, running
transactions and a small table of ID tokens used for authorization.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from loguru import logger

from ocpplink import config
from ocpplink.models import authorization, availability, provisioning, transactions
from ocpplink.models.types import AuthorizationStatus, GroupIdToken, IdTokenInfo, IdTokenType
from ocpplink.utils import DateTime


@dataclass
class StationRecord:
    station_id: str
    vendor: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    firmware_version: Optional[str] = None
    boot_reason: Optional[str] = None
    online: bool = False
    last_seen: Optional[datetime] = None
    connectors: Dict[tuple, str] = field(default_factory=dict)


@dataclass
class TransactionRecord:
    transaction_id: str
    station_id: str
    id_token: Optional[str]
    started_at: DateTime
    evse_id: Optional[int] = None
    stopped_at: Optional[DateTime] = None
    stopped_reason: Optional[str] = None
    meter_values: List[float] = field(default_factory=list)

    @property
    def active(self) -> bool:
        return self.stopped_at is None


@dataclass
class TokenRecord:
    status: AuthorizationStatus
    expiry: Optional[datetime] = None
    group: Optional[str] = None


def default_tokens() -> Dict[str, TokenRecord]:
    """ID tokens known to the demo CSMS."""
    now = datetime.now(timezone.utc)
    return {
        "VALID001": TokenRecord(AuthorizationStatus.ACCEPTED, now + timedelta(days=365)),
        "VALID002": TokenRecord(AuthorizationStatus.ACCEPTED),
        "BLOCKED001": TokenRecord(AuthorizationStatus.BLOCKED),
        "EXPIRED001": TokenRecord(AuthorizationStatus.ACCEPTED, now - timedelta(days=1)),
        "CHILD001": TokenRecord(AuthorizationStatus.ACCEPTED, group="VALID001"),
    }


class CSMSHandler:
    """
    Handles the station-initiated messages of the provisioning, authorization,
    availability, transactions and meter profiles.

    Register the same instance for each of those profiles with
    ``csms.set_handler(profile_name, handler)``.
    """

    PROFILES = (
        provisioning.PROFILE_NAME,
        authorization.PROFILE_NAME,
        availability.PROFILE_NAME,
        transactions.PROFILE_NAME,
        transactions.METER_PROFILE_NAME,
    )

    def __init__(self, tokens: Optional[Dict[str, TokenRecord]] = None,
                 heartbeat_interval: int = config.DEFAULT_HEARTBEAT_INTERVAL):
        self.tokens = tokens if tokens is not None else default_tokens()
        self.heartbeat_interval = heartbeat_interval
        self.stations: Dict[str, StationRecord] = {}
        self.transactions: Dict[str, TransactionRecord] = {}

    def register(self, csms):
        for profile_name in self.PROFILES:
            csms.set_handler(profile_name, self)

    def station(self, station_id: str) -> StationRecord:
        record = self.stations.get(station_id)
        if record is None:
            record = self.stations[station_id] = StationRecord(station_id)
        return record

    def _seen(self, station_id: str) -> StationRecord:
        record = self.station(station_id)
        record.online = True
        record.last_seen = datetime.now(timezone.utc)
        return record

    def on_boot_notification(self, station_id, request: provisioning.BootNotificationRequest):
        cs = request.charging_station
        logger.info(
            f"BootNotification received from {station_id}: vendor={cs.vendor_name}, "
            f"model={cs.model}, reason={request.reason.value}"
        )
        record = self._seen(station_id)
        record.vendor = cs.vendor_name
        record.model = cs.model
        record.serial_number = cs.serial_number
        record.firmware_version = cs.firmware_version
        record.boot_reason = request.reason
        return provisioning.BootNotificationResponse(
            current_time=DateTime.now(),
            interval=self.heartbeat_interval,
            status=provisioning.RegistrationStatus.ACCEPTED,
        )

    def on_heartbeat(self, station_id, request):
        logger.info(f"Heartbeat received from {station_id}")
        if station_id not in self.stations:
            logger.warning(f"Received heartbeat from unknown charging station: {station_id}")
        self._seen(station_id)
        return availability.HeartbeatResponse(current_time=DateTime.now())

    def on_status_notification(self, station_id, request: availability.StatusNotificationRequest):
        logger.info(
            f"StatusNotification from {station_id}: evse={request.evse_id}, "
            f"connector={request.connector_id}, status={request.connector_status.value}"
        )
        record = self._seen(station_id)
        record.connectors[(request.evse_id, request.connector_id)] = request.connector_status
        return availability.StatusNotificationResponse()

    def on_authorize(self, station_id, request: authorization.AuthorizeRequest):
        token = request.id_token.id_token
        logger.info(f"Authorize request received from {station_id} for idToken: {token}")
        return authorization.AuthorizeResponse(id_token_info=self.id_token_info(token))

    def on_transaction_event(self, station_id, request: transactions.TransactionEventRequest):
        info = request.transaction_info
        logger.info(
            f"TransactionEvent {request.event_type.value} from {station_id}: "
            f"transaction={info.transaction_id}, trigger={request.trigger_reason.value}, seqNo={request.seq_no}"
        )
        self._seen(station_id)
        token = request.id_token.id_token if request.id_token else None
        record = self.transactions.get(info.transaction_id)

        if request.event_type == transactions.TransactionEventType.STARTED or record is None:
            record = TransactionRecord(
                transaction_id=info.transaction_id,
                station_id=station_id,
                id_token=token,
                started_at=request.timestamp,
                evse_id=request.evse.id if request.evse else None,
            )
            self.transactions[info.transaction_id] = record
            logger.info(f"Created transaction {info.transaction_id} for {station_id}")

        for meter_value in request.meter_value or []:
            record.meter_values.extend(sampled.value for sampled in meter_value.sampled_value)

        if request.event_type == transactions.TransactionEventType.ENDED:
            record.stopped_at = request.timestamp
            record.stopped_reason = info.stopped_reason
            logger.info(f"Transaction {info.transaction_id} ended: {info.stopped_reason}")

        response = transactions.TransactionEventResponse()
        if token is not None:
            response.id_token_info = self.id_token_info(token)
        return response

    def on_meter_values(self, station_id, request: transactions.MeterValuesRequest):
        count = sum(len(meter_value.sampled_value) for meter_value in request.meter_value)
        logger.info(f"MeterValues received from {station_id}: evse={request.evse_id}, values_count={count}")
        self._seen(station_id)
        return transactions.MeterValuesResponse()

    def id_token_info(self, token: str) -> IdTokenInfo:
        """Authorization status for an ID token, Invalid when unknown."""
        record = self.tokens.get(token)
        if record is None:
            logger.info(f"ID token {token} not known")
            return IdTokenInfo(status=AuthorizationStatus.INVALID)
        if record.expiry is not None and record.expiry < datetime.now(timezone.utc):
            logger.info(f"ID token {token} is expired")
            return IdTokenInfo(status=AuthorizationStatus.EXPIRED)
        info = IdTokenInfo(status=record.status)
        if record.expiry is not None:
            info.cache_expiry_date_time = DateTime(record.expiry)
        if record.group is not None:
            info.group_id_token = GroupIdToken(id_token=record.group, type=IdTokenType.CENTRAL)
        logger.info(f"ID token {token} authorized with status: {record.status.value}")
        return info

    def active_transactions(self, station_id: Optional[str] = None) -> List[TransactionRecord]:
        return [
            record
            for record in self.transactions.values()
            if record.active and (station_id is None or record.station_id == station_id)
        ]

    def station_disconnected(self, station_id: str):
        if station_id in self.stations:
            self.stations[station_id].online = False
