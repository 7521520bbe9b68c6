"""
Mock OCPP 2.0.1 charging station.

Boots, sends heartbeats and status notifications, authorizes a few ID tokens
and runs a short transaction. It also answers the requests the CSMS command
interface can send (remote start/stop, reset, availability, trigger, unlock).
"""

import asyncio
import random
import sys

from loguru import logger
from websockets.exceptions import WebSocketException

from ocpplink import config
from ocpplink.endpoint import ChargingStation
from ocpplink.errors import OcppError
from ocpplink.main import configure_logging
from ocpplink.models import authorization, availability, provisioning, remote_control, transactions
from ocpplink.models.types import (
    EVSE,
    IdToken,
    IdTokenType,
    Measurand,
    MeterValue,
    ReadingContext,
    SampledValue,
)
from ocpplink.utils import DateTime

TEST_TOKENS = [
    "VALID001",  # Should be accepted
    "VALID002",  # Should be accepted
    "BLOCKED001",  # Should be blocked
    "EXPIRED001",  # Should be expired
    "CHILD001",  # Should be accepted with a group token
    "UNKNOWN123",  # Should be invalid
]


class MockStation:
    """Charging station behaviour on top of a ChargingStation endpoint."""

    def __init__(self, station_id: str = config.CHARGING_STATION_ID, evse_count: int = 2):
        self.station = ChargingStation(station_id)
        self.evse_count = evse_count
        self.meter_wh = 1000.0
        self.seq_no = 0
        self.transactions = {}  # transaction_id -> evse_id
        self.station.set_handler(remote_control.PROFILE_NAME, self)
        self.station.set_handler(provisioning.PROFILE_NAME, self)
        self.station.set_handler(availability.PROFILE_NAME, self)
        self.station.set_disconnect_handler(lambda error: print(f"🔌 Disconnected: {error}"))
        self.station.set_reconnect_handler(lambda: asyncio.create_task(self.send_boot_notification()))

    # Requests from the CSMS

    async def on_request_start_transaction(self, request: remote_control.RequestStartTransactionRequest):
        evse_id = request.evse_id or 1
        transaction_id = f"TX{random.randint(100000, 999999)}"
        print(f"⚡ RequestStartTransaction for {request.id_token.id_token} on EVSE {evse_id}")
        asyncio.create_task(self.start_transaction(evse_id, request.id_token, transaction_id, request.remote_start_id))
        return remote_control.RequestStartTransactionResponse(
            status=remote_control.RequestStartStopStatus.ACCEPTED,
            transaction_id=transaction_id,
        )

    async def on_request_stop_transaction(self, request: remote_control.RequestStopTransactionRequest):
        if request.transaction_id not in self.transactions:
            print(f"🛑 RequestStopTransaction for unknown transaction {request.transaction_id}")
            return remote_control.RequestStopTransactionResponse(status=remote_control.RequestStartStopStatus.REJECTED)
        print(f"🛑 RequestStopTransaction for {request.transaction_id}")
        asyncio.create_task(self.stop_transaction(request.transaction_id, transactions.StoppedReason.REMOTE))
        return remote_control.RequestStopTransactionResponse(status=remote_control.RequestStartStopStatus.ACCEPTED)

    async def on_trigger_message(self, request: remote_control.TriggerMessageRequest):
        senders = {
            remote_control.MessageTrigger.BOOT_NOTIFICATION: self.send_boot_notification,
            remote_control.MessageTrigger.HEARTBEAT: self.send_heartbeat,
            remote_control.MessageTrigger.STATUS_NOTIFICATION: self.send_status_notifications,
        }
        sender = senders.get(request.requested_message)
        if sender is None:
            return remote_control.TriggerMessageResponse(status=remote_control.TriggerMessageStatus.NOT_IMPLEMENTED)
        asyncio.create_task(sender())
        return remote_control.TriggerMessageResponse(status=remote_control.TriggerMessageStatus.ACCEPTED)

    def on_unlock_connector(self, request: remote_control.UnlockConnectorRequest):
        if not 1 <= request.evse_id <= self.evse_count:
            return remote_control.UnlockConnectorResponse(status=remote_control.UnlockStatus.UNKNOWN_CONNECTOR)
        return remote_control.UnlockConnectorResponse(status=remote_control.UnlockStatus.UNLOCKED)

    def on_reset(self, request: provisioning.ResetRequest):
        print(f"🔄 Reset requested: {request.type.value}")
        if self.transactions and request.type == provisioning.ResetType.ON_IDLE:
            return provisioning.ResetResponse(status=provisioning.ResetStatus.SCHEDULED)
        return provisioning.ResetResponse(status=provisioning.ResetStatus.ACCEPTED)

    def on_change_availability(self, request: availability.ChangeAvailabilityRequest):
        print(f"🔧 ChangeAvailability to {request.operational_status.value}")
        return availability.ChangeAvailabilityResponse(status=availability.ChangeAvailabilityStatus.ACCEPTED)

    # Requests to the CSMS

    async def _call(self, name, request):
        try:
            response = await self.station.call(request)
        except OcppError as e:
            print(f"Failed to send {name}: {e.code.value} - {e.description}")
            return None
        print(f"{name} response: {response}")
        return response

    async def send_boot_notification(self):
        print("Sending BootNotification...")
        request = provisioning.BootNotificationRequest(
            reason=provisioning.BootReason.POWER_UP,
            charging_station=provisioning.ChargingStation(
                model="MockModel",
                vendor_name="MockVendor",
                serial_number="SN123456789",
                firmware_version="1.0.0",
            ),
        )
        response = await self._call("BootNotification", request)
        if response is not None:
            print(f"Status: {response.status.value}, heartbeat interval: {response.interval} seconds")
        return response

    async def send_heartbeat(self):
        return await self._call("Heartbeat", availability.HeartbeatRequest())

    async def send_status_notifications(self, status=availability.ConnectorStatus.AVAILABLE):
        for evse_id in range(1, self.evse_count + 1):
            await self.send_status_notification(evse_id, status)

    async def send_status_notification(self, evse_id, status):
        request = availability.StatusNotificationRequest(
            timestamp=DateTime.now(),
            connector_status=status,
            evse_id=evse_id,
            connector_id=1,
        )
        return await self._call(f"StatusNotification (EVSE {evse_id})", request)

    async def send_authorize(self, token):
        print(f"Sending Authorize request with idToken: {token}")
        request = authorization.AuthorizeRequest(id_token=IdToken(id_token=token, type=IdTokenType.ISO14443))
        response = await self._call("Authorize", request)
        if response is not None:
            print(f"  {token}: {response.id_token_info.status.value}")
        return response

    def _meter_value(self, context):
        self.meter_wh += random.uniform(100, 500)
        return MeterValue(
            timestamp=DateTime.now(),
            sampled_value=[
                SampledValue(
                    value=round(self.meter_wh, 1),
                    context=context,
                    measurand=Measurand.ENERGY_ACTIVE_IMPORT_REGISTER,
                )
            ],
        )

    async def _transaction_event(self, event_type, trigger, transaction_id, evse_id, **kwargs):
        self.seq_no += 1
        request = transactions.TransactionEventRequest(
            event_type=event_type,
            timestamp=DateTime.now(),
            trigger_reason=trigger,
            seq_no=self.seq_no,
            transaction_info=transactions.Transaction(
                transaction_id=transaction_id,
                charging_state=kwargs.pop("charging_state", None),
                stopped_reason=kwargs.pop("stopped_reason", None),
                remote_start_id=kwargs.pop("remote_start_id", None),
            ),
            evse=EVSE(id=evse_id, connector_id=1),
            **kwargs,
        )
        return await self._call(f"TransactionEvent ({event_type.value})", request)

    async def start_transaction(self, evse_id, id_token, transaction_id=None, remote_start_id=None):
        transaction_id = transaction_id or f"TX{random.randint(100000, 999999)}"
        self.transactions[transaction_id] = evse_id
        await self.send_status_notification(evse_id, availability.ConnectorStatus.OCCUPIED)
        await self._transaction_event(
            transactions.TransactionEventType.STARTED,
            transactions.TriggerReason.REMOTE_START if remote_start_id else transactions.TriggerReason.AUTHORIZED,
            transaction_id,
            evse_id,
            charging_state=transactions.ChargingState.CHARGING,
            remote_start_id=remote_start_id,
            id_token=id_token,
            meter_value=[self._meter_value(ReadingContext.TRANSACTION_BEGIN)],
        )
        return transaction_id

    async def send_meter_update(self, transaction_id):
        await self._transaction_event(
            transactions.TransactionEventType.UPDATED,
            transactions.TriggerReason.METER_VALUE_PERIODIC,
            transaction_id,
            self.transactions[transaction_id],
            meter_value=[self._meter_value(ReadingContext.SAMPLE_PERIODIC)],
        )

    async def stop_transaction(self, transaction_id, reason=transactions.StoppedReason.LOCAL):
        evse_id = self.transactions.pop(transaction_id, None)
        if evse_id is None:
            return
        await self._transaction_event(
            transactions.TransactionEventType.ENDED,
            transactions.TriggerReason.REMOTE_STOP
            if reason == transactions.StoppedReason.REMOTE
            else transactions.TriggerReason.STOP_AUTHORIZED,
            transaction_id,
            evse_id,
            stopped_reason=reason,
            meter_value=[self._meter_value(ReadingContext.TRANSACTION_END)],
        )
        await self.send_status_notification(evse_id, availability.ConnectorStatus.AVAILABLE)

    async def run_scenario(self):
        """BootNotification, heartbeats, authorization and one local transaction."""
        await self.send_boot_notification()
        await self.send_status_notifications()

        for i in range(2):
            await asyncio.sleep(2)
            print(f"Sending Heartbeat #{i + 1}...")
            await self.send_heartbeat()

        print("\n🔐 Testing Authorization...")
        for token in TEST_TOKENS:
            await asyncio.sleep(1)
            await self.send_authorize(token)

        print("\n🔋 Testing TransactionEvent...")
        await asyncio.sleep(2)
        transaction_id = await self.start_transaction(1, IdToken(id_token="VALID001", type=IdTokenType.ISO14443))
        for _ in range(2):
            await asyncio.sleep(2)
            await self.send_meter_update(transaction_id)
        await asyncio.sleep(2)
        await self.stop_transaction(transaction_id)


async def main(url: str = config.CSMS_URL):
    configure_logging("mock_station.log")
    mock = MockStation()
    try:
        await mock.station.start(url)
    except (OSError, WebSocketException) as e:
        logger.error(f"Failed to connect to {url}: {e}")
        return
    print(f"Connected to {url} as {mock.station.id}")

    try:
        await mock.run_scenario()
        print("\n✅ Scenario finished, waiting for CSMS requests (Ctrl+C to quit)")
        while True:
            await asyncio.sleep(config.DEFAULT_HEARTBEAT_INTERVAL)
            if mock.station.is_connected:
                await mock.send_heartbeat()
    finally:
        await mock.station.stop()


if __name__ == "__main__":
    try:
        asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else config.CSMS_URL))
    except KeyboardInterrupt:
        print("\n👋 Mock station stopped.")
