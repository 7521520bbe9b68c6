"""
Test the CSMS and ChargingStation endpoints, the demo CSMS handlers and the
command interface, over loopback transports.
"""

import asyncio

import pytest
from loopback import LoopbackClient, LoopbackServer

from ocpplink.csms_cli import CSMSCommandLine
from ocpplink.endpoint import CSMS, ChargingStation
from ocpplink.errors import ErrorCode, OcppError
from ocpplink.handlers.csms import CSMSHandler
from ocpplink.models import authorization, availability, provisioning, transactions
from ocpplink.models.types import (
    EVSE,
    AuthorizationStatus,
    IdToken,
    IdTokenType,
    MeterValue,
    SampledValue,
)
from ocpplink.utils import DateTime


def _boot():
    return provisioning.BootNotificationRequest(
        reason=provisioning.BootReason.POWER_UP,
        charging_station=provisioning.ChargingStation(model="Model1", vendor_name="Vendor1", serial_number="SN1"),
    )


def _authorize(token):
    return authorization.AuthorizeRequest(id_token=IdToken(id_token=token, type=IdTokenType.ISO14443))


def _transaction_event(event_type, seq_no, transaction_id="TX1", energy=1000.0):
    return transactions.TransactionEventRequest(
        event_type=event_type,
        timestamp=DateTime.now(),
        trigger_reason=transactions.TriggerReason.AUTHORIZED,
        seq_no=seq_no,
        transaction_info=transactions.Transaction(transaction_id=transaction_id),
        id_token=IdToken(id_token="VALID001", type=IdTokenType.ISO14443),
        evse=EVSE(id=1, connector_id=1),
        meter_value=[MeterValue(timestamp=DateTime.now(), sampled_value=[SampledValue(value=energy)])],
    )


async def _stop(*endpoints):
    for endpoint in endpoints:
        await endpoint.stop()


def test_set_handler_rejects_unknown_profile():
    csms = CSMS(transport=LoopbackServer())

    with pytest.raises(ValueError):
        csms.set_handler("noSuchProfile", object())


@pytest.mark.asyncio
async def test_start_freezes_registry(make_pair):
    csms, station, server, client = await make_pair()

    assert csms.registry.frozen
    assert station.registry.frozen
    assert client.url == "ws://loopback/CS001"
    await _stop(station, csms)


@pytest.mark.asyncio
async def test_boot_notification_handled_by_profile_handler(make_pair):
    csms, station, server, client = await make_pair()
    handler = CSMSHandler(heartbeat_interval=60)
    handler.register(csms)

    response = await station.call(_boot())

    assert response.status == provisioning.RegistrationStatus.ACCEPTED
    assert response.interval == 60
    record = handler.stations["CS001"]
    assert record.online
    assert (record.vendor, record.model, record.serial_number) == ("Vendor1", "Model1", "SN1")
    await _stop(station, csms)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "token, status",
    [
        ("VALID001", AuthorizationStatus.ACCEPTED),
        ("VALID002", AuthorizationStatus.ACCEPTED),
        ("BLOCKED001", AuthorizationStatus.BLOCKED),
        ("EXPIRED001", AuthorizationStatus.EXPIRED),
        ("UNKNOWN123", AuthorizationStatus.INVALID),
    ],
)
async def test_authorize_statuses(make_pair, token, status):
    csms, station, server, client = await make_pair()
    CSMSHandler().register(csms)

    response = await station.call(_authorize(token))

    assert response.id_token_info.status == status
    await _stop(station, csms)


@pytest.mark.asyncio
async def test_authorize_group_token(make_pair):
    csms, station, server, client = await make_pair()
    CSMSHandler().register(csms)

    info = (await station.call(_authorize("CHILD001"))).id_token_info

    assert info.group_id_token.id_token == "VALID001"
    assert info.group_id_token.type == IdTokenType.CENTRAL
    await _stop(station, csms)


@pytest.mark.asyncio
async def test_transaction_lifecycle(make_pair):
    csms, station, server, client = await make_pair()
    handler = CSMSHandler()
    handler.register(csms)

    started = await station.call(_transaction_event(transactions.TransactionEventType.STARTED, 0))
    assert started.id_token_info.status == AuthorizationStatus.ACCEPTED
    assert [t.transaction_id for t in handler.active_transactions("CS001")] == ["TX1"]

    await station.call(_transaction_event(transactions.TransactionEventType.UPDATED, 1, energy=1500.0))
    await station.call(_transaction_event(transactions.TransactionEventType.ENDED, 2, energy=2000.0))

    assert handler.active_transactions() == []
    assert handler.transactions["TX1"].meter_values == [1000.0, 1500.0, 2000.0]
    await _stop(station, csms)


@pytest.mark.asyncio
async def test_status_and_heartbeat(make_pair):
    csms, station, server, client = await make_pair()
    handler = CSMSHandler()
    handler.register(csms)

    await station.call(
        availability.StatusNotificationRequest(
            timestamp=DateTime.now(),
            connector_status=availability.ConnectorStatus.OCCUPIED,
            evse_id=1,
            connector_id=1,
        )
    )
    heartbeat = await station.call(availability.HeartbeatRequest())

    assert handler.stations["CS001"].connectors == {(1, 1): availability.ConnectorStatus.OCCUPIED}
    assert heartbeat.current_time.isoformat().endswith("Z")
    await _stop(station, csms)


@pytest.mark.asyncio
async def test_profile_without_handler_is_not_implemented(make_pair):
    csms, station, server, client = await make_pair()

    with pytest.raises(OcppError) as excinfo:
        await station.call(availability.HeartbeatRequest())

    assert excinfo.value.code == ErrorCode.NOT_IMPLEMENTED
    assert excinfo.value.description == "no handler for action Heartbeat implemented"
    await _stop(station, csms)


@pytest.mark.asyncio
async def test_async_station_handler(make_pair):
    csms, station, server, client = await make_pair()

    class Handler:
        async def on_reset(self, request):
            await asyncio.sleep(0)
            return provisioning.ResetResponse(status=provisioning.ResetStatus.SCHEDULED)

    station.set_handler(provisioning.PROFILE_NAME, Handler())

    response = await csms.call("CS001", provisioning.ResetRequest(type=provisioning.ResetType.ON_IDLE))

    assert response.status == provisioning.ResetStatus.SCHEDULED
    await _stop(station, csms)


@pytest.mark.asyncio
async def test_request_handler_takes_precedence(make_pair):
    csms, station, server, client = await make_pair()
    CSMSHandler().register(csms)
    seen = []

    def handler(peer_id, request, message_id, action):
        seen.append((peer_id, action))
        return availability.HeartbeatResponse(current_time=DateTime("2024-01-01T00:00:00Z"))

    csms.set_request_handler(handler)

    response = await station.call(availability.HeartbeatRequest())

    assert response.current_time == DateTime("2024-01-01T00:00:00Z")
    assert seen == [("CS001", "Heartbeat")]
    await _stop(station, csms)


@pytest.mark.asyncio
async def test_send_when_not_connected():
    server = LoopbackServer()
    station = ChargingStation("CS001", transport=LoopbackClient(server, "CS001"))
    csms = CSMS(transport=server)

    with pytest.raises(OcppError) as excinfo:
        station.send(availability.HeartbeatRequest())
    assert excinfo.value.description == "not connected"
    assert not station.is_connected

    with pytest.raises(OcppError) as excinfo:
        csms.send("CS001", provisioning.ResetRequest(type=provisioning.ResetType.IMMEDIATE))
    assert excinfo.value.description == "charging station CS001 not connected"


@pytest.mark.asyncio
async def test_connection_handlers():
    server = LoopbackServer()
    csms = CSMS(transport=server)
    connected, disconnected = [], []
    csms.set_new_charging_station_handler(connected.append)
    csms.set_charging_station_disconnected_handler(disconnected.append)
    await csms.start("127.0.0.1", 9000)
    station = ChargingStation("CS042", transport=LoopbackClient(server, "CS042"))

    await station.start("ws://loopback")

    assert connected == ["CS042"]
    assert csms.connected_peers() == ["CS042"]
    assert csms.is_connected("CS042")

    await station.stop()

    assert disconnected == ["CS042"]
    assert not csms.is_connected("CS042")
    await csms.stop()


@pytest.mark.asyncio
async def test_connection_loss_fails_outstanding_request(make_pair):
    csms, station, server, client = await make_pair()
    never = asyncio.Event()

    async def stall(peer_id, request, message_id, action):
        await never.wait()

    csms.set_request_handler(stall)
    errors = []
    station.set_disconnect_handler(errors.append)
    future = station.send(availability.HeartbeatRequest())
    await asyncio.sleep(0.01)

    server.drop("CS001")

    with pytest.raises(OcppError) as excinfo:
        await future
    assert excinfo.value.code == ErrorCode.GENERIC_ERROR
    assert excinfo.value.description == "connection lost"
    assert len(errors) == 1
    assert not station.is_connected
    await _stop(station, csms)


@pytest.mark.asyncio
async def test_reconnect_handler(make_pair):
    csms, station, server, client = await make_pair()
    reconnects = []
    station.set_reconnect_handler(lambda: reconnects.append(True))

    server.drop("CS001")
    client.connect()

    assert reconnects == [True]
    assert station.is_connected
    assert csms.is_connected("CS001")
    await _stop(station, csms)


@pytest.mark.asyncio
async def test_stop_fails_outstanding_request(make_pair):
    csms, station, server, client = await make_pair()
    never = asyncio.Event()

    async def stall(peer_id, request, message_id, action):
        await never.wait()

    csms.set_request_handler(stall)
    future = station.send(availability.HeartbeatRequest())

    await station.stop()

    with pytest.raises(OcppError) as excinfo:
        await future
    assert excinfo.value.description == "endpoint stopped"
    await csms.stop()


@pytest.mark.asyncio
async def test_station_add_pending_request(make_pair):
    csms, station, server, client = await make_pair()

    future = station.add_pending_request("boot-1", _boot())
    server.write(
        "CS001", '[3,"boot-1",{"currentTime":"2024-01-01T00:00:00Z","interval":30,"status":"Pending"}]'
    )

    response = await future
    assert response.status == provisioning.RegistrationStatus.PENDING
    await _stop(station, csms)


# Command interface


@pytest.mark.asyncio
async def test_cli_list(make_pair, capsys):
    csms, station, server, client = await make_pair()
    cli = CSMSCommandLine(csms)

    await cli.process_command("list")

    assert "CS001" in capsys.readouterr().out
    await _stop(station, csms)


@pytest.mark.asyncio
async def test_cli_reset(make_pair, capsys):
    csms, station, server, client = await make_pair()
    station.set_request_handler(
        lambda request, message_id, action: provisioning.ResetResponse(status=provisioning.ResetStatus.ACCEPTED)
    )
    cli = CSMSCommandLine(csms)

    await cli.process_command("reset CS001 Immediate")

    assert "Response: Accepted" in capsys.readouterr().out
    await _stop(station, csms)


@pytest.mark.asyncio
async def test_cli_reports_errors(make_pair, capsys):
    csms, station, server, client = await make_pair()
    cli = CSMSCommandLine(csms, CSMSHandler())

    await cli.process_command("trigger CS999 Heartbeat")
    await cli.process_command("validate BLOCKED001")
    await cli.process_command("bogus")
    await cli.process_command("quit")

    out = capsys.readouterr().out
    assert "charging station CS999 not connected" in out
    assert "Status: Blocked" in out
    assert "Unknown command: bogus" in out
    assert not cli.running
    await _stop(station, csms)
