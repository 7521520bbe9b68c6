"""
Test the WebSocket transports against a real server on localhost.
"""

import asyncio

import pytest
from websockets.asyncio.client import connect
from websockets.exceptions import ConnectionClosed, InvalidStatus
from websockets.frames import CloseCode

from ocpplink.endpoint import CSMS, ChargingStation
from ocpplink.models.availability import HeartbeatRequest, HeartbeatResponse
from ocpplink.models.provisioning import ResetRequest, ResetResponse, ResetStatus, ResetType
from ocpplink.transport import WebSocketClient, WebSocketServer
from ocpplink.utils import DateTime

NOW = "2024-01-01T00:00:00Z"


async def _wait_until(predicate, timeout=2.0):
    async def poll():
        while not predicate():
            await asyncio.sleep(0.01)

    await asyncio.wait_for(poll(), timeout)


async def _start_csms(**server_kwargs):
    server = WebSocketServer(ping_interval=None, **server_kwargs)
    csms = CSMS(transport=server)
    csms.set_request_handler(
        lambda peer_id, request, message_id, action: HeartbeatResponse(current_time=DateTime(NOW))
    )
    await csms.start("127.0.0.1", 0, "/ocpp")
    return csms, server


def _station(station_id="CS100", **client_kwargs):
    client_kwargs.setdefault("ping_interval", None)
    client_kwargs.setdefault("reconnect_backoff", 0.05)
    return ChargingStation(station_id, transport=WebSocketClient(**client_kwargs))


@pytest.mark.asyncio
async def test_round_trip_in_both_directions():
    csms, server = await _start_csms()
    station = _station()
    station.set_request_handler(
        lambda request, message_id, action: ResetResponse(status=ResetStatus.ACCEPTED)
    )

    await station.start(f"ws://127.0.0.1:{server.port}/ocpp")
    heartbeat = await station.call(HeartbeatRequest())
    reset = await csms.call("CS100", ResetRequest(type=ResetType.IMMEDIATE))

    assert heartbeat.current_time == DateTime(NOW)
    assert reset.status == ResetStatus.ACCEPTED
    assert csms.connected_peers() == ["CS100"]
    assert station.is_connected

    await station.stop()
    await _wait_until(lambda: not csms.is_connected("CS100"))
    await csms.stop()


@pytest.mark.asyncio
async def test_connection_without_ocpp_subprotocol_is_closed():
    csms, server = await _start_csms()

    async with connect(f"ws://127.0.0.1:{server.port}/ocpp/CS100") as websocket:
        with pytest.raises(ConnectionClosed) as excinfo:
            await websocket.recv()

    assert excinfo.value.rcvd.code == CloseCode.PROTOCOL_ERROR
    assert csms.connected_peers() == []
    await csms.stop()


@pytest.mark.asyncio
async def test_unknown_path_is_rejected():
    csms, server = await _start_csms()

    with pytest.raises(InvalidStatus) as excinfo:
        await connect(f"ws://127.0.0.1:{server.port}/other/CS100", subprotocols=["ocpp2.0.1"])

    assert excinfo.value.response.status_code == 404
    await csms.stop()


@pytest.mark.asyncio
async def test_duplicate_station_is_rejected():
    csms, server = await _start_csms()
    station = _station()
    await station.start(f"ws://127.0.0.1:{server.port}/ocpp")
    await _wait_until(lambda: csms.is_connected("CS100"))

    async with connect(f"ws://127.0.0.1:{server.port}/ocpp/CS100", subprotocols=["ocpp2.0.1"]) as websocket:
        with pytest.raises(ConnectionClosed) as excinfo:
            await websocket.recv()

    assert excinfo.value.rcvd.code == CloseCode.POLICY_VIOLATION
    assert csms.is_connected("CS100")
    await station.stop()
    await csms.stop()


@pytest.mark.asyncio
async def test_basic_auth():
    csms, server = await _start_csms()
    attempts = []

    def check(station_id, username, password):
        attempts.append((station_id, username))
        return password == "secret"

    csms.set_basic_auth_handler(check)
    url = f"ws://127.0.0.1:{server.port}/ocpp"

    with pytest.raises(InvalidStatus) as excinfo:
        await _station(basic_auth=("CS100", "wrong")).start(url)
    assert excinfo.value.response.status_code == 401

    station = _station(basic_auth=("CS100", "secret"))
    await station.start(url)
    await station.call(HeartbeatRequest())

    assert attempts == [("CS100", "CS100"), ("CS100", "CS100")]
    await station.stop()
    await csms.stop()


@pytest.mark.asyncio
async def test_station_notices_server_going_away():
    csms, server = await _start_csms()
    station = _station()
    errors = []
    station.set_disconnect_handler(errors.append)
    await station.start(f"ws://127.0.0.1:{server.port}/ocpp")
    await station.call(HeartbeatRequest())

    await csms.stop()
    await _wait_until(lambda: errors)

    assert not station.is_connected
    await station.stop()
