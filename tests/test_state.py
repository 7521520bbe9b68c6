"""
Test per-peer request bookkeeping.
"""

import asyncio

import pytest

from ocpplink.errors import ErrorCode, OcppError
from ocpplink.models.availability import HEARTBEAT, HeartbeatRequest
from ocpplink.state import OutboundRequest, PeerState


def _request(message_id, callback=None):
    future = asyncio.get_running_loop().create_future()
    return OutboundRequest(message_id, HEARTBEAT, HeartbeatRequest(), future, callback)


@pytest.mark.asyncio
async def test_complete_runs_callback_before_future():
    order = []
    request = _request("1", lambda response, error: order.append(("callback", request.future.done())))

    request.complete("response")

    assert order == [("callback", False)]
    assert await request.future == "response"


@pytest.mark.asyncio
async def test_complete_only_once():
    calls = []
    request = _request("1", lambda response, error: calls.append((response, error)))
    error = OcppError(ErrorCode.GENERIC_ERROR, "Request timed out")

    request.complete(error=error)
    request.complete("late response")

    assert calls == [(None, error)]
    with pytest.raises(OcppError):
        await request.future


@pytest.mark.asyncio
async def test_failing_callback_still_resolves_future():
    def callback(response, error):
        raise RuntimeError("boom")

    request = _request("1", callback)
    request.complete("response")

    assert await request.future == "response"


@pytest.mark.asyncio
async def test_queue_order_and_take_all():
    state = PeerState("CS001")
    first, second, third = _request("1"), _request("2"), _request("3")
    state.pending = first
    state.enqueue(second)
    state.enqueue(third)

    assert state.in_flight
    assert state.take_pending("2") is None
    assert state.take_all() == [first, second, third]
    assert not state.in_flight
    assert state.pop_next() is None


@pytest.mark.asyncio
async def test_take_pending_cancels_timer():
    state = PeerState(None)
    request = _request("1")
    request.timer = asyncio.get_running_loop().call_later(60, lambda: None)
    state.pending = request

    assert state.take_pending("1") is request
    assert request.timer is None
    assert state.pending is None


@pytest.mark.asyncio
async def test_queue_capacity():
    state = PeerState("CS001", queue_capacity=1)
    state.enqueue(_request("1"))

    with pytest.raises(OcppError) as excinfo:
        state.enqueue(_request("2"))

    assert excinfo.value.description == "request queue is full"
    assert excinfo.value.message_id == "2"
