"""
Shared fixtures.
"""

import itertools

import pytest

from loopback import LoopbackClient, LoopbackServer, Wire
from ocpplink.endpoint import CSMS, ChargingStation


@pytest.fixture
def wire():
    return Wire()


@pytest.fixture
def message_ids():
    """Deterministic message ID generator: "1", "2", ..."""
    counter = itertools.count(1)
    return lambda: str(next(counter))


@pytest.fixture
def make_pair(message_ids):
    """Factory for a started CSMS and one connected station over loopback transports."""

    async def make(station_id="CS001", csms_kwargs=None, station_kwargs=None):
        server = LoopbackServer()
        client = LoopbackClient(server, station_id)
        csms = CSMS(transport=server, **{"message_id_generator": message_ids, **(csms_kwargs or {})})
        station = ChargingStation(
            station_id, transport=client, **{"message_id_generator": message_ids, **(station_kwargs or {})}
        )
        await csms.start("127.0.0.1", 9000)
        await station.start("ws://loopback")
        return csms, station, server, client

    return make
