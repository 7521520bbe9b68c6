"""
Test request metrics, read back through an in-memory OpenTelemetry reader.
"""

import pytest
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import InMemoryMetricReader

from ocpplink.dispatcher import Dispatcher
from ocpplink.errors import ErrorCode, OcppError
from ocpplink.metrics import REQUESTS_INBOUND, REQUESTS_OUTBOUND, ErrorClass, classify
from ocpplink.models import default_registry
from ocpplink.models.availability import HeartbeatRequest, HeartbeatResponse
from ocpplink.models.provisioning import ResetRequest, ResetType
from ocpplink.registry import Role
from ocpplink.utils import DateTime

PEER = "CS001"


@pytest.fixture
def reader():
    return InMemoryMetricReader()


@pytest.fixture
def meter(reader):
    return MeterProvider(metric_readers=[reader]).get_meter("ocpplink")


def _recorded(reader, name):
    """(attributes, count) for each data point of a histogram."""
    data = reader.get_metrics_data()
    if data is None:
        return []
    points = []
    for resource_metrics in data.resource_metrics:
        for scope_metrics in resource_metrics.scope_metrics:
            for metric in scope_metrics.metrics:
                if metric.name == name:
                    points.extend((dict(p.attributes), p.count) for p in metric.data.data_points)
    return points


def _attributes(feature, error=None, charge_point_id=PEER):
    attributes = {"charge_point_id": charge_point_id, "ocpp_version": "2.0.1", "feature": feature}
    if error is not None:
        attributes["error"] = error
    return attributes


def _reset():
    return ResetRequest(type=ResetType.IMMEDIATE)


@pytest.mark.asyncio
async def test_inbound_request_is_counted(wire, message_ids, meter, reader):
    dispatcher = Dispatcher(Role.CSMS, default_registry(), wire, message_id_generator=message_ids, meter=meter)
    dispatcher.open_peer(PEER)
    dispatcher.set_request_handler(
        lambda peer_id, request, message_id, action: HeartbeatResponse(current_time=DateTime.now())
    )

    dispatcher.handle_message(PEER, '[2,"m1","Heartbeat",{}]')
    await wire.wait_for(1)

    assert _recorded(reader, REQUESTS_INBOUND) == [(_attributes("Heartbeat"), 1)]
    dispatcher.shutdown()


@pytest.mark.asyncio
async def test_invalid_inbound_request_is_counted_as_validation_error(wire, message_ids, meter, reader):
    dispatcher = Dispatcher(Role.CSMS, default_registry(), wire, message_id_generator=message_ids, meter=meter)
    dispatcher.open_peer(PEER)

    dispatcher.handle_message(PEER, '[2,"m1","BootNotification",{"reason":"PowerUp"}]')
    await wire.wait_for(1)

    assert _recorded(reader, REQUESTS_INBOUND) == [(_attributes("BootNotification", "validation_error"), 1)]
    dispatcher.shutdown()


@pytest.mark.asyncio
async def test_handler_failure_is_counted_as_internal_error(wire, message_ids, meter, reader):
    dispatcher = Dispatcher(Role.CSMS, default_registry(), wire, message_id_generator=message_ids, meter=meter)
    dispatcher.open_peer(PEER)

    def handler(peer_id, request, message_id, action):
        raise RuntimeError("boom")

    dispatcher.set_request_handler(handler)
    dispatcher.handle_message(PEER, '[2,"m1","Heartbeat",{}]')
    await wire.wait_for(1)

    assert _recorded(reader, REQUESTS_INBOUND) == [(_attributes("Heartbeat", "internal_error"), 1)]
    dispatcher.shutdown()


@pytest.mark.asyncio
async def test_outbound_outcomes(wire, message_ids, meter, reader):
    dispatcher = Dispatcher(Role.CSMS, default_registry(), wire, message_id_generator=message_ids, meter=meter)
    dispatcher.open_peer(PEER)

    first = dispatcher.send(PEER, _reset())
    dispatcher.handle_message(PEER, '[3,"1",{"status":"Accepted"}]')
    await first
    second = dispatcher.send(PEER, _reset())
    dispatcher.handle_message(PEER, '[4,"2","GenericError","busy",null]')
    with pytest.raises(OcppError):
        await second

    points = sorted(_recorded(reader, REQUESTS_OUTBOUND), key=lambda p: len(p[0]))
    assert points == [(_attributes("Reset"), 1), (_attributes("Reset", "charge_point_error"), 1)]
    dispatcher.shutdown()


@pytest.mark.asyncio
async def test_write_failure_is_counted_as_network_error(wire, message_ids, meter, reader):
    dispatcher = Dispatcher(Role.CSMS, default_registry(), wire, message_id_generator=message_ids, meter=meter)
    dispatcher.open_peer(PEER)
    wire.fail_with = ConnectionError("socket closed")

    with pytest.raises(OcppError):
        await dispatcher.send(PEER, _reset())

    assert _recorded(reader, REQUESTS_OUTBOUND) == [(_attributes("Reset", "network_error"), 1)]
    dispatcher.shutdown()


@pytest.mark.asyncio
async def test_station_side_reports_its_own_id(wire, message_ids, meter, reader):
    dispatcher = Dispatcher(
        Role.CHARGING_STATION,
        default_registry(),
        wire,
        message_id_generator=message_ids,
        meter=meter,
        station_id="CS042",
    )
    dispatcher.open_peer(None)

    future = dispatcher.send(None, HeartbeatRequest())
    dispatcher.handle_message(None, '[3,"1",{"currentTime":"2024-01-01T00:00:00Z"}]')
    await future

    assert _recorded(reader, REQUESTS_OUTBOUND) == [(_attributes("Heartbeat", charge_point_id="CS042"), 1)]
    dispatcher.shutdown()


@pytest.mark.asyncio
async def test_malformed_call_has_no_feature(wire, message_ids, meter, reader):
    dispatcher = Dispatcher(Role.CSMS, default_registry(), wire, message_id_generator=message_ids, meter=meter)
    dispatcher.open_peer(PEER)

    dispatcher.handle_message(PEER, '[NaN,"m1","Heartbeat",{}]')

    assert _recorded(reader, REQUESTS_INBOUND) == [
        ({"charge_point_id": PEER, "ocpp_version": "2.0.1", "error": "payload_error"}, 1)
    ]
    dispatcher.shutdown()


def test_metrics_are_optional(wire):
    dispatcher = Dispatcher(Role.CSMS, default_registry(), wire)

    assert dispatcher.metrics is None


@pytest.mark.parametrize(
    "code, error_class",
    [
        (ErrorCode.OCCURRENCE_CONSTRAINT_VIOLATION, ErrorClass.VALIDATION),
        (ErrorCode.TYPE_CONSTRAINT_VIOLATION, ErrorClass.VALIDATION),
        (ErrorCode.FORMATION_VIOLATION, ErrorClass.PAYLOAD),
        (ErrorCode.NOT_SUPPORTED, ErrorClass.PAYLOAD),
        (ErrorCode.GENERIC_ERROR, ErrorClass.INTERNAL),
    ],
)
def test_classify(code, error_class):
    assert classify(OcppError(code, "x")) == error_class
