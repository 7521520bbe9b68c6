"""
OCPP-J dispatcher.

Routes inbound frames to the request handler or to the pending request they
answer, and sends outbound requests one at a time per peer. The dispatcher is
transport agnostic: it is fed raw text through handle_message() and writes
through the ``writer`` callable it was built with.

All methods must be called from the event loop the dispatcher runs on.
"""

import asyncio
import inspect
from typing import Callable, Dict, List, Optional

import pydantic
from loguru import logger
from opentelemetry.metrics import Meter

from ocpplink import codec
from ocpplink.codec import Call, CallError, CallResult, CallResultError, MessageType
from ocpplink.errors import (
    ErrorCode,
    FrameError,
    OcppError,
    ValidationError,
    connection_lost_error,
    shutdown_error,
    timeout_error,
)
from ocpplink.metrics import ErrorClass, OcppMetrics, classify
from ocpplink.registry import Feature, FeatureRegistry, Role
from ocpplink.state import CompletionCallback, OutboundRequest, PeerState
from ocpplink.utils import random_message_id
from ocpplink.validation import first_error, parse, validate

RequestHandler = Callable[[Optional[str], object, str, str], object]
InvalidMessageHook = Callable[[Optional[str], OcppError, str, Optional[list]], Optional[OcppError]]

_RESPONSE_TYPES = (MessageType.CALL_RESULT, MessageType.CALL_ERROR, MessageType.CALL_RESULT_ERROR)


class Dispatcher:
    """
    Dispatch engine shared by both endpoint roles.

    Args:
        role: which side of the connection this dispatcher serves
        registry: supported features
        writer: callable(peer_id, text) handing a frame to the transport;
            raises on failure
        request_timeout: seconds to wait for a response before failing a request
        queue_capacity: max requests waiting behind the in-flight one (0 = unbounded)
        validate_messages: check payload constraints on every message
        message_id_generator: callable returning a fresh message ID
        meter: OpenTelemetry meter recording request metrics (none when omitted)
        station_id: charge point ID reported in metrics for peerless connections
    """

    def __init__(
        self,
        role: Role,
        registry: FeatureRegistry,
        writer: Callable[[Optional[str], str], None],
        request_timeout: float = 30.0,
        queue_capacity: int = 0,
        validate_messages: bool = True,
        message_id_generator: Callable[[], str] = random_message_id,
        meter: Optional[Meter] = None,
        station_id: Optional[str] = None,
    ):
        if request_timeout <= 0:
            raise ValueError("request_timeout must be positive")
        self.role = role
        self.registry = registry
        self.request_timeout = request_timeout
        self.queue_capacity = queue_capacity
        self.validate_messages = validate_messages
        self.message_id_generator = message_id_generator
        self._write = writer
        self._peers: Dict[Optional[str], PeerState] = {}
        self._request_handler: Optional[RequestHandler] = None
        self._invalid_message_hook: Optional[InvalidMessageHook] = None
        self.metrics = OcppMetrics(meter, station_id) if meter is not None else None

    def set_request_handler(self, handler: Optional[RequestHandler]):
        """Handler called as handler(peer_id, request, message_id, action); may be async."""
        self._request_handler = handler

    def set_invalid_message_hook(self, hook: Optional[InvalidMessageHook]):
        self._invalid_message_hook = hook

    # Peers

    def open_peer(self, peer_id: Optional[str]) -> PeerState:
        if peer_id in self._peers:
            logger.warning(f"Peer {peer_id} reconnected, dropping its previous state")
            self.close_peer(peer_id)
        state = PeerState(peer_id, self.queue_capacity)
        state.worker = asyncio.get_running_loop().create_task(self._call_worker(state))
        self._peers[peer_id] = state
        return state

    def close_peer(self, peer_id: Optional[str], error_factory=connection_lost_error):
        """Tear down a peer, failing its pending and queued requests."""
        state = self._peers.pop(peer_id, None)
        if state is None:
            return
        if state.worker is not None:
            state.worker.cancel()
        requests = state.take_all()
        if requests:
            logger.info(f"Failing {len(requests)} outstanding request(s) for {self._name(peer_id)}")
        for request in requests:
            request.complete(error=error_factory(request.message_id, peer_id))

    def shutdown(self):
        for peer_id in list(self._peers):
            self.close_peer(peer_id, shutdown_error)

    def peers(self) -> List[Optional[str]]:
        return list(self._peers)

    def peer_state(self, peer_id: Optional[str]) -> Optional[PeerState]:
        return self._peers.get(peer_id)

    # Outbound

    def send(
        self,
        peer_id: Optional[str],
        request,
        callback: Optional[CompletionCallback] = None,
    ) -> asyncio.Future:
        """
        Queue a request for a peer and return a future for its response.

        Returns immediately. The future (and callback, if given) completes
        exactly once, with the response payload or an OcppError.

        Raises:
            OcppError: if the action may not be sent from this side, the
                request fails validation, the peer is not connected or the
                send queue is full
        """
        feature = self._outbound_feature(request)
        if self.validate_messages:
            validate(request, feature.name)
        state = self._connected_state(peer_id)
        outbound = OutboundRequest(
            self.message_id_generator(),
            feature,
            request,
            asyncio.get_running_loop().create_future(),
            callback,
        )
        state.enqueue(outbound)
        if state.in_flight:
            logger.debug(
                f"Queued {feature.name} ({outbound.message_id}) for {self._name(peer_id)}, "
                f"{len(state.queue)} waiting"
            )
        self._drain(state)
        return outbound.future

    def add_pending_request(
        self,
        peer_id: Optional[str],
        message_id: str,
        request,
        callback: Optional[CompletionCallback] = None,
    ) -> asyncio.Future:
        """Record a request as in flight without writing it to the transport."""
        feature = self.registry.feature_for(request)
        if feature is None:
            raise OcppError(ErrorCode.NOT_SUPPORTED, f"unsupported request type {type(request).__name__}")
        state = self._connected_state(peer_id)
        if state.in_flight:
            raise OcppError(
                ErrorCode.GENERIC_ERROR,
                f"request {state.pending.message_id} already in flight",
                peer_id=peer_id,
                message_id=message_id,
            )
        outbound = OutboundRequest(
            message_id, feature, request, asyncio.get_running_loop().create_future(), callback
        )
        self._mark_pending(state, outbound)
        return outbound.future

    def _outbound_feature(self, request) -> Feature:
        feature = self.registry.feature_for(request)
        if feature is None or not self.role.may_send(feature.direction):
            name = feature.name if feature else type(request).__name__.removesuffix("Request")
            raise OcppError(
                ErrorCode.NOT_SUPPORTED,
                f"unsupported action {name} on {self.role.value}, cannot send request",
            )
        return feature

    def _connected_state(self, peer_id) -> PeerState:
        state = self._peers.get(peer_id)
        if state is None:
            description = "not connected" if peer_id is None else f"charging station {peer_id} not connected"
            raise OcppError(ErrorCode.GENERIC_ERROR, description, peer_id=peer_id)
        return state

    def _mark_pending(self, state: PeerState, request: OutboundRequest):
        state.pending = request
        request.timer = asyncio.get_running_loop().call_later(
            self.request_timeout, self._on_timeout, state, request.message_id
        )

    def _drain(self, state: PeerState):
        """Write queued requests until one is in flight or the queue is empty."""
        while not state.in_flight and self._peers.get(state.peer_id) is state:
            request = state.pop_next()
            if request is None:
                return
            self._dispatch(state, request)

    def _dispatch(self, state: PeerState, request: OutboundRequest):
        frame = Call(request.message_id, request.action, request.request.to_dict())
        self._mark_pending(state, request)
        try:
            self._write(state.peer_id, codec.encode(frame))
        except Exception as e:
            logger.error(f"Failed to send {request.action} ({request.message_id}) to {self._name(state.peer_id)}: {e}")
            self._count_outbound(state, request.action, ErrorClass.NETWORK)
            state.take_pending(request.message_id)
            request.complete(
                error=OcppError(
                    ErrorCode.INTERNAL_ERROR, str(e), peer_id=state.peer_id, message_id=request.message_id
                )
            )
            return
        logger.debug(f"Sent {request.action} ({request.message_id}) to {self._name(state.peer_id)}")

    def _on_timeout(self, state: PeerState, message_id: str):
        request = state.take_pending(message_id)
        if request is None:
            return
        logger.warning(f"{request.action} ({message_id}) to {self._name(state.peer_id)} timed out")
        self._count_outbound(state, request.action, ErrorClass.NETWORK)
        request.complete(error=timeout_error(message_id, state.peer_id))
        self._drain(state)

    # Inbound

    def handle_message(self, peer_id: Optional[str], data):
        """Process one inbound frame from a peer."""
        state = self._peers.get(peer_id)
        if state is None:
            logger.warning(f"Dropping message from unknown peer {peer_id}")
            return
        if isinstance(data, (bytes, bytearray)):
            data = data.decode("utf-8", errors="replace")
        logger.debug(f"Received from {self._name(peer_id)}: {data}")
        try:
            frame = codec.decode(data, self.registry)
        except FrameError as e:
            self._on_frame_error(state, e, data)
            return
        if isinstance(frame, Call):
            self._on_call(state, frame, data)
        elif isinstance(frame, CallResult):
            self._on_call_result(state, frame, data)
        else:
            self._on_call_error(state, frame)

    def _on_frame_error(self, state: PeerState, error: FrameError, text: str):
        error.with_context(peer_id=state.peer_id)
        fields = error.fields
        if fields and fields[0] in _RESPONSE_TYPES:
            pending = state.take_pending(error.message_id) if error.message_id else None
            if pending is None:
                logger.warning(
                    f"Discarding malformed response {error.message_id!r} from {self._name(state.peer_id)}: "
                    f"{error.description}"
                )
                return
            self._count_outbound(state, pending.action, ErrorClass.PAYLOAD)
            pending.complete(error=error)
            if fields[0] == MessageType.CALL_RESULT:
                reply = self._apply_hook(state, error, text, fields)
                self._send_error(state, error.message_id, reply, CallResultError)
            self._drain(state)
            return

        action = ""
        if fields and len(fields) > 2 and fields[0] == MessageType.CALL and isinstance(fields[2], str):
            action = fields[2]
        self._count_inbound(state, action, classify(error))
        reply = self._apply_hook(state, error, text, fields)
        if not reply.message_id:
            logger.error(f"Invalid message from {self._name(state.peer_id)}: {reply.description}")
            return
        logger.warning(f"Rejecting message {reply.message_id} from {self._name(state.peer_id)}: {reply.description}")
        self._send_error(state, reply.message_id, reply)

    def _apply_hook(self, state: PeerState, error: OcppError, text: str, fields) -> OcppError:
        if self._invalid_message_hook is None:
            return error
        try:
            replacement = self._invalid_message_hook(state.peer_id, error, text, fields)
        except Exception:
            logger.exception(f"Invalid message hook failed for {self._name(state.peer_id)}")
            return error
        if replacement is None:
            return error
        return replacement.with_context(peer_id=state.peer_id, message_id=error.message_id)

    def _on_call(self, state: PeerState, call: Call, text: str):
        if call.unique_id in state.active_calls:
            logger.error(
                f"Duplicate message ID {call.unique_id} from {self._name(state.peer_id)} "
                f"while the first {call.action} is still being handled, dropping it"
            )
            return
        state.active_calls.add(call.unique_id)
        state.inbound.put_nowait((call, text))

    async def _call_worker(self, state: PeerState):
        while True:
            call, text = await state.inbound.get()
            try:
                await self._handle_call(state, call, text)
            except Exception:
                logger.exception(f"Failed to handle {call.action} ({call.unique_id}) from {self._name(state.peer_id)}")
            finally:
                state.active_calls.discard(call.unique_id)

    async def _handle_call(self, state: PeerState, call: Call, text: str):
        feature = self.registry.lookup(call.action)
        if not self.role.may_receive(feature.direction):
            error = OcppError(ErrorCode.NOT_SUPPORTED, f"unsupported action {call.action} on {self.role.value}")
            logger.warning(f"Rejecting {call.action} ({call.unique_id}) from {self._name(state.peer_id)}: wrong direction")
            self._count_inbound(state, call.action, ErrorClass.PAYLOAD)
            self._send_error(state, call.unique_id, error)
            return

        try:
            request = parse(feature.request_type, call.payload, feature.name, self.validate_messages)
        except ValidationError as e:
            e.with_context(state.peer_id, call.unique_id)
            logger.warning(f"Invalid {call.action} ({call.unique_id}) from {self._name(state.peer_id)}: {e.description}")
            self._count_inbound(state, call.action, ErrorClass.VALIDATION)
            reply = self._apply_hook(state, e, text, call.to_list())
            self._send_error(state, call.unique_id, reply)
            return

        try:
            response = await self._invoke_handler(state.peer_id, request, call)
        except OcppError as e:
            logger.info(f"Handler rejected {call.action} ({call.unique_id}): {e.code.value} - {e.description}")
            self._count_inbound(state, call.action, ErrorClass.INTERNAL)
            self._send_error(state, call.unique_id, e)
            return
        except pydantic.ValidationError as e:
            # The handler built a response violating its schema
            error = first_error(e, feature.name)
            logger.error(f"Invalid {call.action} response for {self._name(state.peer_id)}: {error.description}")
            self._count_inbound(state, call.action, ErrorClass.INTERNAL)
            self._send_error(state, call.unique_id, OcppError(ErrorCode.INTERNAL_ERROR, error.description))
            return
        except Exception as e:
            logger.exception(f"Handler for {call.action} ({call.unique_id}) failed")
            self._count_inbound(state, call.action, ErrorClass.INTERNAL)
            self._send_error(state, call.unique_id, OcppError(ErrorCode.INTERNAL_ERROR, str(e)))
            return

        error = self._check_response(feature, response)
        if error is not None:
            logger.error(f"Invalid {call.action} response for {self._name(state.peer_id)}: {error.description}")
            self._count_inbound(state, call.action, ErrorClass.INTERNAL)
            self._send_error(state, call.unique_id, OcppError(ErrorCode.INTERNAL_ERROR, error.description))
            return
        self._count_inbound(state, call.action)
        self._write_frame(state, CallResult(call.unique_id, response.to_dict()))

    async def _invoke_handler(self, peer_id, request, call: Call):
        if self._request_handler is None:
            raise OcppError(ErrorCode.NOT_IMPLEMENTED, f"no handler for action {call.action} implemented")
        result = self._request_handler(peer_id, request, call.unique_id, call.action)
        if inspect.isawaitable(result):
            result = await result
        return result

    def _check_response(self, feature: Feature, response) -> Optional[OcppError]:
        if response is None:
            return OcppError(ErrorCode.INTERNAL_ERROR, f"empty response for action {feature.name}")
        if not isinstance(response, feature.response_type):
            return OcppError(
                ErrorCode.INTERNAL_ERROR,
                f"invalid response type {type(response).__name__} for action {feature.name}",
            )
        if self.validate_messages:
            try:
                validate(response, feature.name)
            except ValidationError as e:
                return e
        return None

    def _on_call_result(self, state: PeerState, frame: CallResult, text: str):
        pending = state.take_pending(frame.unique_id)
        if pending is None:
            logger.warning(
                f"No previous request {frame.unique_id} sent to {self._name(state.peer_id)}. "
                f"Discarding response message"
            )
            return
        feature = pending.feature
        try:
            response = parse(feature.response_type, frame.payload, feature.name, self.validate_messages)
        except ValidationError as e:
            e.with_context(state.peer_id, frame.unique_id)
            logger.warning(f"Invalid {feature.name} response from {self._name(state.peer_id)}: {e.description}")
            self._count_outbound(state, feature.name, ErrorClass.VALIDATION)
            pending.complete(error=e)
            reply = self._apply_hook(state, e, text, frame.to_list())
            self._send_error(state, frame.unique_id, reply, CallResultError)
            self._drain(state)
            return
        logger.debug(f"{feature.name} ({frame.unique_id}) answered by {self._name(state.peer_id)}")
        self._count_outbound(state, feature.name)
        pending.complete(response)
        self._drain(state)

    def _on_call_error(self, state: PeerState, frame: CallError):
        pending = state.take_pending(frame.unique_id)
        if pending is None:
            logger.warning(
                f"No previous request {frame.unique_id} sent to {self._name(state.peer_id)}. "
                f"Discarding error message"
            )
            return
        error = OcppError(
            frame.error_code,
            frame.error_description,
            frame.error_details,
            peer_id=state.peer_id,
            message_id=frame.unique_id,
        )
        logger.info(f"{pending.action} ({frame.unique_id}) failed: {error.code.value} - {error.description}")
        self._count_outbound(state, pending.action, ErrorClass.CHARGE_POINT)
        pending.complete(error=error)
        self._drain(state)

    def _send_error(self, state: PeerState, message_id: str, error: OcppError, frame_class=CallError):
        frame = frame_class(message_id, error.code, error.description, error.details or None)
        self._write_frame(state, frame)

    def _write_frame(self, state: PeerState, frame):
        try:
            self._write(state.peer_id, codec.encode(frame))
        except Exception as e:
            logger.error(f"Failed to write {type(frame).__name__} {frame.unique_id} to {self._name(state.peer_id)}: {e}")

    def _count_inbound(self, state: PeerState, feature: str, error: Optional[ErrorClass] = None):
        if self.metrics is not None:
            self.metrics.inbound(state.peer_id, feature, error)

    def _count_outbound(self, state: PeerState, feature: str, error: Optional[ErrorClass] = None):
        if self.metrics is not None:
            self.metrics.outbound(state.peer_id, feature, error)

    def _name(self, peer_id) -> str:
        return "CSMS" if peer_id is None else f"charging station {peer_id}"
