"""
Application-facing OCPP 2.0.1 endpoints.

ChargingStation and CSMS wrap a Dispatcher around a transport. Requests can
be handled either by a single request handler, or by per-profile handler
objects whose ``on_<action>`` methods are called for each action of the
profile.
"""

import asyncio
from typing import Callable, Dict, List, Optional

from loguru import logger
from opentelemetry.metrics import Meter

from ocpplink import config
from ocpplink.dispatcher import Dispatcher
from ocpplink.errors import ErrorCode, OcppError
from ocpplink.models import default_registry
from ocpplink.models.base import snake_case
from ocpplink.registry import FeatureRegistry, Role
from ocpplink.state import CompletionCallback
from ocpplink.transport import ClientTransport, ServerTransport, WebSocketClient, WebSocketServer
from ocpplink.utils import random_message_id


class Endpoint:
    """Behaviour shared by both sides of an OCPP-J connection."""

    role: Role

    def __init__(
        self,
        transport,
        registry: Optional[FeatureRegistry] = None,
        request_timeout: float = config.REQUEST_TIMEOUT,
        queue_capacity: int = config.QUEUE_CAPACITY,
        validate_messages: bool = config.VALIDATE_MESSAGES,
        message_id_generator: Callable[[], str] = random_message_id,
        meter: Optional[Meter] = None,
        station_id: Optional[str] = None,
    ):
        self.registry = registry if registry is not None else default_registry()
        self.transport = transport
        self.dispatcher = Dispatcher(
            self.role,
            self.registry,
            self._write,
            request_timeout=request_timeout,
            queue_capacity=queue_capacity,
            validate_messages=validate_messages,
            message_id_generator=message_id_generator,
            meter=meter,
            station_id=station_id,
        )
        self.dispatcher.set_request_handler(self._route_request)
        self._request_handler: Optional[Callable] = None
        self._profile_handlers: Dict[str, object] = {}

    def set_message_validation(self, enabled: bool):
        self.dispatcher.validate_messages = enabled

    def set_invalid_message_hook(self, hook):
        """hook(peer_id, error, raw_text, fields) may return an OcppError to send instead."""
        self.dispatcher.set_invalid_message_hook(hook)

    def set_handler(self, profile_name: str, handler):
        """
        Route Calls of a profile to ``handler.on_<snake_case_action>``.

        Raises:
            ValueError: if no such profile is registered
        """
        if profile_name not in {profile.name for profile in self.registry.profiles()}:
            raise ValueError(f"unknown profile {profile_name}")
        self._profile_handlers[profile_name] = handler

    def _write(self, peer_id, data: str):
        raise NotImplementedError

    def _invoke(self, handler, peer_id, request, message_id, action):
        raise NotImplementedError

    def _invoke_profile(self, method, peer_id, request):
        raise NotImplementedError

    def _route_request(self, peer_id, request, message_id: str, action: str):
        if self._request_handler is not None:
            return self._invoke(self._request_handler, peer_id, request, message_id, action)
        profile = self.registry.profile_of(action)
        handler = self._profile_handlers.get(profile.name) if profile else None
        method = getattr(handler, f"on_{snake_case(action)}", None)
        if method is None:
            raise OcppError(ErrorCode.NOT_IMPLEMENTED, f"no handler for action {action} implemented")
        return self._invoke_profile(method, peer_id, request)

    @staticmethod
    def _notify(name: str, hook, *args):
        if hook is None:
            return
        try:
            hook(*args)
        except Exception:
            logger.exception(f"{name} handler failed")

    async def _stop(self):
        self.dispatcher.shutdown()
        await self.transport.stop()


class ChargingStation(Endpoint):
    """
    Charging station side endpoint.

    Connects to ``<url>/<station_id>``. Requests sent while disconnected fail
    with GenericError "not connected"; requests outstanding when the
    connection drops fail with "connection lost".
    """

    role = Role.CHARGING_STATION

    def __init__(
        self,
        station_id: str = config.CHARGING_STATION_ID,
        transport: Optional[ClientTransport] = None,
        **kwargs,
    ):
        if transport is None:
            basic_auth = None
            if config.BASIC_AUTH_USER:
                basic_auth = (config.BASIC_AUTH_USER, config.BASIC_AUTH_PASSWORD or "")
            transport = WebSocketClient(basic_auth=basic_auth)
        super().__init__(transport, station_id=station_id, **kwargs)
        self.id = station_id
        self._connected_once = False
        self._disconnect_handler = None
        self._reconnect_handler = None
        transport.on_message = self._on_message
        transport.on_connect = self._on_connect
        transport.on_disconnect = self._on_disconnect

    @property
    def is_connected(self) -> bool:
        return self.dispatcher.peer_state(None) is not None

    async def start(self, url: str = config.CSMS_URL):
        """Freeze the feature registry and connect to the CSMS."""
        self.registry.freeze()
        url = f"{url.rstrip('/')}/{self.id}"
        logger.info(f"Charging station {self.id} connecting to {url}")
        await self.transport.start(url)

    async def stop(self):
        logger.info(f"Stopping charging station {self.id}")
        await self._stop()

    def send(self, request, callback: Optional[CompletionCallback] = None) -> asyncio.Future:
        return self.dispatcher.send(None, request, callback)

    async def call(self, request):
        """Send a request and wait for its response; raises OcppError on failure."""
        return await self.send(request)

    def add_pending_request(self, message_id: str, request) -> asyncio.Future:
        return self.dispatcher.add_pending_request(None, message_id, request)

    def set_request_handler(self, handler):
        """handler(request, message_id, action) returns a response or raises OcppError."""
        self._request_handler = handler

    def set_disconnect_handler(self, handler):
        """handler(error) is called when the connection to the CSMS drops."""
        self._disconnect_handler = handler

    def set_reconnect_handler(self, handler):
        self._reconnect_handler = handler

    def _write(self, peer_id, data: str):
        self.transport.write(data)

    def _invoke(self, handler, peer_id, request, message_id, action):
        return handler(request, message_id, action)

    def _invoke_profile(self, method, peer_id, request):
        return method(request)

    def _on_message(self, data):
        self.dispatcher.handle_message(None, data)

    def _on_connect(self):
        self.dispatcher.open_peer(None)
        if self._connected_once:
            logger.info(f"Charging station {self.id} reconnected")
            self._notify("Reconnect", self._reconnect_handler)
        self._connected_once = True

    def _on_disconnect(self, error):
        logger.warning(f"Charging station {self.id} lost its connection: {error}")
        self.dispatcher.close_peer(None)
        self._notify("Disconnect", self._disconnect_handler, error)


class CSMS(Endpoint):
    """
    CSMS side endpoint, serving any number of charging stations.

    Each station is addressed by the ID taken from its connection path.
    """

    role = Role.CSMS

    def __init__(self, transport: Optional[ServerTransport] = None, **kwargs):
        if transport is None:
            transport = WebSocketServer()
        super().__init__(transport, **kwargs)
        self._new_station_handler = None
        self._station_disconnected_handler = None
        transport.on_message = self.dispatcher.handle_message
        transport.on_connect = self._on_connect
        transport.on_disconnect = self._on_disconnect

    async def start(self, host: str = config.HOST, port: int = config.PORT, path: str = config.LISTEN_PATH):
        """Freeze the feature registry and start listening."""
        self.registry.freeze()
        await self.transport.start(host, port, path)

    async def stop(self):
        logger.info("Stopping CSMS")
        await self._stop()

    def send(self, peer_id: str, request, callback: Optional[CompletionCallback] = None) -> asyncio.Future:
        return self.dispatcher.send(peer_id, request, callback)

    async def call(self, peer_id: str, request):
        """Send a request to a station and wait for its response; raises OcppError on failure."""
        return await self.send(peer_id, request)

    def add_pending_request(self, message_id: str, request, peer_id: Optional[str] = None) -> asyncio.Future:
        return self.dispatcher.add_pending_request(peer_id, message_id, request)

    def connected_peers(self) -> List[str]:
        return self.dispatcher.peers()

    def is_connected(self, peer_id: str) -> bool:
        return self.dispatcher.peer_state(peer_id) is not None

    def set_request_handler(self, handler):
        """handler(peer_id, request, message_id, action) returns a response or raises OcppError."""
        self._request_handler = handler

    def set_basic_auth_handler(self, handler):
        """handler(peer_id, username, password) -> bool, checked before the WebSocket handshake."""
        self.transport.basic_auth_handler = handler

    def set_new_charging_station_handler(self, handler):
        self._new_station_handler = handler

    def set_charging_station_disconnected_handler(self, handler):
        self._station_disconnected_handler = handler

    def _write(self, peer_id, data: str):
        self.transport.write(peer_id, data)

    def _invoke(self, handler, peer_id, request, message_id, action):
        return handler(peer_id, request, message_id, action)

    def _invoke_profile(self, method, peer_id, request):
        return method(peer_id, request)

    def _on_connect(self, peer_id: str):
        self.dispatcher.open_peer(peer_id)
        self._notify("New charging station", self._new_station_handler, peer_id)

    def _on_disconnect(self, peer_id: str):
        self.dispatcher.close_peer(peer_id)
        self._notify("Charging station disconnected", self._station_disconnected_handler, peer_id)
