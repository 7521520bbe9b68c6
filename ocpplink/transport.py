"""
WebSocket transports for OCPP-J endpoints.

The dispatcher only needs something that can write text to a peer and report
inbound text, connects and disconnects. ServerTransport and ClientTransport
define that contract; WebSocketServer and WebSocketClient implement it with
the websockets library.
"""

import asyncio
import base64
import inspect
from http import HTTPStatus
from typing import Callable, Dict, List, Optional

from loguru import logger
from websockets.asyncio.client import connect
from websockets.asyncio.server import serve
from websockets.exceptions import ConnectionClosed, InvalidHeader, WebSocketException
from websockets.frames import CloseCode
from websockets.headers import build_www_authenticate_basic, parse_authorization_basic

from ocpplink import config

BasicAuthHandler = Callable[[str, str, str], bool]


def _noop(*args):
    pass


class ServerTransport:
    """
    Server side transport contract.

    Callbacks are plain attributes set by the endpoint:
    on_message(peer_id, data), on_connect(peer_id), on_disconnect(peer_id).
    """

    def __init__(self):
        self.on_message = _noop
        self.on_connect = _noop
        self.on_disconnect = _noop
        self.basic_auth_handler: Optional[BasicAuthHandler] = None

    async def start(self, host: str, port: int, path: str = "/"):
        raise NotImplementedError

    async def stop(self):
        raise NotImplementedError

    def write(self, peer_id: str, data: str):
        raise NotImplementedError


class ClientTransport:
    """
    Client side transport contract.

    Callbacks: on_message(data), on_connect(), on_disconnect(error).
    """

    def __init__(self):
        self.on_message = _noop
        self.on_connect = _noop
        self.on_disconnect = _noop

    async def start(self, url: str):
        raise NotImplementedError

    async def stop(self):
        raise NotImplementedError

    def write(self, data: str):
        raise NotImplementedError


async def _write_loop(name: str, connection, queue: asyncio.Queue):
    """Flush queued frames to a connection in order."""
    while True:
        data = await queue.get()
        try:
            await connection.send(data)
        except ConnectionClosed as e:
            logger.warning(f"Cannot write to {name}, connection closed: {e}")
            return


class WebSocketServer(ServerTransport):
    """
    OCPP-J WebSocket server.

    Charging stations connect to ``ws://host:port/<path>/<stationId>``; the last
    path segment is the peer ID. Connections that do not negotiate one of
    ``subprotocols`` are closed with 1002.
    """

    def __init__(
        self,
        subprotocols: Optional[List[str]] = None,
        ssl=None,
        ping_interval: Optional[float] = config.PING_INTERVAL,
        max_message_bytes: Optional[int] = config.MAX_MESSAGE_BYTES,
        realm: str = "ocpp",
    ):
        super().__init__()
        self.subprotocols = subprotocols or list(config.SUPPORTED_PROTOCOLS)
        self.ssl = ssl
        self.ping_interval = ping_interval
        self.max_message_bytes = max_message_bytes
        self.realm = realm
        self.path = "/"
        self._server = None
        self._connections: Dict[str, tuple] = {}

    @property
    def port(self) -> Optional[int]:
        """Port actually bound, useful when started on port 0."""
        if self._server is None:
            return None
        return self._server.sockets[0].getsockname()[1]

    async def start(self, host: str, port: int, path: str = "/"):
        self.path = "/" + path.strip("/") if path.strip("/") else "/"
        self._server = await serve(
            self._handler,
            host,
            port,
            subprotocols=self.subprotocols,
            select_subprotocol=self._select_subprotocol,
            process_request=self._process_request,
            ssl=self.ssl,
            ping_interval=self.ping_interval,
            max_size=self.max_message_bytes,
        )
        scheme = "wss" if self.ssl else "ws"
        logger.info(f"OCPP WebSocket server started on {scheme}://{host}:{self.port}{self.path}")

    async def stop(self):
        if self._server is None:
            return
        self._server.close()
        await self._server.wait_closed()
        self._server = None
        logger.info("OCPP WebSocket server stopped")

    def write(self, peer_id: str, data: str):
        entry = self._connections.get(peer_id)
        if entry is None:
            raise ConnectionError(f"charging station {peer_id} not connected")
        entry[1].put_nowait(data)

    def connected(self) -> List[str]:
        return list(self._connections)

    def _select_subprotocol(self, connection, offered):
        # No match still completes the handshake, _handler then closes with 1002
        for subprotocol in self.subprotocols:
            if subprotocol in offered:
                return subprotocol
        return None

    def _peer_id(self, request_path: str) -> Optional[str]:
        path = request_path.split("?", 1)[0]
        prefix = self.path.rstrip("/") + "/"
        if not path.startswith(prefix):
            return None
        peer_id = path[len(prefix):].strip("/")
        if not peer_id or "/" in peer_id:
            return None
        return peer_id

    async def _process_request(self, connection, request):
        peer_id = self._peer_id(request.path)
        if peer_id is None:
            logger.warning(f"Rejecting connection on unknown path {request.path}")
            return connection.respond(HTTPStatus.NOT_FOUND, "Unknown path\n")
        if self.basic_auth_handler is None:
            return None

        header = request.headers.get("Authorization")
        username = password = None
        if header is not None:
            try:
                username, password = parse_authorization_basic(header)
            except InvalidHeader as e:
                logger.warning(f"Invalid Authorization header from {peer_id}: {e}")
        allowed = username is not None and self.basic_auth_handler(peer_id, username, password)
        if inspect.isawaitable(allowed):
            allowed = await allowed
        if not allowed:
            logger.warning(f"Basic auth failed for charging station {peer_id}")
            response = connection.respond(HTTPStatus.UNAUTHORIZED, "Invalid credentials\n")
            response.headers["WWW-Authenticate"] = build_www_authenticate_basic(self.realm)
            return response
        return None

    async def _handler(self, connection):
        peer_id = self._peer_id(connection.request.path)
        if connection.subprotocol not in self.subprotocols:
            requested = connection.request.headers.get("Sec-WebSocket-Protocol", "")
            logger.warning(f"Unsupported protocol requested by {peer_id}: {requested!r}")
            await connection.close(CloseCode.PROTOCOL_ERROR, "Unsupported protocol")
            return
        if peer_id in self._connections:
            logger.warning(f"Charging station {peer_id} is already connected, rejecting new connection")
            await connection.close(CloseCode.POLICY_VIOLATION, "Already connected")
            return

        queue: asyncio.Queue = asyncio.Queue()
        self._connections[peer_id] = (connection, queue)
        writer = asyncio.create_task(_write_loop(f"charging station {peer_id}", connection, queue))
        logger.info(f"Charging station {peer_id} connected using {connection.subprotocol}")
        try:
            self.on_connect(peer_id)
            async for message in connection:
                self.on_message(peer_id, message)
        except ConnectionClosed as e:
            logger.info(f"Connection to charging station {peer_id} closed: {e}")
        finally:
            writer.cancel()
            del self._connections[peer_id]
            logger.info(f"Charging station {peer_id} disconnected")
            self.on_disconnect(peer_id)


class WebSocketClient(ClientTransport):
    """
    OCPP-J WebSocket client with automatic reconnection.

    After an unexpected disconnect the client retries every
    ``reconnect_backoff`` seconds until it reconnects or is stopped.
    """

    def __init__(
        self,
        subprotocols: Optional[List[str]] = None,
        ssl=None,
        ping_interval: Optional[float] = config.PING_INTERVAL,
        max_message_bytes: Optional[int] = config.MAX_MESSAGE_BYTES,
        reconnect_backoff: float = config.RECONNECT_BACKOFF,
        basic_auth: Optional[tuple] = None,
    ):
        super().__init__()
        self.subprotocols = subprotocols or list(config.SUPPORTED_PROTOCOLS)
        self.ssl = ssl
        self.ping_interval = ping_interval
        self.max_message_bytes = max_message_bytes
        self.reconnect_backoff = reconnect_backoff
        self.basic_auth = basic_auth
        self.url: Optional[str] = None
        self._connection = None
        self._queue: Optional[asyncio.Queue] = None
        self._task: Optional[asyncio.Task] = None
        self._writer: Optional[asyncio.Task] = None
        self._stopping = False

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    async def start(self, url: str):
        self.url = url
        self._stopping = False
        connection = await self._connect()
        self._attach(connection)
        self._task = asyncio.create_task(self._run(connection))

    async def stop(self):
        self._stopping = True
        if self._task is None:
            return
        if self._connection is not None:
            await self._connection.close()
        else:
            self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            logger.debug(f"Reconnect loop for {self.url} cancelled")
        self._task = None

    def write(self, data: str):
        if self._connection is None:
            raise ConnectionError("not connected")
        self._queue.put_nowait(data)

    async def _connect(self):
        headers = {}
        options = {}
        if self.ssl is not None:
            # wss:// URLs get a default TLS context otherwise
            options["ssl"] = self.ssl
        if self.basic_auth:
            username, password = self.basic_auth
            token = base64.b64encode(f"{username}:{password}".encode()).decode()
            headers["Authorization"] = f"Basic {token}"
        connection = await connect(
            self.url,
            subprotocols=self.subprotocols,
            additional_headers=headers,
            ping_interval=self.ping_interval,
            max_size=self.max_message_bytes,
            **options,
        )
        if connection.subprotocol not in self.subprotocols:
            await connection.close(CloseCode.PROTOCOL_ERROR, "Unsupported protocol")
            raise ConnectionError(f"CSMS did not accept any of {self.subprotocols}")
        logger.info(f"Connected to {self.url} using {connection.subprotocol}")
        return connection

    def _attach(self, connection):
        self._connection = connection
        self._queue = asyncio.Queue()
        self._writer = asyncio.create_task(_write_loop("CSMS", connection, self._queue))
        self.on_connect()

    async def _run(self, connection):
        while True:
            error = await self._read(connection)
            if self._stopping:
                return
            self.on_disconnect(error)
            connection = await self._reconnect()
            if connection is None:
                return
            self._attach(connection)

    async def _read(self, connection) -> Optional[Exception]:
        """Read from a connection until it closes, returning the close reason."""
        error = None
        try:
            async for message in connection:
                self.on_message(message)
        except ConnectionClosed as e:
            error = e
            logger.warning(f"Connection to {self.url} closed: {e}")
        finally:
            self._writer.cancel()
            self._connection = None
            self._queue = None
        return error

    async def _reconnect(self):
        while not self._stopping:
            logger.info(f"Reconnecting to {self.url} in {self.reconnect_backoff} seconds")
            await asyncio.sleep(self.reconnect_backoff)
            try:
                return await self._connect()
            except (OSError, WebSocketException, ConnectionError, asyncio.TimeoutError) as e:
                logger.warning(f"Reconnect to {self.url} failed: {e}")
        return None
