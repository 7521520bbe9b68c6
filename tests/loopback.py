"""
In-memory transports and a recording wire for tests.

Loopback transports deliver frames with loop.call_soon, so a frame written
by one side reaches the other on a later loop iteration, like a network would.
"""

import asyncio
import json

from ocpplink.transport import ClientTransport, ServerTransport


class Wire:
    """Writer callable for a bare Dispatcher that records every frame."""

    def __init__(self):
        self.sent = []
        self.fail_with = None

    def __call__(self, peer_id, data):
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append((peer_id, data))

    @property
    def frames(self):
        return [json.loads(data) for _, data in self.sent]

    async def wait_for(self, count, timeout=1.0):
        """Wait until at least ``count`` frames were written; returns the last one."""

        async def poll():
            while len(self.sent) < count:
                await asyncio.sleep(0.001)

        await asyncio.wait_for(poll(), timeout)
        return self.frames[count - 1]


class LoopbackServer(ServerTransport):
    def __init__(self):
        super().__init__()
        self.clients = {}
        self.sent = []
        self.started = False

    async def start(self, host, port, path="/"):
        self.started = True

    async def stop(self):
        for peer_id in list(self.clients):
            self.drop(peer_id, notify_client=True)
        self.started = False

    def write(self, peer_id, data):
        client = self.clients.get(peer_id)
        if client is None:
            raise ConnectionError(f"charging station {peer_id} not connected")
        self.sent.append((peer_id, data))
        asyncio.get_running_loop().call_soon(client.deliver, data)

    def drop(self, peer_id, notify_client=True):
        """Simulate the connection to a station going away."""
        client = self.clients.pop(peer_id)
        client.connected = False
        if notify_client:
            client.on_disconnect(ConnectionError("connection closed"))
        self.on_disconnect(peer_id)


class LoopbackClient(ClientTransport):
    def __init__(self, server: LoopbackServer, peer_id: str):
        super().__init__()
        self.server = server
        self.peer_id = peer_id
        self.sent = []
        self.connected = False
        self.url = None

    async def start(self, url):
        self.url = url
        self.connect()

    def connect(self):
        self.server.clients[self.peer_id] = self
        self.connected = True
        self.on_connect()
        self.server.on_connect(self.peer_id)

    async def stop(self):
        if self.connected:
            self.server.drop(self.peer_id, notify_client=False)

    def write(self, data):
        if not self.connected:
            raise ConnectionError("not connected")
        self.sent.append(data)
        asyncio.get_running_loop().call_soon(self.server.on_message, self.peer_id, data)

    def deliver(self, data):
        if self.connected:
            self.on_message(data)

