"""
Per-peer dispatch state: pending request, send queue and inbound call queue.
"""

import asyncio
from collections import deque
from typing import Callable, Deque, List, Optional, Set

from loguru import logger

from ocpplink.errors import ErrorCode, OcppError

CompletionCallback = Callable[[Optional[object], Optional[OcppError]], None]


class OutboundRequest:
    """
    A request sent (or about to be sent) to a peer.

    Completes exactly once, either with a response payload or an OcppError.
    The optional callback is invoked before the future is resolved.
    """

    def __init__(
        self,
        message_id: str,
        feature,
        request,
        future: asyncio.Future,
        callback: Optional[CompletionCallback] = None,
    ):
        self.message_id = message_id
        self.feature = feature
        self.request = request
        self.future = future
        self.callback = callback
        self.timer: Optional[asyncio.TimerHandle] = None
        self.done = False

    @property
    def action(self) -> str:
        return self.feature.name

    def cancel_timer(self):
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None

    def complete(self, response=None, error: Optional[OcppError] = None):
        if self.done:
            return
        self.done = True
        self.cancel_timer()
        if self.callback is not None:
            try:
                self.callback(response, error)
            except Exception:
                logger.exception(f"Completion callback for {self.action} ({self.message_id}) failed")
        if self.future.done():
            return
        if error is not None:
            self.future.set_exception(error)
            # Callers relying on callbacks never await the future
            self.future.exception()
        else:
            self.future.set_result(response)

    def __repr__(self):
        return f"OutboundRequest({self.action!r}, message_id={self.message_id!r})"


class PeerState:
    """
    Everything the dispatcher tracks for one connected peer.

    A request is in flight while ``pending`` is set; further requests wait in
    ``queue`` and leave it in FIFO order. Inbound Calls are processed one at a
    time by ``worker``, in arrival order.
    """

    def __init__(self, peer_id: Optional[str], queue_capacity: int = 0):
        self.peer_id = peer_id
        self.pending: Optional[OutboundRequest] = None
        self.queue: Deque[OutboundRequest] = deque()
        self.queue_capacity = queue_capacity
        self.inbound: asyncio.Queue = asyncio.Queue()
        self.active_calls: Set[str] = set()
        self.worker: Optional[asyncio.Task] = None

    @property
    def in_flight(self) -> bool:
        return self.pending is not None

    def enqueue(self, request: OutboundRequest):
        if self.queue_capacity and len(self.queue) >= self.queue_capacity:
            raise OcppError(
                ErrorCode.GENERIC_ERROR,
                "request queue is full",
                peer_id=self.peer_id,
                message_id=request.message_id,
            )
        self.queue.append(request)

    def pop_next(self) -> Optional[OutboundRequest]:
        if self.queue:
            return self.queue.popleft()
        return None

    def take_pending(self, message_id: str) -> Optional[OutboundRequest]:
        """Clear and return the pending request if it matches message_id."""
        pending = self.pending
        if pending is None or pending.message_id != message_id:
            return None
        self.pending = None
        pending.cancel_timer()
        return pending

    def take_all(self) -> List[OutboundRequest]:
        """Clear and return the pending request and everything queued, in send order."""
        requests = []
        if self.pending is not None:
            requests.append(self.pending)
            self.pending = None
        requests.extend(self.queue)
        self.queue.clear()
        for request in requests:
            request.cancel_timer()
        return requests

    def __repr__(self):
        return (
            f"PeerState({self.peer_id!r}, in_flight={self.in_flight}, "
            f"queued={len(self.queue)}, inbound={self.inbound.qsize()})"
        )
