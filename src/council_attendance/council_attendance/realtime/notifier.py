from __future__ import annotations

import json
import logging
import queue
import threading
from dataclasses import asdict, dataclass
from typing import Iterator, Optional, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PunchEvent:
    type: str
    member_id: int
    council_id: str
    name: str
    committee: Optional[str]
    session_id: int
    timestamp: str
    source: str

    def to_dict(self) -> dict:
        return asdict(self)


class RealtimeNotifier(Protocol):
    def publish(self, event: PunchEvent) -> None:
        raise NotImplementedError


class NullNotifier:
    """Used by scripts and tests that do not care about broadcasts."""

    def publish(self, event: PunchEvent) -> None:
        return None


class Subscription:
    def __init__(self, broadcaster: "InProcessBroadcaster", maxsize: int):
        self._broadcaster = broadcaster
        self.queue: "queue.Queue[PunchEvent]" = queue.Queue(maxsize=maxsize)

    def get(self, timeout: Optional[float] = None) -> Optional[PunchEvent]:
        try:
            return self.queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def close(self) -> None:
        self._broadcaster._unsubscribe(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class InProcessBroadcaster:
    """Fan-out of punch events to dashboard subscribers in this process.

    Best effort: a subscriber whose queue is full misses the event, and a
    publisher is never blocked by a slow dashboard.
    """

    def __init__(self, *, queue_size: int = 100):
        self._queue_size = int(queue_size)
        self._lock = threading.Lock()
        self._subscribers: list[Subscription] = []

    def subscribe(self) -> Subscription:
        sub = Subscription(self, self._queue_size)
        with self._lock:
            self._subscribers.append(sub)
        return sub

    def _unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            if sub in self._subscribers:
                self._subscribers.remove(sub)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, event: PunchEvent) -> None:
        with self._lock:
            targets = list(self._subscribers)
        for sub in targets:
            try:
                sub.queue.put_nowait(event)
            except queue.Full:
                logger.warning("Dropping %s event for a slow subscriber", event.type)


def sse_stream(sub: Subscription, *, heartbeat_seconds: float = 15.0) -> Iterator[str]:
    """Server-Sent Events framing; comment lines keep idle connections open."""

    try:
        while True:
            event = sub.get(timeout=heartbeat_seconds)
            if event is None:
                yield ": keep-alive\n\n"
                continue
            yield f"event: attendance:update\ndata: {json.dumps(event.to_dict())}\n\n"
    finally:
        sub.close()
