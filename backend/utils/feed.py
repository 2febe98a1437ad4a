# backend/utils/feed.py
"""
In-process change feeds for live admin views.

A feed keeps the latest published payload and fans it out to plain callbacks
and to asyncio queues (one per websocket connection). Publishing happens from
sync routes running in the threadpool, so queue delivery goes through the
owning loop with call_soon_threadsafe.
"""
import asyncio
import logging
import threading
from typing import Any, Callable, List, Tuple

logger = logging.getLogger(__name__)


class Feed:
    def __init__(self, name: str):
        self.name = name
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[Any], None]] = []
        self._queues: List[Tuple[asyncio.AbstractEventLoop, asyncio.Queue]] = []

    def subscribe(self, callback: Callable[[Any], None]) -> Callable[[], None]:
        with self._lock:
            self._callbacks.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)

        return unsubscribe

    def open_queue(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        with self._lock:
            self._queues.append((asyncio.get_running_loop(), queue))
        return queue

    def close_queue(self, queue: asyncio.Queue) -> None:
        with self._lock:
            self._queues = [(loop, q) for loop, q in self._queues if q is not queue]

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._callbacks) + len(self._queues)

    def publish(self, payload: Any) -> None:
        with self._lock:
            callbacks = list(self._callbacks)
            queues = list(self._queues)
        for callback in callbacks:
            try:
                callback(payload)
            except Exception:
                logger.exception("%s feed subscriber failed", self.name)
        for loop, queue in queues:
            if loop.is_closed():
                self.close_queue(queue)
                continue
            loop.call_soon_threadsafe(queue.put_nowait, payload)


order_feed = Feed("orders")
settings_feed = Feed("settings")
