"""Bounded multi-producer / single-consumer event channel.

Carries ProgressEvents from a run's reader threads to the UI loop.

- offer(): advisory events (progress, status). Never blocks; the event is
  dropped when the channel is full or already closed.
- put(): terminal events. Never blocks and never drops, even past capacity.
- close(): called exactly once, by the run's exit waiter.
- get(): single consumer; returns None once closed and drained.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections import deque
from typing import Generic, TypeVar

from vconv.exceptions import ChannelClosedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CAPACITY = 32


class EventChannel(Generic[T]):
    """Thread-safe bounded FIFO with lossy advisory sends."""

    # Consumer wait slice; keeps KeyboardInterrupt responsive on the main thread
    WAIT_SLICE: float = 0.1

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        """Initialize the channel.

        Args:
            capacity: Maximum number of buffered advisory events.
        """
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self.capacity = capacity
        self._items: deque[T] = deque()
        self._cond = threading.Condition()
        self._closed = False
        self.dropped = 0

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)

    def offer(self, item: T) -> bool:
        """Send an advisory event without blocking.

        Returns:
            True if the event was queued, False if it was dropped because
            the channel is full or closed.
        """
        with self._cond:
            if self._closed or len(self._items) >= self.capacity:
                self.dropped += 1
                return False
            self._items.append(item)
            self._cond.notify()
            return True

    def put(self, item: T) -> None:
        """Send an event that must not be lost.

        Raises:
            ChannelClosedError: If the channel is already closed.
        """
        with self._cond:
            if self._closed:
                raise ChannelClosedError("cannot send on a closed channel")
            self._items.append(item)
            self._cond.notify()

    def close(self) -> None:
        """Close the channel. Buffered events remain readable.

        Raises:
            ChannelClosedError: If the channel was already closed.
        """
        with self._cond:
            if self._closed:
                raise ChannelClosedError("channel already closed")
            self._closed = True
            self._cond.notify_all()
        if self.dropped:
            logger.debug("Channel closed after dropping %d advisory events", self.dropped)

    def get(self, timeout: float | None = None) -> T | None:
        """Receive the next event, blocking until one is available.

        Args:
            timeout: Maximum seconds to wait. None waits indefinitely.

        Returns:
            The next event, or None once the channel is closed and empty.

        Raises:
            queue.Empty: If the timeout elapses with nothing to receive.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while not self._items:
                if self._closed:
                    return None
                if deadline is None:
                    wait_for = self.WAIT_SLICE
                else:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        raise queue.Empty
                    wait_for = min(self.WAIT_SLICE, remaining)
                self._cond.wait(wait_for)
            return self._items.popleft()
