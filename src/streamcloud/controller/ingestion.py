"""
Ingestion Queue
===============
The hand-off buffer between the text producer and the tick loop.

Why is this file needed?
------------------------
1. Thread safety: Messages arrive on whatever thread the producer runs on, while
   the word model and the layout engine are single-threaded. This queue is the
   only place where the two meet.
2. Latency: The consumer drains at most ``limit`` messages per tick; a burst of
   input is spread over several frames instead of stalling one.
"""
from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Deque

from streamcloud.config import MAX_MESSAGES_PER_TICK, QUEUE_CAPACITY

logger = logging.getLogger(__name__)


class IngestionQueue:
    """Bounded, thread-safe FIFO of raw messages. Enqueue and drain are mutually exclusive."""

    def __init__(self, capacity: int = QUEUE_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity!r}")
        self.capacity = capacity
        self._messages: Deque[str] = deque()
        self._lock = threading.Lock()
        self.dropped = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)

    def put(self, message: str) -> bool:
        """
        Append a message. Safe to call from any thread.
        Returns False (and drops the message) when the queue is full.
        """
        if not isinstance(message, str):
            raise TypeError(f"message must be a str, got {type(message).__name__}")
        with self._lock:
            if len(self._messages) >= self.capacity:
                self.dropped += 1
                dropped = self.dropped
            else:
                self._messages.append(message)
                return True
        logger.warning(f"Ingestion queue full ({self.capacity}); message dropped ({dropped} so far).")
        return False

    def drain(self, limit: int = MAX_MESSAGES_PER_TICK) -> list[str]:
        """Remove and return up to ``limit`` messages, oldest first."""
        if limit < 0:
            raise ValueError("limit cannot be negative.")
        with self._lock:
            count = min(limit, len(self._messages))
            return [self._messages.popleft() for _ in range(count)]

    def clear(self) -> int:
        """Discard everything queued. Returns the number of discarded messages."""
        with self._lock:
            discarded = len(self._messages)
            self._messages.clear()
        return discarded
