"""
Cloud Session (Context Object)
==============================
This module wires the queue, the word model and the layout engine into one
explicitly constructed session.

Why is this file needed?
------------------------
1. Lifecycle: One ``CloudSession`` lives as long as the application session.
   There is no module-level state; the GUI and the workers receive the session
   they operate on.
2. Scheduling: ``ingest`` may be called from any thread. ``tick`` is called by
   a single consumer at a fixed rate and performs drain, word update, layout
   step and snapshot, always to completion.
3. Overrun: A tick that arrives while the previous one is still running is
   skipped, counted and reported in the next successful snapshot.

Classes:
    RenderedWord: One word as the renderer sees it.
    RenderSnapshot: Everything the renderer needs for one frame.
    CloudSession: The session itself.
"""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from streamcloud.config import CloudConfig
from streamcloud.controller.ingestion import IngestionQueue
from streamcloud.model.frequency import WordFrequencyModel
from streamcloud.model.geometry_primitives import Bounds, Vector
from streamcloud.model.graph import create_root_node
from streamcloud.solvers.layout import Diagram
from streamcloud.utils import normalize_word

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderedWord:
    key: str
    display_text: str
    count: int
    position: Vector  # logical, unscaled coordinates
    size_hint: float  # font size in points


@dataclass(frozen=True)
class RenderSnapshot:
    words: tuple[RenderedWord, ...]
    scale: float
    overrun: bool
    tick: int
    pending: int
    root_position: Vector
    bounds: Bounds

    def screen_position(self, position: Vector, center_x: float, center_y: float) -> tuple[float, float]:
        """Map a logical position into viewport coordinates around a centre point."""
        return (center_x + position.x * self.scale, center_y + position.y * self.scale)


class CloudSession:
    """
    Single entry point for producers and renderers.

    Only ``ingest`` is thread-safe. Everything else belongs to the consumer thread.
    """
    def __init__(
        self,
        config: Optional[CloudConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or CloudConfig()

        self.root = create_root_node()
        self.diagram = Diagram(deterministic=self.config.deterministic)
        self.model = WordFrequencyModel(
            diagram=self.diagram,
            root=self.root,
            max_words=self.config.max_words,
            max_recent=self.config.max_recent,
            saturation_interval=self.config.saturation_interval,
            clock=clock,
        )
        self.queue = IngestionQueue(capacity=self.config.queue_capacity)

        self.count_threshold = self.config.count_threshold
        self.viewport_width = self.config.viewport_width
        self.viewport_height = self.config.viewport_height

        self._tick_lock = threading.Lock()
        self._stats_lock = threading.Lock()
        self._overrun_pending = False
        self.overrun_count = 0
        self.tick_count = 0

        logger.info(
            f"Session created (max_words={self.config.max_words}, "
            f"rate={self.config.tick_rate_hz} Hz, deterministic={self.config.deterministic})."
        )

    # ------------------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------------------

    def ingest(self, message: str) -> bool:
        """Queue a raw message for the next ticks. Safe to call from any thread."""
        return self.queue.put(message)

    # ------------------------------------------------------------------------------
    # Consumer side
    # ------------------------------------------------------------------------------

    def tick(self) -> Optional[RenderSnapshot]:
        """
        Run one frame: drain, update words, step the layout and build the snapshot.

        Returns:
            The snapshot, or None if the tick was skipped because the previous one
            had not finished.
        """
        if not self._tick_lock.acquire(blocking=False):
            with self._stats_lock:
                self.overrun_count += 1
                self._overrun_pending = True
                overruns = self.overrun_count
            logger.warning(f"Tick overrun; frame skipped ({overruns} so far).")
            return None

        try:
            with self._stats_lock:
                overrun = self._overrun_pending
                self._overrun_pending = False

            for message in self.queue.drain(self.config.max_messages_per_tick):
                self.model.ingest(message)

            for _ in range(self.config.steps_per_tick):
                self.diagram.step(damping=self.config.damping, spring_length=self.config.spring_length)

            self.tick_count += 1
            return self._build_snapshot(overrun)
        finally:
            self._tick_lock.release()

    def _build_snapshot(self, overrun: bool) -> RenderSnapshot:
        words = tuple(
            RenderedWord(
                key=entry.key,
                display_text=entry.display_text,
                count=entry.count,
                position=entry.node.position,
                size_hint=self.config.size_hint(entry.count),
            )
            for entry in self.model
            if entry.count > self.count_threshold
        )
        bounds = self.diagram.bounds()
        return RenderSnapshot(
            words=words,
            scale=bounds.fit_scale(self.viewport_width, self.viewport_height),
            overrun=overrun,
            tick=self.tick_count,
            pending=len(self.queue),
            root_position=self.root.position,
            bounds=bounds,
        )

    def lookup_recent_messages(self, word: str) -> tuple[str, ...]:
        """Messages behind a word (any casing or punctuation), oldest first."""
        return self.model.recent_messages(normalize_word(word))

    def set_count_threshold(self, threshold: int) -> None:
        """Only words seen more than ``threshold`` times appear in snapshots."""
        if threshold < 0:
            raise ValueError(f"threshold cannot be negative, got {threshold!r}")
        self.count_threshold = int(threshold)

    def set_viewport(self, width: float, height: float) -> None:
        """Viewport size the snapshot scale is fitted to."""
        if width <= 0 or height <= 0:
            raise ValueError(f"viewport must have a positive size, got {width}x{height}")
        self.viewport_width = width
        self.viewport_height = height

    def reset(self) -> None:
        """Forget every word and queued message. Root node and configuration are kept."""
        with self._tick_lock:
            discarded = self.queue.clear()
            self.model.clear()
        logger.info(f"Session reset ({discarded} queued messages discarded).")
