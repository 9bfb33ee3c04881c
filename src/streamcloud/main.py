"""
Headless Runner
===============
Runs the tick loop without a window and reports the cloud through logging.

Why is this file needed?
------------------------
1. Servers and pipelines: The cloud can be computed where no display exists,
   e.g. ``tail -f messages.log | python -m streamcloud --headless``.
2. Profiling: The layout engine is the hot path; this runner exercises it with
   the same QTimer-driven loop as the GUI.
"""
from __future__ import annotations

import logging
import sys
from typing import Optional

from PySide6.QtCore import QCoreApplication, QTimer

from streamcloud.controller.session import CloudSession, RenderSnapshot
from streamcloud.controller.workers import StreamWorker

logger = logging.getLogger(__name__)


def format_top_words(snapshot: RenderSnapshot, limit: int = 10) -> str:
    """'word(count)' pairs of the heaviest words in a snapshot, heaviest first."""
    ranked = sorted(snapshot.words, key=lambda w: w.count, reverse=True)[:limit]
    return " ".join(f"{w.display_text}({w.count})" for w in ranked)


def run_headless(
    session: CloudSession,
    source: Optional[str] = "-",
    rate: Optional[float] = None,
    max_ticks: Optional[int] = None,
    report_every: int = 20,
) -> int:
    """
    Tick ``session`` at its configured rate until ``max_ticks`` is reached, or,
    without a tick limit, until the source is exhausted and the queue is empty.

    Returns:
        Process exit code (1 if the source failed).
    """
    if source is None and max_ticks is None:
        raise ValueError("Either a source or a tick limit is required.")

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])

    worker: Optional[StreamWorker] = None
    errors: list[str] = []
    if source is not None:
        worker = StreamWorker(session, source, rate=rate)
        worker.error_occurred.connect(errors.append)

    timer = QTimer()
    timer.setInterval(session.config.tick_interval_ms)

    def on_tick() -> None:
        snapshot = session.tick()
        if snapshot is None:
            return

        if snapshot.tick % report_every == 0:
            logger.info(f"Tick {snapshot.tick}: {format_top_words(snapshot)}")

        if max_ticks is not None:
            done = snapshot.tick >= max_ticks
        else:
            done = worker.isFinished() and snapshot.pending == 0
        if done:
            timer.stop()
            logger.info(
                f"Stopped after {snapshot.tick} ticks: {len(session.model)} words, "
                f"{session.model.message_count} messages, {session.overrun_count} overruns."
            )
            logger.info(f"Top words: {format_top_words(snapshot)}")
            app.quit()

    timer.timeout.connect(on_tick)

    if worker is not None:
        worker.start()
    timer.start()
    app.exec()

    if worker is not None:
        worker.shutdown(1000)

    return 1 if errors else 0
