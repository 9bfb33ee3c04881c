"""
Background Workers (Threading)
==============================
This module contains QThread subclasses that feed text into a session.

Why is this file needed?
------------------------
1. Responsiveness: Reading a message source (a file being appended to, a pipe,
   stdin) blocks. Running it on the GUI thread would freeze the window.
2. Signals: They provide a safe way to update the GUI (status bar, logs) from
   the background thread using Qt Signals. The messages themselves go through
   ``CloudSession.ingest``, which is thread-safe.

Classes:
    StreamWorker: Plays a line-oriented text source into a session.
"""
from __future__ import annotations

import logging
import os
import queue
import sys
import threading
from typing import IO, Iterator, Optional, TYPE_CHECKING

from PySide6.QtCore import QThread, Signal

if TYPE_CHECKING:
    from streamcloud.controller.session import CloudSession

logger = logging.getLogger(__name__)

STDIN_SOURCE = "-"


class StreamWorker(QThread):
    """
    Reads one message per line from ``source`` and ingests it.

    ``source`` is a file path, ``"-"`` for stdin, or an already open text stream.
    With ``rate`` set, messages are paced to roughly that many per second.
    """
    # Signals to update the UI from the background
    progress_updated = Signal(int, str)  # e.g., (120, "120 messages read")
    stream_finished = Signal(int)  # total messages ingested
    error_occurred = Signal(str)

    REPORT_EVERY = 50
    POLL_INTERVAL = 0.1  # seconds between stop checks while stdin is silent

    def __init__(
        self,
        session: CloudSession,
        source: str | IO[str],
        rate: Optional[float] = None,
        parent=None,
    ):
        super().__init__(parent)
        if rate is not None and rate <= 0:
            raise ValueError("rate must be positive.")
        self.session = session
        self.source = source
        self.rate = rate
        self.is_running = True
        self.ingested = 0
        self._stop_requested = threading.Event()

    def run(self):
        try:
            logger.info(f"Starting stream worker on {self._source_name()}...")
            stream, owned = self._open()
            try:
                self._pump(stream)
            finally:
                if owned:
                    stream.close()
            logger.info(f"Stream worker finished after {self.ingested} messages.")
            self.stream_finished.emit(self.ingested)

        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Error in StreamWorker: {e}")
            self.error_occurred.emit(str(e))

    def _pump(self, stream: IO[str]) -> None:
        interval = 1.0 / self.rate if self.rate else 0.0
        for line in self._lines(stream):
            if not self.is_running:
                break

            message = line.rstrip("\r\n")
            if not message.strip():
                continue

            self.session.ingest(message)
            self.ingested += 1

            if self.ingested % self.REPORT_EVERY == 0:
                self.progress_updated.emit(self.ingested, f"{self.ingested} messages read")

            if interval and self._stop_requested.wait(interval):
                break

        if not self.is_running:
            logger.info("Stream worker stopped on request.")

    def _lines(self, stream: IO[str]) -> Iterator[str]:
        """
        Lines of ``stream``. Stdin can block forever, so it is read on a daemon
        thread and handed over through a queue that is polled between stop checks.
        """
        if stream is not sys.stdin:
            yield from stream
            return

        lines: queue.Queue = queue.Queue()
        # The reader may still be blocked at interpreter exit; it must not hold sys.stdin's lock then.
        try:
            private = os.fdopen(os.dup(stream.fileno()), "r", encoding=stream.encoding or "utf-8")
        except (OSError, ValueError):
            private = stream

        def read() -> None:
            try:
                for line in private:
                    lines.put(line)
            except (OSError, UnicodeDecodeError) as e:
                lines.put(e)
            finally:
                if private is not stream:
                    private.close()
            lines.put(None)

        threading.Thread(target=read, name="stdin-reader", daemon=True).start()
        while self.is_running:
            try:
                item = lines.get(timeout=self.POLL_INTERVAL)
            except queue.Empty:
                continue
            if item is None:
                return
            if isinstance(item, Exception):
                raise item
            yield item

    def _open(self) -> tuple[IO[str], bool]:
        if not isinstance(self.source, str):
            return self.source, False
        if self.source == STDIN_SOURCE:
            return sys.stdin, False
        return open(self.source, "r", encoding="utf-8"), True

    def _source_name(self) -> str:
        if isinstance(self.source, str):
            return "stdin" if self.source == STDIN_SOURCE else self.source
        return getattr(self.source, "name", repr(self.source))

    def stop(self) -> None:
        self.is_running = False
        self._stop_requested.set()

    def shutdown(self, timeout_ms: int = 2000) -> bool:
        """Stop and wait for the thread. Returns False if it did not finish in time."""
        self.stop()
        finished = self.wait(timeout_ms)
        if not finished:
            logger.warning(f"Stream worker on {self._source_name()} did not stop within {timeout_ms} ms.")
        return finished
