from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import QSettings, Slot
from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QLineEdit, QPushButton,
    QSpinBox, QLabel, QFileDialog, QMessageBox, QStatusBar
)

from streamcloud.app.application import VISIBLE_APP_NAME
from streamcloud.app.ui.cloud_view import CloudView
from streamcloud.controller.session import CloudSession, RenderSnapshot
from streamcloud.controller.workers import StreamWorker

logger = logging.getLogger(__name__)

SETTINGS_THRESHOLD = "cloud/count_threshold"
SETTINGS_GEOMETRY = "window/geometry"


class MainWindow(QMainWindow):
    def __init__(self, session: CloudSession, count_threshold: Optional[int] = None):
        """``count_threshold``, when given, wins over the value saved from the last run."""
        super().__init__()
        self.setWindowTitle(VISIBLE_APP_NAME)
        self.resize(1000, 750)

        self.session = session
        self.worker: Optional[StreamWorker] = None
        self.settings = QSettings()

        # ---- Toolbar row: message input + controls ----
        central = QWidget(self)
        v = QVBoxLayout(central)
        v.setContentsMargins(6, 6, 6, 6)

        row = QHBoxLayout()
        self.le_message = QLineEdit(central)
        self.le_message.setPlaceholderText(self.tr("Type a message and press Enter"))
        self.le_message.returnPressed.connect(self._on_submit)
        row.addWidget(self.le_message, 1)

        row.addWidget(QLabel(self.tr("Min count:"), central))
        self.sp_threshold = QSpinBox(central)
        self.sp_threshold.setRange(0, 1000)
        self.sp_threshold.valueChanged.connect(self._on_threshold_changed)
        row.addWidget(self.sp_threshold)

        self.btn_open = QPushButton(self.tr("Open source..."), central)
        self.btn_open.clicked.connect(self._on_open)
        row.addWidget(self.btn_open)

        self.btn_stop = QPushButton(self.tr("Stop"), central)
        self.btn_stop.setEnabled(False)
        self.btn_stop.clicked.connect(self.stop_stream)
        row.addWidget(self.btn_stop)

        self.btn_clear = QPushButton(self.tr("Clear"), central)
        self.btn_clear.clicked.connect(self._on_clear)
        row.addWidget(self.btn_clear)
        v.addLayout(row)

        # ---- Central: the cloud ----
        self.cloud = CloudView(session, central)
        self.cloud.snapshot_ready.connect(self._on_snapshot)
        v.addWidget(self.cloud, 1)

        self.setCentralWidget(central)
        self.setStatusBar(QStatusBar(self))

        self._restore_settings(count_threshold)
        self.cloud.start()

    # ------------------------------------------------------------------------------
    # Stream control
    # ------------------------------------------------------------------------------

    def start_stream(self, source: str, rate: Optional[float] = None) -> None:
        """Start (or restart) feeding ``source`` into the session. A restart clears the cloud."""
        if self.worker is not None:
            self.stop_stream()
            self.session.reset()

        self.worker = StreamWorker(self.session, source, rate=rate, parent=self)
        self.worker.progress_updated.connect(lambda n, msg: self.statusBar().showMessage(msg, 2000))
        self.worker.error_occurred.connect(self._on_worker_error)
        self.worker.stream_finished.connect(self._on_worker_finished)
        self.worker.start()
        self.btn_stop.setEnabled(True)
        logger.info(f"Streaming from {source}.")

    @Slot()
    def stop_stream(self) -> None:
        if self.worker is None:
            return
        self.worker.shutdown(2000)
        self.worker = None
        self.btn_stop.setEnabled(False)

    # ------------------------------------------------------------------------------
    # Slots
    # ------------------------------------------------------------------------------

    @Slot()
    def _on_submit(self) -> None:
        text = self.le_message.text()
        if text.strip():
            self.session.ingest(text)
        self.le_message.clear()

    @Slot(int)
    def _on_threshold_changed(self, value: int) -> None:
        self.session.set_count_threshold(value)
        self.settings.setValue(SETTINGS_THRESHOLD, value)

    @Slot()
    def _on_open(self) -> None:
        path, _ = QFileDialog.getOpenFileName(
            self, self.tr("Open message source"), "", self.tr("Text files (*.txt *.log);;All files (*)")
        )
        if path:
            self.start_stream(path)

    @Slot()
    def _on_clear(self) -> None:
        self.session.reset()

    @Slot(object)
    def _on_snapshot(self, snapshot: RenderSnapshot) -> None:
        self.statusBar().showMessage(
            self.tr("Words: {0}  Queued: {1}  Overruns: {2}").format(
                len(self.session.model), snapshot.pending, self.session.overrun_count
            )
        )

    @Slot(str)
    def _on_worker_error(self, message: str) -> None:
        self.btn_stop.setEnabled(False)
        QMessageBox.critical(self, self.tr("Source error"), message)

    @Slot(int)
    def _on_worker_finished(self, total: int) -> None:
        self.btn_stop.setEnabled(False)
        self.statusBar().showMessage(self.tr("Source finished: {0} messages").format(total), 5000)

    # ------------------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------------------

    def _restore_settings(self, threshold: Optional[int] = None) -> None:
        if threshold is None:
            threshold = self.settings.value(SETTINGS_THRESHOLD, self.session.count_threshold, type=int)
        self.sp_threshold.setValue(threshold)
        self.session.set_count_threshold(threshold)
        geometry = self.settings.value(SETTINGS_GEOMETRY)
        if geometry is not None:
            self.restoreGeometry(geometry)

    def closeEvent(self, event) -> None:
        self.cloud.stop()
        self.stop_stream()
        self.settings.setValue(SETTINGS_GEOMETRY, self.saveGeometry())
        super().closeEvent(event)
