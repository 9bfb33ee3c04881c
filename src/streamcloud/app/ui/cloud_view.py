from __future__ import annotations

from typing import Optional, TYPE_CHECKING

from PySide6.QtCore import QPoint, QPointF, QRectF, Qt, QTimer, Signal
from PySide6.QtGui import QColor, QFont, QFontMetricsF, QPainter
from PySide6.QtWidgets import QToolTip, QWidget

if TYPE_CHECKING:
    from streamcloud.controller.session import CloudSession, RenderSnapshot

# -------------------------------------------------------------------------------
# Cloud widget
# -------------------------------------------------------------------------------

class CloudView(QWidget):
    """
    Renders the session's word cloud and drives its tick loop:
      - a QTimer calls ``CloudSession.tick`` at the configured rate,
      - words are drawn at their scaled layout position, sized by count,
      - hovering a word shows the messages it came from.
    """
    snapshot_ready = Signal(object)

    # Drawing area inside the widget (left, top, right, bottom)
    MARGINS = (12, 24, 12, 36)
    HOVER_OFFSET = QPoint(50, 70)
    ROOT_RADIUS = 3.0

    def __init__(self, session: CloudSession, parent: QWidget | None = None) -> None:
        super().__init__(parent=parent)
        self.session = session
        self.setMouseTracking(True)
        self.setMinimumSize(320, 240)

        self._snapshot: RenderSnapshot | None = None
        self._regions: list[tuple[QRectF, str]] = []
        self._hover_word: str | None = None
        self._text_color = QColor("black")

        self._timer = QTimer(self)
        self._timer.setInterval(session.config.tick_interval_ms)
        self._timer.timeout.connect(self._on_tick)

    # ------------------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------------------

    def start(self) -> None:
        self._timer.start()

    def stop(self) -> None:
        self._timer.stop()

    @property
    def snapshot(self) -> RenderSnapshot | None:
        return self._snapshot

    def word_at(self, pos: QPointF) -> Optional[str]:
        """Key of the topmost word drawn under ``pos``."""
        for rect, key in reversed(self._regions):
            if rect.contains(pos):
                return key
        return None

    # ------------------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------------------

    def _draw_area(self) -> QRectF:
        left, top, right, bottom = self.MARGINS
        return QRectF(left, top, self.width() - left - right, self.height() - top - bottom)

    def _on_tick(self) -> None:
        area = self._draw_area()
        if area.width() > 0 and area.height() > 0:
            self.session.set_viewport(area.width(), area.height())

        snapshot = self.session.tick()
        if snapshot is None:
            return
        self._snapshot = snapshot
        self.snapshot_ready.emit(snapshot)
        self.update()

    # ------------------------------------------------------------------------------
    # Painting & hover
    # ------------------------------------------------------------------------------

    def paintEvent(self, event) -> None:
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.setRenderHint(QPainter.RenderHint.TextAntialiasing)
        painter.fillRect(self.rect(), QColor("white"))
        self._regions.clear()

        snapshot = self._snapshot
        if snapshot is None:
            painter.end()
            return

        center = self._draw_area().center()
        cx, cy = center.x(), center.y()

        rx, ry = snapshot.screen_position(snapshot.root_position, cx, cy)
        painter.setBrush(self._text_color)
        painter.setPen(Qt.PenStyle.NoPen)
        painter.drawEllipse(QPointF(rx, ry), self.ROOT_RADIUS, self.ROOT_RADIUS)

        painter.setPen(self._text_color)
        for word in snapshot.words:
            font = QFont(self.font())
            font.setPointSizeF(word.size_hint)
            metrics = QFontMetricsF(font)
            w = metrics.horizontalAdvance(word.display_text)
            h = metrics.height()

            x, y = snapshot.screen_position(word.position, cx, cy)
            rect = QRectF(x - w / 2, y - h / 2, w, h)
            painter.setFont(font)
            painter.drawText(rect, Qt.AlignmentFlag.AlignCenter, word.display_text)
            self._regions.append((rect, word.key))

        if snapshot.overrun:
            painter.setFont(self.font())
            painter.drawText(QPointF(3, 15), self.tr("overrun"))

        painter.end()

    def mouseMoveEvent(self, event) -> None:
        key = self.word_at(event.position())
        if key is None:
            self._hide_messages()
            return

        global_pos = event.globalPosition().toPoint() + self.HOVER_OFFSET
        self._hover_word = key
        messages = self.session.lookup_recent_messages(key)
        QToolTip.showText(global_pos, "\n".join(messages), self)
        super().mouseMoveEvent(event)

    def leaveEvent(self, event) -> None:
        self._hide_messages()
        super().leaveEvent(event)

    def _hide_messages(self) -> None:
        if self._hover_word is not None:
            QToolTip.hideText()
            self._hover_word = None
