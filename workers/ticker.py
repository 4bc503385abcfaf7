"""
Periodic timer for elapsed-time refreshes while a model loads
"""

from PyQt5.QtCore import QObject, QTimer, pyqtSignal

DEFAULT_TICK_INTERVAL_MS = 1000


class Ticker(QObject):
    """Single-shot timer that the owner re-arms after every tick"""

    tick = pyqtSignal()

    def __init__(self, interval_ms: int = DEFAULT_TICK_INTERVAL_MS, parent=None):
        super().__init__(parent)
        if interval_ms <= 0:
            raise ValueError(f"Tick interval must be positive, got {interval_ms}")

        self.interval_ms = interval_ms
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self.tick)

    @property
    def active(self) -> bool:
        return self._timer.isActive()

    def schedule(self):
        """Arm the timer for one tick"""
        self._timer.start(self.interval_ms)

    def cancel(self):
        """Disarm the timer; safe when not armed"""
        self._timer.stop()
