"""
Worker thread for loading models
"""

from PyQt5.QtCore import QThread, pyqtSignal

CRASH_WITHOUT_RESULT = "loader thread exited without a result"


class ModelLoader(QThread):
    """Worker thread that runs one load function and reports back by token.

    Every signal carries the token the loader was created with, so the
    receiver can drop reports from loads it no longer cares about.
    """

    step_reached = pyqtSignal(int, object)  # token, step id
    loaded = pyqtSignal(int, object)        # token, serving descriptor
    failed = pyqtSignal(int, str)           # token, reason
    crashed = pyqtSignal(int, str)          # token, reason

    def __init__(self, token, model, load_fn, parent=None):
        super().__init__(parent)
        self.token = token
        self.model = model
        self.load_fn = load_fn
        self._reported = False
        self.finished.connect(self._on_thread_finished)

    def run(self):
        """Load model in background"""
        try:
            descriptor = self.load_fn(self.model, self.report_step)
        except Exception as e:
            self._reported = True
            self.failed.emit(self.token, f"{type(e).__name__}: {e}")
        except BaseException as e:
            self._reported = True
            self.crashed.emit(self.token, f"{type(e).__name__}: {e}")
        else:
            self._reported = True
            self.loaded.emit(self.token, descriptor)

    def report_step(self, step):
        """Progress callback handed to the load function"""
        self.step_reached.emit(self.token, step)

    def _on_thread_finished(self):
        if not self._reported:
            self._reported = True
            self.crashed.emit(self.token, CRASH_WITHOUT_RESULT)
