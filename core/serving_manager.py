"""
Background loading of a local model and lifecycle of its serving worker
"""

import itertools
import logging
import time
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Optional

from PyQt5.QtCore import QObject, Qt, pyqtSignal, pyqtSlot

from workers.model_loader import ModelLoader
from workers.serving_supervisor import WorkerStartError, WorkerSupervisor
from workers.ticker import DEFAULT_TICK_INTERVAL_MS, Ticker

from .broadcaster import SERVING_STATUS_TOPIC, StatusBroadcaster
from .serving_status import Error, Idle, Loading, Ready, ServingStatus, StatusEvent
from .steps import DEFAULT_STEP_TABLE, StepTable
from .system_checker import SystemChecker
from .whisper_loader import load_whisper_serving

logger = logging.getLogger(__name__)


@dataclass
class ManagerState:
    """Mutable state owned by the serving manager's thread"""

    status: ServingStatus = field(default_factory=Idle)
    task_token: Optional[int] = None
    task_model: Optional[str] = None
    loading_started_at: Optional[float] = None
    loading_step: Optional[str] = None


class ServingManager(QObject):
    """Loads a model in the background and supervises its serving worker.

    ``load`` and ``stop`` may be called from any thread: they are queued
    onto the thread the manager lives on and processed there one at a time,
    together with the loader's step/result signals and the ticker. That
    thread's event loop is the only writer of the manager's state.

    Every load gets a fresh token. Signals from a loader whose token is no
    longer current (because a newer load or a stop superseded it) are
    dropped, so a slow abandoned load can never overwrite newer status.
    """

    status_changed = pyqtSignal(object)

    _load_requested = pyqtSignal(str)
    _stop_requested = pyqtSignal()

    def __init__(
        self,
        load_fn: Optional[Callable] = None,
        supervisor: Optional[WorkerSupervisor] = None,
        steps: Optional[StepTable] = None,
        broadcaster: Optional[StatusBroadcaster] = None,
        tick_interval_ms: int = DEFAULT_TICK_INTERVAL_MS,
        clock: Callable[[], float] = time.monotonic,
        auto_load: Optional[str] = None,
        parent=None,
    ):
        super().__init__(parent)
        self.load_fn = load_fn if load_fn is not None else load_whisper_serving
        self.supervisor = supervisor if supervisor is not None else WorkerSupervisor()
        self.steps = steps if steps is not None else DEFAULT_STEP_TABLE
        self.broadcaster = broadcaster if broadcaster is not None else StatusBroadcaster(self)
        self.clock = clock

        self._state = ManagerState()
        self._tokens = itertools.count(1)
        self._loaders: Dict[int, ModelLoader] = {}

        self._ticker = Ticker(tick_interval_ms, self)
        self._ticker.tick.connect(self._on_tick)
        self._load_requested.connect(self._start_loading, Qt.QueuedConnection)
        self._stop_requested.connect(self._stop_serving, Qt.QueuedConnection)

        logger.info("[ServingManager] Whisper cache dir: %s", SystemChecker.cache_dir())

        if auto_load:
            logger.info("[ServingManager] Auto-loading model: %s", auto_load)
            self.load(auto_load)

    # ------------------------------------------------------------------
    # Control API
    # ------------------------------------------------------------------
    def load(self, model: str):
        """Queue a load of ``model``, replacing whatever is loaded or loading"""
        if not isinstance(model, str) or not model:
            raise ValueError(f"Model must be a non-empty string, got {model!r}")
        self._load_requested.emit(model)

    def stop(self):
        """Queue unloading the model; harmless when nothing is loaded"""
        self._stop_requested.emit()

    def status(self) -> ServingStatus:
        """Latest committed status"""
        return self._state.status

    def step_label(self, step) -> str:
        return self.steps.label(step)

    def step_progress(self, step) -> float:
        return self.steps.progress(step)

    @property
    def state(self) -> ManagerState:
        """Copy of the current state"""
        return replace(self._state)

    @property
    def worker_handle(self):
        return self.supervisor.handle

    @property
    def ticking(self) -> bool:
        return self._ticker.active

    @property
    def active_loaders(self) -> int:
        """Loader threads not yet finished, superseded ones included"""
        return len(self._loaders)

    def shutdown(self, wait_ms=5000):
        """
        Tear down on process exit. Must run on the manager's thread.

        Stops the serving worker and the ticker, then waits up to
        ``wait_ms`` for loaders still running. Their results are discarded.
        """
        self._teardown()
        for loader in list(self._loaders.values()):
            if not loader.wait(wait_ms):
                logger.warning("[ServingManager] Loader for %s still running at shutdown", loader.model)

    # ------------------------------------------------------------------
    # Command handlers (manager thread)
    # ------------------------------------------------------------------
    @pyqtSlot(str)
    def _start_loading(self, model):
        self.supervisor.stop()
        self._ticker.cancel()

        token = next(self._tokens)
        loader = ModelLoader(token, model, self.load_fn)
        loader.step_reached.connect(self._on_step)
        loader.loaded.connect(self._on_loaded)
        loader.failed.connect(self._on_failed)
        loader.crashed.connect(self._on_failed)
        loader.finished.connect(self._on_loader_finished)
        self._loaders[token] = loader

        self._state.task_token = token
        self._state.task_model = model
        self._state.loading_started_at = self.clock()
        self._state.loading_step = None

        logger.info("[ServingManager] Loading model: %s", model)
        self._set_status(Loading(model, None, 0, 0.0))
        loader.start()
        self._ticker.schedule()

    @pyqtSlot()
    def _stop_serving(self):
        if isinstance(self._state.status, Idle) and self._state.task_token is None:
            return
        self._teardown()
        logger.info("[ServingManager] Serving stopped")

    # ------------------------------------------------------------------
    # Loader and ticker signals (manager thread)
    # ------------------------------------------------------------------
    @pyqtSlot(int, object)
    def _on_step(self, token, step):
        if not self._is_current(token):
            return

        self._state.loading_step = step
        elapsed = self._loading_elapsed()
        progress = self.steps.progress(step)

        logger.info("[ServingManager] Step: %s (%ds elapsed, %d%%)",
                    self.steps.label(step), elapsed, round(progress * 100))
        self._set_status(Loading(self._state.task_model, step, elapsed, progress))

    @pyqtSlot(int, object)
    def _on_loaded(self, token, descriptor):
        if not self._is_current(token):
            return

        model = self._state.task_model
        elapsed = self._loading_elapsed()
        self._ticker.cancel()
        self._reset_loading_state()

        try:
            self.supervisor.start(descriptor)
        except WorkerStartError as e:
            logger.error("[ServingManager] Could not start serving %s: %s", model, e)
            self._set_status(Error(model, str(e)))
            return

        logger.info("[ServingManager] Model %s ready in %ds (cached at %s)",
                    model, elapsed, SystemChecker.cache_dir())
        self._set_status(Ready(model, elapsed))

    @pyqtSlot(int, str)
    def _on_failed(self, token, reason):
        if not self._is_current(token):
            return

        model = self._state.task_model
        self._ticker.cancel()
        self._reset_loading_state()

        logger.error("[ServingManager] Failed to load %s: %s", model, reason)
        self._set_status(Error(model, reason))

    @pyqtSlot()
    def _on_tick(self):
        state = self._state
        if state.loading_started_at is None:
            return

        progress = self.steps.progress(state.loading_step)
        self._set_status(Loading(state.task_model, state.loading_step, self._loading_elapsed(), progress))
        self._ticker.schedule()

    @pyqtSlot()
    def _on_loader_finished(self):
        loader = self.sender()
        if isinstance(loader, ModelLoader):
            self._loaders.pop(loader.token, None)
            loader.deleteLater()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _is_current(self, token) -> bool:
        if token == self._state.task_token:
            return True
        logger.debug("[ServingManager] Ignoring signal from stale load %s", token)
        return False

    def _teardown(self):
        self.supervisor.stop()
        self._ticker.cancel()
        self._reset_loading_state()
        self._set_status(Idle())

    def _reset_loading_state(self):
        self._state.task_token = None
        self._state.task_model = None
        self._state.loading_started_at = None
        self._state.loading_step = None

    def _loading_elapsed(self) -> int:
        started_at = self._state.loading_started_at
        if started_at is None:
            return 0
        return max(0, int(self.clock() - started_at))

    def _set_status(self, status: ServingStatus):
        self._state.status = status
        self.broadcaster.publish(SERVING_STATUS_TOPIC, StatusEvent(status))
        self.status_changed.emit(status)
