"""
Supervision of the single live serving worker
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .transcription_worker import start_serving_worker, stop_serving_worker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServingConfig:
    """Fixed batching parameters handed to every serving worker"""

    batch_size: int = 4
    batch_timeout_ms: int = 100


class WorkerStartError(RuntimeError):
    """A loaded model could not be turned into a running serving worker"""


class WorkerSupervisor:
    """Starts and stops serving workers; owns at most one live worker"""

    def __init__(
        self,
        start_fn: Optional[Callable[[Any, ServingConfig], Any]] = None,
        stop_fn: Optional[Callable[[Any], Any]] = None,
        config: Optional[ServingConfig] = None,
    ):
        self.start_fn = start_fn or start_serving_worker
        self.stop_fn = stop_fn or stop_serving_worker
        self.config = config or ServingConfig()
        self._handle = None

    @property
    def handle(self):
        """The live worker, or None"""
        return self._handle

    def start(self, descriptor):
        """
        Start a serving worker for a loaded model.

        Any worker already running is stopped first.

        Returns:
            The handle of the new worker.

        Raises:
            WorkerStartError: If the start function fails.
        """
        self.stop()

        try:
            handle = self.start_fn(descriptor, self.config)
        except Exception as e:
            raise WorkerStartError(f"{type(e).__name__}: {e}") from e

        self._handle = handle
        logger.info("[WorkerSupervisor] Serving worker started (batch_size=%d, batch_timeout=%dms)",
                    self.config.batch_size, self.config.batch_timeout_ms)
        return handle

    def stop(self):
        """Stop the live worker, if any. Failures are logged and ignored."""
        handle, self._handle = self._handle, None
        if handle is None:
            return

        try:
            self.stop_fn(handle)
            logger.info("[WorkerSupervisor] Serving worker stopped")
        except Exception:
            logger.warning("[WorkerSupervisor] Failed to stop serving worker %r", handle, exc_info=True)
