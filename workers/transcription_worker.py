"""
Serving worker thread that answers transcription requests with a loaded model
"""

import logging
import queue
import time
from concurrent.futures import Future

from PyQt5.QtCore import QThread, pyqtSignal

logger = logging.getLogger(__name__)

_STOP = object()

# Stopped workers whose thread is still finishing a request
_retiring = set()


class ServingWorker(QThread):
    """Worker thread holding a loaded model and serving batched requests"""

    transcribed = pyqtSignal(dict)  # Results
    error = pyqtSignal(str)         # Error message

    def __init__(self, serving, batch_size=4, batch_timeout_ms=100):
        super().__init__()
        self.serving = serving
        self.batch_size = batch_size
        self.batch_timeout_ms = batch_timeout_ms
        self._requests = queue.Queue()
        self._stopping = False

    def submit(self, audio, **options) -> Future:
        """
        Queue audio for transcription.

        Args:
            audio: Path to an audio file, or a float32 waveform at 16 kHz.
            **options: Passed through to the model's transcribe call.

        Returns:
            A future resolving to a dict with text, language, segments, source.
        """
        if self._stopping:
            raise RuntimeError("Serving worker is shut down")

        future = Future()
        self._requests.put((future, audio, options))
        return future

    def run(self):
        """Serve requests until shut down"""
        while True:
            batch = self._next_batch()
            if batch is None:
                break
            for future, audio, options in batch:
                if self._stopping:
                    future.cancel()
                else:
                    self._serve(future, audio, options)

        self._cancel_pending()

    def shutdown(self, wait_ms=0) -> bool:
        """
        Stop serving. Queued requests are cancelled; a request already being
        transcribed runs to completion.

        Args:
            wait_ms: How long to wait for the thread to finish; 0 returns at once.

        Returns:
            True if the thread is no longer running.
        """
        self._stopping = True
        self._cancel_pending()
        self._requests.put(_STOP)
        if not self.isRunning():
            return True
        if wait_ms:
            return self.wait(wait_ms)
        return False

    def _next_batch(self):
        first = self._requests.get()
        if first is _STOP:
            return None

        # Gather more requests until the batch is full or the timeout expires
        batch = [first]
        deadline = time.monotonic() + self.batch_timeout_ms / 1000.0
        while len(batch) < self.batch_size:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            try:
                item = self._requests.get(timeout=remaining)
            except queue.Empty:
                break
            if item is _STOP:
                self._requests.put(_STOP)
                break
            batch.append(item)
        return batch

    def _serve(self, future, audio, options):
        if not future.set_running_or_notify_cancel():
            return

        try:
            result = self.serving.transcribe(audio, **options)
        except Exception as e:
            future.set_exception(e)
            self.error.emit(f"Transcription failed: {str(e)}")
            return

        output = {
            "text": result["text"].strip(),
            "language": result.get("language"),
            "segments": result.get("segments", []),
            "source": audio if isinstance(audio, str) else None,
        }
        future.set_result(output)
        self.transcribed.emit(output)

    def _cancel_pending(self):
        while True:
            try:
                item = self._requests.get_nowait()
            except queue.Empty:
                return
            if item is not _STOP:
                item[0].cancel()


def start_serving_worker(serving, config) -> ServingWorker:
    """Default worker start function for the supervisor"""
    if not callable(getattr(serving, "transcribe", None)):
        raise TypeError(f"{type(serving).__name__} cannot serve transcriptions")

    worker = ServingWorker(serving, config.batch_size, config.batch_timeout_ms)
    worker.start()
    return worker


def stop_serving_worker(worker: ServingWorker):
    """Default worker stop function for the supervisor.

    Does not wait: the worker is kept referenced until its thread finishes
    the request it may be in the middle of.
    """
    if worker.shutdown():
        return

    _retiring.add(worker)
    worker.finished.connect(worker.deleteLater)
    worker.finished.connect(lambda: _retiring.discard(worker))
    if worker.isFinished():
        _retiring.discard(worker)
        return
    logger.info("[ServingWorker] Retiring worker after its current request")


def join_retired_workers(wait_ms=5000) -> bool:
    """Wait for stopped workers still finishing a request; used at exit"""
    deadline = time.monotonic() + wait_ms / 1000.0
    for worker in list(_retiring):
        remaining = max(0, int((deadline - time.monotonic()) * 1000))
        if worker.wait(remaining):
            _retiring.discard(worker)
        else:
            logger.warning("[ServingWorker] Worker still busy at exit")
    return not _retiring
