from __future__ import annotations

import threading
import time

import pytest

from workers.serving_supervisor import ServingConfig
from workers.transcription_worker import (
    ServingWorker,
    join_retired_workers,
    start_serving_worker,
    stop_serving_worker,
)


class FakeServing:
    def __init__(self):
        self.calls = []
        self.lock = threading.Lock()

    def transcribe(self, audio, **options):
        with self.lock:
            self.calls.append((audio, options))
        if audio == "broken.wav":
            raise RuntimeError("cannot decode")
        return {"text": f"  text of {audio} ", "language": "en", "segments": []}


class SlowServing(FakeServing):
    """Transcribe blocks until released, like a long Whisper call"""

    def __init__(self):
        super().__init__()
        self.busy = threading.Event()
        self.release = threading.Event()

    def transcribe(self, audio, **options):
        self.busy.set()
        self.release.wait(10)
        return super().transcribe(audio, **options)


def test_serves_requests_in_order(qtbot) -> None:
    serving = FakeServing()
    worker = start_serving_worker(serving, ServingConfig(batch_size=2, batch_timeout_ms=20))

    futures = [worker.submit(name, language="en") for name in ("a.wav", "b.wav", "c.wav")]
    results = [future.result(timeout=5) for future in futures]

    assert [result["text"] for result in results] == ["text of a.wav", "text of b.wav", "text of c.wav"]
    assert results[0]["source"] == "a.wav"
    assert serving.calls[0] == ("a.wav", {"language": "en"})

    stop_serving_worker(worker)
    assert join_retired_workers(5000)
    assert not worker.isRunning()


def test_failed_request_sets_exception_and_keeps_serving(qtbot) -> None:
    worker = start_serving_worker(FakeServing(), ServingConfig())

    with qtbot.waitSignal(worker.error, timeout=5000) as blocker:
        bad = worker.submit("broken.wav")
    good = worker.submit("ok.wav")

    with pytest.raises(RuntimeError, match="cannot decode"):
        bad.result(timeout=5)
    assert good.result(timeout=5)["text"] == "text of ok.wav"
    assert "cannot decode" in blocker.args[0]

    stop_serving_worker(worker)
    assert join_retired_workers(5000)


def test_shutdown_cancels_pending_requests(qtbot) -> None:
    worker = ServingWorker(FakeServing())
    future = worker.submit("never.wav")

    assert worker.shutdown()
    assert future.cancelled()

    with pytest.raises(RuntimeError):
        worker.submit("late.wav")


@pytest.mark.parametrize("batch_size", [1, 4])
def test_shutdown_of_busy_worker_cancels_queued_requests(qtbot, batch_size) -> None:
    serving = SlowServing()
    worker = start_serving_worker(serving, ServingConfig(batch_size=batch_size, batch_timeout_ms=20))

    futures = [worker.submit(f"{n}.wav") for n in range(4)]
    assert serving.busy.wait(5)

    started = time.monotonic()
    finished = worker.shutdown()
    assert time.monotonic() - started < 0.5
    assert not finished

    serving.release.set()
    assert worker.wait(5000)

    assert futures[0].result(timeout=1)["text"] == "text of 0.wav"
    assert all(future.cancelled() for future in futures[1:])
    assert [audio for audio, _ in serving.calls] == ["0.wav"]


def test_stop_does_not_wait_for_current_request(qtbot) -> None:
    serving = SlowServing()
    worker = start_serving_worker(serving, ServingConfig(batch_size=1))
    worker.submit("long.wav")
    queued = worker.submit("queued.wav")
    assert serving.busy.wait(5)

    started = time.monotonic()
    stop_serving_worker(worker)
    assert time.monotonic() - started < 0.5
    assert queued.cancelled()

    serving.release.set()
    assert join_retired_workers(5000)
    assert not worker.isRunning()


def test_start_requires_transcribe(qtbot) -> None:
    with pytest.raises(TypeError):
        start_serving_worker(object(), ServingConfig())
