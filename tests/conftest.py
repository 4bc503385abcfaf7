"""Pytest configuration shared by the serving manager tests.

Puts the project root on ``sys.path`` so ``core`` and ``workers`` import
when tests are run from anywhere, and runs Qt without a display.
"""

import os
import sys
import threading

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

# Project root = parent directory of this tests/ folder
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from core.broadcaster import SERVING_STATUS_TOPIC, StatusBroadcaster  # noqa: E402
from core.serving_manager import ServingManager  # noqa: E402
from workers.serving_supervisor import WorkerSupervisor  # noqa: E402
from workers.transcription_worker import join_retired_workers  # noqa: E402


class FakeServing:
    def __init__(self, model):
        self.model = model

    def __repr__(self):
        return f"FakeServing({self.model!r})"


class FakeLoadFn:
    """Load function whose loads block until the test releases them"""

    def __init__(self):
        self.gates = {}
        self.steps = {}
        self.errors = {}
        self.started = []

    def gate(self, model):
        return self.gates.setdefault(model, threading.Event())

    def release(self, model):
        self.gate(model).set()

    def release_all(self):
        for gate in list(self.gates.values()):
            gate.set()

    def __call__(self, model, progress):
        self.started.append(model)
        for step in self.steps.get(model, []):
            progress(step)
        if not self.gate(model).wait(10):
            raise TimeoutError(f"load of {model} was never released")
        error = self.errors.get(model)
        if error is not None:
            raise error
        return FakeServing(model)


class FakeWorkers:
    """Start/stop functions that track which fake workers are live"""

    def __init__(self):
        self.live = []
        self.started = []
        self.stopped = []
        self.max_live = 0
        self.start_error = None
        self.stop_error = None

    def start(self, descriptor, config):
        if self.start_error is not None:
            error, self.start_error = self.start_error, None
            raise error
        handle = ("worker", descriptor.model, len(self.started))
        self.started.append((descriptor, config))
        self.live.append(handle)
        self.max_live = max(self.max_live, len(self.live))
        return handle

    def stop(self, handle):
        self.stopped.append(handle)
        self.live.remove(handle)
        if self.stop_error is not None:
            raise self.stop_error


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def advance(self, seconds):
        self.now += seconds

    def __call__(self):
        return self.now


@pytest.fixture
def load_fn():
    fn = FakeLoadFn()
    yield fn
    fn.release_all()


@pytest.fixture
def fake_workers():
    return FakeWorkers()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def events():
    return []


@pytest.fixture
def make_manager(qtbot, load_fn, fake_workers, clock, events):
    managers = []

    def factory(**kwargs):
        broadcaster = StatusBroadcaster()
        broadcaster.subscribe(SERVING_STATUS_TOPIC, events.append)
        kwargs.setdefault("load_fn", load_fn)
        kwargs.setdefault("supervisor", WorkerSupervisor(fake_workers.start, fake_workers.stop))
        kwargs.setdefault("clock", clock)
        kwargs.setdefault("broadcaster", broadcaster)
        manager = ServingManager(**kwargs)
        managers.append((manager, broadcaster))
        return manager

    yield factory

    load_fn.release_all()
    for manager, _ in managers:
        manager.shutdown(wait_ms=10000)
        qtbot.waitUntil(lambda: manager.active_loaders == 0, timeout=5000)
    join_retired_workers(10000)
