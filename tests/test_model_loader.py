from __future__ import annotations

from workers.model_loader import CRASH_WITHOUT_RESULT, ModelLoader


class LoaderCrash(BaseException):
    pass


def test_success_reports_steps_then_descriptor(qtbot) -> None:
    def load(model, progress):
        progress("loading_model")
        progress("compiling")
        return {"model": model}

    loader = ModelLoader(7, "base", load)
    steps = []
    loader.step_reached.connect(lambda token, step: steps.append((token, step)))

    with qtbot.waitSignal(loader.loaded, timeout=5000) as blocker:
        loader.start()
    loader.wait()

    assert blocker.args == [7, {"model": "base"}]
    assert steps == [(7, "loading_model"), (7, "compiling")]


def test_exception_reports_failure(qtbot) -> None:
    def load(model, progress):
        raise FileNotFoundError("no such checkpoint")

    loader = ModelLoader(3, "large", load)

    with qtbot.waitSignal(loader.failed, timeout=5000) as blocker:
        loader.start()
    loader.wait()

    assert blocker.args == [3, "FileNotFoundError: no such checkpoint"]


def test_base_exception_reports_crash(qtbot) -> None:
    def load(model, progress):
        raise LoaderCrash("worker died")

    loader = ModelLoader(4, "tiny", load)

    with qtbot.waitSignal(loader.crashed, timeout=5000) as blocker:
        loader.start()
    loader.wait()

    assert blocker.args == [4, "LoaderCrash: worker died"]


def test_thread_exit_without_result_reports_crash(qtbot) -> None:
    class SilentLoader(ModelLoader):
        def run(self):
            pass

    loader = SilentLoader(5, "tiny", None)

    with qtbot.waitSignal(loader.crashed, timeout=5000) as blocker:
        loader.start()
    loader.wait()

    assert blocker.args == [5, CRASH_WITHOUT_RESULT]


def test_crash_not_reported_after_result(qtbot) -> None:
    loader = ModelLoader(6, "tiny", lambda model, progress: "ok")

    with qtbot.assertNotEmitted(loader.crashed, wait=100):
        with qtbot.waitSignal(loader.finished, timeout=5000):
            loader.start()
    loader.wait()
