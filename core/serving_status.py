"""
Serving status variants published by the serving manager
"""

from dataclasses import dataclass
from typing import Callable, Optional, Union


@dataclass(frozen=True)
class Idle:
    """No model loaded"""


@dataclass(frozen=True)
class Loading:
    """A model is being loaded in the background"""

    model: str
    step: Optional[str]
    elapsed: int
    progress: float


@dataclass(frozen=True)
class Ready:
    """A serving worker holds the loaded model"""

    model: str
    elapsed: int


@dataclass(frozen=True)
class Error:
    """The last load failed"""

    model: str
    reason: str


ServingStatus = Union[Idle, Loading, Ready, Error]


@dataclass(frozen=True)
class StatusEvent:
    """Snapshot delivered to serving status subscribers"""

    status: ServingStatus


def status_model(status: ServingStatus) -> Optional[str]:
    """Model associated with a status, None while idle"""
    if isinstance(status, (Loading, Ready, Error)):
        return status.model
    return None


def progress_percent(status: ServingStatus) -> int:
    if isinstance(status, Loading):
        return round(status.progress * 100)
    return 0


def format_elapsed(seconds: int) -> str:
    """Format whole seconds as '', '42s' or '3m 5s'"""
    if seconds <= 0:
        return ""
    if seconds < 60:
        return f"{seconds}s"
    minutes, seconds = divmod(seconds, 60)
    return f"{minutes}m {seconds}s"


def describe(status: ServingStatus, step_label: Callable[[Optional[str]], str] = str) -> str:
    """
    One-line description of a status for display.

    Args:
        status: Status to describe.
        step_label: Maps a loading step id to a label.
    """
    if isinstance(status, Loading):
        text = f"Loading {status.model}…"
        if status.elapsed > 0:
            text += f" {format_elapsed(status.elapsed)}"
        step = step_label(status.step) if status.step is not None else "Initializing…"
        return f"{text} ({step})"
    if isinstance(status, Ready):
        if status.elapsed > 0:
            return f"{status.model} ready (loaded in {format_elapsed(status.elapsed)})"
        return f"{status.model} ready"
    if isinstance(status, Error):
        return f"Failed to load {status.model}: {status.reason}"
    return "No model loaded"
