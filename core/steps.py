"""
Ordered loading steps and their cumulative progress weights
"""

from typing import Iterable, Iterator, List, Optional, Tuple

Step = Tuple[str, str, float]

# Model weights are the bulk of the work; the warm-up decode is next heaviest.
WHISPER_LOADING_STEPS: List[Step] = [
    ("loading_model", "Downloading & loading model weights", 0.0),
    ("loading_featurizer", "Loading audio featurizer", 0.50),
    ("loading_tokenizer", "Loading tokenizer", 0.60),
    ("loading_generation_config", "Loading generation config", 0.70),
    ("compiling", "Warming up model", 0.75),
]


class StepTable:
    """Static lookup of step labels and progress for one loading pipeline"""

    def __init__(self, steps: Iterable[Step]):
        """
        Build a step table.

        Args:
            steps: Ordered (step_id, label, cumulative_progress) tuples.
                   Progress must lie in [0, 1] and never decrease.

        Raises:
            ValueError: If the table breaks any of the rules above.
        """
        self._steps: List[Step] = []
        self._labels = {}
        self._progress = {}

        previous = 0.0
        for step_id, label, progress in steps:
            if step_id in self._labels:
                raise ValueError(f"Duplicate loading step: {step_id!r}")
            if not 0.0 <= progress <= 1.0:
                raise ValueError(f"Progress for {step_id!r} must be within [0, 1], got {progress}")
            if progress < previous:
                raise ValueError(f"Progress for {step_id!r} decreases ({progress} < {previous})")

            previous = progress
            self._steps.append((step_id, label, float(progress)))
            self._labels[step_id] = label
            self._progress[step_id] = float(progress)

    @property
    def steps(self) -> List[Step]:
        return list(self._steps)

    def progress(self, step: Optional[str]) -> float:
        """Cumulative progress for a step; 0.0 for no step or an unknown one"""
        if step is None:
            return 0.0
        return self._progress.get(step, 0.0)

    def label(self, step: Optional[str]) -> str:
        """User-friendly label for a step, falling back to the step id"""
        if step is None:
            return ""
        return self._labels.get(step, str(step))

    def __contains__(self, step) -> bool:
        return step in self._labels

    def __iter__(self) -> Iterator[Step]:
        return iter(self._steps)

    def __len__(self) -> int:
        return len(self._steps)


DEFAULT_STEP_TABLE = StepTable(WHISPER_LOADING_STEPS)
