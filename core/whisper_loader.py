"""
Step-by-step loading of a Whisper model into a servable descriptor
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional

import numpy as np
import whisper
from whisper.audio import SAMPLE_RATE, mel_filters
from whisper.tokenizer import get_tokenizer

from .system_checker import SystemChecker


@dataclass
class WhisperServing:
    """Everything a serving worker needs to answer transcription requests"""

    model_name: str
    model: Any
    tokenizer: Any
    options: Any
    device: str

    def transcribe(self, audio, **options):
        options.setdefault("fp16", self.options.fp16)
        options.setdefault("verbose", False)
        return self.model.transcribe(audio, **options)


def load_whisper_serving(
    model_name: str,
    progress: Callable[[str], None],
    device: Optional[str] = None,
    download_root: Optional[str] = None,
) -> WhisperServing:
    """
    Load a Whisper model, reporting each loading step.

    Args:
        model_name: Whisper model size or checkpoint path (e.g. "base").
        progress: Called with the id of each step as it starts.
        device: "cuda" or "cpu"; detected when omitted.
        download_root: Weight cache directory; Whisper's default when omitted.
    """
    device = device or SystemChecker.preferred_device()

    progress("loading_model")
    model = whisper.load_model(model_name, device=device, download_root=download_root)

    progress("loading_featurizer")
    mel_filters(model.device, model.dims.n_mels)

    progress("loading_tokenizer")
    tokenizer = get_tokenizer(
        model.is_multilingual,
        num_languages=model.num_languages,
        task="transcribe",
    )

    progress("loading_generation_config")
    options = whisper.DecodingOptions(fp16=(device == "cuda"))

    progress("compiling")
    _warm_up(model, options)

    return WhisperServing(model_name, model, tokenizer, options, device)


def _warm_up(model, options):
    """Decode one second of silence so the first real request is not slow"""
    silence = whisper.pad_or_trim(np.zeros(SAMPLE_RATE, dtype=np.float32))
    mel = whisper.log_mel_spectrogram(silence, n_mels=model.dims.n_mels).to(model.device)
    whisper.decode(model, mel, options)
