"""Audio file loading utilities."""

from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Union

import librosa

from beatcut.analysis.models import AudioBuffer
from beatcut.errors import AudioDecodeError


def load_audio(
    file_path_or_buffer: Union[str, Path, BytesIO],
    sr: int | None = 44100,
    mono: bool = False,
) -> AudioBuffer:
    """Decode an audio file or buffer into an :class:`AudioBuffer`.

    Parameters
    ----------
    file_path_or_buffer:
        Path to an audio file or a BytesIO buffer containing audio data.
    sr:
        Target sample rate. ``None`` keeps the file's native rate.
    mono:
        Downmix to a single channel. By default all channels are kept and the
        analyzer reads channel 0.

    Raises
    ------
    AudioDecodeError
        If the decoder cannot read the input.
    """
    try:
        audio, sample_rate = librosa.load(file_path_or_buffer, sr=sr, mono=mono)
    except Exception as e:
        raise AudioDecodeError(f"Failed to load audio file: {e}") from e
    return AudioBuffer(samples=audio, sample_rate=int(sample_rate))
