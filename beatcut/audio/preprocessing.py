"""Offline filtering ("rendering") applied before feature extraction."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from scipy.signal import butter, sosfilt

from beatcut.analysis.models import AudioBuffer
from beatcut.errors import RenderError


@dataclass(frozen=True)
class FilterSpec:
    """Which filter to render with.

    ``kind`` is ``"none"``, ``"lowpass"``, ``"highpass"`` or ``"bandpass"``.
    Cutoffs are in Hz; ``order`` is the Butterworth order.
    """
    kind: str = "none"
    low: float | None = None
    high: float | None = None
    order: int = 2

    @classmethod
    def none(cls) -> "FilterSpec":
        return cls()

    @classmethod
    def low_pass(cls, cutoff: float, order: int = 2) -> "FilterSpec":
        return cls(kind="lowpass", high=cutoff, order=order)

    @classmethod
    def high_pass(cls, cutoff: float, order: int = 2) -> "FilterSpec":
        return cls(kind="highpass", low=cutoff, order=order)

    @classmethod
    def band_pass(cls, low: float, high: float, order: int = 2) -> "FilterSpec":
        return cls(kind="bandpass", low=low, high=high, order=order)


def low_pass_filter(audio: np.ndarray, sr: int, cutoff: float = 200.0, order: int = 2) -> np.ndarray:
    """Butterworth low-pass filter along the last axis."""
    sos = butter(N=order, Wn=cutoff, btype="low", fs=sr, output="sos")
    return sosfilt(sos, audio, axis=-1)


def high_pass_filter(audio: np.ndarray, sr: int, cutoff: float = 20.0, order: int = 2) -> np.ndarray:
    """Butterworth high-pass filter along the last axis."""
    sos = butter(N=order, Wn=cutoff, btype="high", fs=sr, output="sos")
    return sosfilt(sos, audio, axis=-1)


def band_pass_filter(
    audio: np.ndarray,
    sr: int,
    low: float = 20.0,
    high: float = 1000.0,
    order: int = 2,
) -> np.ndarray:
    """High-pass at ``low`` followed by low-pass at ``high``."""
    return low_pass_filter(high_pass_filter(audio, sr, low, order), sr, high, order)


def render(buffer: AudioBuffer, spec: FilterSpec) -> AudioBuffer:
    """Apply ``spec`` to every channel; the result has the same length and rate."""
    if spec.kind == "none" or buffer.length == 0:
        return buffer

    sr = buffer.sample_rate
    nyquist = sr / 2
    for cutoff in (spec.low, spec.high):
        if cutoff is not None and not 0 < cutoff < nyquist:
            raise RenderError(f"Cutoff {cutoff} Hz outside (0, {nyquist}) Hz")

    samples = np.asarray(buffer.samples, dtype=np.float64)
    if spec.kind == "lowpass":
        out = low_pass_filter(samples, sr, spec.high, spec.order)
    elif spec.kind == "highpass":
        out = high_pass_filter(samples, sr, spec.low, spec.order)
    elif spec.kind == "bandpass":
        out = band_pass_filter(samples, sr, spec.low, spec.high, spec.order)
    else:
        raise RenderError(f"Unknown filter kind: {spec.kind}")
    return AudioBuffer(samples=out, sample_rate=sr)
