"""Framing and magnitude spectra for the frequency-domain detectors."""

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

DEFAULT_FRAME_SIZE = 2048
DEFAULT_HOP_SIZE = 512


def hann_window(size: int) -> np.ndarray:
    """Symmetric Hann window, ``0.5 - 0.5 cos(2 pi i / (N - 1))``."""
    if size <= 1:
        return np.ones(max(size, 0))
    i = np.arange(size)
    return 0.5 - 0.5 * np.cos(2 * np.pi * i / (size - 1))


def frame_count(n_samples: int, frame_size: int = DEFAULT_FRAME_SIZE, hop_size: int = DEFAULT_HOP_SIZE) -> int:
    if n_samples < frame_size:
        return 0
    return (n_samples - frame_size) // hop_size


def frame_signal(
    samples: np.ndarray,
    frame_size: int = DEFAULT_FRAME_SIZE,
    hop_size: int = DEFAULT_HOP_SIZE,
) -> np.ndarray:
    """Slice a mono signal into overlapping frames.

    Returns a read-only ``(n_frames, frame_size)`` view. Inputs shorter than
    one frame give an empty ``(0, frame_size)`` array.
    """
    samples = np.asarray(samples, dtype=np.float64).ravel()
    n_frames = frame_count(len(samples), frame_size, hop_size)
    if n_frames == 0:
        return np.zeros((0, frame_size))
    windows = sliding_window_view(samples, frame_size)[::hop_size]
    return windows[:n_frames]


def frame_times(n_frames: int, hop_size: int, sr: int) -> np.ndarray:
    """Timestamp of each frame start in seconds."""
    return np.arange(n_frames) * hop_size / sr


def magnitude_spectrum(frames: np.ndarray) -> np.ndarray:
    """Hann-windowed magnitude spectrum of each frame.

    Only the first ``frame_size / 2`` bins are kept (the Nyquist bin is
    dropped), giving a ``(n_frames, frame_size // 2)`` array.
    """
    frames = np.atleast_2d(frames)
    frame_size = frames.shape[1]
    n_bins = frame_size // 2
    if frames.shape[0] == 0:
        return np.zeros((0, n_bins))
    windowed = frames * hann_window(frame_size)
    spectrum = np.fft.rfft(windowed, axis=1)[:, :n_bins]
    return np.abs(spectrum)
