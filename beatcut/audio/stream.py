"""Ring-buffer for live audio streaming and analyser-style spectrum snapshots."""

from __future__ import annotations

from typing import Protocol

import numpy as np

_DEFAULT_SR = 44100
_MAX_DURATION_SECONDS = 10

# Byte-spectrum scaling of a browser AnalyserNode.
_MIN_DECIBELS = -100.0
_MAX_DECIBELS = -30.0


class SpectrumSource(Protocol):
    """Anything that can hand the live meter a spectrum and a clock."""

    sample_rate: int
    fft_size: int

    def get_frequency_data(self) -> np.ndarray:
        ...

    @property
    def current_time(self) -> float:
        ...


class StreamBuffer:
    """Fixed-capacity ring buffer that stores the most recent audio.

    Parameters
    ----------
    sr:
        Sample rate in Hz. Defaults to 44100.
    max_duration:
        Maximum buffer duration in seconds. Defaults to 10.
    """

    def __init__(self, sr: int = _DEFAULT_SR, max_duration: float = _MAX_DURATION_SECONDS) -> None:
        self._sr = sr
        self._max_samples = max(1, int(sr * max_duration))
        self._buffer = np.zeros(self._max_samples, dtype=np.float32)
        self._write_pos = 0
        self._length = 0  # how many valid samples are in the buffer
        self._total = 0  # samples ever appended

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def append(self, chunk: np.ndarray) -> None:
        """Append an audio chunk to the buffer.

        If the chunk is larger than the buffer capacity, only the last
        ``max_samples`` samples are kept.
        """
        chunk = np.asarray(chunk, dtype=np.float32).ravel()
        n = len(chunk)

        if n == 0:
            return
        self._total += n

        if n >= self._max_samples:
            chunk = chunk[-self._max_samples:]
            self._buffer[:] = chunk
            self._write_pos = 0
            self._length = self._max_samples
            return

        end = self._write_pos + n
        if end <= self._max_samples:
            self._buffer[self._write_pos:end] = chunk
        else:
            first = self._max_samples - self._write_pos
            self._buffer[self._write_pos:] = chunk[:first]
            self._buffer[:n - first] = chunk[first:]

        self._write_pos = end % self._max_samples
        self._length = min(self._length + n, self._max_samples)

    def get_last(self, n_samples: int) -> np.ndarray:
        """Return the most recent ``n_samples`` (fewer if not buffered yet)."""
        n_samples = min(max(n_samples, 0), self._length)
        if n_samples == 0:
            return np.zeros(0, dtype=np.float32)

        start = (self._write_pos - n_samples) % self._max_samples
        if start + n_samples <= self._max_samples:
            return self._buffer[start:start + n_samples].copy()

        first = self._max_samples - start
        return np.concatenate([
            self._buffer[start:],
            self._buffer[:n_samples - first],
        ])

    @property
    def elapsed(self) -> float:
        """Seconds of audio appended since the last clear."""
        return self._total / self._sr

    def clear(self) -> None:
        """Reset the buffer."""
        self._buffer[:] = 0
        self._write_pos = 0
        self._length = 0
        self._total = 0


class LiveSpectrumSource:
    """Turns pushed PCM chunks into smoothed magnitude snapshots.

    Mirrors a playback analyser: Blackman-windowed FFT of the latest
    ``fft_size`` samples, exponential smoothing over time, then dB values
    mapped linearly onto [0, 1].
    """

    def __init__(
        self,
        sample_rate: int = _DEFAULT_SR,
        fft_size: int = 2048,
        smoothing_time_constant: float = 0.8,
        max_duration: float = _MAX_DURATION_SECONDS,
    ) -> None:
        self.sample_rate = sample_rate
        self.fft_size = fft_size
        self.smoothing_time_constant = smoothing_time_constant
        self._buffer = StreamBuffer(sr=sample_rate, max_duration=max_duration)
        self._window = np.blackman(fft_size)
        self._smoothed = np.zeros(fft_size // 2)

    def push(self, chunk: np.ndarray) -> None:
        self._buffer.append(chunk)

    @property
    def current_time(self) -> float:
        return self._buffer.elapsed

    def get_frequency_data(self) -> np.ndarray:
        """Latest smoothed spectrum, ``fft_size // 2`` values in [0, 1]."""
        frame = self._buffer.get_last(self.fft_size).astype(np.float64)
        if len(frame) < self.fft_size:
            frame = np.concatenate([np.zeros(self.fft_size - len(frame)), frame])

        spectrum = np.abs(np.fft.rfft(frame * self._window))[: self.fft_size // 2] / self.fft_size
        tau = self.smoothing_time_constant
        self._smoothed = tau * self._smoothed + (1 - tau) * spectrum

        with np.errstate(divide="ignore"):
            db = 20 * np.log10(self._smoothed)
        scaled = (db - _MIN_DECIBELS) / (_MAX_DECIBELS - _MIN_DECIBELS)
        return np.clip(np.nan_to_num(scaled, neginf=0.0), 0.0, 1.0)

    def reset(self) -> None:
        self._buffer.clear()
        self._smoothed = np.zeros(self.fft_size // 2)
