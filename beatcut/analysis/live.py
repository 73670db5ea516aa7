"""Live meter: lightweight spectral-flux onset detection during playback.

Driven by the host's playback loop, one ``tick`` per spectrum snapshot.
Its onsets and tempo are for display only; the beat list used for cutting
always comes from :class:`beatcut.analysis.engine.AnalysisEngine`.
"""

import logging
from collections import deque

import numpy as np

from beatcut.analysis.features import spectral_flux
from beatcut.analysis.models import OnsetCandidate, TempoEstimate, clamp_sensitivity
from beatcut.analysis.tempo import TempoTracker
from beatcut.audio.stream import SpectrumSource
from beatcut.config import settings

logger = logging.getLogger(__name__)

BAND_LOW_HZ = 20.0
BAND_HIGH_HZ = 1000.0


class LiveMeter:
    """Per-instance rolling flux history, onset history and tempo tracker."""

    def __init__(
        self,
        sample_rate: int = 44100,
        fft_size: int | None = None,
        sensitivity: float = 1.0,
        max_frequency: float | None = None,
        history_size: int | None = None,
    ):
        self.sample_rate = sample_rate
        self.fft_size = fft_size or settings.fft_size
        self.max_frequency = max_frequency or settings.max_frequency
        self.history_size = history_size or settings.history_size
        self.window_size = settings.window_size
        self.flux_threshold = settings.flux_threshold
        self.threshold_multiplier = settings.threshold_multiplier
        self.min_onset_gap = settings.min_onset_gap_ms / 1000.0
        self.sensitivity = clamp_sensitivity(sensitivity)

        self.flux_history: deque[float] = deque(maxlen=self.history_size)
        self.onset_history: deque[float] = deque(maxlen=self.history_size)
        self.last_onset_time = 0.0
        self._previous: np.ndarray | None = None
        self._previous_band: np.ndarray | None = None
        self.tracker = TempoTracker(
            min_tempo=settings.min_tempo,
            max_tempo=settings.max_tempo,
            smoothing=settings.tempo_smoothing,
            window_seconds=settings.tempo_window_seconds,
            initial_tempo=settings.default_tempo,
        )

    # ------------------------------------------------------------------
    # Per-tick processing
    # ------------------------------------------------------------------

    def _bin_count(self, n_bins: int) -> int:
        """Bins below ``max_frequency`` for an ``n_bins`` snapshot."""
        bin_width = (self.sample_rate / 2) / n_bins
        return max(1, min(n_bins, int(np.floor(self.max_frequency / bin_width))))

    def compute_flux(self, spectrum: np.ndarray) -> float:
        """Weighted positive flux against the previous snapshot, per bin.

        The first snapshot after a reset only primes the history and yields 0.
        """
        spectrum = np.asarray(spectrum, dtype=np.float64).ravel()
        n = self._bin_count(len(spectrum))
        current = spectrum[:n]
        previous = self._previous
        self._previous = current.copy()
        if previous is None or len(previous) != n:
            return 0.0
        return float(spectral_flux(current[np.newaxis, :], previous)[0] / n)

    def detect_onset(self, flux: float, current_time: float) -> bool:
        """Lighter onset test against the rolling history (which includes ``flux``)."""
        recent = list(self.flux_history)[-self.window_size:]
        average = sum(recent) / len(recent) if recent else 0.0

        is_peak = flux > average * self.threshold_multiplier
        above_threshold = flux > self.flux_threshold * self.sensitivity
        spaced = current_time - self.last_onset_time > self.min_onset_gap

        if is_peak and above_threshold and spaced:
            self.last_onset_time = current_time
            self.onset_history.append(current_time)
            return True
        return False

    def tick(self, spectrum: np.ndarray, current_time: float) -> bool:
        """Process one snapshot; returns True when it was an onset."""
        flux = self.compute_flux(spectrum)
        self.flux_history.append(flux)
        onset = self.detect_onset(flux, current_time)
        if onset:
            logger.debug(f"live onset at {current_time:.3f}s (flux={flux:.4f})")
            self.tracker.update(self.onset_history, now=current_time)
        return onset

    def update(self, source: SpectrumSource) -> bool:
        """Pull the latest snapshot and clock from ``source`` and tick."""
        return self.tick(source.get_frequency_data(), source.current_time)

    # ------------------------------------------------------------------
    # Read-outs
    # ------------------------------------------------------------------

    def band_metrics(self, spectrum: np.ndarray) -> dict[str, float]:
        """Mean level and flux of the 20-1000 Hz band of a [0, 1] snapshot."""
        spectrum = np.asarray(spectrum, dtype=np.float64).ravel()
        if len(spectrum) == 0:
            return {"energy": 0.0, "spectral_flux": 0.0}
        bin_width = (self.sample_rate / 2) / len(spectrum)
        low = int(np.floor(BAND_LOW_HZ / bin_width))
        high = min(int(np.floor(BAND_HIGH_HZ / bin_width)), len(spectrum) - 1)
        band = spectrum[low:high + 1]
        width = high - low + 1

        energy = float(band.sum() / width)
        flux = 0.0
        if self._previous_band is not None and len(self._previous_band) == len(band):
            flux = float(np.maximum(band - self._previous_band, 0.0).sum() / width)
        self._previous_band = band.copy()
        return {"energy": energy, "spectral_flux": flux}

    def recent_onsets(self, current_time: float, duration: float = 2.0) -> list[OnsetCandidate]:
        cutoff = current_time - duration
        return [OnsetCandidate(timestamp=t, confidence=0.0) for t in self.onset_history if t >= cutoff]

    def estimate(self) -> TempoEstimate:
        return TempoEstimate(
            tempo=self.tracker.tempo,
            confidence=self.tracker.confidence,
            phase=self.tracker.phase,
        )

    @property
    def tempo(self) -> float:
        return self.tracker.tempo

    @property
    def tempo_confidence(self) -> float:
        return self.tracker.confidence

    def set_sensitivity(self, value: float) -> None:
        self.sensitivity = clamp_sensitivity(value)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def reset(self, reset_tempo: bool = False) -> None:
        """Playback stopped: drop histories, optionally the tempo too."""
        self.flux_history.clear()
        self.onset_history.clear()
        self.last_onset_time = 0.0
        self._previous = None
        self._previous_band = None
        self.tracker.reset(reset_tempo=reset_tempo)

    def dispose(self) -> None:
        self.reset(reset_tempo=True)
