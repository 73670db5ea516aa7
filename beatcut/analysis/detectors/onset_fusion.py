"""Spectral fusion detector: flux + HFC + centroid onset strength."""

import logging

import numpy as np

from beatcut.analysis.features import (
    fuse_features,
    high_frequency_content,
    spectral_centroid,
    spectral_flux,
)
from beatcut.analysis.framing import frame_signal, magnitude_spectrum
from beatcut.analysis.models import Algorithm, AudioBuffer, FeatureSeries, OnsetCandidate
from beatcut.analysis.peaks import pick_peaks
from beatcut.audio.preprocessing import FilterSpec
from beatcut.config import settings

logger = logging.getLogger(__name__)

# Frames per FFT batch; keeps the spectrum matrix small on long tracks.
_BATCH_FRAMES = 1024


class OnsetFusionDetector:
    """Unfiltered signal, ``frame_size``/``hop_size`` STFT (2048/512 from settings),
    1 s adaptive window, 300 ms gap.

    Flux weights and the HFC band are laid out over the full ``frame_size``
    spectrum of which only the lower ``frame_size / 2`` bins are computed,
    so HFC contributes nothing to the fused strength.
    """

    algorithm = Algorithm.ONSET_FUSION
    min_gap = 0.3
    window_seconds = 1.0
    confidence_scale = 3.0

    def __init__(self, frame_size: int | None = None, hop_size: int | None = None):
        self.frame_size = frame_size or settings.frame_size
        self.hop_size = hop_size or settings.hop_size

    @property
    def filter_spec(self) -> FilterSpec:
        return FilterSpec.none()

    def extract_feature(self, buffer: AudioBuffer) -> FeatureSeries:
        frames = frame_signal(buffer.channel(0), self.frame_size, self.hop_size)
        n_bins = self.frame_size // 2

        flux, hfc, centroid = [], [], []
        previous = np.zeros(n_bins)
        for lo in range(0, len(frames), _BATCH_FRAMES):
            magnitudes = magnitude_spectrum(frames[lo:lo + _BATCH_FRAMES])
            flux.append(spectral_flux(magnitudes, previous, spectrum_size=self.frame_size))
            hfc.append(high_frequency_content(magnitudes, spectrum_size=self.frame_size))
            centroid.append(spectral_centroid(magnitudes))
            previous = magnitudes[-1]

        if not flux:
            return FeatureSeries(values=np.zeros(0), hop_size=self.hop_size, sample_rate=buffer.sample_rate)

        strength = fuse_features(np.concatenate(flux), np.concatenate(hfc), np.concatenate(centroid))
        logger.debug(f"onset fusion: {len(strength)} frames")
        return FeatureSeries(values=strength, hop_size=self.hop_size, sample_rate=buffer.sample_rate)

    def pick_peaks(self, feature: FeatureSeries, sensitivity: float) -> list[OnsetCandidate]:
        half_window = int(np.floor(self.window_seconds * feature.sample_rate / feature.hop_size))
        return pick_peaks(
            feature.values,
            feature.times,
            half_window=half_window,
            threshold_multiplier=3.0 - sensitivity,
            min_gap=self.min_gap,
            confidence_scale=self.confidence_scale,
        )
