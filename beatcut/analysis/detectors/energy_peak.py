"""Energy peak detector: RMS peaks of the low-passed (bass) signal."""

import numpy as np

from beatcut.analysis.features import rms_energy
from beatcut.analysis.models import Algorithm, AudioBuffer, FeatureSeries, OnsetCandidate
from beatcut.analysis.peaks import pick_peaks
from beatcut.audio.preprocessing import FilterSpec


class EnergyPeakDetector:
    """200 Hz low-pass, 20 ms RMS windows, 1.5 s adaptive window, 250 ms gap."""

    algorithm = Algorithm.ENERGY_PEAK
    min_gap = 0.25
    window_seconds = 1.5
    confidence_scale = 4.0

    def __init__(self, cutoff: float = 200.0, rms_window_seconds: float = 0.02):
        self.cutoff = cutoff
        self.rms_window_seconds = rms_window_seconds

    @property
    def filter_spec(self) -> FilterSpec:
        return FilterSpec.low_pass(self.cutoff)

    def extract_feature(self, buffer: AudioBuffer) -> FeatureSeries:
        energy, hop = rms_energy(buffer.channel(0), buffer.sample_rate, self.rms_window_seconds)
        return FeatureSeries(values=energy, hop_size=hop, sample_rate=buffer.sample_rate)

    def pick_peaks(self, feature: FeatureSeries, sensitivity: float) -> list[OnsetCandidate]:
        half_window = int(np.floor(self.window_seconds * feature.sample_rate / feature.hop_size))
        return pick_peaks(
            feature.values,
            feature.times,
            half_window=half_window,
            threshold_multiplier=3.5 - sensitivity * 1.5,
            min_gap=self.min_gap,
            confidence_scale=self.confidence_scale,
        )
