"""Interface shared by the offline onset detectors."""

from typing import Protocol

from beatcut.analysis.models import Algorithm, AudioBuffer, FeatureSeries, OnsetCandidate
from beatcut.audio.preprocessing import FilterSpec


class OnsetDetector(Protocol):
    """One complete offline pipeline.

    ``filter_spec`` tells the engine how to render the input, then
    ``extract_feature`` reads channel 0 of the rendered buffer and
    ``pick_peaks`` turns the feature series into time-ordered onsets.
    """

    algorithm: Algorithm
    min_gap: float  # seconds between accepted onsets

    @property
    def filter_spec(self) -> FilterSpec:
        ...

    def extract_feature(self, buffer: AudioBuffer) -> FeatureSeries:
        ...

    def pick_peaks(self, feature: FeatureSeries, sensitivity: float) -> list[OnsetCandidate]:
        ...
