"""Valley-to-peak detector: sharp rises out of quiet gaps in the 20-1000 Hz band."""

from beatcut.analysis.features import amplitude_envelope
from beatcut.analysis.models import Algorithm, AudioBuffer, FeatureSeries, OnsetCandidate
from beatcut.analysis.peaks import find_valley_peaks
from beatcut.audio.preprocessing import FilterSpec


class ValleyToPeakDetector:
    """20-1000 Hz band-pass, 10 ms envelope, 150 ms peak search, 300 ms spacing."""

    algorithm = Algorithm.VALLEY_TO_PEAK
    min_gap = 0.3
    search_seconds = 0.15

    def __init__(self, low: float = 20.0, high: float = 1000.0, block_seconds: float = 0.01):
        self.low = low
        self.high = high
        self.block_seconds = block_seconds

    @property
    def filter_spec(self) -> FilterSpec:
        return FilterSpec.band_pass(self.low, self.high)

    def extract_feature(self, buffer: AudioBuffer) -> FeatureSeries:
        envelope, block = amplitude_envelope(buffer.channel(0), buffer.sample_rate, self.block_seconds)
        return FeatureSeries(values=envelope, hop_size=block, sample_rate=buffer.sample_rate)

    def pick_peaks(self, feature: FeatureSeries, sensitivity: float) -> list[OnsetCandidate]:
        return find_valley_peaks(
            feature.values,
            block_size=feature.hop_size,
            sr=feature.sample_rate,
            required_ratio=3.5 - sensitivity,
            search_seconds=self.search_seconds,
            min_spacing_seconds=self.min_gap,
        )
