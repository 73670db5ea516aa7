"""Core data models for beat analysis."""

from dataclasses import dataclass, field
from enum import Enum

import numpy as np


class Algorithm(str, Enum):
    """Available offline beat detection pipelines."""
    ONSET_FUSION = "onset"
    ENERGY_PEAK = "energy"
    VALLEY_TO_PEAK = "valley"


MIN_SENSITIVITY = 0.5
MAX_SENSITIVITY = 2.0


def clamp_sensitivity(value: float) -> float:
    return max(MIN_SENSITIVITY, min(MAX_SENSITIVITY, float(value)))


@dataclass(frozen=True)
class AnalyzerConfiguration:
    """Algorithm choice plus sensitivity (clamped to [0.5, 2.0])."""
    algorithm: Algorithm = Algorithm.ONSET_FUSION
    sensitivity: float = 1.0

    def __post_init__(self):
        object.__setattr__(self, "algorithm", Algorithm(self.algorithm))
        object.__setattr__(self, "sensitivity", clamp_sensitivity(self.sensitivity))


@dataclass(frozen=True, eq=False)
class AudioBuffer:
    """Decoded audio: (channels, samples) float matrix plus its sample rate."""
    samples: np.ndarray
    sample_rate: int

    def __post_init__(self):
        samples = np.array(self.samples, dtype=np.float32)
        if samples.ndim == 1:
            samples = samples[np.newaxis, :]
        samples.setflags(write=False)
        object.__setattr__(self, "samples", samples)

    @property
    def channels(self) -> int:
        return self.samples.shape[0]

    @property
    def length(self) -> int:
        return self.samples.shape[1]

    @property
    def duration(self) -> float:
        if self.sample_rate <= 0:
            return 0.0
        return self.length / self.sample_rate

    def channel(self, index: int = 0) -> np.ndarray:
        return self.samples[index]


@dataclass(frozen=True)
class OnsetCandidate:
    """A detected onset."""
    timestamp: float  # seconds
    confidence: float  # 0.0-1.0


@dataclass(frozen=True)
class Beat:
    """A single detected beat. ``tempo`` is 0 for the first beat."""
    timestamp: float
    confidence: float
    tempo: int = 0


@dataclass(frozen=True)
class BeatMarker:
    """Cut point handed to the video cutter."""
    id: str
    time: float


@dataclass
class TempoCandidate:
    """One bucket of the inter-onset-interval histogram."""
    tempo: int
    score: float  # vote share, 0.0-1.0
    phase: float = 0.0


@dataclass(frozen=True)
class TempoEstimate:
    """Running tempo estimate from the streaming tracker."""
    tempo: float
    confidence: float
    phase: float = 0.0


@dataclass(frozen=True)
class AnalysisResult:
    """Complete offline analysis result."""
    beat_count: int
    average_tempo: int
    confidence: float
    beats: tuple[Beat, ...] = field(default_factory=tuple)
    duration: float = 0.0
    sample_rate: int = 0
    algorithm: Algorithm = Algorithm.ONSET_FUSION
    sensitivity: float = 1.0
    channels: int = 0
    processing_time: float = field(default=0.0, compare=False)  # seconds

    @property
    def timestamps(self) -> list[float]:
        return [b.timestamp for b in self.beats]


@dataclass(frozen=True, eq=False)
class FeatureSeries:
    """One scalar per analysis frame, aligned to ``index * hop_size / sample_rate``."""
    values: np.ndarray
    hop_size: int
    sample_rate: int

    @property
    def times(self) -> np.ndarray:
        return np.arange(len(self.values)) * self.hop_size / self.sample_rate

    def __len__(self) -> int:
        return len(self.values)
