"""Tempo estimation: per-beat tempo for offline results and an
inter-onset-interval histogram tracker for live use."""

import logging
from collections.abc import Sequence

import numpy as np

from beatcut.analysis.models import Beat, OnsetCandidate, TempoCandidate, TempoEstimate

logger = logging.getLogger(__name__)

DEFAULT_TEMPO = 120.0
PHASE_STEP = 0.01  # seconds
PHASE_TOLERANCE = 0.05  # seconds


def beat_tempo(interval: float) -> int:
    """Instantaneous tempo in whole BPM for one inter-beat interval."""
    if interval <= 0:
        return 0
    return int(round(60.0 / interval))


def assign_tempo(onsets: Sequence[OnsetCandidate]) -> list[Beat]:
    """Turn time-ordered onsets into beats; the first beat gets tempo 0."""
    beats = []
    for i, onset in enumerate(onsets):
        tempo = 0 if i == 0 else beat_tempo(onset.timestamp - onsets[i - 1].timestamp)
        beats.append(Beat(timestamp=onset.timestamp, confidence=onset.confidence, tempo=tempo))
    return beats


def average_tempo(beats: Sequence[Beat], default: float = DEFAULT_TEMPO) -> int:
    """Rounded mean of the per-beat tempos after the first beat."""
    if len(beats) < 2:
        return int(round(default))
    return int(round(sum(b.tempo for b in beats[1:]) / (len(beats) - 1)))


def intervals(timestamps: Sequence[float]) -> np.ndarray:
    """Consecutive inter-onset intervals."""
    return np.diff(np.asarray(timestamps, dtype=np.float64))


def tempo_candidates(
    onset_intervals: Sequence[float],
    min_tempo: float = 60,
    max_tempo: float = 200,
) -> list[TempoCandidate]:
    """Vote each interval into an integer-BPM histogram.

    Scores are vote shares over all intervals (including out-of-range ones).
    Sorted by score, ties going to the slower tempo.
    """
    onset_intervals = [float(x) for x in onset_intervals if x > 0]
    if len(onset_intervals) < 2:
        return []

    votes: dict[int, int] = {}
    for interval in onset_intervals:
        bpm = int(round(60.0 / interval))
        if min_tempo <= bpm <= max_tempo:
            votes[bpm] = votes.get(bpm, 0) + 1

    total = len(onset_intervals)
    candidates = [TempoCandidate(tempo=bpm, score=count / total) for bpm, count in votes.items()]
    return sorted(candidates, key=lambda c: (-c.score, c.tempo))


def beat_phase(
    timestamps: Sequence[float],
    tempo: float,
    step: float = PHASE_STEP,
    tolerance: float = PHASE_TOLERANCE,
) -> float:
    """Grid offset within one beat period that lines up the most onsets.

    Phases are tried every ``step`` seconds; an onset counts when it lies
    within ``tolerance`` of a grid point. The earliest best phase wins.
    """
    if tempo <= 0 or len(timestamps) == 0:
        return 0.0
    period = 60.0 / tempo
    times = np.asarray(timestamps, dtype=np.float64)
    phases = np.arange(0.0, period, step)

    offsets = np.mod(times[np.newaxis, :] - phases[:, np.newaxis], period)
    distance = np.minimum(offsets, period - offsets)
    scores = np.sum(distance < tolerance, axis=1)
    best = int(np.argmax(scores))
    if scores[best] == 0:
        return 0.0
    return float(phases[best])


def smooth_tempo(current: float, new: float, smoothing: float = 0.8) -> float:
    """Exponential moving average step."""
    return smoothing * current + (1 - smoothing) * new


class TempoTracker:
    """Running tempo estimate fed by live onset times.

    Keeps no onset history of its own: each ``update`` call gets the
    caller's recent onsets and folds the winning histogram bucket into the
    smoothed estimate.
    """

    MIN_ONSETS = 4

    def __init__(
        self,
        min_tempo: float = 60,
        max_tempo: float = 200,
        smoothing: float = 0.8,
        window_seconds: float = 4.0,
        initial_tempo: float = DEFAULT_TEMPO,
    ):
        self.min_tempo = min_tempo
        self.max_tempo = max_tempo
        self.smoothing = smoothing
        self.window_seconds = window_seconds
        self.initial_tempo = initial_tempo
        self.tempo = initial_tempo
        self.confidence = 0.0
        self.phase = 0.0

    def update(self, onset_times: Sequence[float], now: float | None = None) -> TempoEstimate:
        """Re-estimate from onsets inside the trailing window ending at ``now``."""
        times = [float(t) for t in onset_times]
        if now is None:
            now = times[-1] if times else 0.0
        cutoff = now - self.window_seconds
        recent = [t for t in times if t >= cutoff]

        if len(recent) < self.MIN_ONSETS:
            return TempoEstimate(tempo=self.tempo, confidence=0.0, phase=self.phase)

        candidates = tempo_candidates(intervals(recent), self.min_tempo, self.max_tempo)
        if not candidates:
            return TempoEstimate(tempo=self.tempo, confidence=0.0, phase=self.phase)

        top = candidates[0]
        top.phase = beat_phase(recent, top.tempo)
        self.tempo = smooth_tempo(self.tempo, top.tempo, self.smoothing)
        self.confidence = top.score
        self.phase = top.phase
        logger.debug(f"tempo candidate {top.tempo} BPM (score={top.score:.2f}), "
                     f"smoothed {self.tempo:.1f} BPM")
        return TempoEstimate(tempo=self.tempo, confidence=self.confidence, phase=self.phase)

    def reset(self, reset_tempo: bool = True) -> None:
        self.confidence = 0.0
        self.phase = 0.0
        if reset_tempo:
            self.tempo = self.initial_tempo
