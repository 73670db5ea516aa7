"""Tests for per-beat tempo, the interval histogram and the live tracker."""

import numpy as np
import pytest

from beatcut.analysis.models import Beat, OnsetCandidate
from beatcut.analysis.tempo import (
    TempoTracker,
    assign_tempo,
    average_tempo,
    beat_phase,
    beat_tempo,
    intervals,
    smooth_tempo,
    tempo_candidates,
)


def _onsets(times):
    return [OnsetCandidate(timestamp=t, confidence=0.5) for t in times]


def test_beat_tempo():
    assert beat_tempo(0.5) == 120
    assert beat_tempo(0.6) == 100
    assert beat_tempo(0.0) == 0


def test_assign_tempo_first_beat_is_zero():
    beats = assign_tempo(_onsets([1.0, 1.5, 2.1, 2.6]))

    assert [b.tempo for b in beats] == [0, 120, 100, 120]
    assert [b.timestamp for b in beats] == [1.0, 1.5, 2.1, 2.6]
    assert all(b.confidence == 0.5 for b in beats)
    assert assign_tempo([]) == []


def test_average_tempo():
    beats = assign_tempo(_onsets([1.0, 1.5, 2.1, 2.6]))
    # (120 + 100 + 120) / 3 = 113.3
    assert average_tempo(beats) == 113


def test_average_tempo_falls_back_to_default():
    assert average_tempo([]) == 120
    assert average_tempo([Beat(timestamp=1.0, confidence=1.0)]) == 120
    assert average_tempo([], default=90) == 90


def test_intervals():
    assert np.allclose(intervals([0.0, 0.5, 1.5]), [0.5, 1.0])
    assert len(intervals([1.0])) == 0


def test_tempo_candidates_scores_are_vote_shares():
    candidates = tempo_candidates([0.5, 0.5, 0.6, 2.0])

    assert [c.tempo for c in candidates] == [120, 100]
    # the 30 BPM interval counts in the total but gets no bucket
    assert [c.score for c in candidates] == pytest.approx([0.5, 0.25])


def test_tempo_candidates_tie_prefers_slower():
    candidates = tempo_candidates([0.5, 0.6])
    assert [c.tempo for c in candidates] == [100, 120]


def test_tempo_candidates_need_two_intervals():
    assert tempo_candidates([0.5]) == []
    assert tempo_candidates([0.5, 0.0, -1.0]) == []


def test_beat_phase_on_grid():
    times = np.arange(0, 4, 0.5)
    assert beat_phase(times, 120) == pytest.approx(0.0)


def test_beat_phase_offset_grid():
    times = 0.25 + np.arange(0, 4, 0.5)
    assert abs(beat_phase(times, 120) - 0.25) < 0.05 + 1e-9


def test_beat_phase_degenerate():
    assert beat_phase([], 120) == 0.0
    assert beat_phase([0.1, 0.2], 0) == 0.0


def test_smooth_tempo():
    assert smooth_tempo(120, 100) == pytest.approx(116.0)
    assert smooth_tempo(120, 100, smoothing=0.0) == pytest.approx(100.0)


def test_tracker_needs_four_onsets():
    tracker = TempoTracker()
    estimate = tracker.update([0.0, 0.5, 1.0])

    assert estimate.tempo == 120
    assert estimate.confidence == 0.0


def test_tracker_steady_pulse():
    tracker = TempoTracker()
    estimate = tracker.update(list(np.arange(0, 4, 0.5)), now=3.5)

    assert estimate.tempo == pytest.approx(120.0)
    assert estimate.confidence == pytest.approx(1.0)
    assert estimate.phase == pytest.approx(0.0)


def test_tracker_smooths_toward_new_tempo():
    tracker = TempoTracker()
    times = list(np.arange(0, 4.5, 0.6))  # 100 BPM

    first = tracker.update(times, now=times[-1])
    second = tracker.update(times, now=times[-1])

    assert first.tempo == pytest.approx(116.0)
    assert second.tempo == pytest.approx(112.8)
    assert 100 < second.tempo < first.tempo


def test_tracker_ignores_onsets_outside_window():
    tracker = TempoTracker(window_seconds=1.0)
    estimate = tracker.update([0.0, 0.5, 1.0, 1.5, 2.0], now=10.0)

    assert estimate.confidence == 0.0
    assert tracker.tempo == 120


def test_tracker_reset():
    tracker = TempoTracker()
    times = list(np.arange(0, 4.5, 0.6))
    tracker.update(times, now=times[-1])

    tracker.reset(reset_tempo=False)
    assert tracker.tempo == pytest.approx(116.0)
    assert tracker.confidence == 0.0

    tracker.reset()
    assert tracker.tempo == 120
