"""Tests for adaptive peak picking, valley search and the candidate cap."""

import numpy as np
import pytest

from beatcut.analysis.models import OnsetCandidate
from beatcut.analysis.peaks import (
    cap_candidates,
    find_valley_peaks,
    is_local_peak,
    local_statistics,
    pick_peaks,
)


def _spikes(n: int, positions: list[int], heights: list[float] | None = None) -> np.ndarray:
    values = np.zeros(n)
    for k, p in enumerate(positions):
        values[p] = heights[k] if heights else 1.0
    return values


def test_is_local_peak_is_strict():
    values = np.array([0.0, 1.0, 1.0, 0.0, 2.0, 0.0])
    assert not is_local_peak(values, 0)
    assert not is_local_peak(values, 1)  # plateau
    assert is_local_peak(values, 4)
    assert not is_local_peak(values, 5)


def test_local_statistics_window_is_clipped():
    values = np.array([1.0, 3.0, 1.0, 3.0])
    mean, std = local_statistics(values, 0, 2)
    # window = values[0:2]
    assert mean == pytest.approx(2.0)
    assert std == pytest.approx(1.0)


def test_pick_peaks_accepts_isolated_spikes():
    values = _spikes(100, [10, 40, 70])
    times = np.arange(100) * 0.01
    onsets = pick_peaks(values, times, half_window=20, threshold_multiplier=2.0,
                        min_gap=0.1, confidence_scale=3.0)

    assert [o.timestamp for o in onsets] == pytest.approx([0.10, 0.40, 0.70])
    assert all(o.confidence == 1.0 for o in onsets)


def test_pick_peaks_enforces_min_gap_from_last_accepted():
    values = _spikes(100, [10, 15, 30], [1.0, 1.0, 1.0])
    times = np.arange(100) * 0.01
    onsets = pick_peaks(values, times, half_window=20, threshold_multiplier=1.0,
                        min_gap=0.1, confidence_scale=3.0)

    assert [o.timestamp for o in onsets] == pytest.approx([0.10, 0.30])


def test_pick_peaks_threshold_multiplier():
    values = _spikes(100, [20, 60], [1.0, 0.3])
    times = np.arange(100) * 0.01
    strict = pick_peaks(values, times, 50, threshold_multiplier=3.0, min_gap=0.1, confidence_scale=3.0)
    loose = pick_peaks(values, times, 50, threshold_multiplier=0.5, min_gap=0.1, confidence_scale=3.0)

    assert len(strict) < len(loose)
    assert {round(o.timestamp, 2) for o in strict} <= {round(o.timestamp, 2) for o in loose}


def test_pick_peaks_flat_and_tiny_inputs():
    times = np.arange(50) * 0.01
    assert pick_peaks(np.ones(50), times, 10, 1.0, 0.1, 3.0) == []
    assert pick_peaks(np.zeros(2), times[:2], 10, 1.0, 0.1, 3.0) == []


def test_pick_peaks_confidence_is_prominence_over_scale():
    values = np.array([0.0, 0.0, 1.0, 0.0, 0.0])
    times = np.arange(5) * 0.1
    onsets = pick_peaks(values, times, half_window=10, threshold_multiplier=0.0,
                        min_gap=0.0, confidence_scale=4.0)
    mean, std = 0.2, 0.4
    assert onsets[0].confidence == pytest.approx((1.0 - mean) / std / 4.0)


def test_valley_peaks_find_bursts_after_silence():
    sr, block = 1000, 10  # 10 ms envelope blocks
    envelope = np.zeros(300)
    envelope[[50, 120, 200]] = 1.0
    onsets = find_valley_peaks(envelope, block, sr, required_ratio=2.5)

    assert [o.timestamp for o in onsets] == pytest.approx([0.5, 1.2, 2.0])
    assert all(0.0 <= o.confidence <= 1.0 for o in onsets)


def test_valley_peaks_respect_spacing():
    sr, block = 1000, 10
    envelope = np.zeros(300)
    envelope[[50, 60, 120]] = 1.0  # 60 is only 100 ms after 50
    onsets = find_valley_peaks(envelope, block, sr, required_ratio=2.5)

    assert [o.timestamp for o in onsets] == pytest.approx([0.5, 1.2])


def test_valley_peaks_require_contrast():
    sr, block = 1000, 10
    envelope = np.full(300, 0.5)
    envelope[::2] = 0.45
    # Valleys must sit below 20% of the mean level: none here.
    assert find_valley_peaks(envelope, block, sr, required_ratio=1.5) == []
    assert find_valley_peaks(np.zeros(300), block, sr, required_ratio=1.5) == []


def test_valley_ratio_depends_on_sensitivity():
    sr, block = 1000, 10
    envelope = np.full(300, 0.0005)
    envelope[[50, 150]] = 0.004  # ratio 0.004 / 0.0015 ~= 2.67
    envelope[250] = 1.0
    strict = find_valley_peaks(envelope, block, sr, required_ratio=3.5 - 0.5)
    loose = find_valley_peaks(envelope, block, sr, required_ratio=3.5 - 2.0)

    assert [o.timestamp for o in strict] == pytest.approx([2.5])
    assert [o.timestamp for o in loose] == pytest.approx([0.5, 1.5, 2.5])


def test_cap_keeps_most_confident_in_time_order():
    onsets = [OnsetCandidate(timestamp=float(t), confidence=c)
              for t, c in zip(range(6), [0.1, 0.9, 0.5, 0.8, 0.2, 0.7])]
    kept = cap_candidates(onsets, 3)

    assert [o.timestamp for o in kept] == [1.0, 3.0, 5.0]


def test_cap_tie_break_prefers_earlier():
    onsets = [OnsetCandidate(timestamp=float(t), confidence=1.0) for t in range(25)]
    kept = cap_candidates(onsets, 20)

    assert [o.timestamp for o in kept] == [float(t) for t in range(20)]


def test_cap_below_limit_is_unchanged():
    onsets = [OnsetCandidate(timestamp=1.0, confidence=0.2), OnsetCandidate(timestamp=2.0, confidence=0.1)]
    assert cap_candidates(onsets, 20) == onsets
