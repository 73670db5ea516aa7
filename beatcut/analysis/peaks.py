"""Onset search over feature series.

Two searches live here: the adaptive-threshold peak picker shared by the
spectral fusion and energy detectors, and the two-phase valley-then-peak
scan used on amplitude envelopes. ``cap_candidates`` is the post-processing
step common to all detectors.
"""

import logging

import numpy as np

from beatcut.analysis.models import OnsetCandidate

logger = logging.getLogger(__name__)

# Floor for the local standard deviation so a flat window never divides by 0.
STD_EPSILON = 1e-10
# Added to the valley depth before forming the peak/valley ratio.
VALLEY_EPSILON = 0.001


def is_local_peak(values: np.ndarray, index: int) -> bool:
    """Strict local maximum; the first and last samples never qualify."""
    if index <= 0 or index >= len(values) - 1:
        return False
    return values[index] > values[index - 1] and values[index] > values[index + 1]


def local_statistics(values: np.ndarray, index: int, half_window: int) -> tuple[float, float]:
    """Mean and population std of ``values[index - W : index + W]`` (clipped)."""
    start = max(0, index - half_window)
    end = min(len(values), index + half_window)
    window = values[start:end]
    mean = float(np.mean(window))
    std = float(np.sqrt(np.mean((window - mean) ** 2)))
    return mean, std


def pick_peaks(
    values: np.ndarray,
    times: np.ndarray,
    half_window: int,
    threshold_multiplier: float,
    min_gap: float,
    confidence_scale: float,
) -> list[OnsetCandidate]:
    """Adaptive-threshold peak picking.

    A strict local maximum ``values[i]`` becomes an onset when it exceeds
    ``mean + std * threshold_multiplier`` of its surrounding window and lies at
    least ``min_gap`` seconds after the previously accepted onset. Confidence
    is the peak prominence ``(value - mean) / std`` divided by
    ``confidence_scale``, clamped to [0, 1].
    """
    values = np.asarray(values, dtype=np.float64)
    onsets: list[OnsetCandidate] = []
    if len(values) < 3:
        return onsets

    # Candidate indices: strict interior local maxima.
    interior = (values[1:-1] > values[:-2]) & (values[1:-1] > values[2:])
    for i in np.flatnonzero(interior) + 1:
        mean, std = local_statistics(values, i, half_window)
        std = max(std, STD_EPSILON)
        threshold = mean + std * threshold_multiplier
        if values[i] <= threshold:
            continue

        timestamp = float(times[i])
        if onsets and timestamp - onsets[-1].timestamp < min_gap:
            continue

        prominence = (values[i] - mean) / std
        confidence = float(np.clip(prominence / confidence_scale, 0.0, 1.0))
        onsets.append(OnsetCandidate(timestamp=timestamp, confidence=confidence))

    logger.debug(f"pick_peaks: {int(interior.sum())} local maxima, {len(onsets)} accepted")
    return onsets


def find_valley_peaks(
    envelope: np.ndarray,
    block_size: int,
    sr: int,
    required_ratio: float,
    search_seconds: float = 0.15,
    min_spacing_seconds: float = 0.3,
    valley_fraction: float = 0.2,
) -> list[OnsetCandidate]:
    """Valley-to-peak search over an amplitude envelope.

    A valley is a local minimum below ``valley_fraction`` of the mean
    envelope. The largest envelope value within ``search_seconds`` after it is
    the candidate peak, accepted when ``peak / (valley + eps)`` reaches
    ``required_ratio``. Accepted beats are at least ``min_spacing_seconds``
    apart; the scan resumes after each accepted peak.
    """
    envelope = np.asarray(envelope, dtype=np.float64)
    onsets: list[OnsetCandidate] = []
    n = len(envelope)
    if n < 3:
        return onsets

    avg_amplitude = float(np.mean(envelope))
    if avg_amplitude <= 0:
        return onsets
    valley_threshold = avg_amplitude * valley_fraction

    search = int(np.floor(search_seconds * sr / block_size))
    min_spacing = int(np.floor(min_spacing_seconds * sr / block_size))
    last_beat = -min_spacing

    i = 1
    while i < n - search - 1:
        if i - last_beat < min_spacing:
            i += 1
            continue

        valley = envelope[i]
        is_valley = (
            valley < valley_threshold
            and valley <= envelope[i - 1]
            and valley <= envelope[i + 1]
        )
        if not is_valley:
            i += 1
            continue

        end = min(i + search, n - 1)
        segment = envelope[i + 1:end + 1]
        peak_index = i
        peak = valley
        if len(segment) and segment.max() > valley:
            peak_index = i + 1 + int(np.argmax(segment))
            peak = float(envelope[peak_index])

        ratio = peak / (valley + VALLEY_EPSILON)
        if ratio >= required_ratio and peak_index > i:
            prominence = peak / avg_amplitude
            confidence = (ratio - required_ratio) / required_ratio * 0.5 + prominence * 0.5
            onsets.append(OnsetCandidate(
                timestamp=peak_index * block_size / sr,
                confidence=float(np.clip(confidence, 0.0, 1.0)),
            ))
            last_beat = peak_index
            i = peak_index
        i += 1

    return onsets


def cap_candidates(onsets: list[OnsetCandidate], max_count: int) -> list[OnsetCandidate]:
    """Keep the ``max_count`` most confident onsets, returned in time order.

    Equal confidences prefer the earlier onset.
    """
    if max_count <= 0 or len(onsets) <= max_count:
        return sorted(onsets, key=lambda o: o.timestamp)
    ranked = sorted(onsets, key=lambda o: (-o.confidence, o.timestamp))
    kept = ranked[:max_count]
    logger.debug(f"cap_candidates: dropped {len(onsets) - max_count} weakest onsets")
    return sorted(kept, key=lambda o: o.timestamp)
