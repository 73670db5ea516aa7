"""Per-frame onset features.

Three families, one per detector:

* spectral fusion: weighted spectral flux, high-frequency content and
  spectral centroid, each max-normalised and summed 0.5 / 0.3 / 0.2
* energy: short-time RMS over 20 ms windows with a 10 ms hop
* valley: mean absolute amplitude over consecutive 10 ms blocks
"""

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

FLUX_WEIGHT = 0.5
HFC_WEIGHT = 0.3
CENTROID_WEIGHT = 0.2

# windows per RMS batch, bounds the temporary copy
_RMS_CHUNK = 4096


def spectral_flux(
    magnitudes: np.ndarray,
    previous: np.ndarray | None = None,
    spectrum_size: int | None = None,
) -> np.ndarray:
    """Positive-only magnitude increase per frame, higher bins weighted up.

    Bin ``k`` is weighted ``1 + k / K`` where ``K`` is ``spectrum_size``
    (the number of bins when omitted). The frame before the first one is
    taken as ``previous`` (zeros when omitted).
    """
    magnitudes = np.atleast_2d(magnitudes)
    n_frames, n_bins = magnitudes.shape
    if n_frames == 0:
        return np.zeros(0)
    if previous is None:
        previous = np.zeros(n_bins)
    prior = np.vstack([previous[np.newaxis, :], magnitudes[:-1]])
    rise = np.maximum(magnitudes - prior, 0.0)
    weights = 1.0 + np.arange(n_bins) / (spectrum_size or n_bins)
    return rise @ weights


def high_frequency_content(magnitudes: np.ndarray, spectrum_size: int | None = None) -> np.ndarray:
    """Sum of ``magnitude * bin_index`` over the upper half of the spectrum.

    ``spectrum_size`` is the full spectrum length the retained bins belong
    to; bins past the retained ones count as zero. With a spectrum of
    ``frame_size`` values of which only ``frame_size / 2`` are kept, the
    upper half is empty and the result is all zeros.
    """
    magnitudes = np.atleast_2d(magnitudes)
    n_bins = magnitudes.shape[1]
    start = (spectrum_size or n_bins) // 2
    if start >= n_bins:
        return np.zeros(magnitudes.shape[0])
    return magnitudes[:, start:] @ np.arange(start, n_bins)


def spectral_centroid(magnitudes: np.ndarray) -> np.ndarray:
    """Magnitude-weighted mean bin index; 0 for frames without energy."""
    magnitudes = np.atleast_2d(magnitudes)
    n_bins = magnitudes.shape[1]
    weighted = magnitudes @ np.arange(n_bins)
    total = magnitudes.sum(axis=1)
    centroid = np.zeros(len(total))
    np.divide(weighted, total, out=centroid, where=total > 0)
    return centroid


def normalize_series(values: np.ndarray) -> np.ndarray:
    """Divide by the series maximum; all-zero (or empty) series pass through."""
    values = np.asarray(values, dtype=np.float64)
    if values.size == 0:
        return values
    peak = float(values.max())
    if peak > 0:
        return values / peak
    return values


def fuse_features(flux: np.ndarray, hfc: np.ndarray, centroid: np.ndarray) -> np.ndarray:
    """Combined onset-strength function for the spectral fusion detector."""
    return (
        FLUX_WEIGHT * normalize_series(flux)
        + HFC_WEIGHT * normalize_series(hfc)
        + CENTROID_WEIGHT * normalize_series(centroid)
    )


def rms_energy(samples: np.ndarray, sr: int, window_seconds: float = 0.02) -> tuple[np.ndarray, int]:
    """Short-time RMS energy with 50% overlap.

    Returns ``(energy, hop_size)``; window ``k`` starts at ``k * hop_size``.
    """
    samples = np.asarray(samples, dtype=np.float64).ravel()
    window = int(np.floor(sr * window_seconds))
    hop = window // 2
    if window <= 0 or hop <= 0 or len(samples) <= window:
        return np.zeros(0), max(hop, 1)
    starts = np.arange(0, len(samples) - window, hop)
    windows = sliding_window_view(samples, window)
    energy = np.empty(len(starts))
    for lo in range(0, len(starts), _RMS_CHUNK):
        chunk = windows[starts[lo:lo + _RMS_CHUNK]]
        energy[lo:lo + len(chunk)] = np.sqrt(np.mean(chunk ** 2, axis=1))
    return energy, hop


def amplitude_envelope(samples: np.ndarray, sr: int, block_seconds: float = 0.01) -> tuple[np.ndarray, int]:
    """Mean absolute amplitude over consecutive blocks (last one may be short).

    Returns ``(envelope, block_size)``.
    """
    samples = np.asarray(samples, dtype=np.float64).ravel()
    block = max(1, int(np.floor(sr * block_seconds)))
    if len(samples) == 0:
        return np.zeros(0), block
    starts = np.arange(0, len(samples), block)
    sums = np.add.reduceat(np.abs(samples), starts)
    counts = np.minimum(block, len(samples) - starts)
    return sums / counts, block
