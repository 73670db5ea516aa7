"""Shared test fixtures for beat analysis tests."""

import numpy as np
import pytest
from fastapi.testclient import TestClient

from beatcut.main import app

SR = 44100


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


def click_times(bpm: float, duration_seconds: float, offset: float = 0.25) -> np.ndarray:
    """Onset times of the clicks written by :func:`generate_click_track`."""
    return np.arange(offset, duration_seconds - 0.1, 60.0 / bpm)


def generate_click_track(
    bpm: float = 120,
    duration_seconds: float = 10.0,
    sr: int = SR,
    offset: float = 0.25,
    amplitudes: list[float] | None = None,
) -> np.ndarray:
    """Generate a synthetic click track of sharp, exponentially decaying pulses.

    Clicks start at ``offset`` seconds and repeat every ``60 / bpm`` seconds.
    ``amplitudes`` (cycled) sets each click's peak level.

    Returns mono float32 audio at the given sample rate.
    """
    n_samples = int(duration_seconds * sr)
    audio = np.zeros(n_samples, dtype=np.float32)

    click_duration = 0.01  # 10ms click
    click_samples = int(click_duration * sr)
    t_click = np.arange(click_samples) / sr
    click = np.exp(-t_click * 400)

    for k, t in enumerate(click_times(bpm, duration_seconds, offset)):
        amplitude = amplitudes[k % len(amplitudes)] if amplitudes else 1.0
        sample_pos = int(round(t * sr))
        end = min(sample_pos + click_samples, n_samples)
        audio[sample_pos:end] += click[:end - sample_pos] * amplitude

    return audio


@pytest.fixture
def click_120():
    """10 s of clicks at 120 BPM (20 clicks)."""
    return generate_click_track(bpm=120, duration_seconds=10)


@pytest.fixture
def silence():
    """5 s of digital silence."""
    return np.zeros(5 * SR, dtype=np.float32)
