"""Tests for rendering filters, upload validation and file loading."""

import io

import numpy as np
import pytest
import soundfile as sf

from beatcut.analysis.models import AudioBuffer
from beatcut.audio.loader import load_audio
from beatcut.audio.preprocessing import FilterSpec, band_pass_filter, low_pass_filter, render
from beatcut.audio.validation import is_format_supported, validate_audio_upload
from beatcut.errors import AudioDecodeError, RenderError, UnsupportedAudioError

SR = 44100


def _sine(freq, seconds=1.0, sr=SR):
    t = np.arange(int(seconds * sr)) / sr
    return np.sin(2 * np.pi * freq * t)


def _rms(x):
    return float(np.sqrt(np.mean(np.square(x))))


def test_low_pass_attenuates_highs():
    low = low_pass_filter(_sine(50), SR, cutoff=200)
    high = low_pass_filter(_sine(5000), SR, cutoff=200)

    assert _rms(low[SR // 2:]) > 0.6
    assert _rms(high[SR // 2:]) < 0.01


def test_band_pass_keeps_mid_band():
    mid = band_pass_filter(_sine(200), SR, 20, 1000)
    sub = band_pass_filter(_sine(2), SR, 20, 1000)
    top = band_pass_filter(_sine(10000), SR, 20, 1000)

    assert _rms(mid[SR // 2:]) > _rms(sub[SR // 2:])
    assert _rms(mid[SR // 2:]) > _rms(top[SR // 2:])


def test_render_preserves_shape_and_rate():
    samples = np.stack([_sine(100, 0.5), _sine(3000, 0.5)])
    buffer = AudioBuffer(samples=samples, sample_rate=SR)

    rendered = render(buffer, FilterSpec.low_pass(200))

    assert rendered.samples.shape == buffer.samples.shape
    assert rendered.sample_rate == SR
    assert rendered is not buffer
    assert render(buffer, FilterSpec.none()) is buffer


def test_render_rejects_bad_cutoffs():
    buffer = AudioBuffer(samples=np.ones(1000), sample_rate=300)

    with pytest.raises(RenderError):
        render(buffer, FilterSpec.low_pass(200))
    with pytest.raises(RenderError):
        render(buffer, FilterSpec.band_pass(0, 100))
    with pytest.raises(RenderError):
        render(buffer, FilterSpec(kind="notch", low=50))


def test_filter_spec_constructors():
    assert FilterSpec.none().kind == "none"
    assert FilterSpec.low_pass(200) == FilterSpec(kind="lowpass", high=200)
    assert FilterSpec.band_pass(20, 1000) == FilterSpec(kind="bandpass", low=20, high=1000)


def test_audio_buffer_is_immutable_copy():
    source = np.zeros(10, dtype=np.float32)
    buffer = AudioBuffer(samples=source, sample_rate=SR)
    source[0] = 1.0

    assert buffer.channels == 1
    assert buffer.length == 10
    assert buffer.channel(0)[0] == 0.0
    with pytest.raises(ValueError):
        buffer.samples[0, 0] = 1.0


def test_supported_formats():
    assert is_format_supported("audio/wav")
    assert is_format_supported("AUDIO/MPEG")
    assert not is_format_supported("video/mp4")
    assert not is_format_supported(None)


def test_validate_audio_upload():
    validate_audio_upload("audio/ogg", 1024)

    with pytest.raises(UnsupportedAudioError, match="Unsupported audio format"):
        validate_audio_upload("application/pdf", 10)
    with pytest.raises(UnsupportedAudioError, match="File size too large"):
        validate_audio_upload("audio/wav", 2048, max_size=1024)


def test_load_audio_keeps_channels(tmp_path):
    stereo = np.stack([_sine(440, 0.5), np.zeros(SR // 2)], axis=1) * 0.5
    path = tmp_path / "stereo.wav"
    sf.write(str(path), stereo, SR)

    buffer = load_audio(str(path), sr=SR)

    assert buffer.channels == 2
    assert buffer.sample_rate == SR
    assert buffer.duration == pytest.approx(0.5)
    assert np.allclose(buffer.channel(1), 0.0)


def test_load_audio_from_buffer():
    data = io.BytesIO()
    sf.write(data, _sine(440, 0.25) * 0.5, SR, format="WAV")
    data.seek(0)

    buffer = load_audio(data, sr=SR, mono=True)

    assert buffer.channels == 1
    assert buffer.length == SR // 4


def test_load_audio_decode_error():
    with pytest.raises(AudioDecodeError):
        load_audio(io.BytesIO(b"garbage"), sr=SR)
