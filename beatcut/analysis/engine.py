"""Analysis orchestrator - renders, extracts features, picks peaks, assigns tempo."""

import logging
import time
from enum import Enum

import numpy as np

from beatcut.analysis.detectors import get_detector
from beatcut.analysis.models import (
    AnalysisResult,
    AnalyzerConfiguration,
    AudioBuffer,
    Beat,
    BeatMarker,
)
from beatcut.analysis.peaks import cap_candidates
from beatcut.analysis.tempo import assign_tempo, average_tempo
from beatcut.audio.loader import load_audio
from beatcut.audio.preprocessing import render
from beatcut.config import settings

logger = logging.getLogger(__name__)


class AnalyzerState(str, Enum):
    IDLE = "idle"
    RENDERING = "rendering"
    FEATURE_EXTRACTION = "feature_extraction"
    PEAK_PICKING = "peak_picking"
    TEMPO_ASSIGNMENT = "tempo_assignment"
    DONE = "done"


def empty_result(
    config: AnalyzerConfiguration,
    duration: float = 0.0,
    sample_rate: int = 0,
    channels: int = 0,
    processing_time: float = 0.0,
) -> AnalysisResult:
    """Zero-confidence result used for silent, empty or too-short input."""
    return AnalysisResult(
        beat_count=0,
        average_tempo=int(round(settings.default_tempo)),
        confidence=0.0,
        beats=(),
        duration=duration,
        sample_rate=sample_rate,
        algorithm=config.algorithm,
        sensitivity=config.sensitivity,
        channels=channels,
        processing_time=processing_time,
    )


def beat_markers(result: AnalysisResult) -> list[BeatMarker]:
    """Cut points for the video cutter (timestamps only)."""
    return [BeatMarker(id=f"beat-{i}", time=b.timestamp) for i, b in enumerate(result.beats)]


class AnalysisEngine:
    """Runs one offline beat analysis per call.

    Each call is a fresh, strictly sequential pipeline. The only state kept
    between calls is ``beats`` (the last beat list) and ``state``.
    """

    def __init__(self, config: AnalyzerConfiguration | None = None):
        if config is None:
            config = AnalyzerConfiguration(
                algorithm=settings.default_algorithm,
                sensitivity=settings.default_sensitivity,
            )
        self.config = config
        self.state = AnalyzerState.IDLE
        self.beats: list[Beat] = []

    def set_sensitivity(self, value: float) -> None:
        self.config = AnalyzerConfiguration(algorithm=self.config.algorithm, sensitivity=value)

    def set_algorithm(self, algorithm) -> None:
        self.config = AnalyzerConfiguration(algorithm=algorithm, sensitivity=self.config.sensitivity)
        logger.info(f"Algorithm set to: {self.config.algorithm.value}")

    def analyze_file(self, file_path: str, config: AnalyzerConfiguration | None = None) -> AnalysisResult:
        """Decode and analyze an audio file. Decode errors propagate."""
        buffer = load_audio(file_path, sr=settings.sample_rate, mono=settings.mono)
        return self.analyze_buffer(buffer, config)

    def analyze_audio(
        self,
        audio: np.ndarray,
        sr: int = 44100,
        config: AnalyzerConfiguration | None = None,
    ) -> AnalysisResult:
        """Analyze pre-loaded samples (1-D mono or ``(channels, samples)``)."""
        return self.analyze_buffer(AudioBuffer(samples=audio, sample_rate=sr), config)

    def analyze_buffer(self, buffer: AudioBuffer, config: AnalyzerConfiguration | None = None) -> AnalysisResult:
        config = config or self.config
        detector = get_detector(config.algorithm)
        started = time.perf_counter()
        logger.info(f"Analyzing {buffer.duration:.1f}s of audio at {buffer.sample_rate}Hz "
                    f"(algorithm={config.algorithm.value}, sensitivity={config.sensitivity})")

        if buffer.length == 0 or buffer.sample_rate <= 0:
            logger.info("  Empty input; returning empty result")
            self.beats = []
            self.state = AnalyzerState.DONE
            return empty_result(config, buffer.duration, buffer.sample_rate, buffer.channels,
                                time.perf_counter() - started)

        # Step 1: Rendering (filter errors propagate to the caller)
        self.state = AnalyzerState.RENDERING
        logger.info(f"Step 1: Rendering ({detector.filter_spec.kind})")
        rendered = render(buffer, detector.filter_spec)

        # Step 2: Feature extraction
        self.state = AnalyzerState.FEATURE_EXTRACTION
        logger.info("Step 2: Feature extraction")
        feature = detector.extract_feature(rendered)
        logger.info(f"  {len(feature)} feature frames")

        # Step 3: Peak picking
        self.state = AnalyzerState.PEAK_PICKING
        logger.info("Step 3: Peak picking")
        onsets = detector.pick_peaks(feature, config.sensitivity)
        raw_count = len(onsets)
        onsets = cap_candidates(onsets, settings.max_beats)
        logger.info(f"  {raw_count} onsets found, {len(onsets)} kept")

        # Step 4: Tempo assignment
        self.state = AnalyzerState.TEMPO_ASSIGNMENT
        logger.info("Step 4: Tempo assignment")
        if len(onsets) < max(settings.min_beats, 1):
            self.beats = []
            self.state = AnalyzerState.DONE
            return empty_result(config, buffer.duration, buffer.sample_rate, buffer.channels,
                                time.perf_counter() - started)

        beats = assign_tempo(onsets)
        avg = average_tempo(beats, settings.default_tempo)
        confidence = float(sum(b.confidence for b in beats) / len(beats))

        self.beats = beats
        self.state = AnalyzerState.DONE
        elapsed = time.perf_counter() - started
        logger.info(f"Analysis complete: {len(beats)} beats, {avg} BPM, "
                    f"confidence={confidence:.2f} ({elapsed * 1000:.0f} ms)")

        return AnalysisResult(
            beat_count=len(beats),
            average_tempo=avg,
            confidence=confidence,
            beats=tuple(beats),
            duration=buffer.duration,
            sample_rate=buffer.sample_rate,
            algorithm=config.algorithm,
            sensitivity=config.sensitivity,
            channels=buffer.channels,
            processing_time=elapsed,
        )
