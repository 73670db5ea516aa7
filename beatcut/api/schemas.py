"""Pydantic response models for API."""

from pydantic import BaseModel


class BeatResponse(BaseModel):
    timestamp: float
    confidence: float
    tempo: int


class BeatMarkerResponse(BaseModel):
    id: str
    time: float


class AnalysisResponse(BaseModel):
    beat_count: int
    average_tempo: int
    confidence: float
    beats: list[BeatResponse]
    markers: list[BeatMarkerResponse] = []
    duration: float = 0.0
    sample_rate: int = 0
    algorithm: str = "onset"
    sensitivity: float = 1.0
    channels: int = 0
    processing_time: float = 0.0


# WebSocket message types

class OnsetMessage(BaseModel):
    type: str = "onset"
    time: float
    flux: float


class TempoMessage(BaseModel):
    type: str = "tempo"
    bpm: float
    confidence: float
    phase: float = 0.0


class ErrorMessage(BaseModel):
    type: str = "error"
    message: str


def result_to_response(result, markers=None) -> AnalysisResponse:
    """Convert an AnalysisResult (and optional markers) to its response model."""
    return AnalysisResponse(
        beat_count=result.beat_count,
        average_tempo=result.average_tempo,
        confidence=result.confidence,
        beats=[
            BeatResponse(timestamp=b.timestamp, confidence=b.confidence, tempo=b.tempo)
            for b in result.beats
        ],
        markers=[BeatMarkerResponse(id=m.id, time=m.time) for m in (markers or [])],
        duration=result.duration,
        sample_rate=result.sample_rate,
        algorithm=result.algorithm.value,
        sensitivity=result.sensitivity,
        channels=result.channels,
        processing_time=result.processing_time,
    )
