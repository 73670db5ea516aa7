"""File upload endpoint for offline beat analysis."""

import asyncio
import logging
import os
import tempfile

from fastapi import APIRouter, File, Form, HTTPException, UploadFile

from beatcut.analysis.engine import AnalysisEngine, beat_markers
from beatcut.analysis.models import Algorithm, AnalyzerConfiguration
from beatcut.api.schemas import AnalysisResponse, result_to_response
from beatcut.audio.validation import validate_audio_upload
from beatcut.config import settings
from beatcut.errors import AudioDecodeError, UnsupportedAudioError

logger = logging.getLogger(__name__)

router = APIRouter()

MIME_SUFFIXES = {
    "audio/wav": ".wav",
    "audio/mpeg": ".mp3",
    "audio/mp3": ".mp3",
    "audio/ogg": ".ogg",
    "audio/aac": ".aac",
    "audio/m4a": ".m4a",
    "audio/webm": ".webm",
}


@router.post("/analyze", response_model=AnalysisResponse)
async def analyze_file(
    file: UploadFile = File(...),
    algorithm: Algorithm = Form(Algorithm.ONSET_FUSION),
    sensitivity: float = Form(1.0),
):
    """Find beats in an uploaded audio file."""
    content = await file.read()
    try:
        validate_audio_upload(
            file.content_type,
            len(content),
            max_size=settings.max_upload_mb * 1024 * 1024,
        )
    except UnsupportedAudioError as e:
        logger.warning(f"Rejected upload {file.filename!r}: {e}")
        raise HTTPException(400, str(e))

    suffix = MIME_SUFFIXES.get((file.content_type or "").lower(), "")
    tmp_path = None
    try:
        with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as tmp:
            tmp.write(content)
            tmp_path = tmp.name

        engine = AnalysisEngine(AnalyzerConfiguration(algorithm=algorithm, sensitivity=sensitivity))
        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, engine.analyze_file, tmp_path)
        return result_to_response(result, beat_markers(result))
    except AudioDecodeError as e:
        logger.warning(f"Could not decode {file.filename!r}: {e}")
        raise HTTPException(400, "Failed to load audio file")
    except Exception:
        logger.exception("Analysis failed")
        raise HTTPException(500, "Analysis failed")
    finally:
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
