"""WebSocket endpoint for the live meter."""

import json
import logging

import numpy as np
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from beatcut.analysis.live import LiveMeter
from beatcut.api.schemas import ErrorMessage, OnsetMessage, TempoMessage
from beatcut.audio.stream import LiveSpectrumSource
from beatcut.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()


async def _handle_control(websocket: WebSocket, meter: LiveMeter, source: LiveSpectrumSource, text: str) -> None:
    try:
        message = json.loads(text)
    except json.JSONDecodeError:
        message = None
    if not isinstance(message, dict):
        await websocket.send_json(ErrorMessage(message="Invalid control message").model_dump())
        return

    kind = message.get("type")
    if kind == "sensitivity":
        try:
            value = float(message.get("value", 1.0))
        except (TypeError, ValueError):
            await websocket.send_json(ErrorMessage(message="Invalid sensitivity value").model_dump())
            return
        meter.set_sensitivity(value)
    elif kind == "stop":
        meter.reset()
        source.reset()
    else:
        await websocket.send_json(ErrorMessage(message=f"Unknown control message: {kind}").model_dump())


@router.websocket("/ws/live")
async def live_meter(websocket: WebSocket):
    """Live onset/tempo feedback via WebSocket.

    Protocol:
    - Client sends binary Float32 PCM chunks (mono, ``settings.sample_rate``),
      one chunk per playback tick
    - Client may send text control messages:
      ``{"type": "sensitivity", "value": S}`` or ``{"type": "stop"}``
    - Server sends JSON messages:
      - {"type": "onset", "time": T, "flux": F}
      - {"type": "tempo", "bpm": B, "confidence": C, "phase": P}
    """
    await websocket.accept()

    source = LiveSpectrumSource(
        sample_rate=settings.sample_rate,
        fft_size=settings.fft_size,
        smoothing_time_constant=settings.smoothing_time_constant,
        max_duration=settings.stream_buffer_seconds,
    )
    meter = LiveMeter(sample_rate=settings.sample_rate, fft_size=settings.fft_size)

    try:
        while True:
            message = await websocket.receive()
            if message.get("type") == "websocket.disconnect":
                break
            if message.get("text") is not None:
                await _handle_control(websocket, meter, source, message["text"])
                continue

            data = message.get("bytes") or b""
            n_samples = len(data) // 4
            if n_samples == 0:
                continue
            source.push(np.frombuffer(data[:n_samples * 4], dtype=np.float32))

            if meter.update(source):
                await websocket.send_json(OnsetMessage(
                    time=round(meter.last_onset_time, 3),
                    flux=meter.flux_history[-1],
                ).model_dump())
                estimate = meter.estimate()
                await websocket.send_json(TempoMessage(
                    bpm=round(estimate.tempo, 1),
                    confidence=round(estimate.confidence, 2),
                    phase=round(estimate.phase, 3),
                ).model_dump())

    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.exception("Live meter failed")
        try:
            await websocket.send_json(ErrorMessage(message=str(e)).model_dump())
        except Exception:
            pass
    finally:
        meter.dispose()
        source.reset()
