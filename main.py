"""
Quran recitation feedback API.

Transcription (hosted or local Whisper, or text from an on-device recognizer)
feeds the word-level recitation engine: align -> classify mistakes -> score ->
session summary. Live sessions stream chunks over /ws/recite.
"""
import asyncio
import logging
import time
from typing import Optional

import uvicorn
from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

import config
from core.asr import build_transcriber, determine_file_name
from core.errors import RecitationServiceError
from core.metrics import wer_cer
from core.summary import build_analysis_profile, create_session_summary
from streaming.websocket_server import build_ws_recite_handler

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Quran Recitation Feedback API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ENGINE_CONFIG = config.load_engine_config()
transcriber = build_transcriber(
    backend=config.TRANSCRIBE_BACKEND,
    api_key=config.OPENAI_API_KEY,
    base_url=config.OPENAI_BASE_URL,
    model=config.WHISPER_MODEL,
    timeout=config.TRANSCRIBE_TIMEOUT_SECONDS,
)
logger.info("Transcription backend: %s (%s)", config.TRANSCRIBE_BACKEND, config.WHISPER_MODEL)


class AnalyzeRequest(BaseModel):
    transcription: str = ""
    expected_text: str = ""
    duration_seconds: Optional[float] = None
    ayah_id: Optional[str] = None


@app.exception_handler(RecitationServiceError)
async def recitation_service_error_handler(request: Request, exc: RecitationServiceError):
    logger.warning("%s %s failed (%s): %s", request.method, request.url.path, exc.kind, exc.message)
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


def _summary_response(summary) -> dict:
    result = summary.to_dict()
    if summary.transcription:
        word_error, char_error = wer_cer(summary.expected_text, summary.transcription)
        result["wer"] = round(word_error, 4)
        result["cer"] = round(char_error, 4)
    else:
        result["wer"] = None
        result["cer"] = None
    return result


@app.get("/")
def health_check():
    return {
        "status": "ok",
        "message": "Quran Recitation Feedback API is running",
        "transcription_backend": getattr(transcriber, "engine", config.TRANSCRIBE_BACKEND),
    }


@app.get("/transcribe/status")
def transcription_status():
    return transcriber.status()


@app.post("/transcribe")
async def transcribe_recitation(
    audio: Optional[UploadFile] = File(None),
    mode: str = Form(""),
    expected_text: str = Form(""),
    ayah_id: Optional[str] = Form(None),
    duration_seconds: Optional[float] = Form(None),
):
    """
    Transcribe recorded audio. Live chunks (mode=live) and requests without an
    expected text only get the transcription; otherwise the full session summary.
    """
    if audio is None:
        raise HTTPException(status_code=400, detail="Audio file is required.")
    data = await audio.read()
    if not data:
        raise HTTPException(status_code=400, detail="Audio file is empty.")
    if len(data) > config.MAX_AUDIO_BYTES:
        raise HTTPException(
            status_code=413,
            detail=f"Audio file exceeds the {config.MAX_AUDIO_BYTES} byte limit.",
        )

    filename = determine_file_name(audio.filename, audio.content_type)
    content_type = audio.content_type or "audio/wav"

    t0 = time.perf_counter()
    loop = asyncio.get_running_loop()
    transcription = await loop.run_in_executor(
        None, lambda: transcriber.transcribe(data, filename, content_type)
    )
    latency_ms = round((time.perf_counter() - t0) * 1000)
    logger.info("Transcribed %d bytes in %d ms", len(data), latency_ms)

    expected_text = (expected_text or "").strip()
    if mode == "live" or not expected_text:
        return {"transcription": transcription}

    summary = create_session_summary(
        transcription,
        expected_text,
        duration_seconds=duration_seconds,
        ayah_id=ayah_id,
        analysis=build_analysis_profile(getattr(transcriber, "engine", "openai"), latency_ms),
        config=ENGINE_CONFIG,
    )
    return _summary_response(summary)


@app.post("/analyze")
def analyze_transcription(body: AnalyzeRequest):
    """Score text already transcribed by an on-device recognizer."""
    summary = create_session_summary(
        body.transcription,
        body.expected_text,
        duration_seconds=body.duration_seconds,
        ayah_id=body.ayah_id,
        analysis=build_analysis_profile("on-device"),
        config=ENGINE_CONFIG,
    )
    return _summary_response(summary)


_ws_recite_handler = build_ws_recite_handler(
    get_transcriber=lambda: transcriber,
    get_engine_config=lambda: ENGINE_CONFIG,
    smoothing_history=config.LIVE_SMOOTHING_HISTORY,
    receive_timeout=config.LIVE_RECEIVE_TIMEOUT_SECONDS,
)
app.websocket("/ws/recite")(_ws_recite_handler)


if __name__ == "__main__":
    uvicorn.run(app, host=config.HOST, port=config.PORT)
