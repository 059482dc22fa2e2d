"""
Caller-side state for one live recitation.

The engine is stateless; this is the layer that owns session state:
- accumulates the transcript across audio chunks,
- serializes chunk processing (single flight) so chunk N+1 never overwrites
  chunk N's result out of order,
- keeps the latest smoothed word feedback and replaces the stored summary
  wholesale on each new result.
"""
import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

from core.errors import (
    PermissionDeniedError,
    RecitationServiceError,
    TranscriptionFailedError,
    error_from_kind,
)
from core.scoring import get_word_feedback
from core.summary import build_analysis_profile, create_session_summary
from core.types import EngineConfig, SessionSummary
from streaming.feedback_smoothing import WordFeedbackSmoother

logger = logging.getLogger(__name__)

IDLE = "idle"
LISTENING = "listening"
PROCESSING = "processing"
ERROR = "error"
PERMISSION_DENIED = "permission-denied"


class LiveRecitationSession:
    """
    Args:
        expected_text: Verse the student is reciting.
        transcriber: Object with transcribe(audio, filename, content_type) -> str
            and an `engine` name; None when only on-device transcripts arrive.
        ayah_id: Passed through to the summary.
        config: Engine tunables.
        smoothing_history: Windows kept by the word feedback smoother.
    """

    def __init__(
        self,
        expected_text: str,
        transcriber: Optional[Any] = None,
        ayah_id: Optional[str] = None,
        config: Optional[EngineConfig] = None,
        smoothing_history: int = 2,
    ):
        self.expected_text = (expected_text or "").strip()
        self.transcriber = transcriber
        self.ayah_id = ayah_id
        self.config = config
        self.status = IDLE
        self.error: Optional[Dict[str, str]] = None
        self.transcript = ""
        self.results: List[Dict[str, Any]] = []
        self.feedback: List[Dict[str, Any]] = []
        self.extras: List[Dict[str, Any]] = []
        self.summary: Optional[SessionSummary] = None
        self._smoother = WordFeedbackSmoother(history_size=smoothing_history)
        self._lock = asyncio.Lock()
        self._started_at = time.monotonic()

    def start(self) -> None:
        self._started_at = time.monotonic()
        self.status = LISTENING

    @property
    def elapsed_seconds(self) -> float:
        return round(time.monotonic() - self._started_at, 2)

    async def process_chunk(
        self,
        audio: bytes,
        filename: str = "chunk.wav",
        content_type: str = "audio/wav",
    ) -> Dict[str, Any]:
        """Transcribe one recorded chunk and fold it into the session."""
        async with self._lock:
            if self.transcriber is None:
                self._fail(RecitationServiceError("No transcription service configured for audio chunks."))
                return self.partial_result()
            self.status = PROCESSING
            t0 = time.perf_counter()
            try:
                loop = asyncio.get_running_loop()
                text = await loop.run_in_executor(
                    None, lambda: self.transcriber.transcribe(audio, filename, content_type)
                )
            except RecitationServiceError as e:
                self._fail(e)
                return self.partial_result({"total_ms": round((time.perf_counter() - t0) * 1000)})
            except Exception as e:
                logger.exception("Transcriber raised an unexpected error")
                self._fail(TranscriptionFailedError(f"Transcription failed: {e}"))
                return self.partial_result({"total_ms": round((time.perf_counter() - t0) * 1000)})
            latency_ms = round((time.perf_counter() - t0) * 1000)
            engine = getattr(self.transcriber, "engine", "on-device")
            return self._apply_transcript(text, engine, latency_ms)

    async def process_transcript(self, text: str) -> Dict[str, Any]:
        """Fold in text already transcribed on the device."""
        async with self._lock:
            return self._apply_transcript(text, "on-device", None)

    def _apply_transcript(self, text: str, engine: str, latency_ms: Optional[int]) -> Dict[str, Any]:
        text = (text or "").strip()
        if text:
            self.transcript = f"{self.transcript} {text}".strip()
        self.results.append({"text": text, "received_at": time.time()})

        feedback, self.extras = get_word_feedback(self.expected_text, self.transcript, self.config)
        self.feedback = self._smoother.update(feedback)
        self.summary = create_session_summary(
            self.transcript,
            self.expected_text,
            duration_seconds=self.elapsed_seconds,
            ayah_id=self.ayah_id,
            analysis=build_analysis_profile(engine, latency_ms),
            config=self.config,
        )
        self.status = LISTENING
        self.error = None
        return self.partial_result({"total_ms": latency_ms} if latency_ms is not None else None)

    def _fail(self, error: RecitationServiceError) -> None:
        logger.warning("Live recitation chunk failed (%s): %s", error.kind, error.message)
        self.status = PERMISSION_DENIED if isinstance(error, PermissionDeniedError) else ERROR
        self.error = error.to_dict()

    def report_capture_error(self, kind: str, message: str = "") -> Dict[str, str]:
        """Record a client-side capture failure (microphone denied, unsupported browser)."""
        error = error_from_kind(kind, message)
        self._fail(error)
        return self.error

    def partial_result(self, latency_ms: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "type": "partial_result",
            "status": self.status,
            "transcript": self.transcript,
            "word_feedback": self.feedback,
            "extras": self.extras,
            "latency_ms": latency_ms or {},
        }
        if self.error:
            payload["error"] = self.error
        return payload

    def final_result(self) -> Dict[str, Any]:
        """Summary of everything recited so far (built fresh if nothing arrived)."""
        summary = self.summary or create_session_summary(
            self.transcript,
            self.expected_text,
            duration_seconds=self.elapsed_seconds,
            ayah_id=self.ayah_id,
            config=self.config,
        )
        return {"type": "final_result", "result": summary.to_dict()}

    def reset(self) -> None:
        self.transcript = ""
        self.results = []
        self.feedback = []
        self.extras = []
        self.summary = None
        self.error = None
        self.status = IDLE
        self._smoother.reset()
        self._started_at = time.monotonic()
