"""
Speech-to-text collaborators for recitation audio.

- WhisperAPITranscriber: OpenAI-compatible /audio/transcriptions endpoint (requests).
- LocalWhisperTranscriber: openai-whisper model on this machine (optional extra).

Both take one complete audio blob (a recorded chunk or a whole recitation)
and return plain Arabic text. Failures surface as RecitationServiceError
subclasses so the API can tell "not configured" from "rejected" from "broken".
"""
import logging
import os
import tempfile
import threading
from typing import Any, Dict, Optional

import requests

from core.errors import (
    PermissionDeniedError,
    ServiceUnavailableError,
    TranscriptionFailedError,
    UnsupportedEnvironmentError,
)

logger = logging.getLogger(__name__)

NOT_CONFIGURED_MESSAGE = (
    "OpenAI API key is not configured. Set OPENAI_API_KEY in your environment "
    "to enable server-side Whisper."
)


def determine_file_name(filename: Optional[str], content_type: Optional[str]) -> str:
    """Upload name for the audio: keep a real name, else derive chunk.<ext> from the MIME type."""
    if filename and filename != "blob":
        return filename
    if content_type and "/" in content_type:
        extension = content_type.split("/", 1)[1].split(";", 1)[0].strip()
        if extension:
            return f"chunk.{extension}"
    return "chunk.wav"


def transcript_from_payload(payload: Dict[str, Any]) -> str:
    """`text` from a Whisper JSON response, or the joined segment texts."""
    if not isinstance(payload, dict):
        raise TranscriptionFailedError("Whisper API returned an unexpected JSON payload.")
    text = payload.get("text")
    if text is None:
        segments = payload.get("segments") or []
        text = " ".join((s.get("text") or "").strip() for s in segments)
    return (text or "").strip()


class WhisperAPITranscriber:
    """Hosted Whisper (or any OpenAI-compatible server) over HTTP."""

    engine = "openai"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "whisper-1",
        timeout: float = 30.0,
    ):
        self.api_key = (api_key or "").strip()
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def status(self) -> Dict[str, Any]:
        if not self.enabled:
            return {"enabled": False, "reason": "OpenAI API key is not configured on the server."}
        return {"enabled": True, "model": self.model}

    def transcribe(self, audio: bytes, filename: str = "chunk.wav", content_type: str = "audio/wav") -> str:
        if not self.enabled:
            raise ServiceUnavailableError(NOT_CONFIGURED_MESSAGE)
        try:
            response = requests.post(
                f"{self.base_url}/audio/transcriptions",
                headers={"Authorization": f"Bearer {self.api_key}"},
                files={"file": (filename, audio, content_type or "audio/wav")},
                data={
                    "model": self.model,
                    "language": "ar",
                    "temperature": "0",
                    "response_format": "json",
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("Whisper API unreachable: %s", e)
            raise ServiceUnavailableError(f"Transcription service unreachable: {e}") from e

        if response.status_code in (401, 403):
            raise PermissionDeniedError("Transcription service rejected the configured API key.")
        if response.status_code == 429 or response.status_code >= 500:
            logger.warning("Whisper API unavailable: HTTP %d", response.status_code)
            raise ServiceUnavailableError(f"Transcription service unavailable (HTTP {response.status_code}).")
        if not response.ok:
            logger.warning("Whisper API call failed: HTTP %d %s", response.status_code, response.text[:200])
            raise TranscriptionFailedError(f"Whisper API call failed (HTTP {response.status_code}).")
        try:
            payload = response.json()
        except ValueError as e:
            raise TranscriptionFailedError("Whisper API returned a non-JSON response.") from e
        return transcript_from_payload(payload)


class LocalWhisperTranscriber:
    """
    openai-whisper running in-process. The model loads on first use and
    inference is serialized with a lock (one model, one GPU/CPU).
    """

    engine = "local"

    def __init__(self, model_name: str = "base", device: Optional[str] = None):
        self.model_name = model_name
        self.device = device
        self._model = None
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return True

    def status(self) -> Dict[str, Any]:
        return {"enabled": True, "model": self.model_name}

    def _load_model(self):
        try:
            import whisper
        except ImportError as e:
            raise UnsupportedEnvironmentError(
                "Local transcription needs openai-whisper; install the 'local' extra."
            ) from e
        logger.info("Loading Whisper model %s", self.model_name)
        return whisper.load_model(self.model_name, device=self.device)

    def transcribe(self, audio: bytes, filename: str = "chunk.wav", content_type: str = "audio/wav") -> str:
        suffix = os.path.splitext(filename or "")[1] or ".wav"
        with self._lock:
            if self._model is None:
                self._model = self._load_model()
            with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as f:
                f.write(audio)
                path = f.name
            try:
                result = self._model.transcribe(path, language="ar", temperature=0)
            except FileNotFoundError as e:
                # whisper shells out to ffmpeg for decoding
                raise UnsupportedEnvironmentError("ffmpeg is required to decode audio for local Whisper.") from e
            except RuntimeError as e:
                raise TranscriptionFailedError(f"Local Whisper failed to decode audio: {e}") from e
            finally:
                os.remove(path)
        return (result.get("text") or "").strip()


def build_transcriber(
    backend: str = "openai",
    api_key: str = "",
    base_url: str = "https://api.openai.com/v1",
    model: str = "whisper-1",
    timeout: float = 30.0,
):
    """Transcriber for the configured backend ("openai" or "local")."""
    if backend == "local":
        return LocalWhisperTranscriber(model_name=model)
    if backend != "openai":
        raise ValueError(f"Unknown TRANSCRIBE_BACKEND: {backend!r}")
    return WhisperAPITranscriber(api_key=api_key, base_url=base_url, model=model, timeout=timeout)
