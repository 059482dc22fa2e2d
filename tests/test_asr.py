"""
Unit tests for the transcription collaborators and error kinds.
Uses mocks; no network calls and no Whisper model load.
"""

import unittest
from unittest.mock import MagicMock, patch

import requests

from core.asr import (
    LocalWhisperTranscriber,
    WhisperAPITranscriber,
    build_transcriber,
    determine_file_name,
    transcript_from_payload,
)
from core.errors import (
    PermissionDeniedError,
    RecitationServiceError,
    ServiceUnavailableError,
    TranscriptionFailedError,
    UnsupportedEnvironmentError,
    error_from_kind,
)


def _response(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    response.text = "error body"
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload or {}
    return response


class TestHelpers(unittest.TestCase):

    def test_determine_file_name(self):
        self.assertEqual(determine_file_name("recitation.m4a", "audio/mp4"), "recitation.m4a")
        self.assertEqual(determine_file_name("blob", "audio/webm;codecs=opus"), "chunk.webm")
        self.assertEqual(determine_file_name(None, "audio/ogg"), "chunk.ogg")
        self.assertEqual(determine_file_name(None, None), "chunk.wav")

    def test_transcript_from_payload(self):
        self.assertEqual(transcript_from_payload({"text": "  بسم الله "}), "بسم الله")
        payload = {"segments": [{"text": " بسم"}, {"text": "الله "}]}
        self.assertEqual(transcript_from_payload(payload), "بسم الله")
        self.assertEqual(transcript_from_payload({}), "")
        with self.assertRaises(TranscriptionFailedError):
            transcript_from_payload(["بسم الله"])

    def test_build_transcriber(self):
        self.assertIsInstance(build_transcriber("openai", api_key="k"), WhisperAPITranscriber)
        self.assertIsInstance(build_transcriber("local", model="tiny"), LocalWhisperTranscriber)
        with self.assertRaises(ValueError):
            build_transcriber("bogus")


class TestWhisperAPITranscriber(unittest.TestCase):

    def test_not_configured(self):
        transcriber = WhisperAPITranscriber(api_key="")
        self.assertFalse(transcriber.enabled)
        self.assertFalse(transcriber.status()["enabled"])
        with patch("core.asr.requests.post") as post:
            with self.assertRaises(ServiceUnavailableError):
                transcriber.transcribe(b"audio")
            post.assert_not_called()

    @patch("core.asr.requests.post")
    def test_success(self, post):
        post.return_value = _response(200, {"text": " بسم الله "})
        transcriber = WhisperAPITranscriber(api_key="sk-test", base_url="https://example.test/v1/")
        self.assertEqual(transcriber.status(), {"enabled": True, "model": "whisper-1"})
        self.assertEqual(transcriber.transcribe(b"audio", "chunk.webm", "audio/webm"), "بسم الله")

        args, kwargs = post.call_args
        self.assertEqual(args[0], "https://example.test/v1/audio/transcriptions")
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer sk-test")
        self.assertEqual(kwargs["data"]["language"], "ar")
        self.assertEqual(kwargs["files"]["file"][0], "chunk.webm")

    @patch("core.asr.requests.post")
    def test_error_kinds(self, post):
        transcriber = WhisperAPITranscriber(api_key="sk-test")
        cases = [
            (_response(401), PermissionDeniedError),
            (_response(429), ServiceUnavailableError),
            (_response(503), ServiceUnavailableError),
            (_response(400), TranscriptionFailedError),
            (_response(200, ValueError("no json")), TranscriptionFailedError),
        ]
        for response, error in cases:
            post.return_value = response
            with self.assertRaises(error):
                transcriber.transcribe(b"audio")

    @patch("core.asr.requests.post")
    def test_network_failure(self, post):
        post.side_effect = requests.ConnectionError("refused")
        with self.assertRaises(ServiceUnavailableError) as ctx:
            WhisperAPITranscriber(api_key="sk-test").transcribe(b"audio")
        self.assertEqual(ctx.exception.to_dict()["kind"], "service_unavailable")


class TestLocalWhisperTranscriber(unittest.TestCase):

    def test_transcribe_with_loaded_model(self):
        transcriber = LocalWhisperTranscriber(model_name="tiny")
        model = MagicMock()
        model.transcribe.return_value = {"text": " قل هو الله احد "}
        transcriber._model = model
        self.assertEqual(transcriber.transcribe(b"audio", "chunk.wav"), "قل هو الله احد")
        self.assertEqual(model.transcribe.call_args.kwargs["language"], "ar")

    def test_decode_failure(self):
        transcriber = LocalWhisperTranscriber()
        transcriber._model = MagicMock()
        transcriber._model.transcribe.side_effect = RuntimeError("bad audio")
        with self.assertRaises(TranscriptionFailedError):
            transcriber.transcribe(b"audio")

    def test_missing_ffmpeg(self):
        transcriber = LocalWhisperTranscriber()
        transcriber._model = MagicMock()
        transcriber._model.transcribe.side_effect = FileNotFoundError("ffmpeg")
        with self.assertRaises(UnsupportedEnvironmentError):
            transcriber.transcribe(b"audio")


class TestErrorKinds(unittest.TestCase):

    def test_http_status_per_kind(self):
        self.assertEqual(ServiceUnavailableError("x").http_status, 503)
        self.assertEqual(PermissionDeniedError("x").http_status, 403)
        self.assertEqual(UnsupportedEnvironmentError("x").http_status, 501)
        self.assertEqual(TranscriptionFailedError("x").http_status, 502)

    def test_error_from_kind(self):
        error = error_from_kind("permission_denied", "Microphone access was denied.")
        self.assertIsInstance(error, PermissionDeniedError)
        self.assertEqual(error.to_dict(), {"error": "Microphone access was denied.", "kind": "permission_denied"})
        self.assertIs(type(error_from_kind("something_else", "x")), RecitationServiceError)

    def test_default_message(self):
        error = UnsupportedEnvironmentError()
        self.assertTrue(error.message)
        self.assertEqual(error.kind, "unsupported_environment")


if __name__ == "__main__":
    unittest.main()
