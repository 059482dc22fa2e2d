"""
Failures of the external collaborators (transcription service, audio capture).

The alignment/scoring engine itself never raises for bad text; only these
outer errors propagate, each with a distinguishable `kind` for the caller.
"""


class RecitationServiceError(Exception):
    """Base class; `kind` is the machine-readable error kind sent to clients."""
    kind = "internal_error"
    http_status = 500

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__doc__ or self.kind)
        self.message = message or str(self.args[0])

    def to_dict(self) -> dict:
        return {"error": self.message, "kind": self.kind}


class ServiceUnavailableError(RecitationServiceError):
    """Transcription service is not configured or cannot be reached."""
    kind = "service_unavailable"
    http_status = 503


class PermissionDeniedError(RecitationServiceError):
    """Access was refused (microphone permission, rejected API credentials)."""
    kind = "permission_denied"
    http_status = 403


class UnsupportedEnvironmentError(RecitationServiceError):
    """The runtime lacks something required (audio APIs, local Whisper install)."""
    kind = "unsupported_environment"
    http_status = 501


class TranscriptionFailedError(RecitationServiceError):
    """The transcription service answered with an error."""
    kind = "transcription_failed"
    http_status = 502


ERROR_KINDS = {
    cls.kind: cls
    for cls in (ServiceUnavailableError, PermissionDeniedError, UnsupportedEnvironmentError, TranscriptionFailedError)
}


def error_from_kind(kind: str, message: str = "") -> RecitationServiceError:
    """Rebuild an error reported by a client (e.g. a microphone failure on the device)."""
    return ERROR_KINDS.get(kind, RecitationServiceError)(message)
