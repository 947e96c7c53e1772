from typing import List, Optional
from romasub.models.transcript import SourceAttempt


class RomasubError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = 500
    title: str = "Transcription failed"

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details if details is not None else message

    def to_dict(self) -> dict:
        return {"error": self.message, "details": self.details}


class InputError(RomasubError):
    status_code = 400


class AuthError(RomasubError):
    status_code = 401


class SourceExhausted(RomasubError):
    """Every acquisition strategy failed for a video."""

    status_code = 502

    def __init__(self, attempts: List[SourceAttempt]):
        names = "/".join(a.source for a in attempts) or "none"
        last = attempts[-1].error if attempts else "no transcript source registered"
        super().__init__(f"Could not fetch captions ({names} all failed).", details=last)
        self.attempts = attempts


class InternalError(RomasubError):
    status_code = 500


class AssemblyError(InternalError):
    pass


class ConfigurationError(InternalError):
    pass


# Strategy- and pass-level failures. These are turned into tagged results and
# never reach the HTTP layer.

class CaptionUnavailable(Exception):
    pass


class TimedTextError(CaptionUnavailable):
    pass


class AudioDownloadError(Exception):
    pass


class TranscriptionError(Exception):
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class LanguageServiceError(Exception):
    pass
