"""
Exception hierarchy shared by the highlights services.
"""

from __future__ import annotations


class HighlightsError(Exception):
    """Base exception for all pipeline errors."""


class ValidationError(HighlightsError):
    """Raised when job inputs are missing or unusable."""


class SubtitleFormatError(HighlightsError, ValueError):
    """Raised when a subtitle timestamp or block cannot be parsed."""


class MediaToolError(HighlightsError):
    """Raised when ffmpeg or ffprobe exits with a non-zero status."""

    def __init__(
        self,
        message: str,
        command: list[str] | None = None,
        return_code: int | None = None,
        stderr: str | None = None,
    ) -> None:
        super().__init__(message)
        self.command = command or []
        self.return_code = return_code
        self.stderr = stderr or ""

    @property
    def debug_info(self) -> dict[str, object]:
        return {
            "message": str(self),
            "command": " ".join(self.command),
            "return_code": self.return_code,
            "stderr_tail": self.stderr[-2000:],
        }


class LLMProviderError(HighlightsError):
    """Raised when an LLM call fails after retries or returns unusable output."""


class SpeechSynthesisError(HighlightsError):
    """Raised when a TTS backend cannot produce audio."""


class JobNotFoundError(HighlightsError):
    """Raised when a job id is unknown to the store."""

    def __init__(self, job_id: str) -> None:
        super().__init__(f"Job {job_id} not found")
        self.job_id = job_id


class JobStateError(HighlightsError):
    """Raised when an operation is not allowed in the job's current status."""
