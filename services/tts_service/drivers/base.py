from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from shared.models import SynthesisResult

WORDS_PER_MINUTE = 150
CHARS_PER_WORD = 5


def estimate_duration_ms(text: str) -> float:
    """Rough spoken duration at 150 words per minute, five characters per word."""
    return len(text) / CHARS_PER_WORD / WORDS_PER_MINUTE * 60 * 1000


class TTSEngine(ABC):
    """Abstract base class for TTS engines."""

    name: str = "tts"
    output_format: str = "mp3"
    max_chars_per_chunk: int = 4000

    @abstractmethod
    async def synthesize(self, text: str, output_path: str | Path, **kwargs: Any) -> SynthesisResult:
        """Synthesize ``text`` into ``output_path``. Returns the file path and duration in ms."""
        pass

    def is_configured(self) -> bool:
        return True
