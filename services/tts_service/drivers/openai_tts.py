from pathlib import Path
from typing import Any, ClassVar

from openai import AsyncOpenAI

from shared.exceptions import SpeechSynthesisError
from shared.models import SynthesisResult
from shared.utils import ensure_directory

from .base import TTSEngine, estimate_duration_ms


class OpenAITTSEngine(TTSEngine):
    """OpenAI TTS implementation using their text-to-speech API."""

    SUPPORTED_MODELS: ClassVar[list[str]] = ["tts-1", "tts-1-hd"]
    SUPPORTED_VOICES: ClassVar[list[str]] = ["alloy", "echo", "fable", "onyx", "nova", "shimmer"]

    name = "openai"
    # The API rejects input above 4096 characters
    max_chars_per_chunk = 4000

    def __init__(self, client: AsyncOpenAI | None, voice: str = "nova", model: str = "tts-1-hd"):
        """
        Initialize OpenAI TTS engine.

        Args:
            client: Async OpenAI client, or None when no API key is configured
            voice: Voice to use (alloy, echo, fable, onyx, nova, shimmer)
            model: TTS model to use ("tts-1" or "tts-1-hd")
        """
        self.client = client
        self.voice = voice if voice in self.SUPPORTED_VOICES else "nova"
        self.model = model if model in self.SUPPORTED_MODELS else "tts-1-hd"

    def is_configured(self) -> bool:
        return self.client is not None

    async def synthesize(self, text: str, output_path: str | Path, **kwargs: Any) -> SynthesisResult:
        if self.client is None:
            raise SpeechSynthesisError("OpenAI TTS is not configured. Set OPENAI_API_KEY.")
        if len(text) > 4096:
            raise SpeechSynthesisError(f"Text of {len(text)} chars exceeds the OpenAI TTS limit")

        try:
            response = await self.client.audio.speech.create(
                model=self.model,
                voice=kwargs.get("voice") or self.voice,
                input=text,
                response_format="mp3",
            )
        except Exception as e:
            raise SpeechSynthesisError(f"OpenAI TTS synthesis failed: {e!s}") from e

        target = Path(output_path)
        ensure_directory(target.parent)
        target.write_bytes(response.content)

        return SynthesisResult(audio_file_path=str(target), duration_ms=estimate_duration_ms(text))
