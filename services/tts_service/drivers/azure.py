import time
from pathlib import Path
from typing import Any
from xml.sax.saxutils import escape

import aiohttp

from shared.exceptions import SpeechSynthesisError
from shared.models import SynthesisResult
from shared.utils import ensure_directory, setup_logging

from .base import TTSEngine, estimate_duration_ms

logger = setup_logging("azure-tts")


class AzureTTSEngine(TTSEngine):
    """Azure Cognitive Services TTS implementation."""

    name = "azure"

    def __init__(self, api_key: str | None, region: str, voice: str, timeout: int = 300):
        self.api_key = api_key
        self.region = region
        self.voice = voice
        self.endpoint = f"https://{region}.tts.speech.microsoft.com/cognitiveservices/v1"
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    def is_configured(self) -> bool:
        return bool(self.api_key and self.region)

    async def synthesize(self, text: str, output_path: str | Path, **kwargs: Any) -> SynthesisResult:
        if not self.is_configured():
            raise SpeechSynthesisError("Azure Speech is not configured. Set AZURE_SPEECH_KEY.")

        start_time = time.time()
        voice = kwargs.get("voice") or self.voice
        headers = {
            "Ocp-Apim-Subscription-Key": self.api_key,
            "Content-Type": "application/ssml+xml",
            "X-Microsoft-OutputFormat": "audio-16khz-32kbitrate-mono-mp3",
            "User-Agent": "season-highlights",
        }
        ssml = self.build_ssml(text, voice)

        async with (
            aiohttp.ClientSession(timeout=self.timeout) as session,
            session.post(self.endpoint, data=ssml.encode("utf-8"), headers=headers) as resp,
        ):
            if resp.status != 200:
                raise SpeechSynthesisError(f"Azure TTS failed: {resp.status} {await resp.text()}")
            audio_data = await resp.read()

        target = Path(output_path)
        ensure_directory(target.parent)
        target.write_bytes(audio_data)

        logger.info(
            f"Synthesized {len(text)} chars with {voice} in {time.time() - start_time:.2f}s"
        )
        return SynthesisResult(audio_file_path=str(target), duration_ms=estimate_duration_ms(text))

    @staticmethod
    def build_ssml(text: str, voice: str) -> str:
        locale = AzureTTSEngine._derive_language_from_voice(voice)
        return (
            f"<speak version='1.0' xmlns='http://www.w3.org/2001/10/synthesis' xml:lang='{locale}'>"
            f"<voice name='{voice}'>{escape(text)}</voice>"
            f"</speak>"
        )

    @staticmethod
    def _derive_language_from_voice(voice: str) -> str:
        parts = voice.split("-")
        if len(parts) >= 2:
            return "-".join(parts[:2])
        return "en-US"
