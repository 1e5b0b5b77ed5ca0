"""Application-level Text-to-Speech service wrapper."""

from __future__ import annotations

from pathlib import Path

from services.tts_service.chunking import split_text_for_speech
from services.tts_service.drivers import AzureTTSEngine, OpenAITTSEngine, TTSEngine
from services.video.ffmpeg import FFmpegProcessor
from shared.config import ServiceConfig
from shared.enums import TTSProviderType
from shared.exceptions import SpeechSynthesisError
from shared.llm_clients import create_openai_client
from shared.models import SynthesisResult
from shared.utils import config as default_config, ensure_directory, remove_path, setup_logging

logger = setup_logging("tts-service")


def create_tts_engine(
    provider: TTSProviderType | str, settings: ServiceConfig | None = None
) -> TTSEngine:
    """Build the engine registered for ``provider``."""
    settings = settings or default_config
    provider = TTSProviderType(provider)

    if provider is TTSProviderType.AZURE:
        engine: TTSEngine = AzureTTSEngine(
            api_key=settings.get("azure_speech_key"),
            region=settings.get("azure_speech_region", "westeurope"),
            voice=settings.get("azure_speech_voice", "es-ES-ElviraNeural"),
        )
    else:
        client = None
        if settings.get("openai_api_key"):
            client = create_openai_client(api_key=settings.get("openai_api_key"))
        engine = OpenAITTSEngine(
            client,
            voice=settings.get("openai_tts_voice", "nova"),
            model=settings.get("openai_tts_model", "tts-1-hd"),
        )

    limit = settings.get_pipeline_value(f"tts.max_chars_per_chunk.{provider.value}")
    if limit:
        engine.max_chars_per_chunk = min(int(limit), engine.max_chars_per_chunk)
    return engine


class TTSService:
    """Synthesize arbitrarily long narration by chunking and re-joining audio."""

    def __init__(self, engine: TTSEngine, ffmpeg: FFmpegProcessor) -> None:
        self.engine = engine
        self.ffmpeg = ffmpeg

    async def synthesize_to_file(self, text: str, output_path: str | Path) -> SynthesisResult:
        chunks = split_text_for_speech(text, self.engine.max_chars_per_chunk)
        if not chunks:
            raise SpeechSynthesisError("Nothing to synthesize: narration text is empty")

        target = Path(output_path)
        ensure_directory(target.parent)
        logger.info(
            f"Synthesizing {len(text)} chars in {len(chunks)} chunk(s) with {self.engine.name}"
        )

        if len(chunks) == 1:
            return await self.engine.synthesize(chunks[0], target)

        chunk_paths: list[Path] = []
        try:
            total_ms = 0.0
            for i, chunk in enumerate(chunks):
                chunk_path = target.parent / f"tts_chunk_{i:03d}.{self.engine.output_format}"
                chunk_paths.append(chunk_path)
                result = await self.engine.synthesize(chunk, chunk_path)
                total_ms += result.duration_ms
                logger.info(f"Chunk {i + 1}/{len(chunks)} synthesized ({len(chunk)} chars)")

            await self.ffmpeg.concat_audio(chunk_paths, target)
        finally:
            for chunk_path in chunk_paths:
                remove_path(chunk_path)

        return SynthesisResult(audio_file_path=str(target), duration_ms=total_ms)
