"""TTS driver implementations"""

from .azure import AzureTTSEngine
from .base import TTSEngine
from .openai_tts import OpenAITTSEngine

__all__ = ["AzureTTSEngine", "OpenAITTSEngine", "TTSEngine"]
