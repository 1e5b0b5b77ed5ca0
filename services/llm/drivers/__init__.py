"""LLM driver implementations."""

from .anthropic_driver import AnthropicLLMDriver
from .base import LLMDriver
from .openai_driver import OpenAILLMDriver

__all__ = [
    "AnthropicLLMDriver",
    "LLMDriver",
    "OpenAILLMDriver",
]
