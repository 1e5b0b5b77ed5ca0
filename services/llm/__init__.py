"""LLM providers for key moment selection and narration."""

from .factory import create_llm_driver

__all__ = ["create_llm_driver"]
