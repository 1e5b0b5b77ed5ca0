"""Builders for OpenAI and Anthropic SDK clients.

Drivers and health checks obtain their clients here so credentials and base
URLs are resolved in one place.
"""

from __future__ import annotations

import os

from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from shared.utils import config


def create_openai_client(api_key: str | None = None, base_url: str | None = None) -> AsyncOpenAI:
    """
    Create a direct OpenAI client.

    Args:
        api_key: OpenAI API key (auto-detected if None)
        base_url: Alternate API base, e.g. a compatible proxy (auto-detected if None)

    Returns:
        Configured AsyncOpenAI client

    Raises:
        ValueError: If API key is not configured
    """
    api_key = api_key or config.get("openai_api_key") or os.getenv("OPENAI_API_KEY")
    base_url = base_url or config.get("openai_api_base")

    if not api_key:
        raise ValueError("OpenAI API key not configured. Set OPENAI_API_KEY environment variable.")

    return AsyncOpenAI(api_key=api_key, base_url=base_url)


def create_anthropic_client(api_key: str | None = None) -> AsyncAnthropic:
    """
    Create an async Anthropic client.

    Raises:
        ValueError: If API key is not configured
    """
    api_key = api_key or config.get("anthropic_api_key") or os.getenv("ANTHROPIC_API_KEY")

    if not api_key:
        raise ValueError(
            "Anthropic API key not configured. Set ANTHROPIC_API_KEY environment variable."
        )

    return AsyncAnthropic(api_key=api_key)
