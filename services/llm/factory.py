"""Map provider tags to configured LLM drivers."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from services.llm.drivers import AnthropicLLMDriver, LLMDriver, OpenAILLMDriver
from shared.config import ServiceConfig
from shared.enums import LLMProviderType
from shared.llm_clients import create_anthropic_client, create_openai_client
from shared.utils import config as default_config, setup_logging

logger = setup_logging("llm-factory")

LLMFactory = Callable[[LLMProviderType], LLMDriver]


def _common_options(settings: ServiceConfig) -> dict[str, Any]:
    return {
        "max_retries": settings.get("llm_max_retries", 3),
        "max_chars_per_episode": settings.get_pipeline_value("subtitles.max_chars_per_episode", 8000),
        "temperature": settings.get_pipeline_value("llm.temperature", 0.7),
        "max_tokens": settings.get_pipeline_value("llm.max_tokens", 8000),
    }


def _openai(settings: ServiceConfig) -> LLMDriver:
    client = create_openai_client(
        api_key=settings.get("openai_api_key"),
        base_url=settings.get("openai_api_base"),
    )
    return OpenAILLMDriver(client, model=settings.get("openai_model", "gpt-4o"), **_common_options(settings))


def _anthropic(settings: ServiceConfig) -> LLMDriver:
    client = create_anthropic_client(api_key=settings.get("anthropic_api_key"))
    return AnthropicLLMDriver(
        client, model=settings.get("anthropic_model", "claude-sonnet-4-20250514"), **_common_options(settings)
    )


def _anthropic_opus(settings: ServiceConfig) -> LLMDriver:
    client = create_anthropic_client(api_key=settings.get("anthropic_api_key"))
    return AnthropicLLMDriver(
        client, model=settings.get("anthropic_opus_model", "claude-opus-4-20250514"), **_common_options(settings)
    )


LLM_DRIVERS: dict[LLMProviderType, Callable[[ServiceConfig], LLMDriver]] = {
    LLMProviderType.OPENAI: _openai,
    LLMProviderType.ANTHROPIC: _anthropic,
    LLMProviderType.ANTHROPIC_OPUS: _anthropic_opus,
}


def create_llm_driver(
    provider: LLMProviderType | str, settings: ServiceConfig | None = None
) -> LLMDriver:
    """
    Build the driver for ``provider``.

    Raises:
        ValueError: Unknown provider tag or missing credentials
    """
    provider_type = LLMProviderType(provider)
    builder = LLM_DRIVERS[provider_type]
    driver = builder(settings or default_config)
    logger.info(f"Created {provider_type.value} driver with model {driver.model}")
    return driver


async def check_all_providers(settings: ServiceConfig | None = None) -> dict[str, bool]:
    """Check connectivity for every provider; missing credentials count as unavailable."""
    results: dict[str, bool] = {}
    for provider_type in (LLMProviderType.OPENAI, LLMProviderType.ANTHROPIC):
        try:
            driver = create_llm_driver(provider_type, settings)
        except ValueError:
            results[provider_type.value] = False
            continue
        results[provider_type.value] = await driver.test_connection()
    return results
