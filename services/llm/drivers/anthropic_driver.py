"""Anthropic driver using the Messages API."""

from __future__ import annotations

from typing import Any

from anthropic import AsyncAnthropic

from services.llm.prompts import SYSTEM_PROMPT
from services.llm.responses import strip_code_fences

from .base import LLMDriver


class AnthropicLLMDriver(LLMDriver):
    name = "anthropic"

    def __init__(
        self, client: AsyncAnthropic, model: str = "claude-sonnet-4-20250514", **kwargs: Any
    ):
        super().__init__(model=model, **kwargs)
        self.client = client

    async def complete(self, prompt: str) -> str:
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            system=SYSTEM_PROMPT,
            messages=[{"role": "user", "content": prompt}],
        )

        text_blocks = [block.text for block in response.content if block.type == "text"]
        if not text_blocks:
            return ""
        # Claude sometimes wraps JSON in markdown fences despite the system prompt
        return strip_code_fences("".join(text_blocks))

    async def test_connection(self) -> bool:
        try:
            await self.client.messages.create(
                model=self.model,
                max_tokens=10,
                messages=[{"role": "user", "content": "test"}],
            )
        except Exception:
            return False
        return True
