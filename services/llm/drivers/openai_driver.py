"""OpenAI driver using AsyncOpenAI chat completions."""

from __future__ import annotations

from typing import Any

from openai import AsyncOpenAI

from services.llm.prompts import SYSTEM_PROMPT

from .base import LLMDriver


class OpenAILLMDriver(LLMDriver):
    """Direct OpenAI implementation using AsyncOpenAI client."""

    name = "openai"

    def __init__(self, client: AsyncOpenAI, model: str = "gpt-4o", **kwargs: Any):
        super().__init__(model=model, **kwargs)
        self.client = client

    async def complete(self, prompt: str) -> str:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            response_format={"type": "json_object"},
        )

        content = response.choices[0].message.content
        if content is not None:
            return content.strip()
        return ""

    async def test_connection(self) -> bool:
        try:
            await self.client.models.list()
        except Exception:
            return False
        return True
