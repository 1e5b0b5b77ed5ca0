import asyncio
from abc import ABC, abstractmethod
from collections.abc import Sequence

from services.llm.prompts import build_key_moments_prompt, build_narrative_prompt
from services.llm.responses import parse_key_moments_response, parse_narrative_response
from services.subtitles.timeline import build_timeline, render_for_external_analysis
from shared.exceptions import LLMProviderError
from shared.models import KeyMoment, KeyMomentsResult, NarrativeResult, SummarizationInput
from shared.utils import setup_logging

logger = setup_logging("llm-driver")


class LLMDriver(ABC):
    """Abstract base class for LLM providers used by the summary pipeline."""

    name: str = "llm"

    def __init__(
        self,
        model: str,
        max_retries: int = 3,
        max_chars_per_episode: int | None = 8000,
        temperature: float = 0.7,
        max_tokens: int = 8000,
    ):
        self.model = model
        self.max_retries = max(1, max_retries)
        self.max_chars_per_episode = max_chars_per_episode
        self.temperature = temperature
        self.max_tokens = max_tokens

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        """Send one prompt and return the raw text of the reply."""
        pass

    @abstractmethod
    async def test_connection(self) -> bool:
        pass

    async def select_key_moments(self, summary_input: SummarizationInput) -> KeyMomentsResult:
        season = build_timeline(
            summary_input.subtitles_by_episode,
            summary_input.series_name,
            summary_input.season,
            summary_input.language,
        )
        subtitles_text = render_for_external_analysis(season, self.max_chars_per_episode)
        prompt = build_key_moments_prompt(summary_input, subtitles_text)
        return parse_key_moments_response(await self.call_with_retry(prompt))

    async def generate_narrative(
        self, moments: Sequence[KeyMoment], language: str, series_name: str, season: int
    ) -> NarrativeResult:
        prompt = build_narrative_prompt(moments, language, series_name, season)
        return parse_narrative_response(await self.call_with_retry(prompt))

    async def call_with_retry(self, prompt: str) -> str:
        """Call ``complete`` with exponential backoff (2, 4, 8... seconds)."""
        last_error: Exception | None = None
        for attempt in range(1, self.max_retries + 1):
            try:
                content = await self.complete(prompt)
                if not content or not content.strip():
                    raise LLMProviderError(f"Empty response from {self.name}")
                return content
            except Exception as e:
                last_error = e
                logger.warning(f"{self.name} attempt {attempt}/{self.max_retries} failed: {e}")
                if attempt < self.max_retries:
                    await asyncio.sleep(2**attempt)

        raise LLMProviderError(
            f"{self.name} call failed after {self.max_retries} attempts: {last_error}"
        ) from last_error
