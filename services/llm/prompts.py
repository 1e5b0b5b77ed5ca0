"""Prompt templates for moment selection and narration."""

from __future__ import annotations

from collections.abc import Sequence

from shared.enums import SummaryMode
from shared.models import KeyMoment, SummarizationInput

SYSTEM_PROMPT = (
    "You are an expert TV series analyst. Always respond with valid JSON only, "
    "no markdown formatting or code blocks."
)


def build_key_moments_prompt(summary_input: SummarizationInput, subtitles_text: str) -> str:
    minutes = f"{summary_input.target_duration_minutes:g}"
    mode_label = (
        "Clips with original subtitles"
        if summary_input.mode == SummaryMode.ORIGINAL_AUDIO
        else "Clips with narrative voiceover"
    )
    return f"""You are an expert TV series analyst. Your task is to identify the most important moments from a season of "{summary_input.series_name}" (Season {summary_input.season}) to create a compelling {minutes}-minute video summary.

TARGET SUMMARY DURATION: {minutes} minutes
MODE: {mode_label}
LANGUAGE: {summary_input.language}

SEASON SUBTITLES:
{subtitles_text}

INSTRUCTIONS:
1. Analyze the entire season's dialogue to understand the plot, character arcs, and key events.
2. Select moments that capture:
   - Character introductions and key relationships
   - Major plot points and turning points
   - Emotional peaks and dramatic scenes
   - The season's climax and resolution
3. Aim for clips totaling approximately {minutes} minutes.
4. Each clip should be 15-60 seconds ideally.
5. Ensure narrative coherence - the clips should tell the season's story when watched in sequence.
6. Use the episode identifiers exactly as they appear in the subtitle headers.

RESPONSE FORMAT (JSON):
{{
  "moments": [
    {{
      "episodeId": "S01E01",
      "startTime": 120.5,
      "endTime": 180.0,
      "justification": "Why this moment is important",
      "narrativeRole": "intro|development|climax|resolution|key_scene",
      "description": "Brief description of what happens",
      "importance": 8
    }}
  ],
  "narrativeOutline": {{
    "intro": "Summary of how the season begins",
    "development": "Summary of the main plot development",
    "climax": "Summary of the season's climax",
    "resolution": "Summary of how the season ends"
  }},
  "notes": "Any relevant notes about the selection"
}}

Respond ONLY with valid JSON."""


def build_narrative_prompt(
    moments: Sequence[KeyMoment], language: str, series_name: str, season: int
) -> str:
    moments_description = "\n".join(
        f"{i + 1}. [{m.episode_id}] {m.description} ({m.narrative_role.value}, "
        f"{m.end_time - m.start_time:.0f}s)"
        for i, m in enumerate(moments)
    )
    return f"""You are a professional narrator for TV series recap videos. Create an engaging voiceover script for a video summary of "{series_name}" Season {season}.

KEY MOMENTS TO NARRATE:
{moments_description}

LANGUAGE: {language}
TONE: Professional but engaging, like a quality recap video.

INSTRUCTIONS:
1. Write a continuous narrative that guides viewers through the season.
2. Each section should match the corresponding clip's content and duration.
3. Use present tense for immediacy.
4. Avoid spoiling future events within the narrative.
5. Estimate speaking duration (average 150 words per minute).

RESPONSE FORMAT (JSON):
{{
  "fullNarrative": "The complete narrative text...",
  "narrativeBlocks": [
    {{
      "momentIndex": 0,
      "text": "Narrative for this specific moment...",
      "estimatedDuration": 15.5
    }}
  ]
}}

Write the narrative in {language}. Respond ONLY with valid JSON."""
