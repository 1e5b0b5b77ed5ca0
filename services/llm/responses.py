"""Parse the JSON documents returned by the LLM providers."""

from __future__ import annotations

import json
import re
from typing import Any

from shared.enums import NarrativeRole
from shared.exceptions import LLMProviderError
from shared.models import (
    KeyMoment,
    KeyMomentsResult,
    NarrativeBlock,
    NarrativeOutline,
    NarrativeResult,
)
from shared.utils import setup_logging

logger = setup_logging("llm-responses")

CODE_FENCE_RE = re.compile(r"```(?:json)?\s*\n?")
VALID_ROLES = {role.value for role in NarrativeRole}


def strip_code_fences(content: str) -> str:
    return CODE_FENCE_RE.sub("", content).strip()


def _load(response: str, label: str) -> dict[str, Any]:
    try:
        parsed = json.loads(strip_code_fences(response))
    except json.JSONDecodeError as e:
        raise LLMProviderError(f"Failed to parse {label} response: {e.msg}") from e
    if not isinstance(parsed, dict):
        raise LLMProviderError(f"Failed to parse {label} response: expected a JSON object")
    return parsed


def _number(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _moment(raw: dict[str, Any]) -> KeyMoment | None:
    start = _number(raw.get("startTime"), 0.0)
    end = _number(raw.get("endTime"), 0.0)
    if start < 0 or end <= start:
        logger.warning(f"Dropping moment with invalid range {start}-{end}: {raw.get('episodeId')}")
        return None

    role = raw.get("narrativeRole")
    importance = int(round(_number(raw.get("importance"), 5)))
    return KeyMoment(
        episode_id=str(raw.get("episodeId") or ""),
        start_time=start,
        end_time=end,
        justification=str(raw.get("justification") or ""),
        narrative_role=role if role in VALID_ROLES else NarrativeRole.KEY_SCENE,
        description=str(raw.get("description") or ""),
        importance=min(max(importance, 1), 10),
    )


def parse_key_moments_response(response: str) -> KeyMomentsResult:
    parsed = _load(response, "key moments")

    raw_moments = parsed.get("moments")
    if not isinstance(raw_moments, list):
        raise LLMProviderError("Failed to parse key moments response: missing moments array")

    moments = [m for m in (_moment(raw) for raw in raw_moments if isinstance(raw, dict)) if m]
    outline = parsed.get("narrativeOutline") or {}
    if not isinstance(outline, dict):
        raise LLMProviderError("Failed to parse key moments response: narrativeOutline is not an object")
    notes = parsed.get("notes")

    return KeyMomentsResult(
        moments=moments,
        narrative_outline=NarrativeOutline(
            intro=str(outline.get("intro") or ""),
            development=str(outline.get("development") or ""),
            climax=str(outline.get("climax") or ""),
            resolution=str(outline.get("resolution") or ""),
        ),
        notes=str(notes) if notes else None,
    )


def parse_narrative_response(response: str) -> NarrativeResult:
    parsed = _load(response, "narrative")

    full_narrative = parsed.get("fullNarrative")
    raw_blocks = parsed.get("narrativeBlocks")
    if not full_narrative or not isinstance(raw_blocks, list):
        raise LLMProviderError("Failed to parse narrative response: missing narrative fields")

    return NarrativeResult(
        full_narrative=str(full_narrative),
        narrative_blocks=[
            NarrativeBlock(
                moment_index=int(_number(block.get("momentIndex"), 0)),
                text=str(block.get("text") or ""),
                estimated_duration=_number(block.get("estimatedDuration"), 10.0),
            )
            for block in raw_blocks
            if isinstance(block, dict)
        ],
    )
