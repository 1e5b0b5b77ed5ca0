"""Subtitle blocks for the synthesized narration track."""

from __future__ import annotations

import math
import re
from collections.abc import Iterable
from typing import Literal

from shared.models import NarrationBlock, SrtBlock

SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
DEFAULT_CHUNK_SECONDS = 8.0

Weighting = Literal["uniform", "length"]


def split_sentences(text: str) -> list[str]:
    return [part.strip() for part in SENTENCE_SPLIT_RE.split(text) if part.strip()]


def build_narration_blocks(
    text: str, total_duration: float, weighting: Weighting = "uniform"
) -> list[NarrationBlock]:
    """
    Spread ``total_duration`` over the sentences of ``text``.

    ``uniform`` gives every sentence the same share. ``length`` weights each
    sentence by its word count. Both allocations sum to ``total_duration``.
    """
    sentences = split_sentences(text)
    if not sentences:
        return []

    if weighting == "uniform":
        share = total_duration / len(sentences)
        return [NarrationBlock(text=s, duration_seconds=share) for s in sentences]

    if weighting != "length":
        raise ValueError(f"Unknown narration weighting: {weighting}")

    word_counts = [max(len(s.split()), 1) for s in sentences]
    total_words = sum(word_counts)
    return [
        NarrationBlock(text=s, duration_seconds=total_duration * count / total_words)
        for s, count in zip(sentences, word_counts)
    ]


def _chunk_words(words: list[str], duration: float, chunk_seconds: float) -> list[str]:
    target_chunks = max(math.ceil(duration / chunk_seconds), 1)
    words_per_chunk = max(math.ceil(len(words) / target_chunks), 1)
    return [" ".join(words[i : i + words_per_chunk]) for i in range(0, len(words), words_per_chunk)]


def generate_narrative_subtitles(
    blocks: Iterable[NarrationBlock],
    start_offset: float = 0.0,
    chunk_seconds: float = DEFAULT_CHUNK_SECONDS,
) -> list[SrtBlock]:
    """Split each block into roughly ``chunk_seconds`` subtitles on a running clock."""
    entries: list[SrtBlock] = []
    current = start_offset

    for block in blocks:
        words = block.text.split()
        if not words:
            current += block.duration_seconds
            continue

        chunks = _chunk_words(words, block.duration_seconds, chunk_seconds)
        time_per_chunk = block.duration_seconds / len(chunks)
        for chunk in chunks:
            entries.append(
                SrtBlock(
                    index=len(entries) + 1,
                    start_time=current,
                    end_time=current + time_per_chunk,
                    text=chunk,
                )
            )
            current += time_per_chunk

    return entries
