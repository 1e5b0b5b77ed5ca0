"""SRT parsing and serialization."""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Protocol

from shared.exceptions import SubtitleFormatError
from shared.models import SrtBlock, SrtParseResult, SubtitleEntry
from shared.utils import setup_logging

logger = setup_logging("srt-codec")

_TIMESTAMP = r"\d{2,}:\d{2}:\d{2}[,.]\d{3}"
TIMESTAMP_RE = re.compile(rf"^({_TIMESTAMP})$")
TIMING_LINE_RE = re.compile(rf"({_TIMESTAMP})\s*-->\s*({_TIMESTAMP})")
BLOCK_SEPARATOR_RE = re.compile(r"\n\s*\n")


class TimedText(Protocol):
    start_time: float
    end_time: float
    text: str


def parse_timestamp(text: str) -> float:
    """Convert ``HH:MM:SS,mmm`` (or ``HH:MM:SS.mmm``) to seconds. Hours may exceed two digits."""
    value = text.strip()
    if not TIMESTAMP_RE.match(value):
        raise SubtitleFormatError(f"Invalid SRT timestamp: {text!r}")

    clock, millis = re.split(r"[,.]", value)
    parts = clock.split(":")
    if len(parts) != 3:
        raise SubtitleFormatError(f"Invalid SRT timestamp: {text!r}")

    hours, minutes, seconds = (int(p) for p in parts)
    return hours * 3600 + minutes * 60 + seconds + int(millis) / 1000


def format_timestamp(seconds: float) -> str:
    """Convert seconds to ``HH:MM:SS,mmm`` with milliseconds rounded."""
    total_ms = int(round(max(seconds, 0) * 1000))
    hours, remainder = divmod(total_ms, 3_600_000)
    minutes, remainder = divmod(remainder, 60_000)
    secs, millis = divmod(remainder, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d},{millis:03d}"


def _parse_block(block: str) -> SrtBlock | None:
    lines = [line for line in block.split("\n") if line.strip()]
    if len(lines) < 3:
        return None

    try:
        index = int(lines[0].strip())
    except ValueError:
        return None

    match = TIMING_LINE_RE.search(lines[1])
    if not match:
        return None

    start = parse_timestamp(match.group(1))
    end = parse_timestamp(match.group(2))
    if start > end:
        return None

    text = "\n".join(lines[2:]).strip()
    return SrtBlock(index=index, start_time=start, end_time=end, text=text)


def parse(content: str) -> SrtParseResult:
    """
    Parse SRT content into blocks.

    Malformed blocks are dropped and counted in ``skipped_blocks`` so callers
    can report data loss without failing the whole file.
    """
    normalized = content.replace("\ufeff", "").replace("\r\n", "\n").replace("\r", "\n")
    raw_blocks = [b for b in BLOCK_SEPARATOR_RE.split(normalized) if b.strip()]

    entries: list[SrtBlock] = []
    skipped = 0
    for raw in raw_blocks:
        block = _parse_block(raw)
        if block is None:
            skipped += 1
            continue
        entries.append(block)

    if skipped:
        logger.warning(f"Skipped {skipped} malformed SRT block(s) out of {len(raw_blocks)}")

    return SrtParseResult(entries=entries, skipped_blocks=skipped)


def generate(entries: Iterable[TimedText]) -> str:
    """Render entries as SRT, renumbering sequentially from 1."""
    blocks = [
        f"{number}\n{format_timestamp(entry.start_time)} --> {format_timestamp(entry.end_time)}\n{entry.text}"
        for number, entry in enumerate(entries, start=1)
    ]
    return "\n\n".join(blocks)


def attach_episode(raw_entries: Iterable[SrtBlock], episode_id: str) -> list[SubtitleEntry]:
    return [
        SubtitleEntry(
            episode_id=episode_id,
            index=entry.index,
            start_time=entry.start_time,
            end_time=entry.end_time,
            text=entry.text,
        )
        for entry in raw_entries
    ]


def parse_file(content: str, episode_id: str) -> list[SubtitleEntry]:
    """Parse SRT content and tag every entry with ``episode_id``."""
    return attach_episode(parse(content).entries, episode_id)
