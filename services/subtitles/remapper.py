"""Map per-episode subtitles onto the concatenated clip timeline.

Clips are laid end to end in ``order``. A running offset tracks where the
current clip begins in the output, so an entry at ``t`` inside a clip that
starts at ``clip.start_time`` lands at ``offset + (t - clip.start_time)``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Literal

from shared.models import ClipDefinition, RemappedSubtitle, RemapResult, SubtitleEntry
from shared.utils import setup_logging

logger = setup_logging("subtitle-remapper")

RemapPolicy = Literal["contain", "overlap"]


def calculate_total_duration(clips: Iterable[ClipDefinition]) -> float:
    return sum(clip.end_time - clip.start_time for clip in clips)


def find_overlapping_subtitles(
    entries: Iterable[SubtitleEntry],
    start_time: float,
    end_time: float,
    min_overlap: float = 0.5,
) -> list[SubtitleEntry]:
    """
    Select entries whose overlap with ``[start_time, end_time]`` covers at
    least ``min_overlap`` of the entry's own duration.

    Zero-length entries are selected when they fall inside the range.
    """
    selected = []
    for entry in entries:
        entry_duration = entry.end_time - entry.start_time
        if entry_duration <= 0:
            if start_time <= entry.start_time <= end_time:
                selected.append(entry)
            continue

        overlap = max(0.0, min(entry.end_time, end_time) - max(entry.start_time, start_time))
        if overlap / entry_duration >= min_overlap:
            selected.append(entry)
    return selected


def _contained(entries: Iterable[SubtitleEntry], clip: ClipDefinition) -> list[SubtitleEntry]:
    return [
        entry
        for entry in entries
        if entry.start_time >= clip.start_time and entry.end_time <= clip.end_time
    ]


def remap_subtitles_to_clips(
    clips: Sequence[ClipDefinition],
    subtitles_by_episode: Mapping[str, Sequence[SubtitleEntry]],
    policy: RemapPolicy = "contain",
    min_overlap: float = 0.5,
) -> RemapResult:
    """
    Build the subtitle track for the concatenated output.

    With the default ``"contain"`` policy only entries fully inside a clip are
    kept; entries straddling a cut are dropped. ``"overlap"`` keeps entries that
    overlap the clip by at least ``min_overlap`` and clamps them to the clip.
    """
    if policy not in ("contain", "overlap"):
        raise ValueError(f"Unknown remap policy: {policy}")

    remapped: list[RemappedSubtitle] = []
    output_offset = 0.0
    next_index = 1

    for clip in sorted(clips, key=lambda c: c.order):
        entries = subtitles_by_episode.get(clip.episode_id, [])
        if not entries:
            logger.warning(f"No subtitles available for clip {clip.order} ({clip.episode_id})")

        if policy == "contain":
            selected = _contained(entries, clip)
        else:
            selected = find_overlapping_subtitles(
                entries, clip.start_time, clip.end_time, min_overlap
            )

        for entry in sorted(selected, key=lambda e: e.start_time):
            local_start = max(entry.start_time, clip.start_time) - clip.start_time
            local_end = min(entry.end_time, clip.end_time) - clip.start_time
            remapped.append(
                RemappedSubtitle(
                    index=next_index,
                    start_time=output_offset + local_start,
                    end_time=output_offset + local_end,
                    text=entry.text,
                    original_episode_id=entry.episode_id,
                    original_start_time=entry.start_time,
                )
            )
            next_index += 1

        output_offset += clip.end_time - clip.start_time

    return RemapResult(entries=remapped, total_duration=output_offset)
