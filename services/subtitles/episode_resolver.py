"""Infer canonical ``SxxEyy`` episode identifiers from filenames."""

from __future__ import annotations

import re
from collections.abc import Sequence

from shared.models import UploadedFile

# First match wins.
SEASON_EPISODE_PATTERNS = (
    re.compile(r"S(\d{1,2})E(\d{1,2})", re.IGNORECASE),
    re.compile(r"(\d{1,2})x(\d{1,2})", re.IGNORECASE),
)
EPISODE_ONLY_PATTERN = re.compile(r"E(?:pisode\s*)?(\d{1,2})", re.IGNORECASE)
EPISODE_NUMBER_PATTERN = re.compile(r"E(\d+)", re.IGNORECASE)


def format_episode_id(season: int | str, episode: int | str) -> str:
    return f"S{int(season):02d}E{int(episode):02d}"


def extract_episode_id(filename: str) -> str | None:
    """
    Resolve an episode identifier from a filename.

    Recognizes ``S01E02``, ``1x02`` and ``E02``/``Episode 2`` (season 01).
    Returns None when nothing matches.
    """
    for pattern in SEASON_EPISODE_PATTERNS:
        match = pattern.search(filename)
        if match:
            return format_episode_id(match.group(1), match.group(2))

    match = EPISODE_ONLY_PATTERN.search(filename)
    if match:
        return format_episode_id(1, match.group(1))

    return None


def find_matching_video(
    episode_id: str, video_files: Sequence[UploadedFile]
) -> UploadedFile | None:
    """Pick the uploaded video that belongs to ``episode_id``."""
    for video in video_files:
        if video.episode_id == episode_id:
            return video

    for video in video_files:
        if extract_episode_id(video.original_name) == episode_id:
            return video

    wanted = EPISODE_NUMBER_PATTERN.search(episode_id)
    if wanted:
        for video in video_files:
            found = EPISODE_NUMBER_PATTERN.search(video.original_name)
            if found and int(found.group(1)) == int(wanted.group(1)):
                return video

    return None
