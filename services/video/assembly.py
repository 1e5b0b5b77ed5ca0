"""Cut clips out of source episodes and join them into one video."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path

from services.video.ffmpeg import FFmpegProcessor
from shared.models import ClipDefinition
from shared.utils import ensure_directory, remove_path, setup_logging

logger = setup_logging("video-assembly")

ProgressCallback = Callable[[int, int], Awaitable[None]]


def clip_filename(position: int) -> str:
    return f"clip_{position:04d}.mp4"


async def assemble_clips(
    clips: Sequence[ClipDefinition],
    output_path: str | Path,
    work_dir: str | Path,
    ffmpeg: FFmpegProcessor,
    on_clip_done: ProgressCallback | None = None,
) -> Path:
    """
    Extract every clip in ``order`` into ``work_dir`` and concatenate them.

    Clips are extracted one at a time. ``work_dir`` is removed whether or not
    assembly succeeds.
    """
    if not clips:
        raise ValueError("Cannot assemble a video without clips")

    work = Path(work_dir)
    ensure_directory(work)
    ordered = sorted(clips, key=lambda clip: clip.order)

    try:
        extracted: list[Path] = []
        for position, clip in enumerate(ordered):
            clip_path = work / clip_filename(position)
            logger.info(
                f"Extracting clip {position + 1}/{len(ordered)} "
                f"from {Path(clip.video_path).name} [{clip.start_time:.2f}-{clip.end_time:.2f}]"
            )
            await ffmpeg.extract_clip(clip.video_path, clip.start_time, clip.end_time, clip_path)
            extracted.append(clip_path)
            if on_clip_done is not None:
                await on_clip_done(position + 1, len(ordered))

        logger.info(f"Concatenating {len(extracted)} clips into {output_path}")
        return await ffmpeg.concatenate(extracted, output_path)
    finally:
        remove_path(work)
