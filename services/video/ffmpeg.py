"""Async wrapper around the ffmpeg and ffprobe command-line tools."""

from __future__ import annotations

import asyncio
import os
from collections.abc import Sequence
from pathlib import Path

from shared.exceptions import MediaToolError
from shared.utils import config, ensure_directory, remove_path, setup_logging

logger = setup_logging("ffmpeg-processor")

CONCAT_LIST_NAME = "concat_list.txt"
REENCODE_ARGS = [
    "-c:v", "libx264",
    "-preset", "fast",
    "-crf", "23",
    "-c:a", "aac",
    "-b:a", "192k",
]


def _format_seconds(value: float) -> str:
    return f"{value:.3f}"


def write_concat_list(paths: Sequence[str | Path], list_path: Path) -> Path:
    """Write an ffmpeg concat-demuxer list, escaping single quotes."""
    lines = []
    for path in paths:
        escaped = str(Path(path).resolve()).replace("'", "'\\''")
        lines.append(f"file '{escaped}'")
    list_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return list_path


class FFmpegProcessor:
    """Run the fixed set of ffmpeg operations used to assemble summaries."""

    def __init__(self, ffmpeg_path: str | None = None, ffprobe_path: str | None = None):
        self.ffmpeg_path = ffmpeg_path or config.get("ffmpeg_path") or "ffmpeg"
        if ffprobe_path:
            self.ffprobe_path = ffprobe_path
        elif os.path.dirname(self.ffmpeg_path):
            self.ffprobe_path = os.path.join(os.path.dirname(self.ffmpeg_path), "ffprobe")
        else:
            self.ffprobe_path = "ffprobe"

    async def _run(self, binary: str, args: Sequence[str]) -> str:
        """Execute a tool and return stdout; raise MediaToolError on failure."""
        command = [binary, *args]
        logger.debug(f"Running: {' '.join(command)}")
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise MediaToolError(f"{binary} not found", command=command) from e

        stdout, stderr = await process.communicate()
        if process.returncode != 0:
            stderr_text = stderr.decode(errors="replace")
            raise MediaToolError(
                f"{Path(binary).name} exited with code {process.returncode}: {stderr_text[-500:]}",
                command=command,
                return_code=process.returncode,
                stderr=stderr_text,
            )
        return stdout.decode(errors="replace")

    async def is_available(self) -> bool:
        try:
            await self._run(self.ffmpeg_path, ["-version"])
        except MediaToolError:
            return False
        return True

    async def get_version(self) -> str | None:
        try:
            output = await self._run(self.ffmpeg_path, ["-version"])
        except MediaToolError:
            return None
        first_line = output.splitlines()[0] if output else ""
        parts = first_line.split()
        return parts[2] if len(parts) > 2 else first_line or None

    async def probe_duration(self, path: str | Path) -> float:
        """Container duration in seconds, as reported by ffprobe."""
        output = await self._run(
            self.ffprobe_path,
            [
                "-v", "error",
                "-show_entries", "format=duration",
                "-of", "default=noprint_wrappers=1:nokey=1",
                str(path),
            ],
        )
        try:
            return float(output.strip())
        except ValueError as e:
            raise MediaToolError(f"Unreadable duration for {path}: {output!r}") from e

    async def extract_clip(
        self, input_path: str | Path, start_time: float, end_time: float, output_path: str | Path
    ) -> Path:
        """Cut ``[start_time, end_time)`` from the source using stream copy."""
        if end_time <= start_time:
            raise ValueError(f"Invalid clip range {start_time}-{end_time}")

        ensure_directory(Path(output_path).parent)
        await self._run(
            self.ffmpeg_path,
            [
                "-y",
                "-ss", _format_seconds(start_time),
                "-i", str(input_path),
                "-t", _format_seconds(end_time - start_time),
                "-c", "copy",
                "-avoid_negative_ts", "make_zero",
                str(output_path),
            ],
        )
        return Path(output_path)

    async def concatenate(self, clip_paths: Sequence[str | Path], output_path: str | Path) -> Path:
        """
        Join clips with the concat demuxer.

        Stream copy is tried first; clips with mismatched encodings make it fail,
        in which case the join is redone with a full re-encode.
        """
        if not clip_paths:
            raise ValueError("No clips to concatenate")

        output = Path(output_path)
        ensure_directory(output.parent)
        list_path = write_concat_list(clip_paths, output.parent / CONCAT_LIST_NAME)
        base_args = ["-y", "-f", "concat", "-safe", "0", "-i", str(list_path)]

        try:
            try:
                await self._run(self.ffmpeg_path, [*base_args, "-c", "copy", str(output)])
            except MediaToolError as e:
                logger.warning(f"Stream-copy concat failed, re-encoding: {e}")
                await self._run(self.ffmpeg_path, [*base_args, *REENCODE_ARGS, str(output)])
        finally:
            remove_path(list_path)

        return output

    async def remove_audio(self, input_path: str | Path, output_path: str | Path) -> Path:
        await self._run(
            self.ffmpeg_path,
            ["-y", "-i", str(input_path), "-c:v", "copy", "-an", str(output_path)],
        )
        return Path(output_path)

    async def mux_audio(
        self, video_path: str | Path, audio_path: str | Path, output_path: str | Path
    ) -> Path:
        """Replace the audio track, keeping video as-is and cutting to the shorter stream."""
        await self._run(
            self.ffmpeg_path,
            [
                "-y",
                "-i", str(video_path),
                "-i", str(audio_path),
                "-c:v", "copy",
                "-c:a", "aac",
                "-b:a", "192k",
                "-map", "0:v:0",
                "-map", "1:a:0",
                "-shortest",
                str(output_path),
            ],
        )
        return Path(output_path)

    async def concat_audio(self, audio_paths: Sequence[str | Path], output_path: str | Path) -> Path:
        """Losslessly join audio chunks of the same codec."""
        output = Path(output_path)
        ensure_directory(output.parent)
        list_path = write_concat_list(audio_paths, output.parent / f"{output.stem}_{CONCAT_LIST_NAME}")
        try:
            await self._run(
                self.ffmpeg_path,
                ["-y", "-f", "concat", "-safe", "0", "-i", str(list_path), "-c", "copy", str(output)],
            )
        finally:
            remove_path(list_path)
        return output
