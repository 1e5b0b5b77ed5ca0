"""Video assembly through ffmpeg."""

from .assembly import assemble_clips
from .ffmpeg import FFmpegProcessor

__all__ = ["FFmpegProcessor", "assemble_clips"]
