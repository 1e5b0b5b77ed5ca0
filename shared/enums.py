"""
Enums and constants used across the application.
"""

from enum import Enum


class JobStatus(str, Enum):
    """Pipeline stages a job moves through, in execution order."""

    PENDING = "pending"
    VALIDATING = "validating"
    PARSING = "parsing"
    ANALYZING = "analyzing"
    GENERATING_CLIPS = "generating_clips"
    PROCESSING_VIDEO = "processing_video"
    GENERATING_SRT = "generating_srt"
    GENERATING_TTS = "generating_tts"
    MIXING_AUDIO = "mixing_audio"
    COMPLETED = "completed"
    FAILED = "failed"


class SummaryMode(str, Enum):
    """Output variant of a summary."""

    ORIGINAL_AUDIO = "A"
    NARRATED = "B"


class TargetLength(str, Enum):
    """Named summary lengths."""

    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


class LLMProviderType(str, Enum):
    """LLM backends a job can be analyzed with."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    ANTHROPIC_OPUS = "anthropic-opus"


class TTSProviderType(str, Enum):
    """Speech synthesis backends."""

    AZURE = "azure"
    OPENAI = "openai"


class NarrativeRole(str, Enum):
    """Role of a key moment in the season's arc."""

    INTRO = "intro"
    DEVELOPMENT = "development"
    CLIMAX = "climax"
    RESOLUTION = "resolution"
    KEY_SCENE = "key_scene"


class LogLevel(str, Enum):
    """Levels used for user-facing job logs."""

    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    SUCCESS = "success"


class DownloadType(str, Enum):
    """Artifacts a completed job can serve."""

    VIDEO = "video"
    SRT = "srt"
    NARRATIVE_SRT = "narrative-srt"
    AUDIO = "audio"
    CLIPS = "clips"


class UploadKind(str, Enum):
    """Upload categories accepted for a job."""

    SRT = "srt"
    VIDEO = "video"


VIDEO_EXTENSIONS = {".mp4", ".mkv", ".avi", ".mov", ".wmv", ".flv", ".webm"}
SUBTITLE_EXTENSIONS = {".srt"}
