from datetime import UTC, datetime

from pydantic import BaseModel, Field, model_validator

from shared.enums import (
    JobStatus,
    LLMProviderType,
    LogLevel,
    NarrativeRole,
    SummaryMode,
    TargetLength,
)


def utcnow() -> datetime:
    return datetime.now(UTC)


# Subtitle models
class SrtBlock(BaseModel):
    """A single block of an SRT document, without episode context."""

    index: int
    start_time: float = Field(..., ge=0, description="Start time in seconds")
    end_time: float = Field(..., ge=0, description="End time in seconds")
    text: str


class SrtParseResult(BaseModel):
    entries: list[SrtBlock] = Field(default_factory=list)
    skipped_blocks: int = Field(default=0, description="Malformed blocks dropped while parsing")


class SubtitleEntry(SrtBlock):
    episode_id: str

    @model_validator(mode="after")
    def _check_ordering(self) -> "SubtitleEntry":
        if self.start_time > self.end_time:
            raise ValueError("start_time must not be after end_time")
        return self


class EpisodeSubtitles(BaseModel):
    episode_id: str
    episode_number: int = Field(..., ge=1, description="1-based ordering key")
    video_file_name: str | None = None
    entries: list[SubtitleEntry] = Field(default_factory=list)


class SeasonSubtitles(BaseModel):
    series_name: str
    season: int
    language: str
    episodes: list[EpisodeSubtitles]
    total_entries: int


class RemappedSubtitle(BaseModel):
    """Subtitle placed on the concatenated output timeline."""

    index: int = Field(..., ge=1)
    start_time: float
    end_time: float
    text: str
    original_episode_id: str
    original_start_time: float


class NarrationBlock(BaseModel):
    text: str
    duration_seconds: float = Field(..., ge=0)


# LLM models
class KeyMoment(BaseModel):
    episode_id: str
    start_time: float = Field(..., ge=0)
    end_time: float = Field(..., ge=0)
    justification: str = ""
    narrative_role: NarrativeRole = NarrativeRole.KEY_SCENE
    description: str = ""
    importance: int = Field(default=5, ge=1, le=10)


class NarrativeOutline(BaseModel):
    intro: str = ""
    development: str = ""
    climax: str = ""
    resolution: str = ""


class KeyMomentsResult(BaseModel):
    moments: list[KeyMoment]
    narrative_outline: NarrativeOutline = Field(default_factory=NarrativeOutline)
    notes: str | None = None


class NarrativeBlock(BaseModel):
    moment_index: int = 0
    text: str = ""
    estimated_duration: float = Field(default=10, description="Estimated spoken duration in seconds")


class NarrativeResult(BaseModel):
    full_narrative: str
    narrative_blocks: list[NarrativeBlock] = Field(default_factory=list)


class SummarizationInput(BaseModel):
    subtitles_by_episode: list[EpisodeSubtitles]
    target_duration_minutes: float
    language: str
    mode: SummaryMode
    series_name: str
    season: int


# Clip models
class ClipDefinition(BaseModel):
    episode_id: str
    video_path: str
    start_time: float = Field(..., ge=0)
    end_time: float = Field(..., ge=0)
    order: int = Field(..., ge=1, description="1-based concatenation position")

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


class ClipSpec(ClipDefinition):
    moment: KeyMoment | None = None


class RemapResult(BaseModel):
    entries: list[RemappedSubtitle]
    total_duration: float


# TTS models
class SynthesisResult(BaseModel):
    audio_file_path: str
    duration_ms: float = Field(..., ge=0)


# Job models
class JobConfig(BaseModel):
    series_name: str = Field(..., min_length=1, description="Series title")
    season: int = Field(..., ge=1, description="Season number")
    language: str = Field(..., min_length=2, description="Language code, e.g. es-ES")
    mode: SummaryMode = Field(..., description="A keeps original audio, B adds narration")
    target_length: TargetLength | float = Field(
        default=TargetLength.MEDIUM, description="Named length or minutes"
    )
    llm_provider: LLMProviderType = Field(default=LLMProviderType.OPENAI)


class CreateJobRequest(BaseModel):
    config: JobConfig


class UploadedFile(BaseModel):
    original_name: str
    stored_name: str
    path: str
    size: int
    episode_id: str | None = None


class JobLog(BaseModel):
    timestamp: datetime = Field(default_factory=utcnow)
    level: LogLevel = LogLevel.INFO
    message: str
    stage: JobStatus | None = None


class JobProgress(BaseModel):
    stage: JobStatus = JobStatus.PENDING
    stage_progress: float = Field(default=0, ge=0, le=100)
    current_step: str = "Waiting to start"
    started_at: datetime | None = None
    completed_stages: list[JobStatus] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    logs: list[JobLog] = Field(default_factory=list)


class JobOutputs(BaseModel):
    """Artifact paths relative to the outputs root."""

    video_path: str | None = None
    srt_path: str | None = None
    narrative_srt_path: str | None = None
    audio_path: str | None = None
    clips_json_path: str | None = None


class Job(BaseModel):
    id: str
    config: JobConfig
    status: JobStatus = JobStatus.PENDING
    progress: JobProgress = Field(default_factory=JobProgress)
    srt_files: list[UploadedFile] = Field(default_factory=list)
    video_files: list[UploadedFile] = Field(default_factory=list)
    key_moments: list[KeyMoment] | None = None
    narrative_outline: NarrativeOutline | None = None
    narrative: str | None = None
    outputs: JobOutputs = Field(default_factory=JobOutputs)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    completed_at: datetime | None = None
    error: str | None = None


class JobListItem(BaseModel):
    id: str
    series_name: str
    season: int
    mode: SummaryMode
    status: JobStatus
    created_at: datetime
    progress: int = Field(..., ge=0, le=100)

