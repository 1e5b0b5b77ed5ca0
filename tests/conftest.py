import sys
from collections.abc import Sequence
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from services.jobs.store import JobStore
from services.video.ffmpeg import FFmpegProcessor
from shared.config import ServiceConfig
from shared.enums import SummaryMode
from shared.models import JobConfig

PIPELINE_DEFAULTS = {
    "subtitles": {"max_chars_per_episode": 8000},
    "remap": {"policy": "contain", "min_overlap": 0.5},
    "narration": {"chunk_seconds": 8, "weighting": "uniform"},
    "tts": {"max_chars_per_chunk": {"openai": 4000, "azure": 4000}},
    "llm": {"temperature": 0.7, "max_tokens": 8000},
}


class FakeFFmpeg(FFmpegProcessor):
    """Records every media operation and writes placeholder files instead of running ffmpeg."""

    def __init__(
        self,
        available: bool = True,
        duration: float | None = None,
        audio_duration: float | None = None,
    ):
        super().__init__("ffmpeg", "ffprobe")
        self.available = available
        self.duration = duration
        self.audio_duration = audio_duration
        self.calls: list[tuple] = []

    async def is_available(self) -> bool:
        return self.available

    async def get_version(self) -> str | None:
        return "6.1" if self.available else None

    async def probe_duration(self, path: str | Path) -> float:
        self.calls.append(("probe", Path(path).name))
        if self.audio_duration is not None and Path(path).suffix == ".mp3":
            return self.audio_duration
        return self.duration if self.duration is not None else 0.0

    async def extract_clip(self, input_path, start_time, end_time, output_path) -> Path:
        self.calls.append(("extract", Path(input_path).name, start_time, end_time))
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        Path(output_path).write_bytes(b"clip")
        return Path(output_path)

    async def concatenate(self, clip_paths: Sequence[str | Path], output_path: str | Path) -> Path:
        self.calls.append(("concat", [Path(p).name for p in clip_paths]))
        Path(output_path).write_bytes(b"video")
        return Path(output_path)

    async def remove_audio(self, input_path, output_path) -> Path:
        self.calls.append(("remove_audio", Path(input_path).name))
        Path(output_path).write_bytes(b"silent")
        return Path(output_path)

    async def mux_audio(self, video_path, audio_path, output_path) -> Path:
        self.calls.append(("mux", Path(video_path).name, Path(audio_path).name))
        Path(output_path).write_bytes(b"narrated")
        return Path(output_path)

    async def concat_audio(self, audio_paths, output_path) -> Path:
        self.calls.append(("concat_audio", [Path(p).name for p in audio_paths]))
        Path(output_path).write_bytes(b"audio")
        return Path(output_path)


@pytest.fixture
def settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> ServiceConfig:
    """Settings isolated from the developer's .env and pipeline overrides."""
    for key in ("OPENAI_API_KEY", "ANTHROPIC_API_KEY", "AZURE_SPEECH_KEY", "TTS_PROVIDER", "FFMPEG_PATH"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))

    instance = ServiceConfig()
    for key in ("openai_api_key", "anthropic_api_key", "azure_speech_key"):
        instance.set(key, None)
    instance.set("tts_provider", "azure")
    instance.set_pipeline_config(
        {section: dict(values) for section, values in PIPELINE_DEFAULTS.items()}
    )
    return instance


@pytest.fixture
def store(tmp_path: Path) -> JobStore:
    return JobStore(tmp_path / "jobs", tmp_path / "uploads", tmp_path / "outputs")


@pytest.fixture
def fake_ffmpeg() -> FakeFFmpeg:
    return FakeFFmpeg()


@pytest.fixture
def job_config() -> JobConfig:
    return JobConfig(
        series_name="Dark Waters",
        season=1,
        language="es-ES",
        mode=SummaryMode.ORIGINAL_AUDIO,
    )


def make_srt(*entries: tuple[float, float, str]) -> str:
    """Build SRT text from ``(start, end, text)`` tuples."""
    from services.subtitles.srt_codec import format_timestamp

    blocks = [
        f"{i}\n{format_timestamp(start)} --> {format_timestamp(end)}\n{text}"
        for i, (start, end, text) in enumerate(entries, start=1)
    ]
    return "\n\n".join(blocks) + "\n"
