"""Summary pipeline: drives a job from uploaded files to the finished highlight video."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from pathlib import Path

from services.jobs.progress import target_length_to_minutes
from services.jobs.store import JobStore
from services.llm.factory import LLMFactory, create_llm_driver
from services.subtitles import srt_codec
from services.subtitles.episode_resolver import extract_episode_id, find_matching_video
from services.subtitles.narration import build_narration_blocks, generate_narrative_subtitles
from services.subtitles.remapper import calculate_total_duration, remap_subtitles_to_clips
from services.tts_service.service import TTSService, create_tts_engine
from services.video.assembly import assemble_clips
from services.video.ffmpeg import FFmpegProcessor
from shared.config import ServiceConfig
from shared.enums import JobStatus, LogLevel, SummaryMode
from shared.exceptions import MediaToolError, ValidationError
from shared.models import (
    ClipSpec,
    EpisodeSubtitles,
    Job,
    KeyMoment,
    KeyMomentsResult,
    SummarizationInput,
)
from shared.utils import config as default_config, remove_path, safe_stem, setup_logging

logger = setup_logging("summary-pipeline")

DURATION_TOLERANCE_SECONDS = 1.0


@dataclass
class AnalysisResult:
    key_moments: KeyMomentsResult
    narrative: str | None = None


class SummaryPipeline:
    """
    Runs the summary stages for one job at a time per call.

    Collaborators are injected so tests (and alternate deployments) can swap
    the store, media tool, LLM factory and TTS service.
    """

    def __init__(
        self,
        store: JobStore,
        ffmpeg: FFmpegProcessor | None = None,
        llm_factory: LLMFactory | None = None,
        tts_service: TTSService | None = None,
        settings: ServiceConfig | None = None,
    ):
        self.store = store
        self.settings = settings or default_config
        self.ffmpeg = ffmpeg or FFmpegProcessor(self.settings.get("ffmpeg_path"))
        self.llm_factory = llm_factory or (lambda provider: create_llm_driver(provider, self.settings))
        self._tts_service = tts_service
        self._tasks: set[asyncio.Task] = set()

    @property
    def tts_service(self) -> TTSService:
        """Lazy load TTS service for the configured provider."""
        if self._tts_service is None:
            engine = create_tts_engine(self.settings.get("tts_provider", "azure"), self.settings)
            self._tts_service = TTSService(engine, self.ffmpeg)
        return self._tts_service

    @tts_service.setter
    def tts_service(self, service: TTSService) -> None:
        self._tts_service = service

    # Entry points
    async def start(self, job_id: str) -> bool:
        """
        Claim a pending job and run it in the background.

        Returns False if the job was already started.
        """
        if not await self.store.try_begin(job_id):
            return False

        task = asyncio.create_task(self._run_in_background(job_id))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return True

    async def _run_in_background(self, job_id: str) -> None:
        try:
            await self.run(job_id)
        except Exception:
            logger.exception(f"Pipeline failed for job {job_id}")

    async def run(self, job_id: str) -> None:
        """Execute every stage in order; on any error mark the job failed and re-raise."""
        job = await self.store.require(job_id)
        logger.info(f"Running job {job_id} (mode {job.config.mode.value})")

        try:
            await self._validate_inputs(job)
            episodes = await self._parse_subtitles(job)
            analysis = await self._analyze(job, episodes)
            clips = await self._generate_clip_specs(job, analysis.key_moments.moments)
            video_path = await self._process_video(job, clips)
            srt_path = await self._generate_srt(job, clips, episodes)

            final_video = video_path
            audio_path = narrative_srt_path = None
            if job.config.mode == SummaryMode.NARRATED:
                if analysis.narrative:
                    audio_path, audio_seconds = await self._generate_tts(job, analysis.narrative)
                    final_video = await self._mix_audio(job, video_path, audio_path)
                    narrative_srt_path = self._generate_narrative_srt(
                        job, analysis.narrative, clips, audio_seconds
                    )
                else:
                    await self.store.add_log(
                        job_id, LogLevel.WARN, "No narrative was generated; skipping narration"
                    )

            await self._finish(
                job_id,
                analysis,
                video_path=final_video,
                srt_path=srt_path,
                audio_path=audio_path,
                narrative_srt_path=narrative_srt_path,
            )
        except Exception as e:
            message = str(e) or e.__class__.__name__
            logger.error(f"Job {job_id} failed: {message}")
            if isinstance(e, MediaToolError):
                logger.error(f"Media tool failure: {e.debug_info}")
            await self.store.set_failed(job_id, message)
            raise

    # Helpers
    async def _enter(self, job_id: str, status: JobStatus, step: str) -> None:
        logger.info(f"Job {job_id}: {status.value}")
        await self.store.update_status(job_id, status, step, 0)
        await self.store.add_log(job_id, LogLevel.INFO, step)

    def _output_name(self, job: Job, suffix: str) -> str:
        return f"{safe_stem(job.config.series_name)}_S{job.config.season}_{suffix}"

    # Stages
    async def _validate_inputs(self, job: Job) -> None:
        await self._enter(job.id, JobStatus.VALIDATING, "Validating input files")

        if not await self.ffmpeg.is_available():
            raise ValidationError("FFmpeg is not available. Please install FFmpeg and add it to PATH.")
        if not job.srt_files:
            raise ValidationError("No SRT files uploaded")
        if not job.video_files:
            raise ValidationError("No video files uploaded")
        for upload in [*job.srt_files, *job.video_files]:
            if not Path(upload.path).exists():
                raise ValidationError(f"File not found: {upload.original_name}")

        await self.store.update_progress(job.id, "Input validation complete", 100)

    async def _parse_subtitles(self, job: Job) -> dict[str, EpisodeSubtitles]:
        await self._enter(job.id, JobStatus.PARSING, "Parsing subtitle files")

        episodes: dict[str, EpisodeSubtitles] = {}
        total = len(job.srt_files)
        for i, upload in enumerate(job.srt_files):
            await self.store.update_progress(
                job.id, f"Parsing {upload.original_name}", round((i + 1) / total * 100)
            )

            episode_id = (
                upload.episode_id
                or extract_episode_id(upload.original_name)
                or f"EP{i + 1:02d}"
            )
            content = Path(upload.path).read_text(encoding="utf-8-sig", errors="replace")
            parsed = srt_codec.parse(content)
            if parsed.skipped_blocks:
                await self.store.add_log(
                    job.id,
                    LogLevel.WARN,
                    f"{upload.original_name}: skipped {parsed.skipped_blocks} malformed subtitle block(s)",
                )
            if episode_id in episodes:
                await self.store.add_log(
                    job.id, LogLevel.WARN, f"Duplicate episode {episode_id}; using {upload.original_name}"
                )

            video = find_matching_video(episode_id, job.video_files)
            episodes[episode_id] = EpisodeSubtitles(
                episode_id=episode_id,
                episode_number=i + 1,
                video_file_name=video.original_name if video else None,
                entries=srt_codec.attach_episode(parsed.entries, episode_id),
            )

        await self.store.add_log(job.id, LogLevel.INFO, f"Parsed {len(episodes)} episode(s)")
        return episodes

    async def _analyze(self, job: Job, episodes: dict[str, EpisodeSubtitles]) -> AnalysisResult:
        await self._enter(job.id, JobStatus.ANALYZING, "Analyzing season with AI")

        driver = self.llm_factory(job.config.llm_provider)
        summary_input = SummarizationInput(
            subtitles_by_episode=sorted(episodes.values(), key=lambda ep: ep.episode_number),
            target_duration_minutes=target_length_to_minutes(
                job.config.target_length, self.settings.target_durations()
            ),
            language=job.config.language,
            mode=job.config.mode,
            series_name=job.config.series_name,
            season=job.config.season,
        )

        await self.store.update_progress(job.id, "Selecting key moments with AI", 30)
        key_moments = await driver.select_key_moments(summary_input)
        if not key_moments.moments:
            raise ValidationError("The AI did not select any key moments")
        await self.store.add_log(
            job.id, LogLevel.INFO, f"Selected {len(key_moments.moments)} key moment(s)"
        )

        narrative = None
        if job.config.mode == SummaryMode.NARRATED:
            await self.store.update_progress(job.id, "Generating narrative with AI", 70)
            result = await driver.generate_narrative(
                key_moments.moments, job.config.language, job.config.series_name, job.config.season
            )
            narrative = result.full_narrative.strip() or None

        await self.store.update_progress(job.id, "AI analysis complete", 100)
        return AnalysisResult(key_moments, narrative)

    async def _generate_clip_specs(self, job: Job, moments: list[KeyMoment]) -> list[ClipSpec]:
        await self._enter(job.id, JobStatus.GENERATING_CLIPS, "Generating clip list")

        clips: list[ClipSpec] = []
        for moment in moments:
            video = find_matching_video(moment.episode_id, job.video_files)
            if video is None:
                await self.store.add_log(
                    job.id, LogLevel.WARN, f"No video file found for episode {moment.episode_id}"
                )
                continue
            clips.append(
                ClipSpec(
                    episode_id=moment.episode_id,
                    video_path=video.path,
                    start_time=moment.start_time,
                    end_time=moment.end_time,
                    order=len(clips) + 1,
                    moment=moment,
                )
            )

        if not clips:
            raise ValidationError("None of the selected moments match an uploaded video")

        clips_path = self.store.get_output_dir(job.id) / "clips.json"
        clips_path.parent.mkdir(parents=True, exist_ok=True)
        clips_path.write_text(
            json.dumps([clip.model_dump(mode="json") for clip in clips], indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        await self.store.update_outputs(
            job.id, clips_json_path=self.store.relative_output_path(clips_path)
        )
        await self.store.update_progress(job.id, f"Generated {len(clips)} clips", 100)
        return clips

    async def _process_video(self, job: Job, clips: list[ClipSpec]) -> Path:
        await self._enter(job.id, JobStatus.PROCESSING_VIDEO, "Processing video clips")

        output_dir = self.store.get_output_dir(job.id)
        output_path = output_dir / self._output_name(job, "summary.mp4")

        async def on_clip_done(done: int, total: int) -> None:
            await self.store.update_progress(
                job.id, f"Extracted clip {done}/{total}", round(done / total * 90)
            )

        await assemble_clips(clips, output_path, output_dir / "temp", self.ffmpeg, on_clip_done)
        await self._check_duration(job, output_path, calculate_total_duration(clips))

        await self.store.update_progress(job.id, "Video processing complete", 100)
        return output_path

    async def _check_duration(self, job: Job, video_path: Path, expected: float) -> None:
        """Compare the assembled video's length with the clip total (diagnostic only)."""
        try:
            actual = await self.ffmpeg.probe_duration(video_path)
        except MediaToolError as e:
            logger.warning(f"Could not probe {video_path.name}: {e}")
            return

        if abs(actual - expected) > DURATION_TOLERANCE_SECONDS:
            await self.store.add_log(
                job.id,
                LogLevel.WARN,
                f"Summary video is {actual:.1f}s but clips add up to {expected:.1f}s; "
                "subtitles may drift",
            )

    async def _generate_srt(
        self, job: Job, clips: list[ClipSpec], episodes: dict[str, EpisodeSubtitles]
    ) -> Path:
        await self._enter(job.id, JobStatus.GENERATING_SRT, "Generating subtitles")

        result = remap_subtitles_to_clips(
            clips,
            {episode_id: episode.entries for episode_id, episode in episodes.items()},
            policy=self.settings.get_pipeline_value("remap.policy", "contain"),
            min_overlap=float(self.settings.get_pipeline_value("remap.min_overlap", 0.5)),
        )
        srt_path = self.store.get_output_dir(job.id) / self._output_name(job, "summary.srt")
        srt_path.write_text(srt_codec.generate(result.entries), encoding="utf-8")

        await self.store.add_log(
            job.id,
            LogLevel.INFO,
            f"Wrote {len(result.entries)} subtitle(s) over {result.total_duration:.1f}s",
        )
        await self.store.update_progress(job.id, "Subtitles generated", 100)
        return srt_path

    async def _generate_tts(self, job: Job, narrative: str) -> tuple[Path, float]:
        await self._enter(job.id, JobStatus.GENERATING_TTS, "Generating voiceover")

        audio_path = self.store.get_output_dir(job.id) / "narrative.mp3"
        result = await self.tts_service.synthesize_to_file(narrative, audio_path)
        await self.store.add_log(
            job.id, LogLevel.INFO, f"Voiceover is about {result.duration_ms / 1000:.0f}s long"
        )

        audio_path = Path(result.audio_file_path)
        try:
            audio_seconds = await self.ffmpeg.probe_duration(audio_path)
        except MediaToolError as e:
            logger.warning(f"Could not probe {audio_path.name}, using synthesis estimate: {e}")
            audio_seconds = 0.0
        if audio_seconds <= 0:
            audio_seconds = result.duration_ms / 1000

        await self.store.update_progress(job.id, "Voiceover generated", 100)
        return audio_path, audio_seconds

    async def _mix_audio(self, job: Job, video_path: Path, audio_path: Path) -> Path:
        await self._enter(job.id, JobStatus.MIXING_AUDIO, "Mixing audio with video")

        output_dir = self.store.get_output_dir(job.id)
        silent_path = output_dir / "summary_silent.mp4"
        final_path = output_dir / self._output_name(job, "summary_narrated.mp4")
        try:
            await self.ffmpeg.remove_audio(video_path, silent_path)
            await self.store.update_progress(job.id, "Mixing audio track", 50)
            await self.ffmpeg.mux_audio(silent_path, audio_path, final_path)
        finally:
            remove_path(silent_path)

        await self.store.update_progress(job.id, "Audio mixing complete", 100)
        return final_path

    def _generate_narrative_srt(
        self, job: Job, narrative: str, clips: list[ClipSpec], audio_seconds: float
    ) -> Path:
        # The muxed video stops at the shorter of the clips and the voiceover
        clip_seconds = calculate_total_duration(clips)
        spoken_seconds = min(clip_seconds, audio_seconds) if audio_seconds > 0 else clip_seconds
        blocks = build_narration_blocks(
            narrative,
            spoken_seconds,
            weighting=self.settings.get_pipeline_value("narration.weighting", "uniform"),
        )
        entries = generate_narrative_subtitles(
            blocks, chunk_seconds=float(self.settings.get_pipeline_value("narration.chunk_seconds", 8))
        )
        srt_path = self.store.get_output_dir(job.id) / self._output_name(job, "summary_narrative.srt")
        srt_path.write_text(srt_codec.generate(entries), encoding="utf-8")
        return srt_path

    async def _finish(
        self,
        job_id: str,
        analysis: AnalysisResult,
        video_path: Path,
        srt_path: Path,
        audio_path: Path | None,
        narrative_srt_path: Path | None,
    ) -> None:
        rel = self.store.relative_output_path
        await self.store.update_outputs(
            job_id,
            video_path=rel(video_path),
            srt_path=rel(srt_path),
            audio_path=rel(audio_path) if audio_path else None,
            narrative_srt_path=rel(narrative_srt_path) if narrative_srt_path else None,
        )

        await self.store.update_analysis(
            job_id,
            key_moments=analysis.key_moments.moments,
            narrative_outline=analysis.key_moments.narrative_outline,
            narrative=analysis.narrative,
        )

        await self.store.update_status(job_id, JobStatus.COMPLETED, "Summary generation complete", 100)
        await self.store.add_log(job_id, LogLevel.SUCCESS, "Summary generation complete")
        logger.info(f"Job {job_id} completed")
