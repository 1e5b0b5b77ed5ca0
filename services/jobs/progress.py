"""Overall progress and target length helpers."""

from __future__ import annotations

from collections.abc import Mapping

from shared.enums import JobStatus, SummaryMode, TargetLength
from shared.models import Job

STAGE_ORDER: tuple[JobStatus, ...] = (
    JobStatus.PENDING,
    JobStatus.VALIDATING,
    JobStatus.PARSING,
    JobStatus.ANALYZING,
    JobStatus.GENERATING_CLIPS,
    JobStatus.PROCESSING_VIDEO,
    JobStatus.GENERATING_SRT,
    JobStatus.GENERATING_TTS,
    JobStatus.MIXING_AUDIO,
    JobStatus.COMPLETED,
)
NARRATION_STAGES = {JobStatus.GENERATING_TTS, JobStatus.MIXING_AUDIO}


def stages_for_mode(mode: SummaryMode) -> list[JobStatus]:
    """Stages a job of ``mode`` passes through, from pending to completed."""
    if mode == SummaryMode.NARRATED:
        return list(STAGE_ORDER)
    return [stage for stage in STAGE_ORDER if stage not in NARRATION_STAGES]


def calculate_overall_progress(job: Job) -> int:
    """
    Percentage across all stages of the job's mode.

    Every stage owns an equal segment; the active one is filled by its own
    ``stage_progress``. Running jobs never report more than 99. A failed job
    reports the progress of the stage it failed in.
    """
    if job.status == JobStatus.COMPLETED:
        return 100
    if job.status == JobStatus.FAILED:
        return int(round(job.progress.stage_progress))

    stages = stages_for_mode(job.config.mode)
    if job.status not in stages:
        return 0

    weight = 100 / (len(stages) - 1)
    base = stages.index(job.status) * weight
    within = job.progress.stage_progress / 100 * weight
    return min(99, int(round(base + within)))


def target_length_to_minutes(
    target_length: TargetLength | float | str, defaults: Mapping[str, float]
) -> float:
    """Resolve a named length through ``defaults``; numbers are minutes already."""
    if isinstance(target_length, (int, float)):
        return float(target_length)

    try:
        key = TargetLength(target_length).value
    except ValueError:
        key = TargetLength.MEDIUM.value
    return float(defaults.get(key, defaults.get(TargetLength.MEDIUM.value, 15)))
