"""Tests for remapping episode subtitles onto the summary timeline."""

import pytest

from services.subtitles.remapper import (
    calculate_total_duration,
    find_overlapping_subtitles,
    remap_subtitles_to_clips,
)
from shared.models import ClipDefinition, SubtitleEntry


def clip(episode_id: str, start: float, end: float, order: int) -> ClipDefinition:
    return ClipDefinition(
        episode_id=episode_id,
        video_path=f"/videos/{episode_id}.mp4",
        start_time=start,
        end_time=end,
        order=order,
    )


def entry(episode_id: str, start: float, end: float, text: str, index: int = 1) -> SubtitleEntry:
    return SubtitleEntry(
        episode_id=episode_id, index=index, start_time=start, end_time=end, text=text
    )


@pytest.fixture
def two_clips():
    return [clip("S01E01", 10, 20, 1), clip("S01E02", 30, 40, 2)]


class TestRemapSubtitles:
    def test_offsets_follow_previous_clip_durations(self, two_clips):
        subtitles = {
            "S01E01": [entry("S01E01", 12, 15, "A")],
            "S01E02": [entry("S01E02", 32, 38, "B")],
        }

        result = remap_subtitles_to_clips(two_clips, subtitles)

        assert [(e.start_time, e.end_time, e.text) for e in result.entries] == [
            (pytest.approx(2), pytest.approx(5), "A"),
            (pytest.approx(12), pytest.approx(18), "B"),
        ]
        assert [e.index for e in result.entries] == [1, 2]
        assert result.entries[1].original_episode_id == "S01E02"
        assert result.entries[1].original_start_time == 32

    def test_clips_are_processed_in_order_field(self, two_clips):
        subtitles = {
            "S01E01": [entry("S01E01", 12, 15, "A")],
            "S01E02": [entry("S01E02", 32, 38, "B")],
        }

        result = remap_subtitles_to_clips(list(reversed(two_clips)), subtitles)

        assert [e.text for e in result.entries] == ["A", "B"]

    def test_total_duration_equals_sum_of_clips(self, two_clips):
        clips = [*two_clips, clip("S01E03", 5.5, 7.25, 3)]
        result = remap_subtitles_to_clips(clips, {})

        assert result.entries == []
        assert result.total_duration == calculate_total_duration(clips) == pytest.approx(21.75)

    def test_contain_policy_drops_straddling_entries(self, two_clips):
        subtitles = {
            "S01E01": [
                entry("S01E01", 8, 11, "starts before", 1),
                entry("S01E01", 11, 13, "inside", 2),
                entry("S01E01", 19, 22, "ends after", 3),
            ],
        }

        result = remap_subtitles_to_clips(two_clips, subtitles)

        assert [e.text for e in result.entries] == ["inside"]

    def test_output_is_monotonic_within_and_across_clips(self):
        clips = [clip("S01E01", 0, 30, 1), clip("S01E01", 100, 130, 2)]
        subtitles = {
            "S01E01": [
                entry("S01E01", 110, 112, "late", 4),
                entry("S01E01", 5, 7, "b", 2),
                entry("S01E01", 1, 3, "a", 1),
                entry("S01E01", 101, 104, "c", 3),
            ]
        }

        result = remap_subtitles_to_clips(clips, subtitles)

        starts = [e.start_time for e in result.entries]
        assert [e.text for e in result.entries] == ["a", "b", "c", "late"]
        assert starts == sorted(starts)
        for e in result.entries:
            assert 0 <= e.start_time <= e.end_time <= result.total_duration

    def test_missing_episode_subtitles_still_advance_offset(self, two_clips):
        subtitles = {"S01E02": [entry("S01E02", 30, 31, "B")]}

        result = remap_subtitles_to_clips(two_clips, subtitles)

        assert result.entries[0].start_time == pytest.approx(10)

    def test_overlap_policy_clamps_to_clip(self, two_clips):
        subtitles = {"S01E01": [entry("S01E01", 18, 21, "mostly inside")]}

        result = remap_subtitles_to_clips(two_clips, subtitles, policy="overlap", min_overlap=0.5)

        assert len(result.entries) == 1
        assert result.entries[0].start_time == pytest.approx(8)
        assert result.entries[0].end_time == pytest.approx(10)

    def test_unknown_policy(self, two_clips):
        with pytest.raises(ValueError):
            remap_subtitles_to_clips(two_clips, {}, policy="nearest")


class TestFindOverlapping:
    def test_ratio_threshold(self):
        entries = [
            entry("S01E01", 0, 10, "half", 1),
            entry("S01E01", 6, 16, "forty percent", 2),
        ]
        selected = find_overlapping_subtitles(entries, 5, 10, min_overlap=0.5)
        assert [e.text for e in selected] == ["half"]

    def test_zero_length_entries_inside_range(self):
        entries = [entry("S01E01", 5, 5, "inside", 1), entry("S01E01", 50, 50, "outside", 2)]
        selected = find_overlapping_subtitles(entries, 0, 10)
        assert [e.text for e in selected] == ["inside"]
