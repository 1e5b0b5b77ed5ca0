"""Tests for SRT parsing and generation."""

import pytest

from services.subtitles import srt_codec
from shared.exceptions import SubtitleFormatError
from shared.models import SrtBlock

SAMPLE_SRT = """1
00:00:01,000 --> 00:00:03,500
Hola, ¿qué tal?

2
00:00:04,000 --> 00:00:06,250
Primera línea
Segunda línea
"""


class TestTimestamps:
    def test_parse_timestamp_comma_and_dot(self):
        assert srt_codec.parse_timestamp("01:02:03,456") == pytest.approx(3723.456)
        assert srt_codec.parse_timestamp("00:00:01.500") == pytest.approx(1.5)

    @pytest.mark.parametrize("bad", ["1:02:03,456", "00:00:01", "aa:bb:cc,ddd", ""])
    def test_parse_timestamp_rejects_malformed(self, bad):
        with pytest.raises(SubtitleFormatError):
            srt_codec.parse_timestamp(bad)

    def test_format_timestamp_rounds_milliseconds(self):
        assert srt_codec.format_timestamp(0) == "00:00:00,000"
        assert srt_codec.format_timestamp(3723.456) == "01:02:03,456"
        assert srt_codec.format_timestamp(1.9996) == "00:00:02,000"

    def test_format_timestamp_clamps_negative(self):
        assert srt_codec.format_timestamp(-3) == "00:00:00,000"

    @pytest.mark.parametrize(
        "seconds",
        [0, 0.001, 0.5, 1.9994, 59.999, 61.25, 3599.9995, 3723.456, 86399.999, 359999.999, 360000.5],
    )
    def test_timestamp_round_trip_within_a_millisecond(self, seconds):
        assert srt_codec.parse_timestamp(srt_codec.format_timestamp(seconds)) == pytest.approx(seconds, abs=0.001)

    def test_hours_beyond_two_digits(self):
        assert srt_codec.format_timestamp(360000.5) == "100:00:00,500"
        assert srt_codec.parse_timestamp("100:00:00,500") == pytest.approx(360000.5)


class TestParse:
    def test_parse_basic_document(self):
        result = srt_codec.parse(SAMPLE_SRT)

        assert result.skipped_blocks == 0
        assert len(result.entries) == 2
        first, second = result.entries
        assert first.index == 1
        assert first.start_time == pytest.approx(1.0)
        assert first.end_time == pytest.approx(3.5)
        assert first.text == "Hola, ¿qué tal?"
        assert second.text == "Primera línea\nSegunda línea"

    def test_parse_handles_bom_and_crlf(self):
        content = "﻿" + SAMPLE_SRT.replace("\n", "\r\n")
        result = srt_codec.parse(content)
        assert [entry.index for entry in result.entries] == [1, 2]
        assert result.entries[0].text == "Hola, ¿qué tal?"

    def test_parse_counts_malformed_blocks(self):
        content = (
            "1\n00:00:01,000 --> 00:00:02,000\nok\n\n"
            "x\n00:00:03,000 --> 00:00:04,000\nbad index\n\n"
            "3\nno timing here\ntext\n\n"
            "4\n00:00:05,000 --> 00:00:06,000\n\n"
            "5\n00:00:09,000 --> 00:00:07,000\nbackwards\n"
        )
        result = srt_codec.parse(content)

        assert [entry.text for entry in result.entries] == ["ok"]
        assert result.skipped_blocks == 4

    def test_good_block_after_malformed_block_still_parses(self):
        content = (
            "1\n00:00:01,000 00:00:02,000\nmissing arrow\n\n"
            "2\n00:00:05,000 --> 00:00:06,500\nstill here\n"
        )
        result = srt_codec.parse(content)

        assert result.skipped_blocks == 1
        assert [(e.index, e.start_time, e.end_time, e.text) for e in result.entries] == [
            (2, 5.0, 6.5, "still here")
        ]

    def test_parse_empty_content(self):
        result = srt_codec.parse("   \n\n  ")
        assert result.entries == []
        assert result.skipped_blocks == 0

    def test_parse_file_tags_episode(self):
        entries = srt_codec.parse_file(SAMPLE_SRT, "S01E03")
        assert {entry.episode_id for entry in entries} == {"S01E03"}


class TestGenerate:
    def test_generate_renumbers_from_one(self):
        entries = [
            SrtBlock(index=7, start_time=0.0, end_time=1.25, text="uno"),
            SrtBlock(index=9, start_time=2.0, end_time=3.0, text="dos\ntres"),
        ]
        output = srt_codec.generate(entries)

        assert output == (
            "1\n00:00:00,000 --> 00:00:01,250\nuno\n\n"
            "2\n00:00:02,000 --> 00:00:03,000\ndos\ntres"
        )

    def test_generate_empty(self):
        assert srt_codec.generate([]) == ""

    def test_generated_text_parses_back(self):
        parsed = srt_codec.parse(SAMPLE_SRT)
        again = srt_codec.parse(srt_codec.generate(parsed.entries))
        assert [(e.start_time, e.end_time, e.text) for e in again.entries] == [
            (e.start_time, e.end_time, e.text) for e in parsed.entries
        ]

    def test_regenerated_output_is_identical(self):
        entries = [
            SrtBlock(index=4, start_time=0.0004, end_time=1.2346, text="uno"),
            SrtBlock(index=8, start_time=61.5, end_time=3599.9996, text="dos\ntres"),
            SrtBlock(index=9, start_time=3600.0, end_time=3600.0, text="¿cuatro?"),
        ]
        rendered = srt_codec.generate(entries)

        assert srt_codec.generate(srt_codec.parse(rendered).entries) == rendered
