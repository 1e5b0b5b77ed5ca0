from services.subtitles.timeline import (
    TRUNCATION_MARKER,
    build_timeline,
    format_time_marker,
    render_for_external_analysis,
)
from shared.models import EpisodeSubtitles, SubtitleEntry


def _episode(episode_id: str, number: int, texts: list[str]) -> EpisodeSubtitles:
    return EpisodeSubtitles(
        episode_id=episode_id,
        episode_number=number,
        entries=[
            SubtitleEntry(
                episode_id=episode_id,
                index=i + 1,
                start_time=i * 65.0,
                end_time=i * 65.0 + 2,
                text=text,
            )
            for i, text in enumerate(texts)
        ],
    )


def test_build_timeline_orders_by_episode_number() -> None:
    season = build_timeline(
        [_episode("S01E02", 2, ["b"]), _episode("S01E01", 1, ["a", "a2"])],
        "Dark Waters",
        1,
        "es-ES",
    )

    assert [ep.episode_id for ep in season.episodes] == ["S01E01", "S01E02"]
    assert season.total_entries == 3


def test_format_time_marker() -> None:
    assert format_time_marker(0) == "00:00"
    assert format_time_marker(65.9) == "01:05"
    assert format_time_marker(3725) == "62:05"


def test_render_includes_header_and_markers() -> None:
    season = build_timeline([_episode("S01E01", 1, ["Hola", "Adiós"])], "Dark Waters", 1, "es-ES")

    text = render_for_external_analysis(season)

    assert text.startswith("=== Dark Waters - Season 1 ===\nLanguage: es-ES\nTotal Episodes: 1")
    assert "--- S01E01 ---" in text
    assert "[00:00] Hola\n[01:05] Adiós" in text
    assert TRUNCATION_MARKER not in text


def test_render_truncates_per_episode() -> None:
    long_lines = [f"line number {i:03d}" for i in range(50)]
    season = build_timeline(
        [_episode("S01E01", 1, long_lines), _episode("S01E02", 2, ["short"])],
        "Dark Waters",
        1,
        "es-ES",
    )

    text = render_for_external_analysis(season, max_chars_per_episode=100)

    first_episode = text.split("--- S01E02 ---")[0]
    assert TRUNCATION_MARKER in first_episode
    assert "line number 049" not in first_episode
    assert "[00:00] short" in text
