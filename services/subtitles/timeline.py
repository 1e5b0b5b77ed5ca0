"""Season-wide subtitle timeline used as LLM input."""

from __future__ import annotations

from collections.abc import Iterable

from shared.models import EpisodeSubtitles, SeasonSubtitles

TRUNCATION_MARKER = "[...truncated...]"


def build_timeline(
    episodes: Iterable[EpisodeSubtitles],
    series_name: str,
    season: int,
    language: str,
) -> SeasonSubtitles:
    """Order episodes by episode number and count their entries."""
    ordered = sorted(episodes, key=lambda episode: episode.episode_number)
    return SeasonSubtitles(
        series_name=series_name,
        season=season,
        language=language,
        episodes=ordered,
        total_entries=sum(len(episode.entries) for episode in ordered),
    )


def format_time_marker(seconds: float) -> str:
    """Compact ``MM:SS`` marker; minutes are not wrapped at the hour."""
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes:02d}:{secs:02d}"


def render_for_external_analysis(
    season: SeasonSubtitles, max_chars_per_episode: int | None = None
) -> str:
    """
    Render the season as plain text for moment selection.

    When ``max_chars_per_episode`` is set, an episode keeps whole entries from
    its start until the next line would exceed the budget, then ends with a
    truncation marker.
    """
    lines = [
        f"=== {season.series_name} - Season {season.season} ===",
        f"Language: {season.language}",
        f"Total Episodes: {len(season.episodes)}",
        "",
    ]

    for episode in season.episodes:
        lines.append(f"--- {episode.episode_id} ---")

        episode_text = ""
        for entry in episode.entries:
            line = f"[{format_time_marker(entry.start_time)}] {entry.text}"
            if max_chars_per_episode and len(episode_text) + len(line) > max_chars_per_episode:
                episode_text += f"\n{TRUNCATION_MARKER}"
                break
            episode_text += ("\n" if episode_text else "") + line

        lines.append(episode_text)
        lines.append("")

    return "\n".join(lines)
