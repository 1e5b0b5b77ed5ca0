from pathlib import Path

import pytest

from shared.config import ServiceConfig
from shared.utils import config, remove_path, safe_stem, sanitize_filename


def test_config_env_loading() -> None:
    assert isinstance(config.get("allowed_origins"), list)
    assert isinstance(config.get("max_file_size"), int)
    assert set(config.target_durations()) == {"short", "medium", "long"}


def test_config_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TARGET_DURATION_SHORT", "3")
    monkeypatch.setenv("MAX_FILE_SIZE", "not-a-number")
    monkeypatch.setenv("TTS_PROVIDER", "OpenAI")

    settings = ServiceConfig()

    assert settings.target_durations()["short"] == 3
    assert settings.get("max_file_size") == 2 * 1024 * 1024 * 1024
    assert settings.get("tts_provider") == "openai"


def test_pipeline_values_and_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    settings = ServiceConfig()
    settings.set_pipeline_config({"remap": {"policy": "contain", "min_overlap": 0.5}})

    assert settings.get_pipeline_value("remap.policy") == "contain"
    assert settings.get_pipeline_value("remap.missing", "fallback") == "fallback"

    monkeypatch.setenv("PIPELINE_FLAG_REMAP_POLICY", "overlap")
    monkeypatch.setenv("PIPELINE_FLAG_REMAP_MIN_OVERLAP", "0.75")
    assert settings.get_pipeline_value("remap.policy") == "overlap"
    assert settings.get_pipeline_value("remap.min_overlap") == 0.75


def test_bundled_pipeline_config_is_loaded() -> None:
    settings = ServiceConfig()
    assert settings.get_pipeline_value("narration.chunk_seconds") == 8
    assert settings.get_pipeline_value("tts.max_chars_per_chunk.openai") == 4000


def test_sanitize_filename() -> None:
    assert sanitize_filename("bad:file/name?.mp3") == "name_.mp3"
    assert sanitize_filename("C:\\videos\\Show S01E01.mkv") == "Show_S01E01.mkv"


def test_safe_stem() -> None:
    assert safe_stem("Dark Waters") == "Dark_Waters"
    assert safe_stem("La Casa de Papel: Parte 1") == "La_Casa_de_Papel_Parte_1"
    assert safe_stem("///") == "series"


def test_remove_path(tmp_path: Path) -> None:
    nested = tmp_path / "work" / "inner"
    nested.mkdir(parents=True)
    (nested / "clip.mp4").write_bytes(b"x")
    single = tmp_path / "list.txt"
    single.write_text("x")

    remove_path(tmp_path / "work")
    remove_path(single)
    remove_path(tmp_path / "never-existed")

    assert not (tmp_path / "work").exists()
    assert not single.exists()
