"""
Configuration management for services.
"""

import json
import os
from typing import Any

import yaml

from dotenv import load_dotenv

DEFAULT_MAX_FILE_SIZE = 2 * 1024 * 1024 * 1024


def _env_int(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


class ServiceConfig:
    """Configuration management for services using environment variables."""

    def __init__(self) -> None:
        """Initialize configuration by loading environment variables."""
        # .env lives at the repository root, next to bootloader.py
        env_path = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.env"))
        load_dotenv(dotenv_path=env_path, override=False)
        self.config: dict[str, Any] = {}
        self.pipeline_config: dict[str, Any] = {}
        self.pipeline_config_path = os.getenv(
            "PIPELINE_CONFIG_PATH",
            os.path.join(os.path.dirname(__file__), "../config/pipeline.yaml"),
        )
        self.load_from_env()
        self.load_pipeline_config()

    def load_from_env(self) -> None:
        """Load configuration from environment variables."""
        data_dir = os.getenv("DATA_DIR", "./data")
        self.config = {
            "port": _env_int("PORT", 3001),
            "debug": os.getenv("DEBUG", "false").lower() == "true",
            "allowed_origins": json.loads(os.getenv("ALLOWED_ORIGINS", '["*"]')),
            "openai_api_key": os.getenv("OPENAI_API_KEY"),
            "openai_api_base": os.getenv("OPENAI_API_BASE") or None,
            "openai_model": os.getenv("OPENAI_MODEL", "gpt-4o"),
            "anthropic_api_key": os.getenv("ANTHROPIC_API_KEY"),
            "anthropic_model": os.getenv("ANTHROPIC_MODEL", "claude-sonnet-4-20250514"),
            "anthropic_opus_model": os.getenv("ANTHROPIC_OPUS_MODEL", "claude-opus-4-20250514"),
            "azure_speech_key": os.getenv("AZURE_SPEECH_KEY"),
            "azure_speech_region": os.getenv("AZURE_SPEECH_REGION", "westeurope"),
            "azure_speech_voice": os.getenv("AZURE_SPEECH_VOICE", "es-ES-ElviraNeural"),
            "tts_provider": os.getenv("TTS_PROVIDER", "azure").lower(),
            "openai_tts_voice": os.getenv("OPENAI_TTS_VOICE", "nova"),
            "openai_tts_model": os.getenv("OPENAI_TTS_MODEL", "tts-1-hd"),
            "data_dir": data_dir,
            "uploads_dir": os.getenv("UPLOADS_DIR", os.path.join(data_dir, "uploads")),
            "outputs_dir": os.getenv("OUTPUTS_DIR", os.path.join(data_dir, "outputs")),
            "jobs_dir": os.getenv("JOBS_DIR", os.path.join(data_dir, "jobs")),
            "max_file_size": _env_int("MAX_FILE_SIZE", DEFAULT_MAX_FILE_SIZE),
            "ffmpeg_path": os.getenv("FFMPEG_PATH") or None,
            "target_duration_short": _env_int("TARGET_DURATION_SHORT", 5),
            "target_duration_medium": _env_int("TARGET_DURATION_MEDIUM", 15),
            "target_duration_long": _env_int("TARGET_DURATION_LONG", 30),
            "llm_max_retries": _env_int("LLM_MAX_RETRIES", 3),
        }

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key.

        Args:
            key: Configuration key
            default: Default value if key not found

        Returns:
            Configuration value
        """
        value = self.config.get(key)
        return default if value is None else value

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value.

        Args:
            key: Configuration key
            value: Configuration value
        """
        self.config[key] = value

    def reload(self) -> None:
        """Reload configuration from environment variables."""
        self.load_from_env()
        self.load_pipeline_config()

    def target_durations(self) -> dict[str, int]:
        """Minutes used for the named target lengths."""
        return {
            "short": self.get("target_duration_short", 5),
            "medium": self.get("target_duration_medium", 15),
            "long": self.get("target_duration_long", 30),
        }

    def load_pipeline_config(self) -> None:
        """Load pipeline configuration from YAML file."""
        path = os.path.abspath(self.pipeline_config_path)
        try:
            with open(path, "r", encoding="utf-8") as stream:
                data = yaml.safe_load(stream) or {}
        except FileNotFoundError:
            data = {}
        self.pipeline_config = data

    def get_pipeline_value(self, path: str, default: Any = None) -> Any:
        """Retrieve a pipeline configuration value via dotted path."""
        env_override_key = f"PIPELINE_FLAG_{path.replace('.', '_').upper()}"
        env_value = os.getenv(env_override_key)
        if env_value is not None:
            return self._coerce_env_value(env_value, default)

        node: Any = self.pipeline_config
        for part in path.split("."):
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node if node is not None else default

    def set_pipeline_config(self, pipeline_config: dict[str, Any]) -> None:
        """Override pipeline configuration (useful for tests)."""
        self.pipeline_config = pipeline_config

    @staticmethod
    def _coerce_env_value(raw: str, default: Any) -> Any:
        lowered = raw.lower()
        if lowered in {"true", "false"}:
            return lowered == "true"
        if lowered.replace(".", "", 1).isdigit():
            try:
                return float(lowered) if "." in lowered else int(lowered)
            except ValueError:
                return raw
        return raw or default


# Global configuration instance
config = ServiceConfig()
