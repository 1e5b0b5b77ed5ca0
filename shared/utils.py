import logging
import re
import shutil
from pathlib import Path

from shared.config import config

__all__ = [
    "config",
    "ensure_directory",
    "remove_path",
    "safe_stem",
    "sanitize_filename",
    "setup_logging",
]


def setup_logging(service_name: str, log_level: str = "INFO") -> logging.Logger:
    """Setup logging configuration for a service"""
    logger = logging.getLogger(service_name)
    logger.setLevel(getattr(logging, log_level.upper()))

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(f"%(asctime)s - {service_name} - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def sanitize_filename(filename: str) -> str:
    """Sanitize filename for safe storage"""
    name = Path(filename.replace("\\", "/")).name
    return re.sub(r"[^a-zA-Z0-9._-]", "_", name)


def safe_stem(value: str) -> str:
    """Make a series name usable as part of an output filename."""
    cleaned = re.sub(r"[^\w.-]+", "_", value.strip(), flags=re.UNICODE).strip("._")
    return cleaned or "series"


def ensure_directory(path: str | Path) -> None:
    """Ensure directory exists, create if not"""
    Path(path).mkdir(parents=True, exist_ok=True)


def remove_path(path: str | Path) -> None:
    """Remove a file or directory tree if it exists."""
    target = Path(path)
    if target.is_dir():
        shutil.rmtree(target, ignore_errors=True)
    elif target.exists():
        target.unlink()
