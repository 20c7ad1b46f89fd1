"""Configuration for diffcritic.

Values come from DIFFCRITIC_* environment variables, falling back to the
defaults below. Command-line flags override both.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

LOG_FORMATS = ("console", "json")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass
class ReviewConfig:
    """Review run configuration."""

    # What to diff
    repo_path: Path = field(default_factory=Path.cwd)
    base_branch: str = "main"
    context_lines: int = 3

    # LargeDiffCritic thresholds
    max_changed_lines: int = 500
    max_changed_files: int = 20

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"  # "console" | "json"

    @classmethod
    def from_env(cls) -> "ReviewConfig":
        """Create configuration from environment variables."""
        log_format = os.getenv("DIFFCRITIC_LOG_FORMAT", "console").lower()
        if log_format not in LOG_FORMATS:
            raise ValueError(
                f"DIFFCRITIC_LOG_FORMAT must be one of {', '.join(LOG_FORMATS)}, got {log_format!r}"
            )

        return cls(
            repo_path=Path(os.getenv("DIFFCRITIC_REPO_PATH", os.getcwd())),
            base_branch=os.getenv("DIFFCRITIC_BASE_BRANCH", "main"),
            context_lines=_env_int("DIFFCRITIC_CONTEXT_LINES", 3),
            max_changed_lines=_env_int("DIFFCRITIC_MAX_CHANGED_LINES", 500),
            max_changed_files=_env_int("DIFFCRITIC_MAX_CHANGED_FILES", 20),
            log_level=os.getenv("DIFFCRITIC_LOG_LEVEL", "INFO").upper(),
            log_format=log_format,
        )
