"""Runtime configuration for the moderation service.

Values come from environment variables so the same code runs under the CLI,
the FastAPI app and the tests without a settings file.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_MODEL = "claude-opus-4-1-20250805"
DEFAULT_DATA_DIR = Path.home() / ".streamcentives" / "moderation"
DEFAULT_CLASSIFIER_TIMEOUT = 30.0
DEFAULT_MAX_TOKENS = 1000


@dataclass
class ModerationConfig:
    """Settings shared by the pipeline entry points."""

    api_key: str = ""
    model: str = DEFAULT_MODEL
    data_dir: Path = DEFAULT_DATA_DIR
    classifier_timeout: float = DEFAULT_CLASSIFIER_TIMEOUT
    max_tokens: int = DEFAULT_MAX_TOKENS
    thresholds_file: Path | None = None

    @classmethod
    def from_env(cls) -> ModerationConfig:
        """Build a config from ``ANTHROPIC_API_KEY`` and ``STREAMCENTIVES_*`` variables."""
        data_dir = os.environ.get("STREAMCENTIVES_DATA_DIR")
        thresholds_file = os.environ.get("STREAMCENTIVES_THRESHOLDS_FILE")
        timeout = os.environ.get("STREAMCENTIVES_CLASSIFIER_TIMEOUT")
        try:
            classifier_timeout = float(timeout) if timeout else DEFAULT_CLASSIFIER_TIMEOUT
        except ValueError:
            classifier_timeout = DEFAULT_CLASSIFIER_TIMEOUT

        return cls(
            api_key=os.environ.get("ANTHROPIC_API_KEY", ""),
            model=os.environ.get("STREAMCENTIVES_MODEL", DEFAULT_MODEL),
            data_dir=Path(data_dir) if data_dir else DEFAULT_DATA_DIR,
            classifier_timeout=classifier_timeout,
            thresholds_file=Path(thresholds_file) if thresholds_file else None,
        )
