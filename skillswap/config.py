"""Runtime settings loaded from a YAML file with environment overrides.

Lookup order for the settings file: explicit path, ``$SKILLSWAP_CONFIG``,
``<data_dir>/config.yaml``. A missing file means defaults.

Example ``config.yaml``::

    data_dir: /var/lib/skillswap
    log_level: INFO
    store:
      cas_max_attempts: 5
    members:
      default_rating: 5.0
    matching:
      limit: 20
    events:
      persist: true
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from skillswap.errors import ValidationError

DEFAULT_HOME = Path.home() / ".skillswap"


@dataclass
class Settings:
    """Settings for a SkillSwap deployment."""

    data_dir: Path = field(default_factory=lambda: DEFAULT_HOME)
    log_level: str = "INFO"
    cas_max_attempts: int = 5
    default_rating: float = 5.0
    match_limit: int = 0  # 0 = unlimited
    persist_events: bool = True

    def __post_init__(self) -> None:
        self.data_dir = Path(self.data_dir).expanduser()
        if self.cas_max_attempts < 1:
            raise ValidationError("store.cas_max_attempts must be at least 1")
        if not (0.0 <= self.default_rating <= 5.0):
            raise ValidationError("members.default_rating must be in [0.0, 5.0]")
        if self.match_limit < 0:
            raise ValidationError("matching.limit must be >= 0")


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from YAML, applying ``SKILLSWAP_*`` environment overrides."""
    home = Path(os.environ.get("SKILLSWAP_HOME", str(DEFAULT_HOME))).expanduser()

    config_path: Optional[Path] = None
    if path is not None:
        config_path = Path(path)
    elif os.environ.get("SKILLSWAP_CONFIG"):
        config_path = Path(os.environ["SKILLSWAP_CONFIG"])
    elif (home / "config.yaml").exists():
        config_path = home / "config.yaml"

    data: dict = {}
    if config_path is not None:
        try:
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValidationError(f"Invalid config file {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ValidationError(f"Config file {config_path} must contain a mapping")

    store = data.get("store", {}) or {}
    members = data.get("members", {}) or {}
    matching = data.get("matching", {}) or {}
    events = data.get("events", {}) or {}

    data_dir = data.get("data_dir") or home
    if "SKILLSWAP_HOME" in os.environ:
        data_dir = home

    return Settings(
        data_dir=Path(data_dir),
        log_level=os.environ.get("SKILLSWAP_LOG_LEVEL", data.get("log_level", "INFO")),
        cas_max_attempts=int(store.get("cas_max_attempts", 5)),
        default_rating=float(members.get("default_rating", 5.0)),
        match_limit=int(matching.get("limit", 0)),
        persist_events=bool(events.get("persist", True)),
    )
