"""Repository configuration (stored in .gvt/config.yaml)."""

import logging
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, ValidationError

from .constants import CONFIG_FILE
from .utils import atomic_write_text

logger = logging.getLogger(__name__)


class RepoConfig(BaseModel):
    """Knobs for how generations are stored and restored."""

    # "hardlink" shares unchanged files between generations
    link_mode: Literal["copy", "hardlink"] = "copy"
    # "clean" also removes files tracked in the active generation but not the target
    restore_mode: Literal["additive", "clean"] = "additive"
    lock_timeout: float = Field(30.0, gt=0, description="Seconds to wait for the repository lock")


def load_config(repo_root: Path) -> RepoConfig:
    """Load configuration from .gvt/config.yaml if present.

    Missing, unreadable or invalid files fall back to defaults.
    """
    cfg_path = repo_root / CONFIG_FILE
    if not cfg_path.exists():
        return RepoConfig()

    try:
        data = yaml.safe_load(cfg_path.read_text()) or {}
        return RepoConfig(**data)
    except (OSError, yaml.YAMLError, ValidationError, TypeError) as e:
        logger.warning("Ignoring invalid configuration %s: %s", cfg_path, e)
        return RepoConfig()


def save_config(config: RepoConfig, repo_root: Path) -> None:
    """Save configuration atomically."""
    config_text = yaml.safe_dump(config.model_dump(), default_flow_style=False, sort_keys=False)
    atomic_write_text(repo_root / CONFIG_FILE, config_text)
