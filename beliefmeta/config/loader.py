"""YAML and env loader with fail-fast validation."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

from beliefmeta.models import PipelineConfig

DEFAULT_CONFIG_ENV = "BELIEFMETA_CONFIG"
DEFAULT_CONFIG_PATH = "config/pipeline.yaml"


def _read_yaml(path: str) -> dict:
    resolved = Path(path)
    if not resolved.exists():
        raise FileNotFoundError(f"Missing config file: {path}")
    with resolved.open("r", encoding="utf-8") as file_obj:
        loaded = yaml.safe_load(file_obj) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"Expected object at root of YAML file: {path}")
    return loaded


def resolve_config_path(explicit: Optional[str] = None) -> Optional[str]:
    """Pick the config file: explicit argument, then the env var, then the default if it exists."""
    if explicit:
        return explicit
    load_dotenv()
    from_env = os.getenv(DEFAULT_CONFIG_ENV)
    if from_env:
        return from_env
    if Path(DEFAULT_CONFIG_PATH).exists():
        return DEFAULT_CONFIG_PATH
    return None


def load_config(path: Optional[str] = None) -> PipelineConfig:
    """Load and validate the pipeline config.

    With no resolvable path the built-in defaults are returned, which mirror
    the published analysis (BCSS primary instrument, REML with Knapp-Hartung).
    """
    resolved = resolve_config_path(path)
    if resolved is None:
        return PipelineConfig()
    return PipelineConfig.model_validate(_read_yaml(resolved))
