"""Configuration loading."""

from beliefmeta.config.loader import DEFAULT_CONFIG_ENV, load_config, resolve_config_path

__all__ = ["DEFAULT_CONFIG_ENV", "load_config", "resolve_config_path"]
