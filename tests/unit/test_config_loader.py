"""
Unit tests for config loader.
"""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from beliefmeta.config import DEFAULT_CONFIG_ENV, load_config, resolve_config_path
from beliefmeta.models import PipelineConfig, SignificanceTest


class TestLoadConfig:
    """Test load_config."""

    def test_defaults_without_a_file(self, tmp_path, monkeypatch):
        """Built-in defaults when nothing resolves."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv(DEFAULT_CONFIG_ENV, raising=False)

        config = load_config()

        assert config == PipelineConfig()
        assert config.subsets.primary_instrument == "BCSS"
        assert config.synthesis.test is SignificanceTest.KNAPP_HARTUNG
        assert config.synthesis.min_regression_rows == 10

    def test_partial_yaml_overrides_defaults(self, tmp_path):
        """Keys present in YAML override; the rest keep their defaults."""
        config_file = tmp_path / "pipeline.yaml"
        config_file.write_text(
            yaml.dump({"synthesis": {"test": "z", "confidence_level": 0.9}, "subsets": {"primary_instrument": "BCSS_R"}})
        )

        config = load_config(str(config_file))

        assert config.synthesis.test is SignificanceTest.Z
        assert config.synthesis.confidence_level == 0.9
        assert config.synthesis.min_studies == 2
        assert config.subsets.primary_instrument == "BCSS_R"
        assert config.subsets.alternate_instruments == ["YSQ", "YSQ_SF"]

    def test_env_var_points_at_config(self, tmp_path, monkeypatch):
        """The env var is used when no explicit path is given."""
        config_file = tmp_path / "from_env.yaml"
        config_file.write_text("quality:\n  outlier_z_threshold: 2.5\n")
        monkeypatch.setenv(DEFAULT_CONFIG_ENV, str(config_file))

        assert resolve_config_path() == str(config_file)
        assert load_config().quality.outlier_z_threshold == 2.5

    def test_explicit_path_wins(self, tmp_path, monkeypatch):
        """An explicit path beats the env var."""
        monkeypatch.setenv(DEFAULT_CONFIG_ENV, str(tmp_path / "ignored.yaml"))
        assert resolve_config_path("explicit.yaml") == "explicit.yaml"

    def test_missing_file(self, tmp_path):
        """A path that does not exist fails fast."""
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "nonexistent.yaml"))

    def test_non_mapping_root(self, tmp_path):
        """A YAML list at the root is rejected."""
        config_file = tmp_path / "list.yaml"
        config_file.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="Expected object"):
            load_config(str(config_file))

    def test_invalid_values(self, tmp_path):
        """Pydantic validation errors surface unchanged."""
        config_file = tmp_path / "bad.yaml"
        config_file.write_text("synthesis:\n  min_studies: 1\n")
        with pytest.raises(ValidationError):
            load_config(str(config_file))

    def test_repository_config_matches_defaults(self):
        """The shipped config/pipeline.yaml mirrors the built-in defaults."""
        shipped = Path(__file__).resolve().parents[2] / "config" / "pipeline.yaml"
        assert load_config(str(shipped)) == PipelineConfig()
