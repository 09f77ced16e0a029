"""
Unit tests for engine configuration.
"""

from pathlib import Path

import pytest

from sealbid.core.config import MAX_SCORE, WEIGHT_DIVISOR, EngineConfig, load_config


ENV_NAMES = (
    "SEALBID_MAX_CANDIDATES",
    "SEALBID_MAX_URI_LENGTH",
    "SEALBID_WEIGHT_DIVISOR",
    "SEALBID_MAX_SCORE",
    "SEALBID_ADMIN",
    "SEALBID_DATA_DIR",
    "SEALBID_LOG_DIR",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Start without SEALBID_* variables and drop any a dotenv file adds."""
    for name in ENV_NAMES:
        monkeypatch.setenv(name, "unused")
        monkeypatch.delenv(name)
    return monkeypatch


class TestEngineConfig:

    def test_defaults(self):
        config = EngineConfig()
        assert config.max_candidates == 50
        assert config.max_salt_length == 64
        assert config.admin is None
        assert config.data_dir == Path("data")

    def test_ensure_dirs(self, tmp_path):
        config = EngineConfig(data_dir=tmp_path / "d", log_dir=tmp_path / "l")
        config.ensure_dirs()
        assert config.data_dir.is_dir()
        assert config.log_dir.is_dir()


class TestLoadConfig:

    def test_defaults_without_env(self, clean_env):
        assert load_config() == EngineConfig()

    def test_env_overrides(self, clean_env, tmp_path):
        clean_env.setenv("SEALBID_MAX_CANDIDATES", "5")
        clean_env.setenv("SEALBID_ADMIN", "registrar")
        clean_env.setenv("SEALBID_DATA_DIR", str(tmp_path))

        config = load_config()

        assert config.max_candidates == 5
        assert config.admin == "registrar"
        assert config.data_dir == tmp_path

    def test_dotenv_file(self, clean_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("SEALBID_MAX_CANDIDATES=10\nSEALBID_MAX_URI_LENGTH=64\n")

        config = load_config(str(env_file))

        assert config.max_candidates == 10
        assert config.max_uri_length == 64

    def test_environment_wins_over_dotenv(self, clean_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("SEALBID_MAX_CANDIDATES=7\n")
        clean_env.setenv("SEALBID_MAX_CANDIDATES", "3")

        assert load_config(str(env_file)).max_candidates == 3


class TestFixedScoringRules:
    """Score range and weight divisor cannot be reconfigured."""

    def test_constants(self):
        assert MAX_SCORE == 100
        assert WEIGHT_DIVISOR == 100
        assert not hasattr(EngineConfig(), "weight_divisor")

    @pytest.mark.parametrize("name,value", [
        ("SEALBID_WEIGHT_DIVISOR", "50"),
        ("SEALBID_WEIGHT_DIVISOR", "0"),
        ("SEALBID_MAX_SCORE", "10"),
    ])
    def test_changed_value_rejected(self, clean_env, name, value):
        clean_env.setenv(name, value)
        with pytest.raises(ValueError, match=name):
            load_config()

    def test_changed_value_in_dotenv_rejected(self, clean_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("SEALBID_MAX_SCORE=10\n")
        with pytest.raises(ValueError):
            load_config(str(env_file))

    def test_fixed_value_accepted(self, clean_env):
        clean_env.setenv("SEALBID_WEIGHT_DIVISOR", "100")
        clean_env.setenv("SEALBID_MAX_SCORE", "100")
        assert load_config() == EngineConfig()
