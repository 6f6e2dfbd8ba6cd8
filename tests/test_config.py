"""Tests for aposcheck.config: TOML loading, .env, env vars, CLI overrides."""

from unittest.mock import patch

import pytest

from aposcheck.config import (
    DEFAULT_BASE_URL,
    AposcheckConfig,
    ApostropheConfig,
    load_config,
    merge_cli_overrides,
)
from aposcheck.errors import ConfigError

_ENV_VARS = (
    "APOSTROPHE_BASE_URL",
    "APOSTROPHE_API_KEY",
    "APOSTROPHE_USERNAME",
    "APOSTROPHE_PASSWORD",
    "APOSTROPHE_TEST_EMAIL",
    "RUN_PASSWORD_RESET_TESTS",
    "APOSCHECK_PACE_SECONDS",
    "APOSCHECK_TEST_IMAGE",
)


@pytest.fixture(autouse=True)
def _isolated(tmp_path, monkeypatch):
    """No ambient env vars, no global config file, CWD without .env."""
    for key in _ENV_VARS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    with patch("aposcheck.config.GLOBAL_CONFIG_PATH", tmp_path / "missing.toml"):
        yield


class TestDefaults:
    def test_apostrophe_defaults(self):
        cfg = AposcheckConfig()
        assert cfg.apostrophe.base_url == DEFAULT_BASE_URL
        assert cfg.apostrophe.api_key == ""
        assert cfg.apostrophe.timeout == 15.0
        assert cfg.apostrophe.is_configured is False

    def test_run_defaults(self):
        cfg = AposcheckConfig()
        assert cfg.run.pace_seconds == 0.5
        assert cfg.run.test_image == "test-image.png"
        assert cfg.run.suites == []
        assert cfg.run_password_reset is False

    def test_password_reset_enabled_by_test_email(self):
        cfg = AposcheckConfig(apostrophe=ApostropheConfig(test_email="me@example.com"))
        assert cfg.run_password_reset is True


class TestApostropheConfig:
    def test_masked_api_key(self):
        assert ApostropheConfig(api_key="abcdef1234").masked_api_key == "***1234"
        assert ApostropheConfig().masked_api_key == "Not set"

    def test_has_credentials(self):
        assert ApostropheConfig(username="u", password="p").has_credentials is True
        assert ApostropheConfig(username="u").has_credentials is False

    def test_require_api_key(self):
        with pytest.raises(ConfigError):
            ApostropheConfig().require_api_key()
        ApostropheConfig(api_key="k").require_api_key()

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("APOSTROPHE_BASE_URL", "http://env.test/api/v1")
        monkeypatch.setenv("APOSTROPHE_API_KEY", "envkey")
        monkeypatch.setenv("APOSTROPHE_USERNAME", "admin")
        cfg = ApostropheConfig.from_env()
        assert cfg.base_url == "http://env.test/api/v1"
        assert cfg.api_key == "envkey"
        assert cfg.username == "admin"
        assert cfg.is_configured is True


class TestLoadConfig:
    def test_load_from_explicit_path(self, tmp_path):
        toml_path = tmp_path / "custom.toml"
        toml_path.write_text(
            '[apostrophe]\nbase_url = "http://toml.test/api/v1"\n\n'
            '[run]\npace_seconds = 0\nsuites = ["media", "users"]\n'
        )
        cfg = load_config(toml_path)
        assert cfg.apostrophe.base_url == "http://toml.test/api/v1"
        assert cfg.run.pace_seconds == 0
        assert cfg.run.suites == ["media", "users"]

    def test_missing_path_returns_defaults(self, tmp_path):
        cfg = load_config(tmp_path / "nonexistent.toml")
        assert cfg.apostrophe.base_url == DEFAULT_BASE_URL

    def test_searches_cwd(self, tmp_path):
        (tmp_path / ".aposcheck.toml").write_text('[run]\ntest_image = "cwd.png"\n')
        with patch("aposcheck.config.CONFIG_SEARCH_PATHS", [tmp_path]):
            cfg = load_config()
        assert cfg.run.test_image == "cwd.png"

    def test_invalid_toml_returns_defaults(self, tmp_path):
        toml_path = tmp_path / "bad.toml"
        toml_path.write_text("this is not valid toml {{{")
        cfg = load_config(toml_path)
        assert cfg.run.test_image == "test-image.png"

    def test_dotenv_file_loaded(self, tmp_path, monkeypatch):
        (tmp_path / ".env").write_text("APOSTROPHE_API_KEY=from-dotenv\n")
        cfg = load_config()
        assert cfg.apostrophe.api_key == "from-dotenv"
        # load_dotenv writes to os.environ; drop it for later tests
        monkeypatch.delenv("APOSTROPHE_API_KEY", raising=False)

    def test_dotenv_does_not_override_env(self, tmp_path, monkeypatch):
        (tmp_path / ".env").write_text("APOSTROPHE_API_KEY=from-dotenv\n")
        monkeypatch.setenv("APOSTROPHE_API_KEY", "from-env")
        cfg = load_config()
        assert cfg.apostrophe.api_key == "from-env"

    def test_dotenv_can_be_disabled(self, tmp_path):
        (tmp_path / ".env").write_text("APOSTROPHE_API_KEY=from-dotenv\n")
        cfg = load_config(use_dotenv=False)
        assert cfg.apostrophe.api_key == ""


class TestEnvVarOverrides:
    def test_env_overrides_toml(self, tmp_path, monkeypatch):
        toml_path = tmp_path / "c.toml"
        toml_path.write_text('[apostrophe]\nbase_url = "from-toml"\n')
        monkeypatch.setenv("APOSTROPHE_BASE_URL", "from-env")
        cfg = load_config(toml_path)
        assert cfg.apostrophe.base_url == "from-env"

    def test_pace_seconds(self, monkeypatch):
        monkeypatch.setenv("APOSCHECK_PACE_SECONDS", "0.1")
        assert load_config().run.pace_seconds == 0.1

    def test_invalid_pace_ignored(self, monkeypatch):
        monkeypatch.setenv("APOSCHECK_PACE_SECONDS", "fast")
        assert load_config().run.pace_seconds == 0.5

    @pytest.mark.parametrize("value,expected", [("true", True), ("1", True), ("no", False)])
    def test_password_reset_flag(self, monkeypatch, value, expected):
        monkeypatch.setenv("RUN_PASSWORD_RESET_TESTS", value)
        assert load_config().run.password_reset is expected

    def test_credentials_and_email(self, monkeypatch):
        monkeypatch.setenv("APOSTROPHE_USERNAME", "admin")
        monkeypatch.setenv("APOSTROPHE_PASSWORD", "pw")
        monkeypatch.setenv("APOSTROPHE_TEST_EMAIL", "me@example.com")
        cfg = load_config()
        assert cfg.apostrophe.has_credentials is True
        assert cfg.run_password_reset is True


class TestMergeCliOverrides:
    def test_overrides(self):
        merged = merge_cli_overrides(
            AposcheckConfig(),
            base_url="http://cli.test/api/v1",
            api_key="clikey",
            pace=0,
            image="other.png",
            password_reset=True,
        )
        assert merged.apostrophe.base_url == "http://cli.test/api/v1"
        assert merged.apostrophe.api_key == "clikey"
        assert merged.run.pace_seconds == 0
        assert merged.run.test_image == "other.png"
        assert merged.run.password_reset is True

    def test_none_values_ignored(self):
        merged = merge_cli_overrides(AposcheckConfig(), base_url=None, pace=None)
        assert merged.apostrophe.base_url == DEFAULT_BASE_URL
        assert merged.run.pace_seconds == 0.5

    def test_unknown_keys_ignored(self):
        merged = merge_cli_overrides(AposcheckConfig(), verbose=True)
        assert merged == AposcheckConfig()
