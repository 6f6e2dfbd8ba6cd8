"""Smoke tests for the CLI."""

from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from aposcheck import __version__
from aposcheck.cli import app
from aposcheck.errors import ApiError


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def _isolated(monkeypatch, tmp_path):
    """Keep the developer's .env, config files and environment out of the tests."""
    for var in (
        "APOSTROPHE_BASE_URL",
        "APOSTROPHE_API_KEY",
        "APOSTROPHE_USERNAME",
        "APOSTROPHE_PASSWORD",
        "APOSTROPHE_TEST_EMAIL",
        "APOSCHECK_PACE_SECONDS",
        "APOSCHECK_TEST_IMAGE",
        "RUN_PASSWORD_RESET_TESTS",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("aposcheck.config.GLOBAL_CONFIG_PATH", tmp_path / "missing.toml")


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setenv("APOSTROPHE_API_KEY", "secret-key-9876")
    monkeypatch.setenv("APOSCHECK_PACE_SECONDS", "0")


def _suite_factory(passed: bool):
    def create(name, client, reporter, config):
        suite = MagicMock()
        suite.execute.side_effect = lambda: reporter.check(f"{name} check", passed)
        return suite

    return create


# ── Top level ────────────────────────────────────────────────────────────


class TestCLI:
    """Tests for the CLI entry point."""

    def test_main_help(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "run" in result.output
        assert "retire" in result.output

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_suites_lists_every_suite(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["suites"])
        assert result.exit_code == 0
        for name in ("attachments", "auth", "global", "media", "pages", "users"):
            assert name in result.output


# ── run ──────────────────────────────────────────────────────────────────


class TestRunCommand:
    def test_missing_api_key(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["run"])
        assert result.exit_code == 1
        assert "APOSTROPHE_API_KEY is required" in result.output
        assert "Create a .env file" in result.output

    def test_unknown_suite(self, runner: CliRunner, api_key) -> None:
        result = runner.invoke(app, ["run", "bogus"])
        assert result.exit_code == 1
        assert "Unknown suite(s): bogus" in result.output

    def test_all_checks_pass(self, runner: CliRunner, api_key) -> None:
        with patch("aposcheck.cli.ApostropheClient"), patch(
            "aposcheck.cli.create_suite", side_effect=_suite_factory(True)
        ) as create:
            result = runner.invoke(app, ["run", "auth", "users"])

        assert result.exit_code == 0, result.output
        assert [c.args[0] for c in create.call_args_list] == ["auth", "users"]
        assert "***9876" in result.output
        assert "secret-key-9876" not in result.output
        assert "All checks passed" in result.output

    def test_failure_exits_nonzero(self, runner: CliRunner, api_key) -> None:
        with patch("aposcheck.cli.ApostropheClient"), patch(
            "aposcheck.cli.create_suite", side_effect=_suite_factory(False)
        ):
            result = runner.invoke(app, ["run", "media"])

        assert result.exit_code == 1
        assert "FAILED CHECKS" in result.output
        assert "media check" in result.output

    def test_defaults_to_every_suite(self, runner: CliRunner, api_key) -> None:
        with patch("aposcheck.cli.ApostropheClient"), patch(
            "aposcheck.cli.create_suite", side_effect=_suite_factory(True)
        ) as create:
            runner.invoke(app, ["run"])

        assert len(create.call_args_list) == 6

    def test_cli_flags_override_env(self, runner: CliRunner, api_key) -> None:
        with patch("aposcheck.cli.ApostropheClient") as client_cls, patch(
            "aposcheck.cli.create_suite", side_effect=_suite_factory(True)
        ):
            runner.invoke(
                app, ["run", "auth", "--base-url", "http://cms.test/api/v1", "--api-key", "flag-key"]
            )

        settings = client_cls.call_args.args[0]
        assert settings.base_url == "http://cms.test/api/v1"
        assert settings.api_key == "flag-key"


# ── retire ───────────────────────────────────────────────────────────────


class TestRetireCommand:
    def test_deleted(self, runner: CliRunner, api_key) -> None:
        with patch("aposcheck.cli.ApostropheClient") as client_cls:
            images = client_cls.return_value.images
            result = runner.invoke(
                app, ["retire", "img1:en:draft", "--kind", "image", "--apos-doc-id", "img1"]
            )

        assert result.exit_code == 0, result.output
        assert "Deleted" in result.output
        images.unpublish.assert_called_once_with("img1:en:draft")
        images.delete.assert_called_once_with("img1")

    def test_already_gone(self, runner: CliRunner, api_key) -> None:
        with patch("aposcheck.cli.ApostropheClient") as client_cls:
            client_cls.return_value.users.delete.side_effect = ApiError(404, "notfound")
            result = runner.invoke(app, ["retire", "u1", "--kind", "user"])

        assert result.exit_code == 0, result.output
        assert "Already gone" in result.output

    def test_failed(self, runner: CliRunner, api_key) -> None:
        with patch("aposcheck.cli.ApostropheClient") as client_cls:
            client_cls.return_value.pages.delete.side_effect = ApiError(500, "boom")
            result = runner.invoke(app, ["retire", "p1", "--kind", "page"])

        assert result.exit_code == 1
        assert "Failed" in result.output
        assert "p1: 500 boom" in result.output

    def test_rejects_empty_id(self, runner: CliRunner, api_key) -> None:
        with patch("aposcheck.cli.ApostropheClient") as client_cls:
            result = runner.invoke(app, ["retire", "", "--kind", "user"])

        assert result.exit_code == 1
        assert "invalid content id" in result.output
        client_cls.return_value.users.delete.assert_not_called()

    def test_rejects_unknown_kind(self, runner: CliRunner, api_key) -> None:
        result = runner.invoke(app, ["retire", "x1", "--kind", "widget"])
        assert result.exit_code != 0
