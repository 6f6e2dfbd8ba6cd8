"""Shared fixtures."""

from __future__ import annotations

import io
from unittest.mock import MagicMock

import pytest
from rich.console import Console

from aposcheck.config import AposcheckConfig, ApostropheConfig, RunConfig
from aposcheck.reporting import CheckReporter

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def reporter(output: io.StringIO) -> CheckReporter:
    return CheckReporter(console=Console(file=output, width=200), pace_seconds=0)


@pytest.fixture
def config(tmp_path) -> AposcheckConfig:
    image = tmp_path / "test-image.png"
    image.write_bytes(PNG_BYTES)
    return AposcheckConfig(
        apostrophe=ApostropheConfig(
            base_url="http://cms.test/api/v1",
            api_key="key-1234",
            username="tester",
            password="secret",
        ),
        run=RunConfig(pace_seconds=0, test_image=str(image)),
    )


@pytest.fixture
def client() -> MagicMock:
    """A client whose endpoints are configured per test."""
    return MagicMock()

