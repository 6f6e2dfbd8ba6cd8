"""Tests for the CheckSuite base class and the suite registry."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from aposcheck.client import ApiResponse
from aposcheck.errors import ApiError
from aposcheck.suites import SUITES, create_suite
from aposcheck.suites.base import CheckSuite, doc_id_of, results_of, unique_suffix


class _Boom(CheckSuite):
    name = "boom"
    title = "Boom"

    def run(self) -> None:
        self.cleanup.track("img1", "image")
        self.reporter.check("first", True)
        raise RuntimeError("kaput")


class _Quiet(CheckSuite):
    name = "quiet"

    def run(self) -> None:
        self.reporter.check("only", True)


class TestHelpers:
    def test_results_of(self):
        assert results_of({"results": [{"_id": "a"}]}) == [{"_id": "a"}]
        assert results_of({"_id": "a"}) is None
        assert results_of(None) is None

    def test_doc_id_of_prefers_apos_doc_id(self):
        assert doc_id_of({"_id": "a:en:draft", "aposDocId": "a"}) == "a"
        assert doc_id_of({"_id": "b"}) == "b"
        assert doc_id_of("nope") is None

    def test_unique_suffix_is_numeric(self):
        assert unique_suffix().isdigit()


class TestExecute:
    def test_unexpected_error_reported_and_cleaned_up(self, client, reporter, config):
        client.images.delete.return_value = ApiResponse(status=200)
        suite = _Boom(client, reporter, config)

        summary = suite.execute()

        names = [r.name for r in reporter.results]
        assert names == ["first", "boom suite", "Delete image"]
        assert reporter.results[1].passed is False
        assert "kaput" in reporter.results[1].details
        assert (summary.passed, summary.failed) == (2, 1)
        client.images.delete.assert_called_once_with("img1")

    def test_summary_covers_only_this_suite(self, client, reporter, config):
        reporter.check("earlier", False)
        summary = _Quiet(client, reporter, config).execute()
        assert summary.ok is True
        assert reporter.results[-1].suite == "quiet"

    def test_attempt_reports_api_error(self, client, reporter, config):
        suite = _Quiet(client, reporter, config)
        call = MagicMock(side_effect=ApiError(403, "Forbidden"))

        assert suite.attempt("Do thing", call) is None
        assert reporter.results[-1].passed is False
        assert reporter.results[-1].details == "403 Forbidden"

    def test_missing(self, client, reporter, config):
        _Quiet(client, reporter, config).missing("Get image", "image")
        assert reporter.results[-1].details == "No image available"


class TestRegistry:
    def test_all_suites_registered(self):
        assert set(SUITES) == {"attachments", "auth", "global", "media", "pages", "users"}

    def test_create_suite(self, client, reporter, config):
        suite = create_suite("media", client, reporter, config)
        assert suite.name == "media"
        assert suite.client is client

    def test_unknown_suite(self, client, reporter, config):
        with pytest.raises(ValueError, match="Unknown suite"):
            create_suite("blog", client, reporter, config)
