"""Tests for the cleanup ownership list and its HTTP operation adapters."""

from __future__ import annotations

import io
from unittest.mock import MagicMock

from rich.console import Console

from aposcheck.cleanup import CleanupRegistry, http_operation, lifecycle_ops
from aposcheck.client import ApiResponse
from aposcheck.errors import ApiError
from aposcheck.lifecycle import (
    ContentKind,
    LifecycleOps,
    OperationOutcome,
    OperationResult,
    RetireStatus,
)
from aposcheck.reporting import CheckReporter


def _reporter() -> CheckReporter:
    return CheckReporter(console=Console(file=io.StringIO(), width=200))


# ── http_operation ──────────────────────────────────────────────────────


class TestHttpOperation:
    def test_success(self):
        call = MagicMock(return_value=ApiResponse(status=200))
        result = http_operation(call)("abc")
        assert result.outcome == OperationOutcome.SUCCESS
        call.assert_called_once_with("abc")

    def test_404_is_not_found(self):
        call = MagicMock(side_effect=ApiError(404, "notfound"))
        result = http_operation(call)("abc")
        assert result.outcome == OperationOutcome.NOT_FOUND
        assert result.message == "404 notfound"

    def test_other_status_is_error(self):
        call = MagicMock(side_effect=ApiError(409, "conflict"))
        result = http_operation(call)("abc")
        assert result.outcome == OperationOutcome.ERROR
        assert result.message == "409 conflict"

    def test_transport_failure_is_error(self):
        call = MagicMock(side_effect=ApiError(0, "request failed: timed out"))
        result = http_operation(call)("abc")
        assert result.outcome == OperationOutcome.ERROR
        assert result.message == "request failed: timed out"


class TestLifecycleOps:
    def test_image_has_unpublish(self):
        client = MagicMock()
        ops = lifecycle_ops(client, ContentKind.IMAGE)
        assert ops.unpublish is not None

        ops.delete("img1")
        ops.unpublish("img1")
        client.images.delete.assert_called_once_with("img1")
        client.images.unpublish.assert_called_once_with("img1")

    def test_user_has_no_unpublish(self):
        client = MagicMock()
        ops = lifecycle_ops(client, "user")
        assert ops.unpublish is None
        ops.delete("u1")
        client.users.delete.assert_called_once_with("u1")

    def test_each_kind_maps_to_its_endpoint(self):
        client = MagicMock()
        expected = {
            ContentKind.FILE: client.files,
            ContentKind.IMAGE_TAG: client.image_tags,
            ContentKind.FILE_TAG: client.file_tags,
            ContentKind.PAGE: client.pages,
            ContentKind.GLOBAL_DOC: client.global_content,
        }
        for kind, endpoint in expected.items():
            lifecycle_ops(client, kind).delete("x")
            endpoint.delete.assert_called_with("x")


# ── CleanupRegistry ─────────────────────────────────────────────────────


class TestCleanupRegistry:
    def test_track_returns_ref(self):
        registry = CleanupRegistry(MagicMock())
        ref = registry.track("abc:en:draft", "image", "abc")
        assert ref.raw_id == "abc:en:draft"
        assert ref.kind is ContentKind.IMAGE
        assert ref.apos_doc_id == "abc"
        assert len(registry) == 1
        assert registry.refs == [ref]

    def test_teardown_reverse_creation_order(self):
        deleted: list[str] = []

        def ops_for(kind):
            def delete(identifier):
                deleted.append(identifier)
                return OperationResult.success()

            return LifecycleOps(delete=delete)

        registry = CleanupRegistry(ops_for)
        registry.track("first", ContentKind.IMAGE)
        registry.track("second", ContentKind.FILE)
        registry.track("third", ContentKind.IMAGE_TAG)

        results = registry.teardown()

        assert deleted == ["third", "second", "first"]
        assert [outcome.status for _, outcome in results] == [RetireStatus.DELETED] * 3
        assert len(registry) == 0

    def test_failure_does_not_stop_teardown(self):
        def ops_for(kind):
            if kind == ContentKind.FILE:
                return LifecycleOps(delete=lambda i: OperationResult.error("409 referenced"))
            return LifecycleOps(delete=lambda i: OperationResult.success())

        registry = CleanupRegistry(ops_for)
        registry.track("img", ContentKind.IMAGE)
        registry.track("file", ContentKind.FILE)

        results = registry.teardown()

        statuses = {ref.raw_id: outcome.status for ref, outcome in results}
        assert statuses == {"file": RetireStatus.FAILED, "img": RetireStatus.DELETED}

    def test_pause_called_per_item(self):
        registry = CleanupRegistry(lambda kind: LifecycleOps(delete=lambda i: OperationResult.success()))
        registry.track("a", "image")
        registry.track("b", "image")
        pause = MagicMock()

        registry.teardown(pause=pause)

        assert pause.call_count == 2

    def test_reports_deleted(self):
        reporter = _reporter()
        registry = CleanupRegistry(
            lambda kind: LifecycleOps(delete=lambda i: OperationResult.success()), reporter
        )
        registry.track("abc", "image")

        registry.teardown()

        assert reporter.results[0].name == "Delete image"
        assert reporter.results[0].passed is True
        assert reporter.results[0].details == "id=abc"

    def test_reports_already_gone_as_pass(self):
        reporter = _reporter()
        registry = CleanupRegistry(
            lambda kind: LifecycleOps(delete=lambda i: OperationResult.not_found()), reporter
        )
        registry.track("abc", "imageTag")

        registry.teardown()

        result = reporter.results[0]
        assert result.name == "Delete imageTag"
        assert result.passed is True
        assert result.details == "already gone (abc)"

    def test_reports_failure_with_all_reasons(self):
        reporter = _reporter()
        registry = CleanupRegistry(
            lambda kind: LifecycleOps(delete=lambda i: OperationResult.error("409")), reporter
        )
        registry.track("abc:en:published", "file")

        registry.teardown()

        result = reporter.results[0]
        assert result.passed is False
        assert result.details == "abc:en:draft: 409; abc: 409; abc:en:published: 409"

    def test_for_client_uses_endpoint(self):
        client = MagicMock()
        client.images.delete.return_value = ApiResponse(status=200)
        registry = CleanupRegistry.for_client(client)
        registry.track("img1", "image")

        (ref, outcome), = registry.teardown()

        assert outcome.status == RetireStatus.DELETED
        client.images.unpublish.assert_called_once_with("img1")
        client.images.delete.assert_called_once_with("img1")
