"""Teardown of the content a check flow created.

A flow records every item it creates in a :class:`CleanupRegistry`; at
teardown the items are retired in reverse creation order through
:func:`aposcheck.lifecycle.retire`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from aposcheck.errors import ApiError
from aposcheck.lifecycle import (
    ContentKind,
    ContentRef,
    LifecycleOps,
    LifecycleOutcome,
    Operation,
    OperationResult,
    RetireStatus,
    retire,
)

if TYPE_CHECKING:
    from aposcheck.client import ApiResponse, ApostropheClient
    from aposcheck.endpoints import DocumentEndpoint
    from aposcheck.reporting import CheckReporter

logger = logging.getLogger(__name__)


def http_operation(call: Callable[[str], ApiResponse]) -> Operation:
    """Adapt an endpoint method to the lifecycle operation contract.

    A 404 becomes ``not_found``; any other :class:`ApiError` (including
    transport failures and timeouts, which carry status 0) becomes
    ``error``.
    """

    def operation(identifier: str) -> OperationResult:
        try:
            call(identifier)
        except ApiError as exc:
            if exc.is_not_found:
                return OperationResult.not_found(str(exc))
            return OperationResult.error(str(exc))
        return OperationResult.success()

    return operation


def _endpoint_for(client: ApostropheClient, kind: ContentKind) -> DocumentEndpoint:
    endpoints: dict[ContentKind, DocumentEndpoint] = {
        ContentKind.IMAGE: client.images,
        ContentKind.FILE: client.files,
        ContentKind.IMAGE_TAG: client.image_tags,
        ContentKind.FILE_TAG: client.file_tags,
        ContentKind.PAGE: client.pages,
        ContentKind.USER: client.users,
        ContentKind.GLOBAL_DOC: client.global_content,
    }
    return endpoints[kind]


def lifecycle_ops(client: ApostropheClient, kind: ContentKind | str) -> LifecycleOps:
    """Build the unpublish/delete operations for *kind* against *client*.

    Users are not draftable, so they get no unpublish step.
    """
    kind = ContentKind(kind)
    endpoint = _endpoint_for(client, kind)
    unpublish = None if kind == ContentKind.USER else http_operation(endpoint.unpublish)
    return LifecycleOps(delete=http_operation(endpoint.delete), unpublish=unpublish)


class CleanupRegistry:
    """Ordered ownership list of the content one check flow created."""

    def __init__(
        self,
        ops_for: Callable[[ContentKind], LifecycleOps],
        reporter: CheckReporter | None = None,
    ) -> None:
        self._ops_for = ops_for
        self._reporter = reporter
        self._refs: list[ContentRef] = []

    @classmethod
    def for_client(
        cls, client: ApostropheClient, reporter: CheckReporter | None = None
    ) -> CleanupRegistry:
        return cls(lambda kind: lifecycle_ops(client, kind), reporter)

    def track(
        self, raw_id: str, kind: ContentKind | str, apos_doc_id: str | None = None
    ) -> ContentRef:
        """Record a created item and return its reference."""
        ref = ContentRef(raw_id=raw_id, kind=ContentKind(kind), apos_doc_id=apos_doc_id)
        self._refs.append(ref)
        return ref

    @property
    def refs(self) -> list[ContentRef]:
        return list(self._refs)

    def __len__(self) -> int:
        return len(self._refs)

    def teardown(
        self, pause: Callable[[], None] | None = None
    ) -> list[tuple[ContentRef, LifecycleOutcome]]:
        """Retire every tracked item, newest first.

        A failed retirement is reported and teardown moves on to the next
        item.  The registry is empty afterwards.
        """
        results: list[tuple[ContentRef, LifecycleOutcome]] = []
        for ref in reversed(self._refs):
            outcome = retire(ref, self._ops_for(ref.kind))
            results.append((ref, outcome))
            self._report(ref, outcome)
            if pause is not None:
                pause()
        self._refs.clear()
        return results

    def _report(self, ref: ContentRef, outcome: LifecycleOutcome) -> None:
        name = f"Delete {ref.kind}"
        if outcome.status == RetireStatus.DELETED:
            details = f"id={outcome.candidate}"
        elif outcome.status == RetireStatus.ALREADY_ABSENT:
            details = f"already gone ({outcome.candidate})"
        else:
            details = "; ".join(
                f"{candidate}: {reason}"
                for candidate, reason in zip(outcome.attempted, outcome.reasons, strict=False)
            )
            logger.warning("Could not retire %s %s: %s", ref.kind, ref.raw_id, details)

        if self._reporter is None:
            return
        self._reporter.check(name, outcome.is_absent, details)
        if not outcome.is_absent:
            self._reporter.note(
                f"💡 {ref.kind} {ref.raw_id} may be referenced and protected from deletion."
            )
