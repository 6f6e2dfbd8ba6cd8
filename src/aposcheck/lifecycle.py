"""Resource lifecycle resolver.

Retires (unpublishes and deletes) a stored content item whose identifier
form is not known in advance.  ApostropheCMS document ids come in several
shapes for the same underlying document:

- ``abc``: the bare document id (``aposDocId``), locale and mode independent
- ``abc:en:draft``: the draft version in locale ``en``
- ``abc:en:published``: the published version in locale ``en``

Which one a delete endpoint accepts depends on the document's current
lifecycle state, so :func:`retire` derives a small ordered set of
candidates and tries them one by one until the item is confirmed gone.

The external calls are injected as plain callables returning an
:class:`OperationResult`; nothing in this module talks HTTP.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

DRAFT_MODE = "draft"
PUBLISHED_MODE = "published"


class ContentKind(StrEnum):
    """Kind of stored content; selects the lifecycle operations that apply."""

    IMAGE = "image"
    FILE = "file"
    IMAGE_TAG = "imageTag"
    FILE_TAG = "fileTag"
    PAGE = "page"
    USER = "user"
    GLOBAL_DOC = "globalDoc"


class ContentRef(BaseModel):
    """A reference to one stored content item, as a check flow obtained it."""

    model_config = ConfigDict(frozen=True)

    raw_id: str = Field(min_length=1)
    kind: ContentKind
    apos_doc_id: str | None = None


class OperationOutcome(StrEnum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    ERROR = "error"


class OperationResult(BaseModel):
    """Result of one state-changing call against the content store."""

    model_config = ConfigDict(frozen=True)

    outcome: OperationOutcome
    message: str = ""

    @classmethod
    def success(cls) -> OperationResult:
        return cls(outcome=OperationOutcome.SUCCESS)

    @classmethod
    def not_found(cls, message: str = "not found") -> OperationResult:
        return cls(outcome=OperationOutcome.NOT_FOUND, message=message)

    @classmethod
    def error(cls, message: str) -> OperationResult:
        return cls(outcome=OperationOutcome.ERROR, message=message)


Operation = Callable[[str], OperationResult]


@dataclass(frozen=True)
class LifecycleOps:
    """Operations used to retire one kind of content.

    ``delete`` is the terminal step; ``unpublish`` is an optional pre-step
    whose failure never aborts retirement.
    """

    delete: Operation
    unpublish: Operation | None = None


class RetireStatus(StrEnum):
    DELETED = "deleted"
    ALREADY_ABSENT = "already_absent"
    FAILED = "failed"


class LifecycleOutcome(BaseModel):
    """Result of one :func:`retire` call."""

    status: RetireStatus
    candidate: str | None = None
    attempted: list[str] = Field(default_factory=list)
    reasons: list[str] = Field(default_factory=list)

    @property
    def is_absent(self) -> bool:
        """True when the item is confirmed no longer present."""
        return self.status in (RetireStatus.DELETED, RetireStatus.ALREADY_ABSENT)


def split_compound_id(identifier: str) -> tuple[str, str, str] | None:
    """Split ``doc:locale:mode`` into its parts.

    Returns ``None`` for ids that carry no locale/mode qualifier.
    """
    parts = identifier.split(":")
    if len(parts) != 3 or not all(parts):
        return None
    if parts[2] not in (DRAFT_MODE, PUBLISHED_MODE):
        return None
    return parts[0], parts[1], parts[2]


def is_qualified(identifier: str) -> bool:
    """True if *identifier* names one locale/mode variant of a document."""
    return split_compound_id(identifier) is not None


def derive_candidates(ref: ContentRef) -> list[str]:
    """Build the ordered, de-duplicated list of ids to try for *ref*.

    Order: ``apos_doc_id`` (when known), the draft-mode rewrite of
    ``raw_id``, the bare document id, then ``raw_id`` as obtained.
    """
    raw = ref.raw_id
    compound = split_compound_id(raw)

    candidates: list[str] = []
    if ref.apos_doc_id:
        candidates.append(ref.apos_doc_id)
    if compound:
        doc_id, locale, mode = compound
        if mode == PUBLISHED_MODE:
            candidates.append(f"{doc_id}:{locale}:{DRAFT_MODE}")
        candidates.append(doc_id)
    else:
        candidates.append(raw.split(":")[0] or raw)
    candidates.append(raw)

    # dict preserves first-occurrence order
    return list(dict.fromkeys(c for c in candidates if c))


def _invoke(operation: Operation, identifier: str) -> OperationResult:
    """Call *operation*, folding a raised exception into an error result."""
    try:
        return operation(identifier)
    except Exception as exc:
        logger.debug("Operation raised for %s", identifier, exc_info=True)
        return OperationResult.error(str(exc) or type(exc).__name__)


def retire(ref: ContentRef, ops: LifecycleOps) -> LifecycleOutcome:
    """Unpublish (optionally) and delete the item behind *ref*.

    Returns ``deleted`` on the first successful delete and
    ``already_absent`` once an unqualified id (the ``aposDocId`` or bare
    document id) reports not-found.  A not-found on a locale/mode variant
    only says that variant is gone, so the next candidate is tried.  When
    the candidates run out and every locale/mode variant tried reported
    not-found, the item is ``already_absent`` (with the other reasons
    kept); otherwise the outcome is ``failed`` with one reason per
    attempt, in order.
    """
    if ops.unpublish is not None:
        pre = _invoke(ops.unpublish, ref.raw_id)
        if pre.outcome == OperationOutcome.SUCCESS:
            logger.info("Unpublished %s %s", ref.kind, ref.raw_id)
        elif pre.outcome == OperationOutcome.NOT_FOUND:
            logger.info("%s %s not published, continuing", ref.kind, ref.raw_id)
        else:
            logger.warning("Unpublish of %s %s failed: %s", ref.kind, ref.raw_id, pre.message)

    attempted: list[str] = []
    reasons: list[str] = []
    variants_tried = 0
    variants_gone: list[str] = []
    for candidate in derive_candidates(ref):
        attempted.append(candidate)
        result = _invoke(ops.delete, candidate)

        if result.outcome == OperationOutcome.SUCCESS:
            logger.info("Deleted %s using id %s", ref.kind, candidate)
            return LifecycleOutcome(
                status=RetireStatus.DELETED, candidate=candidate, attempted=attempted
            )

        if result.outcome == OperationOutcome.NOT_FOUND and not is_qualified(candidate):
            logger.info("%s %s already gone", ref.kind, candidate)
            return LifecycleOutcome(
                status=RetireStatus.ALREADY_ABSENT, candidate=candidate, attempted=attempted
            )

        if is_qualified(candidate):
            variants_tried += 1
            if result.outcome == OperationOutcome.NOT_FOUND:
                variants_gone.append(candidate)

        reason = result.message or result.outcome.value
        logger.warning("Delete attempt for %s with %s failed: %s", ref.kind, candidate, reason)
        reasons.append(reason)

    if variants_gone and len(variants_gone) == variants_tried:
        logger.info("%s %s already gone in every locale/mode variant", ref.kind, ref.raw_id)
        return LifecycleOutcome(
            status=RetireStatus.ALREADY_ABSENT,
            candidate=variants_gone[-1],
            attempted=attempted,
            reasons=reasons,
        )

    return LifecycleOutcome(status=RetireStatus.FAILED, attempted=attempted, reasons=reasons)
