"""Base class for API check suites."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from aposcheck.cleanup import CleanupRegistry
from aposcheck.client import ApiResponse, ApostropheClient
from aposcheck.config import AposcheckConfig
from aposcheck.errors import ApiError
from aposcheck.reporting import CheckReporter, CheckSummary

logger = logging.getLogger(__name__)


def unique_suffix() -> str:
    """Millisecond timestamp used to keep slugs and usernames unique."""
    return str(int(time.time() * 1000))


def results_of(data: Any) -> list[dict[str, Any]] | None:
    """Return ``data["results"]`` when *data* is a paginated response."""
    if isinstance(data, dict) and isinstance(data.get("results"), list):
        return data["results"]
    return None


def doc_id_of(doc: Any) -> str | None:
    """Prefer the locale/mode independent ``aposDocId`` over ``_id``."""
    if not isinstance(doc, dict):
        return None
    return doc.get("aposDocId") or doc.get("_id")


class CheckSuite(ABC):
    """One API surface walked through create/read/update/delete steps.

    Subclasses implement :meth:`run`; :meth:`execute` wraps it with the
    suite header, result scoping and teardown of anything still tracked.
    """

    name: str = ""
    title: str = ""

    def __init__(
        self,
        client: ApostropheClient,
        reporter: CheckReporter,
        config: AposcheckConfig,
    ) -> None:
        self.client = client
        self.reporter = reporter
        self.config = config
        self.cleanup = CleanupRegistry.for_client(client, reporter)

    @abstractmethod
    def run(self) -> None:
        """Run every step of the suite."""

    def execute(self) -> CheckSummary:
        """Run the suite and return the summary of its own results."""
        first = len(self.reporter.results)
        self.reporter.suite = self.name
        self.reporter.header(self.title or self.name)
        try:
            self.run()
        except Exception as exc:
            logger.exception("Suite %s aborted", self.name)
            self.reporter.check(f"{self.name} suite", False, f"aborted: {exc}")
        finally:
            if len(self.cleanup):
                self.reporter.section("🧹 Cleanup of remaining items")
                self.cleanup.teardown(pause=self.pace)
        self.reporter.section(f"🎯 {self.title or self.name} complete")
        return self.reporter.summary(self.reporter.results[first:])

    def pace(self, seconds: float | None = None) -> None:
        self.reporter.pace(seconds)

    def attempt(self, name: str, call: Callable[[], ApiResponse]) -> ApiResponse | None:
        """Make one API call; on :class:`ApiError` report *name* failed and return None."""
        try:
            return call()
        except ApiError as exc:
            self.reporter.check(name, False, str(exc))
            return None

    def missing(self, name: str, what: str) -> None:
        """Report a step that has nothing to work on."""
        self.reporter.check(name, False, f"No {what} available")
