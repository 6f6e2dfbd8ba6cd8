"""Console reporting for check runs."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime

from rich.console import Console
from rich.markup import escape

logger = logging.getLogger(__name__)


@dataclass
class CheckResult:
    name: str
    passed: bool
    details: str = ""
    suite: str = ""


@dataclass
class CheckSummary:
    passed: int = 0
    failed: int = 0
    failures: list[CheckResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.passed + self.failed

    @property
    def success_rate(self) -> float:
        """Percentage of passing checks (0.0 when nothing ran)."""
        if not self.total:
            return 0.0
        return self.passed / self.total * 100

    @property
    def ok(self) -> bool:
        return self.failed == 0


class CheckReporter:
    """Prints pass/fail lines and keeps every result for the summary.

    Args:
        console: Rich console to print to.
        pace_seconds: Pause inserted by :meth:`pace` between steps.
    """

    def __init__(self, console: Console | None = None, pace_seconds: float = 0.0) -> None:
        self.console = console or Console()
        self.pace_seconds = pace_seconds
        self.results: list[CheckResult] = []
        self.suite = ""

    def header(self, title: str) -> None:
        self.console.print()
        self.console.print(f"[bold]{escape(title)}[/bold]")
        self.console.print("=" * max(len(title), 20))

    def section(self, title: str) -> None:
        self.console.print()
        self.console.print(escape(title))

    def note(self, message: str) -> None:
        self.console.print(f"   {escape(message)}")

    def check(self, name: str, passed: bool, details: str = "") -> bool:
        """Record and print one check result; returns *passed*."""
        stamp = escape(datetime.now().strftime("[%H:%M:%S]"))
        status = "[green]✅ PASS[/green]" if passed else "[red]❌ FAIL[/red]"
        self.console.print(f"{stamp} {status}: {escape(name)}")
        if details:
            self.console.print(f"   Details: {escape(str(details))}")
        self.results.append(CheckResult(name=name, passed=passed, details=details, suite=self.suite))
        logger.debug("check %s passed=%s %s", name, passed, details)
        return passed

    def pace(self, seconds: float | None = None) -> None:
        """Pause between steps so the server is not hammered."""
        delay = self.pace_seconds if seconds is None else seconds
        if delay > 0:
            time.sleep(delay)

    def summary(self, results: list[CheckResult] | None = None) -> CheckSummary:
        """Count results (all of them by default)."""
        results = self.results if results is None else results
        summary = CheckSummary()
        for result in results:
            if result.passed:
                summary.passed += 1
            else:
                summary.failed += 1
                summary.failures.append(result)
        return summary

    def print_summary(self, summary: CheckSummary | None = None) -> CheckSummary:
        summary = summary or self.summary()
        self.header("📊 TEST SUMMARY")
        self.console.print(f"✅ Passed: {summary.passed}")
        self.console.print(f"❌ Failed: {summary.failed}")
        self.console.print(f"📈 Success Rate: {summary.success_rate:.1f}%")
        if summary.failures:
            self.console.print()
            self.console.print("[red]❌ FAILED CHECKS:[/red]")
            for index, failure in enumerate(summary.failures, start=1):
                prefix = f"[{failure.suite}] " if failure.suite else ""
                line = f"{prefix}{failure.name}"
                if failure.details:
                    line += f": {failure.details}"
                self.console.print(f"   {index}. {escape(line)}")
        return summary
