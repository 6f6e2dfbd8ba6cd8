"""Check suite factory and registry."""

from __future__ import annotations

from aposcheck.client import ApostropheClient
from aposcheck.config import AposcheckConfig
from aposcheck.reporting import CheckReporter
from aposcheck.suites.attachments import AttachmentsSuite
from aposcheck.suites.auth import AuthSuite
from aposcheck.suites.base import CheckSuite
from aposcheck.suites.global_content import GlobalContentSuite
from aposcheck.suites.media import MediaSuite
from aposcheck.suites.pages import PagesSuite
from aposcheck.suites.users import UsersSuite

SUITES: dict[str, type[CheckSuite]] = {
    suite.name: suite
    for suite in (
        AttachmentsSuite,
        AuthSuite,
        GlobalContentSuite,
        MediaSuite,
        PagesSuite,
        UsersSuite,
    )
}


def create_suite(
    name: str,
    client: ApostropheClient,
    reporter: CheckReporter,
    config: AposcheckConfig,
) -> CheckSuite:
    """Create the suite registered under *name*.

    Raises:
        ValueError: If the suite name is unknown.
    """
    try:
        suite_cls = SUITES[name]
    except KeyError:
        raise ValueError(f"Unknown suite: {name!r}") from None
    return suite_cls(client, reporter, config)


__all__ = ["SUITES", "CheckSuite", "create_suite"]
