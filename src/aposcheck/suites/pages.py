"""Checks for the page tree API (``@apostrophecms/page``)."""

from __future__ import annotations

import logging
from typing import Any

from aposcheck.errors import ApiError
from aposcheck.lifecycle import ContentKind
from aposcheck.suites.base import CheckSuite, results_of, unique_suffix

logger = logging.getLogger(__name__)

PAGE_TYPE = "default-page"
TEST_PAGE_TITLES = ("SDK Test Page", "SDK Child Test Page")


def leftover_test_pages(pages: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Pages in a flat tree whose title marks them as created by this suite."""
    return [
        page
        for page in pages
        if isinstance(page.get("title"), str)
        and any(title in page["title"] for title in TEST_PAGE_TITLES)
    ]


def describe_restore(data: Any) -> str:
    """Restore answers with a job id, the restored pages, or a bare success body."""
    if isinstance(data, dict) and data.get("jobId"):
        return f"Restore job started with ID: {data['jobId']}"
    if isinstance(data, list):
        return f"Restored {len(data)} page(s) immediately"
    return "Restore operation completed"


class PagesSuite(CheckSuite):
    name = "pages"
    title = "🚀 Pages API Checks"

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.home_id: str | None = None
        self.page_id: str | None = None
        self.child_id: str | None = None

    def run(self) -> None:
        self.check_tree()
        self.check_flat_tree()
        self.diagnose_home()
        self.check_create_page()
        self.check_get_page()
        self.check_patch_page()
        self.check_publish_page()
        self.check_page_locales()
        self.check_rendered_areas()
        self.check_create_child()
        self.check_archive_restore()
        self.check_move_page()
        self.cleanup_pages()
        self.verify_cleanup()

        self.reporter.section("🔬 Advanced Pages API Checks")
        self.check_i18n_locales()
        self.check_draft_vs_published()

    def check_tree(self) -> None:
        name = "Get page tree"
        self.reporter.section(f"📄 {name}")
        resp = self.attempt(name, lambda: self.client.pages.tree())
        if resp is None:
            return
        data = resp.data
        if isinstance(data, dict) and isinstance(data.get("_children"), list):
            self.home_id = data.get("_id")
            self.reporter.check(name, True, f"Found {len(data['_children'])} top-level pages")
            self.reporter.note(f"Home page ID: {self.home_id}")
        else:
            self.reporter.check(name, False, "Unexpected response structure")
        self.pace()

    def check_flat_tree(self) -> None:
        name = "Get flat page tree"
        self.reporter.section(f"📄 {name}")
        resp = self.attempt(name, lambda: self.client.pages.tree(all_pages=True, flat=True))
        if resp is None:
            return
        results = results_of(resp.data)
        if results is None:
            self.reporter.check(name, False, "Expected flat array response")
        else:
            self.reporter.check(name, True, f"Found {len(results)} pages in flat format")
        self.pace()

    def diagnose_home(self) -> None:
        """Print the home page structure; reports nothing."""
        if not self.home_id:
            return
        self.reporter.section("🔍 Home page structure")
        try:
            data = self.client.pages.get(self.home_id).data
        except ApiError as exc:
            self.reporter.note(f"Could not examine home page: {exc}")
            return
        if not isinstance(data, dict):
            return
        for key in ("type", "title", "slug", "aposDocId"):
            self.reporter.note(f"- {key}: {data.get(key)}")
        children = data.get("_children") or []
        self.reporter.note(f"- children: {len(children)}")
        for index, child in enumerate(children, 1):
            self.reporter.note(f"  {index}. {child.get('title')} ({child.get('type')})")
        self.pace()

    def _create(self, name: str, title: str, slug: str, target_id: str | None) -> str | None:
        payload = {"title": title, "type": PAGE_TYPE, "slug": f"{slug}-{unique_suffix()}"}
        resp = self.attempt(name, lambda: self.client.pages.create_under(payload, target_id))
        if resp is None:
            return None
        data = resp.data if isinstance(resp.data, dict) else {}
        if not data.get("_id"):
            self.reporter.check(name, False, "Failed to create page or get valid response")
            return None
        self.cleanup.track(data["_id"], ContentKind.PAGE, data.get("aposDocId"))
        self.reporter.check(name, True, f"Created page with ID: {data['_id']}")
        if data.get("slug"):
            self.reporter.note(f"Page slug: {data['slug']}")
        self.pace()
        return data["_id"]

    def check_create_page(self) -> None:
        self.reporter.section("📄 Create new page")
        self.page_id = self._create("Create new page", "SDK Test Page", "sdk-test-page", self.home_id)

    def check_get_page(self) -> None:
        name = "Get page by ID"
        self.reporter.section(f"📄 {name}")
        if not self.page_id:
            self.missing(name, "test page ID")
            return
        resp = self.attempt(name, lambda: self.client.pages.get(self.page_id))
        if resp is None:
            return
        data = resp.data if isinstance(resp.data, dict) else {}
        ok = data.get("_id") == self.page_id
        self.reporter.check(
            name, ok, f"Retrieved page: {data.get('title')}" if ok else "Page not found or invalid response"
        )
        self.pace()

    def check_patch_page(self) -> None:
        name = "Update page with PATCH"
        self.reporter.section(f"📄 {name}")
        if not self.page_id:
            self.missing(name, "test page ID")
            return
        title = "SDK Test Page - Updated"
        resp = self.attempt(name, lambda: self.client.pages.patch(self.page_id, {"title": title}))
        if resp is None:
            return
        got = resp.data.get("title") if isinstance(resp.data, dict) else None
        self.reporter.check(name, got == title, f"Updated title to: {got}")
        self.pace()

    def check_publish_page(self) -> None:
        name = "Publish page"
        self.reporter.section(f"📄 {name}")
        if not self.page_id:
            self.missing(name, "test page ID")
            return
        try:
            resp = self.client.pages.publish(self.page_id)
        except ApiError as exc:
            self.reporter.check(name, False, f"{exc} (may be expected if already published)")
        else:
            self.reporter.check(name, resp.status == 200, "Published page")
        self.pace()

    def check_page_locales(self) -> None:
        name = "Get page locales"
        self.reporter.section(f"📄 {name}")
        if not self.page_id:
            self.missing(name, "test page ID")
            return
        resp = self.attempt(name, lambda: self.client.pages.locales(self.page_id))
        if resp is None:
            return
        ok = isinstance(resp.data, list)
        self.reporter.check(
            name, ok, f"Locales: {resp.data}" if ok else "Expected array of locale codes"
        )
        self.pace()

    def check_rendered_areas(self) -> None:
        name = "Get page with rendered areas"
        self.reporter.section(f"📄 {name}")
        if not self.page_id:
            self.missing(name, "test page ID")
            return
        resp = self.attempt(
            name,
            lambda: self.client.pages.get(
                self.page_id, mode="published", locale="en", render_areas=True
            ),
        )
        if resp is None:
            return
        data = resp.data if isinstance(resp.data, dict) else {}
        self.reporter.check(name, bool(data), f"Page has main area: {bool(data.get('main'))}")
        self.pace()

    def check_create_child(self) -> None:
        name = "Create child page"
        self.reporter.section(f"📄 {name}")
        if not self.page_id:
            self.missing(name, "parent test page ID")
            return
        self.child_id = self._create(name, "SDK Child Test Page", "sdk-child-test-page", self.page_id)

    def check_archive_restore(self) -> None:
        self.reporter.section("📦 Archive and restore pages")
        ids = [page_id for page_id in (self.child_id, self.page_id) if page_id]
        if not ids:
            self.missing("Archive pages", "pages")
            self.missing("Restore pages", "pages")
            return

        resp = self.attempt("Archive pages", lambda: self.client.pages.archive(ids))
        if resp is not None:
            self.reporter.check("Archive pages", resp.status == 200, "Archive operation initiated")
        self.pace()

        resp = self.attempt("Restore pages", lambda: self.client.pages.restore(ids))
        if resp is not None:
            ok = resp.status == 200 and resp.data is not None
            self.reporter.check(
                "Restore pages",
                ok,
                describe_restore(resp.data) if ok else f"Restore operation failed (status: {resp.status})",
            )
        self.pace()

    def check_move_page(self) -> None:
        name = "Move page in tree"
        self.reporter.section(f"📄 {name}")
        if not self.page_id or not self.home_id:
            self.missing(name, "page and home IDs")
            return
        try:
            current = self.client.pages.get(self.page_id).data
            move = dict(current) if isinstance(current, dict) else {}
            move.update({"_targetId": self.home_id, "_position": "firstChild"})
            resp = self.client.pages.put(self.page_id, move)
        except ApiError as exc:
            self.reporter.check(name, False, str(exc))
            return
        self.reporter.check(name, resp.status == 200, "Moved page to first child position")
        self.pace()

    def cleanup_pages(self) -> None:
        """Child first, then parent; the registry retires newest first."""
        self.reporter.section("🧹 Cleanup test pages")
        self.cleanup.teardown(pause=self.pace)

    def verify_cleanup(self) -> None:
        self.reporter.section("🔍 Verify cleanup")
        try:
            resp = self.client.pages.tree(flat=True)
        except ApiError as exc:
            self.reporter.note(f"Could not verify cleanup: {exc}")
            return
        results = results_of(resp.data)
        if results is None:
            return
        remaining = leftover_test_pages(results)
        if not remaining:
            self.reporter.note("✅ No test pages remain in page tree")
            return
        self.reporter.note(f"⚠️ {len(remaining)} test page(s) still visible in page tree:")
        for page in remaining:
            self.reporter.note(f'  - "{page["title"]}" ({page.get("_id")})')
        self.reporter.note("💡 These may be draft-only pages that need manual cleanup")

    def check_i18n_locales(self) -> None:
        name = "Get available locales"
        self.reporter.section(f"🌐 {name}")
        try:
            resp = self.client.i18n_locales()
        except ApiError:
            self.reporter.check(name, False, "Internationalization may not be enabled")
            return
        if not isinstance(resp.data, dict):
            self.reporter.check(name, False, "No locale data available")
            return
        locales = list(resp.data)
        self.reporter.check(name, True, f"Found locales: {', '.join(locales)}")
        if len(locales) > 1:
            self.reporter.note("ℹ️ Multiple locales detected")
        else:
            self.reporter.note("ℹ️ Single locale detected; internationalization may not be configured")
        self.pace()

    def check_draft_vs_published(self) -> None:
        name = "Draft vs Published mode"
        self.reporter.section(f"📄 {name}")
        try:
            draft = self.client.pages.tree(mode="draft", locale="en")
            published = self.client.pages.tree(mode="published", locale="en")
        except ApiError as exc:
            self.reporter.check(name, False, str(exc))
            return
        ok = draft.status == 200 and published.status == 200
        self.reporter.check(
            name, ok, "Retrieved both draft and published page trees" if ok else "Tree fetch failed"
        )
        for label, resp in (("Draft", draft), ("Published", published)):
            children = resp.data.get("_children") if isinstance(resp.data, dict) else None
            self.reporter.note(f"{label} pages: {len(children or [])} children")
