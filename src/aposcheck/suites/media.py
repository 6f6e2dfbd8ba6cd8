"""Checks for the media APIs: images, files and their tags."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from aposcheck.assets import load_test_image
from aposcheck.client import ApiResponse
from aposcheck.errors import ApiError
from aposcheck.lifecycle import ContentKind
from aposcheck.suites.base import CheckSuite, doc_id_of, results_of, unique_suffix

logger = logging.getLogger(__name__)

PREFERRED_SIZES = ("max", "full", "original", "large", "medium", "small", "thumbnail")
SRC_QUALITY = 80


def pick_rendition_size(sizes: Iterable[str]) -> str | None:
    """Largest known rendition among *sizes*, else the first one offered."""
    available = list(sizes)
    for size in PREFERRED_SIZES:
        if size in available:
            return size
    return available[0] if available else None


def describe_rendition(resp: ApiResponse) -> str | None:
    """How an image ``src`` response delivered the rendition, or None if it did not."""
    if resp.status == 302:
        return f"redirect {resp.location or '(no location header)'}"
    if resp.status == 200 and resp.content_type.startswith("image/"):
        return f"served ({resp.content_type})"
    if resp.status == 200 and isinstance(resp.data, str):
        return "url string"
    return None


class MediaSuite(CheckSuite):
    name = "media"
    title = "🚀 Media API Checks"

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.attachment: dict[str, Any] | None = None
        self.image_id: str | None = None
        self.image_doc_id: str | None = None
        self.file_id: str | None = None

    def run(self) -> None:
        self.check_create_attachment()
        self.check_create_image()
        self.check_list_images()
        self.check_get_image()
        self.check_patch_image()
        self.check_image_src()
        self.check_create_file()
        self.check_list_files()
        self.check_get_file()
        self.check_create_tag("Create image tag", self.client.image_tags, ContentKind.IMAGE_TAG, "image")
        self.check_create_tag("Create file tag", self.client.file_tags, ContentKind.FILE_TAG, "file")
        self.check_list("List image tags", self.client.image_tags)
        self.check_list("List file tags", self.client.file_tags)
        self.check_publish_image()
        self.check_search_images()
        self.teardown()

        self.reporter.section("🔬 Advanced Media API Checks")
        self.check_archive_restore()
        self.check_autocrop()
        self.check_tag_assignment()
        self.check_render_areas()

    # ── Core steps ──────────────────────────────────────────────────────

    def check_create_attachment(self) -> None:
        name = "Create test attachment"
        self.reporter.section(f"📎 {name}")
        try:
            image = load_test_image(self.config.run.test_image)
        except (OSError, ValueError) as exc:
            self.reporter.check(name, False, str(exc))
            return
        self.reporter.note(f"📸 Detected: {image.format} ({image.size} bytes)")
        resp = self.attempt(
            name,
            lambda: self.client.attachments.upload(
                image.path.name, image.content, image.mime_type, mode="draft"
            ),
        )
        if resp is None:
            return
        if not isinstance(resp.data, dict) or not resp.data.get("_id"):
            self.reporter.check(name, False, "Attachment upload returned no _id")
            return
        self.attachment = resp.data
        self.reporter.check(name, True, resp.data["_id"])
        self.pace()

    def _create_media_doc(
        self, name: str, endpoint: Any, kind: ContentKind, title: str, slug: str
    ) -> str | None:
        if self.attachment is None:
            self.missing(name, "attachment")
            return None
        payload = {
            "title": title,
            "slug": f"{slug}-{unique_suffix()}",
            "attachment": {"_id": self.attachment["_id"]},
        }
        resp = self.attempt(name, lambda: endpoint.create(payload))
        if resp is None:
            return None
        data = resp.data if isinstance(resp.data, dict) else {}
        if not data.get("_id"):
            self.reporter.check(name, False, "no _id in response")
            return None
        self.cleanup.track(data["_id"], kind, data.get("aposDocId"))
        self.reporter.check(name, True, data["_id"])
        self.pace()
        return data["_id"]

    def check_create_image(self) -> None:
        self.reporter.section("📷 Create image")
        self.image_id = self._create_media_doc(
            "Create image", self.client.images, ContentKind.IMAGE, "SDK Test Image", "sdk-test-image"
        )

    def check_list(self, name: str, endpoint: Any) -> None:
        self.reporter.section(f"📋 {name}")
        resp = self.attempt(name, lambda: endpoint.list())
        if resp is None:
            return
        results = results_of(resp.data)
        self.reporter.check(
            name, resp.status == 200, f"count={len(results) if results is not None else 'n/a'}"
        )
        self.pace()

    def check_list_images(self) -> None:
        self.check_list("List images", self.client.images)

    def check_get_image(self) -> None:
        name = "Get image by id"
        self.reporter.section(f"📷 {name}")
        if not self.image_id:
            self.missing(name, "image")
            return
        resp = self.attempt(name, lambda: self.client.images.get(self.image_id))
        if resp is None:
            return
        data = resp.data if isinstance(resp.data, dict) else {}
        self.image_doc_id = data.get("aposDocId") or data.get("_id")
        self.reporter.check(name, bool(data), f"aposDocId={self.image_doc_id}")
        self.pace()

    def check_patch_image(self) -> None:
        name = "Patch image"
        self.reporter.section(f"📷 {name}")
        if not self.image_id:
            self.missing(name, "image")
            return
        patch = {"title": "SDK Test Image (updated)", "alt": "Updated alt text"}
        resp = self.attempt(name, lambda: self.client.images.patch(self.image_id, patch))
        if resp is None:
            return
        title = resp.data.get("title") if isinstance(resp.data, dict) else None
        self.reporter.check(name, title == patch["title"], f"title={title!r}")
        self.pace()

    def check_image_src(self) -> None:
        name = "Get image src"
        self.reporter.section(f"🖼️ {name}")
        if not self.image_id:
            self.missing(name, "image")
            return
        resp = self.attempt(name, lambda: self.client.images.get(self.image_id))
        if resp is None:
            return
        data = resp.data if isinstance(resp.data, dict) else {}
        doc_id = self.image_doc_id or doc_id_of(data) or self.image_id
        urls = (data.get("attachment") or {}).get("_urls") or {}
        sizes = list(urls)
        if not sizes:
            self.reporter.check(name, False, "no rendition sizes available on attachment._urls")
            return

        preferred = pick_rendition_size(sizes)
        try:
            src = self.client.images.src(doc_id, size=preferred, quality=SRC_QUALITY)
        except ApiError as exc:
            detail = "404 (no matching size)" if exc.is_not_found else str(exc)
            self.reporter.check(f"{name} (preferred)", False, f"size={preferred} {detail}")
        else:
            how = describe_rendition(src)
            if how is None:
                how = f"status={src.status} ctype={src.content_type or 'n/a'}"
                self.reporter.check(f"{name} (preferred)", False, f"size={preferred} {how}")
            else:
                self.reporter.check(f"{name} (preferred)", True, f"size={preferred} {how}")

        delivered = 0
        for size in sizes:
            try:
                src = self.client.images.src(doc_id, size=size, quality=SRC_QUALITY)
            except ApiError as exc:
                self.reporter.note(f"⚠️ {size}: {exc}")
                continue
            how = describe_rendition(src)
            if how is None:
                self.reporter.note(f"⚠️ {size}: status={src.status} ctype={src.content_type or 'n/a'}")
                continue
            delivered += 1
            self.reporter.note(f"✅ {size}: {how}")
        self.reporter.check(f"{name} (all sizes)", delivered > 0, f"success {delivered}/{len(sizes)}")
        self.pace()

    def check_create_file(self) -> None:
        self.reporter.section("📁 Create file")
        self.file_id = self._create_media_doc(
            "Create file", self.client.files, ContentKind.FILE, "SDK Test File", "sdk-test-file"
        )

    def check_list_files(self) -> None:
        self.check_list("List files", self.client.files)

    def check_get_file(self) -> None:
        name = "Get file by id"
        self.reporter.section(f"📁 {name}")
        if not self.file_id:
            self.missing(name, "file")
            return
        resp = self.attempt(name, lambda: self.client.files.get(self.file_id))
        if resp is None:
            return
        title = resp.data.get("title") if isinstance(resp.data, dict) else None
        self.reporter.check(name, bool(title), f"title={title!r}")
        self.pace()

    def check_create_tag(self, name: str, endpoint: Any, kind: ContentKind, label: str) -> None:
        self.reporter.section(f"🏷️ {name}")
        tag = {
            "title": f"SDK Test {label.title()} Tag",
            "slug": f"sdk-test-{label}-tag-{unique_suffix()}",
        }
        resp = self.attempt(name, lambda: endpoint.create(tag))
        if resp is None:
            return
        data = resp.data if isinstance(resp.data, dict) else {}
        if not data.get("_id"):
            self.reporter.check(name, False, "no _id in response")
            return
        self.cleanup.track(data["_id"], kind, data.get("aposDocId"))
        self.reporter.check(name, True, data.get("slug", data["_id"]))
        self.pace()

    def check_publish_image(self) -> None:
        name = "Publish image"
        self.reporter.section(f"📷 {name}")
        if not self.image_id:
            self.missing(name, "image")
            return
        try:
            resp = self.client.images.publish(self.image_id)
        except ApiError as exc:
            if exc.status == 400:
                self.reporter.check(name, True, "already published")
            else:
                self.reporter.check(name, False, str(exc))
        else:
            self.reporter.check(name, resp.status == 200, f"status={resp.status}")
        self.pace()

    def check_search_images(self) -> None:
        name = "Search images"
        self.reporter.section(f"🔍 {name}")
        resp = self.attempt(
            name,
            lambda: self.client.images.list(1, 5, "SDK", mode="draft", locale="en", render_areas=False),
        )
        if resp is None:
            return
        self.reporter.check(name, resp.status == 200, f"found={len(results_of(resp.data) or [])}")
        self.pace()

    def teardown(self) -> None:
        self.reporter.section("🧹 Cleanup")
        self.cleanup.teardown(pause=self.pace)
        if self.attachment:
            self.reporter.note(f"ℹ️ Attachment {self.attachment['_id']} left in place for reuse.")

    # ── Advanced steps ──────────────────────────────────────────────────

    def _search_ids(self, endpoint: Any, per_page: int, search: str | None = "SDK") -> list[str]:
        resp = endpoint.list(1, per_page, search, mode="draft")
        return [doc_id_of(doc) for doc in results_of(resp.data) or [] if doc_id_of(doc)]

    def check_archive_restore(self) -> None:
        self.reporter.section("📦 Archive and restore images")
        try:
            ids = self._search_ids(self.client.images, 2)
        except ApiError as exc:
            self.reporter.check("Archive setup", False, str(exc))
            return
        if not ids:
            self.reporter.note("ℹ️ No images to archive; sending empty payload")
        try:
            resp = self.client.images.archive(ids)
            self.reporter.check("Archive images", resp.status == 200, f"count={len(ids)}")
            self.pace()
            resp = self.client.images.restore(ids)
            self.reporter.check("Restore images", resp.status == 200, f"count={len(ids)}")
        except ApiError as exc:
            if exc.status == 400 and not ids:
                self.reporter.check("Archive images (empty)", True, "expected 400")
            else:
                self.reporter.check("Archive/Restore", False, str(exc))
        self.pace()

    def check_autocrop(self) -> None:
        name = "Autocrop"
        self.reporter.section(f"✂️ {name}")
        try:
            ids = self._search_ids(self.client.images, 1)
            if not ids:
                self.reporter.check(name, True, "no image available (skipped)")
            else:
                resp = self.client.images.autocrop(ids[:1])
                self.reporter.check(name, resp.status == 200, "done")
        except ApiError as exc:
            self.reporter.check(name, False, str(exc))
        self.pace()

    def check_tag_assignment(self) -> None:
        name = "Image tagging"
        self.reporter.section(f"🏷️ {name}")
        try:
            image_ids = self._search_ids(self.client.images, 1)
            tags = results_of(self.client.image_tags.list().data) or []
            tag_ids = [doc_id_of(tag) for tag in tags[:1] if doc_id_of(tag)]
            if not image_ids or not tag_ids:
                self.reporter.check(name, True, "insufficient data (skipped)")
            else:
                resp = self.client.images.tag(image_ids[:1], tag_ids)
                self.reporter.check(
                    name, resp.status == 200, f"image={image_ids[0]} tag={tag_ids[0]}"
                )
        except ApiError as exc:
            self.reporter.check(name, False, str(exc))
        self.pace()

    def check_render_areas(self) -> None:
        name = "List images with rendered areas"
        self.reporter.section(f"🌐 {name}")
        resp = self.attempt(
            name,
            lambda: self.client.images.list(1, 1, mode="draft", locale="en", render_areas=True),
        )
        if resp is None:
            return
        self.reporter.check(name, resp.status == 200, f"results={len(results_of(resp.data) or [])}")
