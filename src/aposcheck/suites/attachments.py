"""Checks for the attachments API: upload and crop."""

from __future__ import annotations

import logging
from typing import Any

from aposcheck.assets import TestImage, load_test_image
from aposcheck.errors import ApiError
from aposcheck.suites.base import CheckSuite

logger = logging.getLogger(__name__)

CROP_SIZE = 50


def crop_box(attachment: dict[str, Any], size: int = CROP_SIZE) -> dict[str, Any]:
    """A small crop at the top-left corner that fits inside the image."""
    width = height = size
    image_width = attachment.get("width")
    image_height = attachment.get("height")
    if image_width and width > image_width:
        width = image_width // 2
    if image_height and height > image_height:
        height = image_height // 2
    return {"name": "thumbnail", "top": 0, "left": 0, "width": width, "height": height}


class AttachmentsSuite(CheckSuite):
    name = "attachments"
    title = "🔬 Attachments API Checks"

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.image: TestImage | None = None
        self.attachment: dict[str, Any] | None = None

    def run(self) -> None:
        if not self.check_load_image():
            self.reporter.note("💥 Test image is required - stopping suite")
            return
        self.check_upload()
        self.check_upload_without_file()
        self.check_crop()
        self.check_crop_unknown_attachment()
        self.check_upload_published()

    def check_load_image(self) -> bool:
        self.reporter.section("🧪 Load Test Image")
        try:
            self.image = load_test_image(self.config.run.test_image)
        except (OSError, ValueError) as exc:
            self.reporter.check("Load test image", False, str(exc))
            return False

        if self.image.is_recognized:
            details = f"{self.image.format} image ({self.image.size} bytes)"
        else:
            details = (
                f"format not recognized, first bytes {self.image.content[:16].hex()} "
                f"({self.image.size} bytes); uploading anyway"
            )
        return self.reporter.check("Load test image", True, details)

    def check_upload(self) -> None:
        name = "Upload attachment"
        self.reporter.section(f"🧪 {name}")
        if self.image is None:
            self.missing(name, "test image")
            return
        resp = self.attempt(
            name,
            lambda: self.client.attachments.upload(
                self.image.path.name, self.image.content, self.image.mime_type, mode="draft"
            ),
        )
        if resp is None:
            return
        data = resp.data
        if not isinstance(data, dict) or not data.get("_id"):
            self.reporter.check(name, False, "Missing required property '_id' in response")
            return

        self.attachment = data
        details = [f"id={data['_id']}"]
        if data.get("extension"):
            details.append(f"extension={data['extension']}")
        if data.get("width") and data.get("height"):
            details.append(f"{data['width']}x{data['height']}")
        self.reporter.check(name, True, " ".join(details))
        self.pace()

    def check_upload_without_file(self) -> None:
        name = "Upload with no file is rejected"
        self.reporter.section(f"🧪 {name}")
        try:
            self.client.attachments.upload("missing.png", None, "image/png", mode="draft")
        except ApiError as exc:
            if exc.status == 400:
                self.reporter.check(name, True, f"400 Bad Request: {exc.message}")
            elif exc.status == 401:
                self.reporter.check(name, False, "inconclusive: 401 Unauthorized, check the API key")
            else:
                self.reporter.check(name, True, f"rejected with {exc.status or 'no status'}: {exc.message}")
        else:
            self.reporter.check(name, False, "upload with no file succeeded")
        self.pace()

    def check_crop(self) -> None:
        name = "Crop attachment"
        self.reporter.section(f"🧪 {name}")
        if self.attachment is None:
            self.missing(name, "uploaded attachment")
            return
        crop = crop_box(self.attachment)
        try:
            resp = self.client.attachments.crop(self.attachment["_id"], crop, mode="draft")
        except ApiError as exc:
            hint = ""
            if exc.status == 422:
                hint = " (crop exceeds image bounds)"
            elif exc.status == 404:
                hint = " (attachment not found)"
            self.reporter.check(name, False, f"{exc}{hint}")
            return
        self.reporter.check(
            name, resp.data is True, f"{crop['width']}x{crop['height']} response={resp.data!r}"
        )
        self.pace()

    def check_crop_unknown_attachment(self) -> None:
        name = "Crop of unknown attachment is rejected"
        self.reporter.section(f"🧪 {name}")
        crop = {"name": "test", "top": 0, "left": 0, "width": CROP_SIZE, "height": CROP_SIZE}
        try:
            self.client.attachments.crop("non-existent-attachment-id", crop, mode="draft")
        except ApiError as exc:
            if exc.status in (400, 404):
                self.reporter.check(name, True, f"{exc.status}: {exc.message}")
            elif exc.status == 401:
                self.reporter.check(name, False, "inconclusive: 401 Unauthorized, check the API key")
            else:
                self.reporter.check(name, False, f"expected 404 or 400, got {exc}")
        else:
            self.reporter.check(name, False, "crop of unknown attachment succeeded")
        self.pace()

    def check_upload_published(self) -> None:
        name = "Upload attachment in published mode"
        self.reporter.section(f"🧪 {name}")
        if self.image is None:
            self.missing(name, "test image")
            return
        resp = self.attempt(
            name,
            lambda: self.client.attachments.upload(
                f"published-{self.image.path.name}",
                self.image.content,
                self.image.mime_type,
                mode="published",
            ),
        )
        if resp is None:
            return
        ok = isinstance(resp.data, dict) and bool(resp.data.get("_id"))
        self.reporter.check(name, ok, f"id={resp.data.get('_id')}" if ok else "no _id in response")
