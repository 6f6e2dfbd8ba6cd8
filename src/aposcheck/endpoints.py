"""Resource endpoints of the ApostropheCMS REST API.

Each endpoint wraps one module's routes (``/@apostrophecms/image``,
``/@apostrophecms/page`` ...) on top of :class:`ApostropheClient`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from aposcheck.client import ApiResponse, ApostropheClient


def _mode_params(
    mode: str | None = None,
    locale: str | None = None,
    render_areas: bool | None = None,
) -> dict[str, Any]:
    return {"aposMode": mode, "aposLocale": locale, "renderAreas": render_areas}


class DocumentEndpoint:
    """Piece-type and singleton document routes shared by most modules."""

    def __init__(self, client: ApostropheClient, module: str) -> None:
        self.client = client
        self.module = module

    @property
    def path(self) -> str:
        return f"/{self.module}"

    def list(
        self,
        page: int | None = None,
        per_page: int | None = None,
        search: str | None = None,
        mode: str | None = None,
        locale: str | None = None,
        render_areas: bool | None = None,
    ) -> ApiResponse:
        params = {"page": page, "perPage": per_page, "search": search or None}
        params.update(_mode_params(mode, locale, render_areas))
        return self.client.request("GET", self.path, params=params)

    def get(
        self,
        doc_id: str,
        mode: str | None = None,
        locale: str | None = None,
        render_areas: bool | None = None,
    ) -> ApiResponse:
        return self.client.request(
            "GET", f"{self.path}/{doc_id}", params=_mode_params(mode, locale, render_areas)
        )

    def create(self, data: dict[str, Any], mode: str | None = None) -> ApiResponse:
        return self.client.request("POST", self.path, data, params=_mode_params(mode))

    def patch(self, doc_id: str, data: dict[str, Any]) -> ApiResponse:
        return self.client.request("PATCH", f"{self.path}/{doc_id}", data)

    def put(self, doc_id: str, data: dict[str, Any]) -> ApiResponse:
        return self.client.request("PUT", f"{self.path}/{doc_id}", data)

    def delete(self, doc_id: str) -> ApiResponse:
        return self.client.request("DELETE", f"{self.path}/{doc_id}")

    def publish(self, doc_id: str) -> ApiResponse:
        return self.client.request("POST", f"{self.path}/{doc_id}/publish", {})

    def unpublish(self, doc_id: str) -> ApiResponse:
        return self.client.request("POST", f"{self.path}/{doc_id}/unpublish", {})

    def submit(self, doc_id: str) -> ApiResponse:
        return self.client.request("POST", f"{self.path}/{doc_id}/submit", {})

    def dismiss_submission(self, doc_id: str) -> ApiResponse:
        return self.client.request("POST", f"{self.path}/{doc_id}/dismiss-submission", {})

    def revert_draft_to_published(self, doc_id: str) -> ApiResponse:
        return self.client.request(
            "POST", f"{self.path}/{doc_id}/revert-draft-to-published", {}
        )

    def locales(self, doc_id: str) -> ApiResponse:
        return self.client.request("GET", f"{self.path}/{doc_id}/locales")

    def archive(self, ids: list[str]) -> ApiResponse:
        return self.client.request("POST", f"{self.path}/archive", {"_ids": list(ids)})

    def restore(self, ids: list[str]) -> ApiResponse:
        return self.client.request("POST", f"{self.path}/restore", {"_ids": list(ids)})


class ImageEndpoint(DocumentEndpoint):
    def __init__(self, client: ApostropheClient) -> None:
        super().__init__(client, "@apostrophecms/image")

    def src(self, doc_id: str, size: str | None = None, quality: int | None = None) -> ApiResponse:
        """Fetch the URL (or a redirect to the file) of one image rendition."""
        return self.client.request(
            "GET", f"{self.path}/{doc_id}/src", params={"size": size, "quality": quality}
        )

    def autocrop(self, ids: list[str]) -> ApiResponse:
        return self.client.request("POST", f"{self.path}/autocrop", {"_ids": list(ids)})

    def tag(self, ids: list[str], tag_ids: list[str]) -> ApiResponse:
        return self.client.request(
            "POST", f"{self.path}/tag", {"_ids": list(ids), "tagIds": list(tag_ids)}
        )


class UserEndpoint(DocumentEndpoint):
    def __init__(self, client: ApostropheClient) -> None:
        super().__init__(client, "@apostrophecms/user")

    def unique_username(self, username: str) -> ApiResponse:
        return self.client.request(
            "POST", f"{self.path}/unique-username", {"username": username}
        )


class GlobalEndpoint(DocumentEndpoint):
    """The site-wide global document.

    ``create`` (POST to the module root) updates the single global
    document rather than creating a new one.
    """

    def __init__(self, client: ApostropheClient) -> None:
        super().__init__(client, "@apostrophecms/global")


class PageEndpoint(DocumentEndpoint):
    def __init__(self, client: ApostropheClient) -> None:
        super().__init__(client, "@apostrophecms/page")

    def tree(
        self,
        all_pages: bool | None = None,
        flat: bool | None = None,
        children: bool | None = None,
        mode: str | None = None,
        locale: str | None = None,
    ) -> ApiResponse:
        """Fetch the page tree, nested under the home page or flat (``results``)."""
        params: dict[str, Any] = {
            "all": "1" if all_pages else None,
            "flat": "1" if flat else None,
            "children": "1" if children else None,
        }
        params.update(_mode_params(mode, locale))
        return self.client.request("GET", self.path, params=params)

    def create_under(
        self,
        data: dict[str, Any],
        target_id: str | None,
        position: str = "lastChild",
    ) -> ApiResponse:
        payload = dict(data)
        payload["_targetId"] = target_id
        payload["_position"] = position
        return self.create(payload)


class AttachmentEndpoint:
    def __init__(self, client: ApostropheClient) -> None:
        self.client = client

    def upload(
        self,
        filename: str,
        content: bytes | None,
        content_type: str,
        mode: str | None = None,
        locale: str | None = None,
    ) -> ApiResponse:
        return self.client.request_multipart(
            "/@apostrophecms/attachment/upload",
            filename,
            content,
            content_type,
            params=_mode_params(mode, locale),
        )

    def crop(
        self,
        attachment_id: str,
        crop: dict[str, Any],
        mode: str | None = None,
        locale: str | None = None,
    ) -> ApiResponse:
        return self.client.request(
            "POST",
            "/@apostrophecms/attachment/crop",
            {"_id": attachment_id, "crop": crop},
            params=_mode_params(mode, locale),
        )


class AuthEndpoint:
    """Routes of the ``@apostrophecms/login`` module.

    The GET variants of ``context`` and ``whoami`` are deprecated by the
    server (they are cacheable) but still answered.
    """

    path = "/@apostrophecms/login"

    def __init__(self, client: ApostropheClient) -> None:
        self.client = client

    def context(self, deprecated_get: bool = False) -> ApiResponse:
        method = "GET" if deprecated_get else "POST"
        return self.client.request(method, f"{self.path}/context", None if deprecated_get else {})

    def whoami(self, deprecated_get: bool = False) -> ApiResponse:
        method = "GET" if deprecated_get else "POST"
        return self.client.request(method, f"{self.path}/whoami", None if deprecated_get else {})

    def login(self, username: str, password: str, session: bool = False) -> ApiResponse:
        """Log in; ``session=False`` asks for a bearer token instead of a cookie."""
        return self.client.request(
            "POST",
            f"{self.path}/login",
            {"username": username, "password": password, "session": session},
        )

    def logout(self) -> ApiResponse:
        return self.client.request("POST", f"{self.path}/logout", {})

    def reset_request(self, email: str) -> ApiResponse:
        return self.client.request("POST", f"{self.path}/reset-request", {"email": email})

    def reset(self, reset_id: str, email: str, password: str) -> ApiResponse:
        return self.client.request(
            "POST",
            f"{self.path}/reset",
            {"_id": reset_id, "email": email, "password": password},
        )
