"""Checks for the authentication API (``@apostrophecms/login``)."""

from __future__ import annotations

import logging
from typing import Any

from aposcheck.errors import ApiError
from aposcheck.suites.base import CheckSuite

logger = logging.getLogger(__name__)

_CONTEXT_FIELDS = ("site", "passwordReset", "localLogin", "totp")
_USER_FIELDS = ("_id", "username", "title", "email")


def _display_name(user: Any) -> str:
    if not isinstance(user, dict):
        return "User"
    return user.get("username") or user.get("title") or "User"


class AuthSuite(CheckSuite):
    name = "auth"
    title = "🚀 Authentication API Checks"

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.bearer_token: str | None = None

    def run(self) -> None:
        self.check_context()
        self.check_context_deprecated_get()
        self.check_whoami()
        self.check_whoami_deprecated_get()
        self.check_bearer_login()
        self.check_session_login()
        self.check_bearer_whoami()
        self.check_logout_with_api_key()
        self.check_logout_with_bearer()
        self.check_api_key_still_valid()

        if self.config.run_password_reset:
            self.run_password_reset()
        else:
            self.reporter.note(
                "💡 Password reset checks skipped; set APOSTROPHE_TEST_EMAIL or "
                "RUN_PASSWORD_RESET_TESTS=true to run them"
            )

    def check_context(self) -> None:
        name = "Get authentication context"
        self.reporter.section(f"📄 {name} (POST)")
        resp = self.attempt(name, lambda: self.client.auth.context())
        if resp is None:
            return
        data = resp.data
        if not isinstance(data, dict):
            self.reporter.check(name, False, "Unexpected response structure")
            return
        self.reporter.check(name, True, "Retrieved login context information")
        if isinstance(data.get("site"), dict):
            self.reporter.note(f"- Site: {data['site'].get('title') or 'Available'}")
        for key in ("passwordReset", "localLogin", "totp"):
            if key in data:
                self.reporter.note(f"- {key}: {data[key]}")
        others = [key for key in data if key not in _CONTEXT_FIELDS]
        if others:
            self.reporter.note(f"- Other context: {', '.join(others)}")
        self.pace()

    def check_context_deprecated_get(self) -> None:
        name = "Get authentication context (GET)"
        self.reporter.section(f"📄 {name}")
        try:
            resp = self.client.auth.context(deprecated_get=True)
        except ApiError as exc:
            self.reporter.check(name, False, f"Deprecated endpoint error: {exc}")
        else:
            self.reporter.check(name, bool(resp.data), "⚠️ Deprecated endpoint still working")
        self.pace()

    def check_whoami(self) -> None:
        name = "Check current user (API key)"
        self.reporter.section("📄 Who Am I (POST)")
        resp = self.attempt(name, lambda: self.client.auth.whoami())
        if resp is None:
            return
        data = resp.data
        if not isinstance(data, dict):
            self.reporter.check(name, False, "Could not retrieve user information")
            return
        self.reporter.check(name, True, f"Authenticated as {_display_name(data)}")
        for key in _USER_FIELDS:
            self.reporter.note(f"{key}: {data.get(key) or 'Not provided'}")
        others = [key for key in data if key not in _USER_FIELDS]
        if others:
            self.reporter.note(f"Other user fields: {', '.join(others)}")
        self.pace()

    def check_whoami_deprecated_get(self) -> None:
        name = "Check current user (GET)"
        self.reporter.section(f"📄 {name}")
        try:
            resp = self.client.auth.whoami(deprecated_get=True)
        except ApiError as exc:
            self.reporter.check(name, False, f"Deprecated endpoint error: {exc}")
        else:
            self.reporter.check(name, bool(resp.data), "⚠️ Deprecated GET endpoint still working")
        self.pace()

    def _require_credentials(self, name: str) -> bool:
        if self.config.apostrophe.has_credentials:
            return True
        self.reporter.check(name, False, "No credentials provided in environment variables")
        self.reporter.note("💡 Add APOSTROPHE_USERNAME and APOSTROPHE_PASSWORD to .env")
        return False

    def check_bearer_login(self) -> None:
        name = "Username/password login"
        self.reporter.section(f"📄 {name}")
        if not self._require_credentials(name):
            return
        settings = self.config.apostrophe
        try:
            resp = self.client.anonymous().auth.login(
                settings.username, settings.password, session=False
            )
        except ApiError as exc:
            self.reporter.check(name, False, str(exc))
            self.reporter.note("💡 Ensure username/password are correct and the user has API access")
            return

        data = resp.data if isinstance(resp.data, dict) else {}
        self.reporter.check(name, bool(data), "Login successful" if data else "Unexpected response")
        token = data.get("token")
        if token:
            self.bearer_token = token
            self.reporter.note(f"Bearer token received: {token[:20]}...")
        if data.get("user"):
            self.reporter.note(f"Logged in as: {_display_name(data['user'])}")
        self.pace()

    def check_session_login(self) -> None:
        name = "Session-based login"
        self.reporter.section(f"📄 {name}")
        if not self._require_credentials(name):
            return
        settings = self.config.apostrophe
        try:
            resp = self.client.anonymous().auth.login(
                settings.username, settings.password, session=True
            )
        except ApiError as exc:
            self.reporter.check(name, False, str(exc))
            return

        data = resp.data if isinstance(resp.data, dict) else {}
        self.reporter.check(name, resp.status == 200, "Session login successful")
        if data.get("token"):
            self.reporter.note("⚠️ Bearer token provided even though session=true was requested")
        else:
            self.reporter.note("✅ No bearer token provided for session-based auth")
        self.pace()

    def check_bearer_whoami(self) -> None:
        name = "Bearer token authentication"
        self.reporter.section(f"📄 {name}")
        if not self.bearer_token:
            self.missing(name, "bearer token")
            return
        resp = self.attempt(name, lambda: self.client.with_bearer(self.bearer_token).auth.whoami())
        if resp is None:
            return
        ok = isinstance(resp.data, dict)
        self.reporter.check(
            name, ok, f"Authenticated as {_display_name(resp.data)}" if ok else "No user returned"
        )
        self.pace()

    def check_logout_with_api_key(self) -> None:
        name = "Logout with API key"
        self.reporter.section(f"📄 {name}")
        resp = self.attempt(name, lambda: self.client.auth.logout())
        if resp is None:
            return
        self.reporter.check(name, resp.status == 200, "API key authentication persists after logout")
        if isinstance(resp.data, dict) and resp.data.get("message"):
            self.reporter.note(f"Server message: {resp.data['message']}")
        self.pace()

    def check_logout_with_bearer(self) -> None:
        name = "Logout with bearer token"
        self.reporter.section(f"📄 {name}")
        if not self.bearer_token:
            self.missing(name, "bearer token")
            return
        bearer_client = self.client.with_bearer(self.bearer_token)
        resp = self.attempt(name, lambda: bearer_client.auth.logout())
        if resp is None:
            return
        self.reporter.check(name, resp.status == 200, "Bearer token logout successful")
        self.pace()

        try:
            bearer_client.auth.whoami()
        except ApiError as exc:
            if exc.status == 401:
                self.reporter.check("Bearer token invalidated by logout", True, "401 after logout")
            else:
                self.reporter.check("Bearer token invalidated by logout", False, f"unexpected {exc}")
        else:
            self.reporter.check("Bearer token invalidated by logout", False, "token still works")
        self.pace()

    def check_api_key_still_valid(self) -> None:
        name = "API key validity after logout"
        self.reporter.section(f"📄 {name}")
        resp = self.attempt(name, lambda: self.client.auth.whoami())
        if resp is None:
            return
        self.reporter.check(name, isinstance(resp.data, dict), "API key authentication still working")

    def run_password_reset(self) -> None:
        self.reporter.section("🔐 Password Reset Checks")
        name = "Password reset request"
        email = self.config.apostrophe.test_email
        if not email:
            self.reporter.check(name, False, "No test email provided")
            self.reporter.note("💡 Add APOSTROPHE_TEST_EMAIL to .env, using an address you control")
        else:
            try:
                resp = self.client.auth.reset_request(email)
            except ApiError as exc:
                if exc.status == 403:
                    self.reporter.check(name, False, "403 Forbidden - password reset likely disabled")
                    self.reporter.note(
                        "💡 Check the passwordReset option of the @apostrophecms/login module"
                    )
                else:
                    self.reporter.check(name, False, str(exc))
            else:
                self.reporter.check(
                    name,
                    resp.status == 200,
                    "Reset request processed (always succeeds for security)",
                )
        self.pace()

        self.reporter.check(
            "Password reset completion", False, "Cannot test without a valid reset token"
        )
        self.reporter.note("💡 Complete a real reset flow manually to cover this endpoint")
