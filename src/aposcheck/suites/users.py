"""Checks for the users API (``@apostrophecms/user``)."""

from __future__ import annotations

import logging
from typing import Any

from aposcheck.lifecycle import ContentKind
from aposcheck.suites.base import CheckSuite, results_of, unique_suffix

logger = logging.getLogger(__name__)

TEST_PASSWORD = "TestPassword123!"
TEST_ROLE = "contributor"


def generate_username() -> str:
    return f"sdktest{unique_suffix()}"


def username_available(data: Any) -> bool:
    """Interpret a unique-username response.

    Servers answer with ``available``, ``unique`` or ``exists``; an empty
    body means no match was found.
    """
    if not isinstance(data, dict):
        return True
    if "available" in data:
        return bool(data["available"])
    if "unique" in data:
        return bool(data["unique"])
    return not data.get("exists")


class UsersSuite(CheckSuite):
    name = "users"
    title = "🧪 Users API Checks"

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.username = generate_username()
        self.user_id: str | None = None

    def run(self) -> None:
        self.check_list_users()
        self.check_unique_username()
        self.check_create_user()
        self.check_get_user()
        self.check_patch_user()
        self.check_username_taken()

        self.reporter.section("🧹 Cleanup: delete test user")
        if not self.user_id:
            self.missing("Delete test user", "test user ID")
        self.cleanup.teardown(pause=self.pace)

    def check_list_users(self) -> None:
        name = "List users"
        self.reporter.section(f"📄 {name}")
        resp = self.attempt(name, lambda: self.client.users.list())
        if resp is None:
            return
        results = results_of(resp.data)
        if results is None:
            self.reporter.check(name, False, "Failed to retrieve users list")
            return
        self.reporter.check(name, True, f"Found {len(results)} users")
        self.reporter.note(f"Total users: {resp.data.get('count') or len(results)}")
        if results:
            sample = results[0]
            self.reporter.note(f"Sample user: {sample.get('title')} ({sample.get('username')})")
        self.pace()

    def check_unique_username(self) -> None:
        name = "Check username uniqueness"
        self.reporter.section(f"📄 {name}")
        resp = self.attempt(name, lambda: self.client.users.unique_username(self.username))
        if resp is None:
            return
        available = username_available(resp.data)
        self.reporter.check(
            name, True, f'Username "{self.username}" is {"available" if available else "taken"}'
        )
        if not available:
            self.username = generate_username()
            self.reporter.note(f"Trying new username: {self.username}")
        self.pace()

    def check_create_user(self) -> None:
        name = "Create new user"
        self.reporter.section(f"📄 {name}")
        payload = {
            "title": f"SDK Test User {self.username}",
            "username": self.username,
            "email": f"{self.username}@example.com",
            "password": TEST_PASSWORD,
            "role": TEST_ROLE,
        }
        resp = self.attempt(name, lambda: self.client.users.create(payload))
        if resp is None:
            return
        data = resp.data if isinstance(resp.data, dict) else {}
        if not data.get("_id"):
            self.reporter.check(name, False, "Failed to create user or get valid response")
            return
        self.user_id = data["_id"]
        self.cleanup.track(self.user_id, ContentKind.USER, data.get("aposDocId"))
        self.reporter.check(name, True, f"Created user with ID: {self.user_id}")
        self.reporter.note(f"Username: {data.get('username')}  Role: {data.get('role')}")
        self.pace()

    def check_get_user(self) -> None:
        name = "Get user by ID"
        self.reporter.section(f"📄 {name}")
        if not self.user_id:
            self.missing(name, "test user ID")
            return
        resp = self.attempt(name, lambda: self.client.users.get(self.user_id))
        if resp is None:
            return
        data = resp.data if isinstance(resp.data, dict) else {}
        ok = data.get("_id") == self.user_id
        self.reporter.check(
            name, ok, f"Retrieved user: {data.get('title')}" if ok else "User not found or invalid response"
        )
        self.pace()

    def check_patch_user(self) -> None:
        name = "Update user with PATCH"
        self.reporter.section(f"📄 {name}")
        if not self.user_id:
            self.missing(name, "test user ID")
            return
        title = f"SDK Test User {self.username} - Updated"
        resp = self.attempt(name, lambda: self.client.users.patch(self.user_id, {"title": title}))
        if resp is None:
            return
        got = resp.data.get("title") if isinstance(resp.data, dict) else None
        self.reporter.check(name, bool(got) and "Updated" in got, f"Updated title to: {got}")
        self.pace()

    def check_username_taken(self) -> None:
        name = "Check existing username uniqueness"
        self.reporter.section(f"📄 {name}")
        if not self.user_id:
            self.missing(name, "test user")
            return
        resp = self.attempt(name, lambda: self.client.users.unique_username(self.username))
        if resp is None:
            return
        available = username_available(resp.data)
        self.reporter.check(
            name,
            not available,
            f'Username "{self.username}" is '
            f'{"still available (unexpected)" if available else "taken (expected)"}',
        )
        self.pace()
