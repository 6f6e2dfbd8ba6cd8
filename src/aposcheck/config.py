"""Configuration loaded from .aposcheck.toml, .env, env vars, and CLI flags.

Loading order: defaults → TOML file → .env file → env vars → CLI flags.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field

from aposcheck.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".aposcheck.toml"
CONFIG_SEARCH_PATHS = [
    Path("."),
]
GLOBAL_CONFIG_PATH = Path.home() / ".config" / "aposcheck" / "config.toml"

DEFAULT_BASE_URL = "http://localhost:3000/api/v1"

SETUP_HINT = """Create a .env file with:
APOSTROPHE_API_KEY=your-api-key-here
APOSTROPHE_BASE_URL=http://localhost:3000/api/v1  # Optional, defaults to localhost

For login checks, also add:
APOSTROPHE_USERNAME=your-test-username
APOSTROPHE_PASSWORD=your-test-password"""


class ApostropheConfig(BaseModel):
    """[apostrophe] section: where the API lives and how to authenticate."""

    base_url: str = DEFAULT_BASE_URL
    api_key: str = ""
    username: str = ""
    password: str = ""
    test_email: str = ""
    timeout: float = 15.0

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url and self.api_key)

    @property
    def has_credentials(self) -> bool:
        return bool(self.username and self.password)

    @property
    def masked_api_key(self) -> str:
        """The API key reduced to its last four characters, for display."""
        if not self.api_key:
            return "Not set"
        return f"***{self.api_key[-4:]}"

    @classmethod
    def from_env(cls) -> ApostropheConfig:
        """Create config from environment variables."""
        return cls(
            base_url=os.environ.get("APOSTROPHE_BASE_URL", DEFAULT_BASE_URL),
            api_key=os.environ.get("APOSTROPHE_API_KEY", ""),
            username=os.environ.get("APOSTROPHE_USERNAME", ""),
            password=os.environ.get("APOSTROPHE_PASSWORD", ""),
            test_email=os.environ.get("APOSTROPHE_TEST_EMAIL", ""),
        )

    def require_api_key(self) -> None:
        """Raise :class:`ConfigError` unless an API key is configured."""
        if not self.api_key:
            raise ConfigError("APOSTROPHE_API_KEY is required")


class RunConfig(BaseModel):
    """[run] section."""

    pace_seconds: float = 0.5
    test_image: str = "test-image.png"
    suites: list[str] = Field(default_factory=list)
    password_reset: bool = False


class AposcheckConfig(BaseModel):
    """Top-level configuration model."""

    apostrophe: ApostropheConfig = Field(default_factory=ApostropheConfig)
    run: RunConfig = Field(default_factory=RunConfig)

    @property
    def run_password_reset(self) -> bool:
        """Password reset checks run when requested or when a test email is set."""
        return self.run.password_reset or bool(self.apostrophe.test_email)


def load_config(path: str | Path | None = None, *, use_dotenv: bool = True) -> AposcheckConfig:
    """Load configuration from a TOML file.

    Search order:
    1. Explicit path (if provided)
    2. .aposcheck.toml in CWD
    3. ~/.config/aposcheck/config.toml

    Then load ``.env`` (without overriding variables already set) and
    overlay environment variables.

    Args:
        path: Explicit path to a TOML file.
        use_dotenv: Whether to read a ``.env`` file found from the CWD.

    Returns:
        Merged AposcheckConfig.
    """
    data: dict[str, object] = {}

    if path is not None:
        toml_path = Path(path)
        if toml_path.exists():
            data = _load_toml(toml_path)
        else:
            logger.warning("Config file not found: %s", toml_path)
    else:
        for search_dir in CONFIG_SEARCH_PATHS:
            candidate = search_dir / CONFIG_FILENAME
            if candidate.exists():
                data = _load_toml(candidate)
                logger.info("Loaded config from %s", candidate)
                break
        if not data and GLOBAL_CONFIG_PATH.exists():
            data = _load_toml(GLOBAL_CONFIG_PATH)
            logger.info("Loaded config from %s", GLOBAL_CONFIG_PATH)

    config = AposcheckConfig.model_validate(data) if data else AposcheckConfig()

    if use_dotenv:
        dotenv_path = find_dotenv(".env", usecwd=True)
        if dotenv_path:
            load_dotenv(dotenv_path, override=False)
            logger.debug("Loaded environment from %s", dotenv_path)

    return _apply_env_vars(config)


def merge_cli_overrides(config: AposcheckConfig, **cli_kwargs: object) -> AposcheckConfig:
    """Overlay explicitly-set CLI flags onto the config.

    Only overrides values where the CLI flag was explicitly provided
    (i.e., not None).
    """
    data = config.model_dump()

    mapping: dict[str, tuple[str, str]] = {
        "base_url": ("apostrophe", "base_url"),
        "api_key": ("apostrophe", "api_key"),
        "timeout": ("apostrophe", "timeout"),
        "pace": ("run", "pace_seconds"),
        "image": ("run", "test_image"),
        "password_reset": ("run", "password_reset"),
    }

    for key, value in cli_kwargs.items():
        if value is None:
            continue
        if key in mapping:
            section, field = mapping[key]
            data[section][field] = value

    return AposcheckConfig.model_validate(data)


def _load_toml(path: Path) -> dict[str, object]:
    """Load a TOML file and return the data dict."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        return {}


def _apply_env_vars(config: AposcheckConfig) -> AposcheckConfig:
    """Apply environment variable overrides to config."""
    data = config.model_dump()

    env_mapping: dict[str, tuple[str, str]] = {
        "APOSTROPHE_BASE_URL": ("apostrophe", "base_url"),
        "APOSTROPHE_API_KEY": ("apostrophe", "api_key"),
        "APOSTROPHE_USERNAME": ("apostrophe", "username"),
        "APOSTROPHE_PASSWORD": ("apostrophe", "password"),
        "APOSTROPHE_TEST_EMAIL": ("apostrophe", "test_email"),
        "APOSCHECK_TEST_IMAGE": ("run", "test_image"),
    }

    for env_var, (section, field) in env_mapping.items():
        value = os.environ.get(env_var)
        if value is not None:
            data[section][field] = value

    pace_raw = os.environ.get("APOSCHECK_PACE_SECONDS")
    if pace_raw is not None:
        try:
            data["run"]["pace_seconds"] = float(pace_raw)
        except ValueError:
            logger.warning("Ignoring invalid APOSCHECK_PACE_SECONDS=%r", pace_raw)

    reset_raw = os.environ.get("RUN_PASSWORD_RESET_TESTS")
    if reset_raw is not None:
        data["run"]["password_reset"] = reset_raw.strip().lower() in ("1", "true", "yes")

    return AposcheckConfig.model_validate(data)
