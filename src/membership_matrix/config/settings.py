from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv
from platformdirs import user_cache_dir, user_config_dir

APP_NAME = "MembershipMatrix"
ENV_PREFIX = "MEMBERSHIP_MATRIX_"
ENV_FILE_NAME = "settings.env"

DEFAULT_PAGE_SIZE = 25
DEFAULT_DEBOUNCE_SECONDS = 0.3
DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_USER_AGENT = "MembershipMatrix-Python"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


def _config_dir() -> Path:
    path = Path(user_config_dir(APP_NAME, roaming=True))
    path.mkdir(parents=True, exist_ok=True)
    return path


def _cache_dir() -> Path:
    path = Path(user_cache_dir(APP_NAME))
    path.mkdir(parents=True, exist_ok=True)
    return path


def config_dir() -> Path:
    return _config_dir()


def cache_dir() -> Path:
    return _cache_dir()


def log_dir() -> Path:
    path = cache_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def _env_file_path(explicit: Path | None) -> Path:
    if explicit is not None:
        return explicit
    return _config_dir() / ENV_FILE_NAME


@dataclass(slots=True)
class Settings:
    """Directory endpoint and matrix behaviour.

    ``many_users`` / ``many_groups`` mark a directory as too large to list
    without a search query; callers usually set them from the directory size.
    """

    directory_url: str | None = None
    page_size: int = DEFAULT_PAGE_SIZE
    debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS
    many_users: bool = False
    many_groups: bool = False
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT

    @property
    def is_configured(self) -> bool:
        """True when a directory endpoint is set."""
        return bool(self.directory_url)


class SettingsManager:
    """Load and persist settings with environment overrides."""

    def __init__(self, env_file: Path | None = None) -> None:
        self._env_file = _env_file_path(env_file)

    @property
    def env_file(self) -> Path:
        return self._env_file

    def load(self) -> Settings:
        """Load settings from environment, falling back to persisted file."""
        load_dotenv(self._env_file, override=False)

        settings = Settings(directory_url=self._get_env("DIRECTORY_URL"))

        page_size = self._get_int("PAGE_SIZE")
        if page_size is not None and page_size > 0:
            settings.page_size = page_size
        debounce = self._get_float("DEBOUNCE_SECONDS")
        if debounce is not None and debounce >= 0:
            settings.debounce_seconds = debounce
        timeout = self._get_float("REQUEST_TIMEOUT")
        if timeout is not None and timeout > 0:
            settings.request_timeout = timeout
        settings.many_users = self._get_bool("MANY_USERS")
        settings.many_groups = self._get_bool("MANY_GROUPS")
        user_agent = self._get_env("USER_AGENT")
        if user_agent:
            settings.user_agent = user_agent

        return settings

    def save(self, settings: Settings) -> None:
        """Persist configuration fields to the managed env file."""
        self._env_file.parent.mkdir(parents=True, exist_ok=True)
        content = [
            f"{ENV_PREFIX}DIRECTORY_URL={settings.directory_url or ''}",
            f"{ENV_PREFIX}PAGE_SIZE={settings.page_size}",
            f"{ENV_PREFIX}DEBOUNCE_SECONDS={settings.debounce_seconds}",
            f"{ENV_PREFIX}MANY_USERS={'true' if settings.many_users else 'false'}",
            f"{ENV_PREFIX}MANY_GROUPS={'true' if settings.many_groups else 'false'}",
            f"{ENV_PREFIX}REQUEST_TIMEOUT={settings.request_timeout}",
            f"{ENV_PREFIX}USER_AGENT={settings.user_agent}",
        ]
        self._env_file.write_text("\n".join(content) + "\n", encoding="utf-8")

    def _get_env(self, name: str) -> str | None:
        return os.getenv(f"{ENV_PREFIX}{name}") or None

    def _get_bool(self, name: str) -> bool:
        raw = self._get_env(name)
        if raw is None:
            return False
        return raw.strip().lower() in _TRUE_VALUES

    def _get_int(self, name: str) -> int | None:
        raw = self._get_env(name)
        if raw is None:
            return None
        try:
            return int(raw.strip())
        except ValueError:
            return None

    def _get_float(self, name: str) -> float | None:
        raw = self._get_env(name)
        if raw is None:
            return None
        try:
            return float(raw.strip())
        except ValueError:
            return None


__all__ = [
    "DEFAULT_DEBOUNCE_SECONDS",
    "DEFAULT_PAGE_SIZE",
    "Settings",
    "SettingsManager",
    "cache_dir",
    "config_dir",
    "log_dir",
]
