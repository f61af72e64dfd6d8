from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv
from platformdirs import user_cache_dir, user_config_dir

APP_NAME = "PrincipalConsole"
ENV_PREFIX = "PRINCIPAL_CONSOLE_"
ENV_FILE_NAME = "settings.env"

DEFAULT_PROVIDER = "default"
DEFAULT_ACTIONS: tuple[str, ...] = ("read",)
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR"}


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


def _parse_bool(raw: str | None) -> bool | None:
    if raw is None:
        return None
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(slots=True)
class Settings:
    """Console preferences shared by the tree, table and loader layers.

    ``default_actions`` seeds the permission table filter when principals are
    dropped onto an empty filter; values are ``PermissionAction`` names.
    """

    default_provider: str = DEFAULT_PROVIDER
    default_org_id: str | None = None
    multi_tenant: bool = False
    log_level: str = "INFO"
    default_actions: list[str] = field(default_factory=lambda: list(DEFAULT_ACTIONS))

    @property
    def is_multi_tenant(self) -> bool:
        """True when organizations are surfaced as their own tree root."""
        return self.multi_tenant and bool(self.default_org_id)

    def normalized_actions(self) -> list[str]:
        """Return lower-cased, deduplicated actions preserving order."""

        seen = set[str]()
        result: list[str] = []
        for action in self.default_actions:
            key = action.strip().lower()
            if key and key not in seen:
                seen.add(key)
                result.append(key)
        return result or list(DEFAULT_ACTIONS)


class SettingsManager:
    """Load and persist console settings with environment overrides."""

    def __init__(self, env_file: Path | None = None) -> None:
        self._env_file = _env_file_path(env_file)

    @property
    def env_file(self) -> Path:
        return self._env_file

    def load(self) -> Settings:
        """Load settings from environment, falling back to persisted file."""
        load_dotenv(self._env_file, override=False)

        settings = Settings()
        provider = self._get_env("PROVIDER")
        if provider:
            settings.default_provider = provider
        settings.default_org_id = self._get_env("ORG_ID")

        multi_tenant = _parse_bool(self._get_env("MULTI_TENANT"))
        if multi_tenant is not None:
            settings.multi_tenant = multi_tenant

        level = (self._get_env("LOG_LEVEL") or "").upper()
        if level in _LOG_LEVELS:
            settings.log_level = level

        actions = self._get_actions_from_env()
        if actions:
            settings.default_actions = actions
        return settings

    def save(self, settings: Settings) -> None:
        """Persist settings to the managed env file."""
        self._env_file.parent.mkdir(parents=True, exist_ok=True)
        content = [
            f"{ENV_PREFIX}PROVIDER={settings.default_provider}",
            f"{ENV_PREFIX}ORG_ID={settings.default_org_id or ''}",
            f"{ENV_PREFIX}MULTI_TENANT={'true' if settings.multi_tenant else 'false'}",
            f"{ENV_PREFIX}LOG_LEVEL={settings.log_level}",
            f"{ENV_PREFIX}ACTIONS={';'.join(settings.normalized_actions())}",
        ]
        self._env_file.write_text("\n".join(content) + "\n", encoding="utf-8")

    def _get_env(self, name: str) -> str | None:
        return os.getenv(f"{ENV_PREFIX}{name}") or None

    def _get_actions_from_env(self) -> list[str] | None:
        raw = self._get_env("ACTIONS")
        if not raw:
            return None
        actions = [action.strip() for action in raw.split(";") if action.strip()]
        return actions or None


__all__ = [
    "DEFAULT_ACTIONS",
    "DEFAULT_PROVIDER",
    "Settings",
    "SettingsManager",
    "cache_dir",
    "config_dir",
    "log_dir",
]
