"""Dev settings — reads .env + vitedev.toml to produce a DevSettings.

All settings have working defaults, so neither file is required. The
optional ``vitedev.toml`` lives at the monorepo root and holds a single
``[vitedev]`` table; environment variables override it.

``VITEDEV_ROOT`` is read from the real environment only. The .env file
sits under the root, so it is loaded after the root is resolved and
cannot move it.

Key entities:
  - DevSettings: frozen dataclass with all resolved paths and commands.
  - load_settings(): parse .env + vitedev.toml + env → DevSettings.
"""

from __future__ import annotations

import logging
import os
import shlex
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from .utils import find_repo_root

logger = logging.getLogger(__name__)

SETTINGS_FILE_NAME = "vitedev.toml"

_DEFAULT_INSTALL_COMMAND = ["npm", "install", "-f"]
_DEFAULT_CACHE_DIRS = ("vite", ".vite")
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

# ---------------------------------------------------------------------------
# DevSettings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DevSettings:
    """Resolved configuration for one preparer run.

    All path attributes derive from root_dir; no further env lookups needed.
    """

    root_dir: Path = field(default_factory=lambda: Path.cwd())

    # Package manager
    install_command: list[str] = field(
        default_factory=lambda: list(_DEFAULT_INSTALL_COMMAND)
    )

    # Build-tool caches removed from node_modules/ before install
    cache_dirs: tuple[str, ...] = _DEFAULT_CACHE_DIRS

    # Path segments the watchers never report
    ignored_dirs: tuple[str, ...] = ("node_modules",)

    # Console
    notice_marker: str = "ℹ"
    log_level: str = "INFO"

    # --- Derived path helpers (use root_dir) ---

    @property
    def packages_dir(self) -> Path:
        return self.root_dir / "packages"

    @property
    def examples_dir(self) -> Path:
        return self.root_dir / "examples"

    def example_dir(self, name: str) -> Path:
        return self.examples_dir / name

    def package_dir(self, name: str) -> Path:
        return self.packages_dir / name


# ---------------------------------------------------------------------------
# load_settings
# ---------------------------------------------------------------------------


def load_settings(root_dir: Path | None = None) -> DevSettings:
    """Read .env + vitedev.toml and return a DevSettings.

    Args:
        root_dir: Override for the monorepo root.
                  Defaults to ``find_repo_root()``.

    Returns:
        DevSettings with file values applied, then env overrides.

    Raises:
        ValueError: If vitedev.toml holds values of the wrong type.
    """
    if root_dir is None:
        root_dir = find_repo_root()

    env_file = root_dir / ".env"
    if env_file.is_file():
        load_dotenv(env_file)

    raw: dict = {}
    toml_path = root_dir / SETTINGS_FILE_NAME
    if toml_path.is_file():
        with open(toml_path, "rb") as f:
            raw = tomllib.load(f).get("vitedev", {})
        logger.debug("Loaded settings from %s", toml_path)

    install_command = _as_command(
        os.getenv("VITEDEV_INSTALL_COMMAND") or raw.get("install_command"),
        "install_command",
    )
    log_level = str(os.getenv("VITEDEV_LOG_LEVEL") or raw.get("log_level", "INFO"))
    if log_level.upper() not in _LOG_LEVELS:
        raise ValueError(f"Unknown log_level '{log_level}' in {SETTINGS_FILE_NAME}.")

    return DevSettings(
        root_dir=root_dir,
        install_command=install_command or list(_DEFAULT_INSTALL_COMMAND),
        cache_dirs=_as_names(raw.get("cache_dirs", _DEFAULT_CACHE_DIRS), "cache_dirs"),
        ignored_dirs=_as_names(
            raw.get("ignored_dirs", ("node_modules",)), "ignored_dirs"
        ),
        notice_marker=str(raw.get("notice_marker", "ℹ")),
        log_level=log_level.upper(),
    )


def _as_command(value: object, key: str) -> list[str]:
    """Accept a shell string or a list of strings."""
    if value is None:
        return []
    if isinstance(value, str):
        return shlex.split(value)
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return list(value)
    raise ValueError(f"'{key}' must be a string or a list of strings.")


def _as_names(value: object, key: str) -> tuple[str, ...]:
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return tuple(value)
    raise ValueError(f"'{key}' must be a list of directory names.")
