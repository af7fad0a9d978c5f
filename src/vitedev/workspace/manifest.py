"""package.json handling for examples and local packages.

An example's package.json is a template: it declares its third-party
dependencies under ``external`` and the workspace packages it uses under
``local``. The real ``dependencies`` field is generated from both:
``external`` overlaid with every local package's own ``dependencies``.

Key entities:
  - Manifest / LocalPackage: parsed manifests.
  - merge_dependencies(): the overlay (last local package wins).
  - write_manifest(): atomic pretty-printed rewrite.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

MANIFEST_NAME = "package.json"


class ManifestError(ValueError):
    """A package.json is missing, unreadable, or has the wrong shape."""


@dataclass(frozen=True)
class Manifest:
    """An example's template manifest."""

    path: Path
    data: dict[str, Any]
    external: dict[str, str] = field(default_factory=dict)
    local: dict[str, Any] = field(default_factory=dict)

    @property
    def local_names(self) -> list[str]:
        """Local package names in declaration order."""
        return list(self.local)


@dataclass(frozen=True)
class LocalPackage:
    """A workspace package under packages/<name>."""

    name: str
    path: Path
    dependencies: dict[str, str] = field(default_factory=dict)


def _read_json(path: Path) -> dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise ManifestError(f"Manifest not found: {path}") from None
    except json.JSONDecodeError as e:
        raise ManifestError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ManifestError(f"Manifest must be a JSON object: {path}")
    return data


def _group(data: dict[str, Any], key: str, path: Path) -> dict[str, Any]:
    """Return a dependency group, treating a missing one as empty."""
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ManifestError(f"'{key}' in {path} must be an object.")
    return dict(value)


def load_manifest(example_dir: Path) -> Manifest:
    """Load the template manifest of an example directory."""
    path = example_dir / MANIFEST_NAME
    data = _read_json(path)
    return Manifest(
        path=path,
        data=data,
        external=_group(data, "external", path),
        local=_group(data, "local", path),
    )


def load_local_package(packages_dir: Path, name: str) -> LocalPackage:
    """Load packages/<name>/package.json.

    Raises:
        ManifestError: If the package directory doesn't exist.
    """
    package_dir = packages_dir / name
    if not package_dir.is_dir():
        raise ManifestError(f"Local package not found: {package_dir}")
    path = package_dir / MANIFEST_NAME
    data = _read_json(path)
    return LocalPackage(
        name=name,
        path=package_dir,
        dependencies=_group(data, "dependencies", path),
    )


def merge_dependencies(
    external: dict[str, str], local_packages: list[LocalPackage]
) -> dict[str, str]:
    """Overlay each local package's dependencies onto a copy of external.

    Packages are applied in list order, so on a name collision the later
    package's version wins.
    """
    dependencies = dict(external)
    for package in local_packages:
        for dep, version in package.dependencies.items():
            if dep in dependencies and dependencies[dep] != version:
                logger.debug(
                    "%s overrides %s: %s -> %s",
                    package.name,
                    dep,
                    dependencies[dep],
                    version,
                )
            dependencies[dep] = version
    return dependencies


def render_manifest(data: dict[str, Any], dependencies: dict[str, str]) -> str:
    """Return the manifest text with ``dependencies`` replaced."""
    return json.dumps(
        {**data, "dependencies": dependencies}, indent=2, ensure_ascii=False
    )


def write_manifest(
    manifest: Manifest, dependencies: dict[str, str], path: Path | None = None
) -> Path:
    """Rewrite the manifest with the merged dependencies.

    Writes a temp file next to the target and swaps it in with os.replace,
    so readers never see a half-written package.json.
    """
    path = path or manifest.path
    content = render_manifest(manifest.data, dependencies)
    fd, tmp_name = tempfile.mkstemp(
        dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        # mkstemp creates 0600
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    logger.info("Wrote %s (%d dependencies)", path, len(dependencies))
    return path
