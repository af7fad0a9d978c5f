"""Repository root discovery.

The monorepo root is the directory holding both ``packages/`` and
``examples/``. Resolution order: explicit argument, VITEDEV_ROOT env var,
nearest ancestor of the cwd with both subdirectories, then the cwd's
grandparent (the layout when invoked from ``examples/<name>``).
"""

import os
from pathlib import Path

ROOT_ENV_VAR = "VITEDEV_ROOT"


def is_repo_root(path: Path) -> bool:
    """Check whether path looks like the monorepo root."""
    return (path / "packages").is_dir() and (path / "examples").is_dir()


def find_repo_root(start: Path | None = None) -> Path:
    """Return the monorepo root for the given start directory."""
    env_root = os.environ.get(ROOT_ENV_VAR, "").strip()
    if env_root:
        return Path(os.path.expanduser(env_root)).resolve()

    start = (start or Path.cwd()).resolve()
    for candidate in (start, *start.parents):
        if is_repo_root(candidate):
            return candidate

    # examples/<name> -> two levels up
    return start.parent.parent
