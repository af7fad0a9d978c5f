"""Root conftest — clears vitedev env vars BEFORE any vitedev module is imported.

Settings resolution reads VITEDEV_* from the environment, so a developer's
shell must not leak into tests. Tests that need a value set it with
monkeypatch.
"""

import os

for _name in ("VITEDEV_ROOT", "VITEDEV_INSTALL_COMMAND", "VITEDEV_LOG_LEVEL"):
    os.environ.pop(_name, None)
