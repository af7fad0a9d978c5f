"""Example environment preparation — the `vitedev` dev bootstrap.

Run from inside examples/<name>. Wires the local packages/ tree into that
example's node_modules, then runs a dev command while watchers keep the
copies fresh:

  1. Remove stale build-tool caches (node_modules/vite, node_modules/.vite).
  2. Merge external + local package dependencies into package.json.
  3. Run the package install command.
  4. Copy each local package into node_modules and start its watcher.
  5. Run the trailing command in the foreground. A failed re-copy in
     any watcher terminates the command and is raised as fatal.

Key class: EnvironmentPreparer.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import threading
from pathlib import Path

from ..settings import DevSettings
from .manifest import (
    load_local_package,
    load_manifest,
    merge_dependencies,
    write_manifest,
)
from .watcher import PackageWatcher

logger = logging.getLogger(__name__)

MISSING_EXAMPLE_MESSAGE = "Must be called from a directory under examples/."

# Seconds between checks for a failed watcher while the command runs
_POLL_INTERVAL = 0.2


def resolve_example(settings: DevSettings, cwd: Path | None = None) -> Path | None:
    """Return examples/<cwd name>, or None if no such example exists."""
    name = (cwd or Path.cwd()).name
    example_dir = settings.example_dir(name)
    if not name or not example_dir.is_dir():
        return None
    return example_dir


class EnvironmentPreparer:
    """Prepares one example directory against the local packages."""

    def __init__(self, settings: DevSettings, example_dir: Path) -> None:
        self.settings = settings
        self.example_dir = example_dir
        self.node_modules = example_dir / "node_modules"
        self.watchers: list[PackageWatcher] = []
        # Shared by all watchers; set when any re-copy fails
        self.failed = threading.Event()

    def clean_caches(self) -> None:
        """Remove build-tool caches from node_modules/. Safe to call repeatedly."""
        for name in self.settings.cache_dirs:
            path = self.node_modules / name
            if path.is_symlink() or path.is_file():
                path.unlink()
            elif path.is_dir():
                shutil.rmtree(path)
            else:
                continue
            logger.info("Removed cache %s", path)

    def write_dependencies(self) -> list[str]:
        """Merge dependencies into the example's package.json.

        Returns:
            The local package names, in declaration order.
        """
        manifest = load_manifest(self.example_dir)
        local_packages = [
            load_local_package(self.settings.packages_dir, name)
            for name in manifest.local_names
        ]
        dependencies = merge_dependencies(manifest.external, local_packages)
        write_manifest(manifest, dependencies)
        return manifest.local_names

    def install(self) -> None:
        """Run the package install command; non-zero exit raises CalledProcessError."""
        logger.info(
            "Running %s in %s",
            " ".join(self.settings.install_command),
            self.example_dir,
        )
        subprocess.run(self.settings.install_command, cwd=self.example_dir, check=True)

    def link_package(self, name: str) -> PackageWatcher:
        """Copy packages/<name> into node_modules/<name> and start watching it."""
        watcher = PackageWatcher(
            name,
            self.settings.package_dir(name),
            self.node_modules / name,
            ignored_dirs=self.settings.ignored_dirs,
            marker=self.settings.notice_marker,
            failed=self.failed,
        )
        watcher.sync()
        watcher.start()
        self.watchers.append(watcher)
        return watcher

    def prepare(self) -> list[PackageWatcher]:
        """Run every setup step and return the started watchers."""
        self.clean_caches()
        local_names = self.write_dependencies()
        self.install()
        for name in local_names:
            self.link_package(name)
        return self.watchers

    def stop(self) -> None:
        """Stop all watchers."""
        for watcher in self.watchers:
            watcher.stop()
        self.watchers = []

    def run(self, command: list[str]) -> int:
        """Prepare, then run command in the foreground while watching.

        With no command, watches until interrupted. If a watcher fails to
        re-copy its package, the command is terminated and the copy error
        is re-raised.

        Returns:
            The command's exit status (0 when only watching, 130 on Ctrl-C).
        """
        try:
            self.prepare()
            if not command:
                print("Watching local packages. Press Ctrl-C to stop.")
                return self._watch_until_interrupted()
            logger.info("Starting %s", " ".join(command))
            return self._run_foreground(command)
        finally:
            self.stop()

    def _run_foreground(self, command: list[str]) -> int:
        process = subprocess.Popen(command, cwd=self.example_dir)
        try:
            while process.poll() is None:
                if self.failed.wait(_POLL_INTERVAL):
                    logger.error("Stopping %s after a failed package copy", command[0])
                    process.terminate()
                    process.wait()
                    self._raise_failure()
        except KeyboardInterrupt:
            # The child got the same SIGINT
            process.wait()
            return 130
        self._raise_failure()
        return process.returncode

    def _watch_until_interrupted(self) -> int:
        try:
            while not self.failed.wait(_POLL_INTERVAL):
                pass
        except KeyboardInterrupt:
            return 0
        self._raise_failure()
        return 0

    def _raise_failure(self) -> None:
        """Re-raise the first watcher copy error, if any."""
        for watcher in self.watchers:
            if watcher.error is not None:
                raise watcher.error
