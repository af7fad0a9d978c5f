"""Application entry point — CLI dispatcher.

Handles two execution modes:
  1. `vitedev check-html PATH` — compile an index.html and print its slots.
  2. Default — `vitedev [--root DIR] [-v] [--] COMMAND...`, run from inside
     examples/<name>: prepares the example against the local packages,
     then runs COMMAND while watchers keep node_modules in sync.

Everything after the first non-option argument (or after `--`) is the
trailing command, passed through untouched.
"""

import logging
import subprocess
import sys
from pathlib import Path

USAGE = "Usage: vitedev [--root DIR] [-v] [--] COMMAND...\n       vitedev check-html PATH"


def _parse_args(argv: list[str]) -> tuple[Path | None, bool, list[str]]:
    """Split argv into (root, verbose, command)."""
    root: Path | None = None
    verbose = False
    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg == "--":
            i += 1
            break
        if arg in ("-v", "--verbose"):
            verbose = True
        elif arg == "--root":
            if i + 1 >= len(argv):
                raise ValueError("--root requires a directory argument.")
            root = Path(argv[i + 1]).expanduser().resolve()
            i += 1
        elif arg.startswith("--root="):
            root = Path(arg.split("=", 1)[1]).expanduser().resolve()
        else:
            break
        i += 1
    return root, verbose, argv[i:]


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.WARNING,
    )
    logging.getLogger("vitedev").setLevel(level)


def _check_html(args: list[str]) -> int:
    """Compile an HTML file and report its slots."""
    from .html import TemplateCompileError, compile_index_html_file

    if len(args) != 1:
        print(USAGE)
        return 1
    path = Path(args[0])
    try:
        template = compile_index_html_file(path)
    except FileNotFoundError:
        print(f"Error: file not found: {path}")
        return 1
    except TemplateCompileError as e:
        print(f"Error: {e}")
        return 1
    slots = ", ".join(template.slots) if template.slots else "none"
    print(f"{path}: slots: {slots}")
    return 0


def run(argv: list[str]) -> int:
    """Run the CLI for argv (without the program name) and return the exit status."""
    if argv and argv[0] in ("-h", "--help"):
        print(USAGE)
        return 0

    if argv and argv[0] == "check-html":
        return _check_html(argv[1:])

    from .settings import load_settings
    from .workspace.manifest import ManifestError
    from .workspace.preparer import (
        MISSING_EXAMPLE_MESSAGE,
        EnvironmentPreparer,
        resolve_example,
    )

    try:
        root, verbose, command = _parse_args(argv)
        settings = load_settings(root_dir=root)
    except ValueError as e:
        print(f"Error: {e}\n")
        print(USAGE)
        return 1

    _configure_logging("DEBUG" if verbose else settings.log_level)
    logger = logging.getLogger(__name__)

    example_dir = resolve_example(settings)
    if example_dir is None:
        print(MISSING_EXAMPLE_MESSAGE)
        return 0

    logger.info("Preparing %s (root %s)", example_dir.name, settings.root_dir)
    preparer = EnvironmentPreparer(settings, example_dir)
    try:
        return preparer.run(command)
    except ManifestError as e:
        print(f"Error: {e}")
        return 1
    except subprocess.CalledProcessError as e:
        logger.error("Command failed with exit status %d: %s", e.returncode, e.cmd)
        return e.returncode or 1
    except OSError as e:
        logger.error("Environment preparation failed: %s", e)
        return 1


def main() -> None:
    """Main entry point."""
    sys.exit(run(sys.argv[1:]))


if __name__ == "__main__":
    main()
