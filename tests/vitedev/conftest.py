"""Shared fixtures — a throwaway monorepo with packages/ and examples/."""

import json
from pathlib import Path

import pytest

from vitedev.settings import DevSettings


def write_json(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2))


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    """Monorepo root with one example (vue-hello) and two local packages."""
    root = tmp_path / "repo"
    write_json(
        root / "packages" / "fastify-vite" / "package.json",
        {"name": "fastify-vite", "dependencies": {"fastify": "^4.0.0", "vite": "^5.0.0"}},
    )
    (root / "packages" / "fastify-vite" / "index.js").write_text("module.exports = 1\n")
    write_json(
        root / "packages" / "fastify-vite-vue" / "package.json",
        {"name": "fastify-vite-vue", "dependencies": {"vue": "^3.4.0", "vite": "^5.1.0"}},
    )
    (root / "packages" / "fastify-vite-vue" / "html.js").write_text("// html\n")
    write_json(
        root / "examples" / "vue-hello" / "package.json",
        {
            "name": "vue-hello",
            "scripts": {"dev": "node server.js --dev"},
            "external": {"devalue": "^4.3.0"},
            "local": {"fastify-vite": "*", "fastify-vite-vue": "*"},
        },
    )
    return root


@pytest.fixture
def settings(repo: Path) -> DevSettings:
    return DevSettings(root_dir=repo, install_command=["npm", "install", "-f"])
