"""Tests for workspace/manifest.py — loading, merging, and rewriting package.json."""

import json
import stat
from pathlib import Path

import pytest

from vitedev.workspace.manifest import (
    LocalPackage,
    ManifestError,
    load_local_package,
    load_manifest,
    merge_dependencies,
    render_manifest,
    write_manifest,
)


def _pkg(name: str, **deps: str) -> LocalPackage:
    return LocalPackage(name=name, path=Path("/packages") / name, dependencies=deps)


class TestMergeDependencies:
    def test_external_plus_local(self) -> None:
        merged = merge_dependencies({"a": "1.0"}, [_pkg("lib", b="2.0")])
        assert merged == {"a": "1.0", "b": "2.0"}

    def test_later_package_wins(self) -> None:
        merged = merge_dependencies(
            {}, [_pkg("first", vite="^5.0.0"), _pkg("second", vite="^5.1.0")]
        )
        assert merged == {"vite": "^5.1.0"}

    def test_order_matters(self) -> None:
        merged = merge_dependencies(
            {}, [_pkg("second", vite="^5.1.0"), _pkg("first", vite="^5.0.0")]
        )
        assert merged == {"vite": "^5.0.0"}

    def test_local_overrides_external(self) -> None:
        merged = merge_dependencies({"vue": "^2.0.0"}, [_pkg("lib", vue="^3.0.0")])
        assert merged == {"vue": "^3.0.0"}

    def test_does_not_mutate_external(self) -> None:
        external = {"a": "1.0"}
        merge_dependencies(external, [_pkg("lib", b="2.0")])
        assert external == {"a": "1.0"}

    def test_local_names_not_added(self) -> None:
        merged = merge_dependencies({}, [_pkg("lib", b="2.0")])
        assert "lib" not in merged


class TestLoadManifest:
    def test_groups(self, repo: Path) -> None:
        manifest = load_manifest(repo / "examples" / "vue-hello")
        assert manifest.external == {"devalue": "^4.3.0"}
        assert manifest.local_names == ["fastify-vite", "fastify-vite-vue"]

    def test_missing_groups_are_empty(self, tmp_path: Path) -> None:
        (tmp_path / "package.json").write_text('{"name": "bare"}')
        manifest = load_manifest(tmp_path)
        assert manifest.external == {}
        assert manifest.local == {}

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ManifestError, match="Manifest not found"):
            load_manifest(tmp_path)

    def test_invalid_json(self, tmp_path: Path) -> None:
        (tmp_path / "package.json").write_text("{not json")
        with pytest.raises(ManifestError, match="Invalid JSON"):
            load_manifest(tmp_path)

    def test_group_wrong_type(self, tmp_path: Path) -> None:
        (tmp_path / "package.json").write_text('{"local": ["a", "b"]}')
        with pytest.raises(ManifestError, match="'local'"):
            load_manifest(tmp_path)


class TestLoadLocalPackage:
    def test_reads_dependencies(self, repo: Path) -> None:
        package = load_local_package(repo / "packages", "fastify-vite-vue")
        assert package.name == "fastify-vite-vue"
        assert package.dependencies == {"vue": "^3.4.0", "vite": "^5.1.0"}

    def test_missing_package_dir(self, repo: Path) -> None:
        with pytest.raises(ManifestError, match="Local package not found"):
            load_local_package(repo / "packages", "nope")

    def test_no_dependencies_field(self, tmp_path: Path) -> None:
        (tmp_path / "lib").mkdir()
        (tmp_path / "lib" / "package.json").write_text('{"name": "lib"}')
        assert load_local_package(tmp_path, "lib").dependencies == {}


class TestWriteManifest:
    def test_external_plus_one_local_package(self, tmp_path: Path) -> None:
        (tmp_path / "package.json").write_text(
            '{"name": "ex", "external": {"a": "1.0"}, "local": {"lib": "*"}}'
        )
        manifest = load_manifest(tmp_path)
        write_manifest(manifest, merge_dependencies(manifest.external, [_pkg("lib", b="2.0")]))

        written = json.loads((tmp_path / "package.json").read_text())
        assert written["dependencies"] == {"a": "1.0", "b": "2.0"}
        # Template fields are kept for the next run
        assert written["external"] == {"a": "1.0"}
        assert written["local"] == {"lib": "*"}

    def test_pretty_printed_two_spaces(self) -> None:
        text = render_manifest({"name": "ex"}, {"a": "1.0"})
        assert text == '{\n  "name": "ex",\n  "dependencies": {\n    "a": "1.0"\n  }\n}'

    def test_replaces_dependencies_in_place(self) -> None:
        text = render_manifest(
            {"name": "ex", "dependencies": {"old": "0.1"}, "scripts": {}}, {"a": "1.0"}
        )
        assert list(json.loads(text)) == ["name", "dependencies", "scripts"]
        assert "old" not in text

    def test_keeps_unicode(self) -> None:
        text = render_manifest({"description": "café"}, {})
        assert "café" in text

    def test_no_temp_files_left(self, tmp_path: Path) -> None:
        (tmp_path / "package.json").write_text("{}")
        write_manifest(load_manifest(tmp_path), {"a": "1.0"})
        assert [p.name for p in tmp_path.iterdir()] == ["package.json"]

    def test_file_is_world_readable(self, tmp_path: Path) -> None:
        (tmp_path / "package.json").write_text("{}")
        path = write_manifest(load_manifest(tmp_path), {})
        assert path.stat().st_mode & stat.S_IROTH
