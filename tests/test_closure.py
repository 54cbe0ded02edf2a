"""Tests for the transitive composite build closure."""

import json
import logging
import os

import pytest

from compositebuild.common.errors import DescriptorParseError
from compositebuild.workspace import (
    ClosureSet,
    DescriptorStore,
    TransitiveClosureResolver,
    WorkspaceScanner,
    find_composite_builds,
)


def _make_build(path, dependencies=(), properties=""):
    """Create a build folder whose descriptor declares ``dependencies`` (artifact names)."""
    path.mkdir(parents=True, exist_ok=True)
    lines = "\n".join(f'   api("us.ihmc:{name}:source")' for name in dependencies)
    (path / "build.gradle.kts").write_text(f"mainDependencies {{\n{lines}\n}}\n", encoding="utf-8")
    (path / "settings.gradle.kts").write_text("", encoding="utf-8")
    (path / "gradle.properties").write_text(properties, encoding="utf-8")
    return path


def _resolve(workspace, project):
    store = DescriptorStore()
    index = WorkspaceScanner(store, max_depth=3).scan(str(workspace))
    return TransitiveClosureResolver(index, str(project)).resolve()


class TestClosureSet:
    """Ordered grow-only set."""

    def test_add_reports_new_members(self):
        closure = ClosureSet()
        assert closure.add("a") is True
        assert closure.add("b") is True
        assert closure.add("a") is False
        assert list(closure) == ["a", "b"]
        assert len(closure) == 2
        assert "b" in closure


class TestTransitiveClosure:
    """Closure over declared dependencies."""

    def test_transitive_dependencies_included(self, tmp_path):
        root = _make_build(tmp_path / "app", ["robot-models"])
        _make_build(tmp_path / "robot-models", ["euclid"])
        _make_build(tmp_path / "euclid")
        _make_build(tmp_path / "unrelated")
        result = _resolve(tmp_path, root)
        assert result.names == ["robot-models", "euclid"]
        assert result.builds == [os.path.join("..", "robot-models"), os.path.join("..", "euclid")]
        assert ("app", "robot-models") in result.edges
        assert ("robot-models", "euclid") in result.edges

    def test_cycles_terminate_and_visit_once(self, tmp_path):
        root = _make_build(tmp_path / "app", ["a"])
        _make_build(tmp_path / "a", ["b"])
        _make_build(tmp_path / "b", ["a", "app"])
        result = _resolve(tmp_path, root)
        assert sorted(result.names) == ["a", "b"]
        assert len(result.names) == len(set(result.names))

    def test_root_never_included(self, tmp_path):
        root = _make_build(tmp_path / "app", ["lib"])
        _make_build(tmp_path / "lib", ["app"])
        result = _resolve(tmp_path, root)
        assert result.names == ["lib"]

    def test_excluded_build_neither_added_nor_expanded(self, tmp_path, caplog):
        root = _make_build(tmp_path / "app", ["skipped"])
        _make_build(tmp_path / "skipped", ["hidden-dep"], properties="excludeFromCompositeBuild = true\n")
        _make_build(tmp_path / "hidden-dep")
        with caplog.at_level(logging.INFO):
            result = _resolve(tmp_path, root)
        assert result.names == []
        assert result.excluded == ["skipped"]
        assert "Not including excluded build skipped" in caplog.text

    @pytest.mark.parametrize("bad_line", [
        "compositeSearchHeight = two",
        "modules = [test",
        "name = \\uZZZZ",
    ])
    def test_exclusion_survives_malformed_property(self, tmp_path, bad_line):
        root = _make_build(tmp_path / "app", ["skipped"])
        _make_build(tmp_path / "skipped", properties=f"excludeFromCompositeBuild = true\n{bad_line}\n")
        result = _resolve(tmp_path, root)
        assert result.names == []
        assert result.excluded == ["skipped"]

    def test_malformed_properties_make_build_a_leaf(self, tmp_path, caplog):
        root = _make_build(tmp_path / "app", ["half-broken"])
        _make_build(tmp_path / "half-broken", ["euclid"], properties="compositeSearchHeight = two\n")
        _make_build(tmp_path / "euclid")
        with caplog.at_level(logging.WARNING):
            result = _resolve(tmp_path, root)
        assert result.names == ["half-broken"]
        assert "treating it as having no dependencies" in caplog.text

    def test_malformed_root_properties_raise(self, tmp_path):
        root = _make_build(tmp_path / "app", ["lib"], properties="modules = [test\n")
        _make_build(tmp_path / "lib")
        with pytest.raises(DescriptorParseError):
            _resolve(tmp_path, root)

    def test_aliases_match_any_naming_convention(self, tmp_path):
        root = _make_build(tmp_path / "app", ["IhmcCommonsTesting", "euclid-geometry"])
        _make_build(
            tmp_path / "ihmc-commons",
            properties='kebabCasedName = ihmc-commons\nmodules = ["testing"]\n',
        )
        _make_build(tmp_path / "geometry", properties="title = Euclid Geometry\n")
        result = _resolve(tmp_path, root)
        assert sorted(result.names) == ["geometry", "ihmc-commons"]

    def test_unparseable_sibling_treated_as_leaf(self, tmp_path, caplog):
        root = _make_build(tmp_path / "app", ["broken"])
        broken = _make_build(tmp_path / "broken")
        (broken / "build.gradle.kts").write_text('dependencies {\n api("us.ihmc:euclid:1")\n', encoding="utf-8")
        _make_build(tmp_path / "euclid")
        with caplog.at_level(logging.WARNING):
            result = _resolve(tmp_path, root)
        assert result.names == ["broken"]
        assert "treating it as having no dependencies" in caplog.text

    def test_unparseable_root_raises(self, tmp_path):
        root = _make_build(tmp_path / "app")
        (root / "build.gradle.kts").write_text("dependencies {\n", encoding="utf-8")
        with pytest.raises(DescriptorParseError):
            _resolve(tmp_path, root)

    def test_idempotent(self, tmp_path):
        root = _make_build(tmp_path / "app", ["a", "b"])
        _make_build(tmp_path / "a", ["c"])
        _make_build(tmp_path / "b", ["c"])
        _make_build(tmp_path / "c")
        first = _resolve(tmp_path, root)
        second = _resolve(tmp_path, root)
        assert first.names == second.names == ["a", "b", "c"]


class TestClosureRendering:
    """Output formats."""

    def test_settings_and_json(self, tmp_path):
        root = _make_build(tmp_path / "app", ["lib"])
        _make_build(tmp_path / "lib")
        result = _resolve(tmp_path, root)
        assert result.to_settings() == 'includeBuild("../lib")\n'
        data = json.loads(result.to_json())
        assert data["builds"] == ["../lib"]
        assert data["edges"] == [["app", "lib"]]

    def test_dot(self, tmp_path):
        root = _make_build(tmp_path / "app", ["lib"])
        _make_build(tmp_path / "lib")
        dot = _resolve(tmp_path, root).to_dot()
        assert dot.startswith("digraph composite {")
        assert '"app" -> "lib";' in dot


class TestFindCompositeBuilds:
    """Workspace discovery from a project folder."""

    def test_search_height_from_properties(self, tmp_path):
        root = _make_build(tmp_path / "group" / "app", ["lib"], properties="compositeSearchHeight = 2\n")
        _make_build(tmp_path / "other-group" / "lib")
        result = find_composite_builds(str(root))
        assert result.workspace == os.path.realpath(str(tmp_path))
        assert result.names == ["lib"]

    def test_default_height_only_sees_siblings(self, tmp_path):
        root = _make_build(tmp_path / "group" / "app", ["lib"])
        _make_build(tmp_path / "other-group" / "lib")
        result = find_composite_builds(str(root))
        assert result.names == []

    def test_include_builds_from_workspace_disabled(self, tmp_path):
        root = _make_build(tmp_path / "app", ["lib"], properties="includeBuildsFromWorkspace = false\n")
        _make_build(tmp_path / "lib")
        result = find_composite_builds(str(root))
        assert result.builds == []
