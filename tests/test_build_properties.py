"""Tests for gradle.properties parsing and build descriptors."""

import logging

import pytest

from compositebuild.common.errors import PropertiesParseError
from compositebuild.workspace.descriptor import DescriptorStore, descriptor_from_properties
from compositebuild.workspace.properties import (
    BuildProperties,
    load_properties,
    parse_properties,
    to_list,
)


class TestParseProperties:
    """Java properties syntax."""

    def test_separators_and_comments(self):
        text = "# comment\n! also a comment\ntitle = My Build\nkebabCasedName:my-build\nflag true\n"
        values = parse_properties(text)
        assert values == {"title": "My Build", "kebabCasedName": "my-build", "flag": "true"}

    def test_line_continuation(self):
        values = parse_properties('modules = ["test", \\\n    "visualizers"]\n')
        assert values["modules"] == '["test", "visualizers"]'

    def test_unicode_escape(self):
        assert parse_properties("name = caf\\u00e9\n")["name"] == "café"

    def test_malformed_unicode_escape(self):
        with pytest.raises(PropertiesParseError):
            parse_properties("name = \\u12\n", "gradle.properties")

    def test_non_utf8_file(self, tmp_path):
        path = tmp_path / "gradle.properties"
        path.write_bytes(b"title = \xff\xfe\n")
        with pytest.raises(PropertiesParseError):
            load_properties(str(path))

    def test_collects_malformed_lines_when_asked(self):
        errors = []
        values = parse_properties("name = \\u12\ntitle = Kept\n", "gradle.properties", errors)
        assert values == {"title": "Kept"}
        assert len(errors) == 1
        assert "line 1" in str(errors[0])

    def test_to_list(self):
        assert to_list('["test", "visualizers"]') == ["test", "visualizers"]
        with pytest.raises(ValueError):
            to_list("[1, 2]")


class TestBuildProperties:
    """Lookup strategies over parsed values."""

    def test_placeholder_and_blank_count_as_absent(self):
        props = BuildProperties({"title": "$title", "kebabCasedName": "  "})
        assert not props.has("title")
        assert "kebabCasedName" not in props
        assert props.get("title", "fallback") == "fallback"

    def test_first_hit_wins(self):
        props = BuildProperties({"hyphenatedName": "old-name", "kebabCasedName": "new-name"})
        result = props.first((("kebabCasedName", str), ("hyphenatedName", str)))
        assert result == "new-name"

    def test_deprecated_key_warns(self, caplog):
        props = BuildProperties({"hyphenatedName": "old-name"}, source="deprecated/gradle.properties")
        with caplog.at_level(logging.WARNING):
            assert props.first((("kebabCasedName", str), ("hyphenatedName", str))) == "old-name"
        assert "deprecated" in caplog.text

    def test_get_bool(self):
        props = BuildProperties({"includeBuildsFromWorkspace": "TRUE", "other": "yes"})
        assert props.get_bool("includeBuildsFromWorkspace") is True
        assert props.get_bool("other") is False
        assert props.get_bool("missing", True) is True


class TestDescriptor:
    """Descriptor construction and defaults."""

    def test_defaults_from_folder_name(self):
        descriptor = descriptor_from_properties("/ws/RobotModels", BuildProperties())
        assert descriptor.folder_name == "RobotModels"
        assert descriptor.kebab_cased_name == "robot-models"
        assert descriptor.pascal_cased_name == "RobotModels"
        assert descriptor.exclude_from_composite_build is False
        assert descriptor.composite_search_height == 1
        assert descriptor.include_builds_from_workspace is True

    def test_title_drives_both_names(self):
        descriptor = descriptor_from_properties("/ws/x", BuildProperties({"title": "Euclid Geometry"}))
        assert descriptor.kebab_cased_name == "euclid-geometry"
        assert descriptor.pascal_cased_name == "EuclidGeometry"

    def test_explicit_names_override_title(self):
        props = BuildProperties({
            "title": "Ignored Title",
            "kebabCasedName": "ihmc-java-toolkit",
            "pascalCasedName": "IHMCJavaToolkit",
        })
        descriptor = descriptor_from_properties("/ws/toolkit", props)
        assert descriptor.kebab_cased_name == "ihmc-java-toolkit"
        assert descriptor.pascal_cased_name == "IHMCJavaToolkit"

    def test_modules_become_aliases_without_main(self):
        props = BuildProperties({"kebabCasedName": "euclid", "modules": '["main", "test", "frameWork"]'})
        descriptor = descriptor_from_properties("/ws/euclid", props)
        assert descriptor.extra_segments == ("test", "frame-work")
        assert descriptor.matches("euclid-test")
        assert descriptor.matches("EuclidFrameWork")
        assert descriptor.matches("euclid")
        assert not descriptor.matches("euclid-main")

    def test_flags_and_height(self):
        props = BuildProperties({
            "excludeFromCompositeBuild": "true",
            "depthFromWorkspaceDirectory": "2",
            "includeBuildsFromWorkspace": "false",
        })
        descriptor = descriptor_from_properties("/ws/group", props)
        assert descriptor.exclude_from_composite_build is True
        assert descriptor.composite_search_height == 2
        assert descriptor.include_builds_from_workspace is False

    @pytest.mark.parametrize("bad_line", ["compositeSearchHeight = two", "modules = [test"])
    def test_bad_value_keeps_exclusion(self, bad_line):
        key, value = (part.strip() for part in bad_line.split("=", 1))
        props = BuildProperties({"excludeFromCompositeBuild": "true", key: value})
        descriptor = descriptor_from_properties("/ws/skipped", props)
        assert descriptor.exclude_from_composite_build is True
        assert descriptor.properties_malformed is True
        assert descriptor.composite_search_height == 1
        assert descriptor.extra_segments == ()

    def test_well_formed_properties_are_not_flagged(self):
        descriptor = descriptor_from_properties("/ws/lib", BuildProperties({"modules": '["test"]'}))
        assert descriptor.properties_malformed is False

    def test_matches_folder_name(self):
        props = BuildProperties({"kebabCasedName": "something-else"})
        descriptor = descriptor_from_properties("/ws/folder-name", props)
        assert descriptor.matches("folder-name")


class TestDescriptorStore:
    """Loading descriptors from disk."""

    def test_missing_properties_file_uses_defaults(self, tmp_path):
        folder = tmp_path / "MyBuild"
        folder.mkdir()
        descriptor = DescriptorStore().load(str(folder))
        assert descriptor.kebab_cased_name == "my-build"

    def test_loads_and_memoises(self, tmp_path):
        folder = tmp_path / "lib"
        folder.mkdir()
        (folder / "gradle.properties").write_text("kebabCasedName = my-lib\n", encoding="utf-8")
        store = DescriptorStore()
        first = store.load(str(folder))
        (folder / "gradle.properties").write_text("kebabCasedName = changed\n", encoding="utf-8")
        assert store.load(str(folder)) is first
        assert first.kebab_cased_name == "my-lib"
        assert len(store) == 1

    def test_malformed_file_warns_and_uses_defaults(self, tmp_path, caplog):
        folder = tmp_path / "broken"
        folder.mkdir()
        (folder / "gradle.properties").write_text("name = \\uZZZZ\n", encoding="utf-8")
        with caplog.at_level(logging.WARNING):
            descriptor = DescriptorStore().load(str(folder))
        assert descriptor.kebab_cased_name == "broken"
        assert descriptor.properties_malformed is True
        assert "Ignoring properties" in caplog.text

    def test_malformed_value_warns_and_uses_defaults(self, tmp_path, caplog):
        folder = tmp_path / "bad-height"
        folder.mkdir()
        (folder / "gradle.properties").write_text("compositeSearchHeight = two\n", encoding="utf-8")
        with caplog.at_level(logging.WARNING):
            descriptor = DescriptorStore().load(str(folder))
        assert descriptor.composite_search_height == 1
        assert "Malformed property" in caplog.text
        assert descriptor.properties_malformed is True

    def test_bad_escape_skips_only_that_line(self, tmp_path, caplog):
        folder = tmp_path / "skipped"
        folder.mkdir()
        (folder / "gradle.properties").write_text(
            "excludeFromCompositeBuild = true\nname = \\uZZZZ\nkebabCasedName = kept-name\n", encoding="utf-8"
        )
        with caplog.at_level(logging.WARNING):
            descriptor = DescriptorStore().load(str(folder))
        assert descriptor.exclude_from_composite_build is True
        assert descriptor.kebab_cased_name == "kept-name"
        assert descriptor.properties_malformed is True
        assert "Ignoring properties" in caplog.text

    @pytest.mark.parametrize("bad_line", ["compositeSearchHeight = two", "modules = [test"])
    def test_bad_value_on_disk_keeps_exclusion(self, tmp_path, bad_line):
        folder = tmp_path / "skipped"
        folder.mkdir()
        (folder / "gradle.properties").write_text(
            f"excludeFromCompositeBuild = true\n{bad_line}\n", encoding="utf-8"
        )
        descriptor = DescriptorStore().load(str(folder))
        assert descriptor.exclude_from_composite_build is True
        assert descriptor.properties_malformed is True
