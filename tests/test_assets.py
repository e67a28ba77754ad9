"""Tests for reading NuGet restore output."""

import json

import pytest

from solution_sbom._resolution import lower_bound, parse_assets, read_assets_file
from solution_sbom.exceptions import RestoreMissingError

ASSETS = {
    "version": 3,
    "targets": {
        "net8.0": {
            "Serilog.Sinks.Console/5.0.0": {
                "type": "package",
                "dependencies": {"Serilog": "3.1.1"},
            },
            "Serilog/3.1.1": {"type": "package"},
            "StyleCop.Analyzers/1.1.118": {"type": "package"},
            "Shared/1.0.0": {"type": "project", "framework": ".NETCoreApp,Version=v8.0"},
        },
        "net8.0/linux-x64": {
            "Serilog/3.1.1": {"type": "package"},
            "runtime.linux-x64.Native/1.0.0": {"type": "package"},
        },
        "net6.0": {
            "Serilog/2.12.0": {"type": "package"},
        },
    },
    "libraries": {
        "Shared/1.0.0": {"type": "project", "path": "../Shared/Shared.csproj", "msbuildProject": "../Shared/Shared.csproj"},
    },
    "project": {
        "restore": {"projectPath": "/src/App/App.csproj"},
        "frameworks": {
            "net8.0": {
                "dependencies": {
                    "Serilog.Sinks.Console": {"target": "Package", "version": "[5.0.0, )"},
                    "StyleCop.Analyzers": {
                        "target": "Package",
                        "version": "[1.1.118, )",
                        "suppressParent": "All",
                    },
                }
            },
            "net6.0": {
                "dependencies": {
                    "Serilog": {"target": "Package", "version": "[2.12.0, )"},
                }
            },
        },
    },
}


class TestLowerBound:
    """Tests for version range lower bounds."""

    @pytest.mark.parametrize(
        "version_range,expected",
        [
            ("1.0.0", "1.0.0"),
            ("[1.0.0, )", "1.0.0"),
            ("[1.0.0]", "1.0.0"),
            ("[1.0.0, 2.0.0)", "1.0.0"),
            ("(1.0.0,2.0.0]", "1.0.0"),
            ("(, 2.0.0]", ""),
            ("", ""),
        ],
    )
    def test_lower_bound(self, version_range, expected):
        assert lower_bound(version_range) == expected


class TestParseAssets:
    """Tests for parse_assets."""

    def test_targets_sorted_and_split(self):
        assets = parse_assets(ASSETS, "project.assets.json")
        assert [t.key for t in assets.targets] == ["net6.0", "net8.0", "net8.0/linux-x64"]
        runtime_target = assets.targets[2]
        assert runtime_target.framework == "net8.0"
        assert runtime_target.runtime == "linux-x64"

    def test_packages_and_dependencies(self):
        assets = parse_assets(ASSETS, "project.assets.json")
        net8 = next(t for t in assets.targets if t.key == "net8.0")
        by_name = {p.name: p for p in net8.packages}
        assert by_name["Serilog.Sinks.Console"].dependencies == {"Serilog": "3.1.1"}
        assert by_name["Serilog"].version == "3.1.1"

    def test_project_entries_use_library_path(self):
        assets = parse_assets(ASSETS, "project.assets.json")
        net8 = next(t for t in assets.targets if t.key == "net8.0")
        shared = next(p for p in net8.packages if p.name == "Shared")
        assert shared.is_project
        assert shared.path == "../Shared/Shared.csproj"

    def test_direct_references_mark_development(self):
        assets = parse_assets(ASSETS, "project.assets.json")
        references = assets.direct_references["net8.0"]
        assert references["StyleCop.Analyzers"].development is True
        assert references["Serilog.Sinks.Console"].development is False
        assert references["Serilog.Sinks.Console"].version_range == "[5.0.0, )"

    def test_project_path_recorded(self):
        assets = parse_assets(ASSETS, "project.assets.json")
        assert assets.project_path == "/src/App/App.csproj"

    def test_missing_targets_is_restore_missing(self):
        with pytest.raises(RestoreMissingError):
            parse_assets({"version": 3}, "project.assets.json")

    def test_not_an_object(self):
        with pytest.raises(RestoreMissingError):
            parse_assets([], "project.assets.json")


class TestSelectTargets:
    """Tests for framework/runtime target selection."""

    def test_no_selection_unions_framework_targets(self):
        assets = parse_assets(ASSETS, "a.json")
        assert [t.key for t in assets.select_targets()] == ["net6.0", "net8.0"]

    def test_framework_selection(self):
        assets = parse_assets(ASSETS, "a.json")
        assert [t.key for t in assets.select_targets("net8.0")] == ["net8.0"]

    def test_runtime_selection(self):
        assets = parse_assets(ASSETS, "a.json")
        assert [t.key for t in assets.select_targets(runtime="linux-x64")] == ["net8.0/linux-x64"]
        assert [t.key for t in assets.select_targets("net8.0", "linux-x64")] == ["net8.0/linux-x64"]
        assert assets.select_targets("net6.0", "linux-x64") == []

    def test_unknown_framework(self):
        assets = parse_assets(ASSETS, "a.json")
        assert assets.select_targets("net48") == []


class TestReadAssetsFile:
    """Tests for read_assets_file."""

    def test_reads_file(self, tmp_path):
        path = tmp_path / "project.assets.json"
        path.write_text(json.dumps(ASSETS), encoding="utf-8")
        assets = read_assets_file(str(path))
        assert len(assets.targets) == 3

    def test_reads_file_with_bom(self, tmp_path):
        path = tmp_path / "project.assets.json"
        path.write_bytes(b"\xef\xbb\xbf" + json.dumps(ASSETS).encode("utf-8"))
        assert len(read_assets_file(str(path)).targets) == 3

    def test_missing_file(self, tmp_path):
        with pytest.raises(RestoreMissingError, match="not found"):
            read_assets_file(str(tmp_path / "project.assets.json"))

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "project.assets.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(RestoreMissingError, match="not valid JSON"):
            read_assets_file(str(path))
