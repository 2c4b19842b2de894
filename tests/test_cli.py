# SPDX-License-Identifier: MIT
"""Tests for pbxphase CLI."""

from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path

import pytest
from pbxproj import XcodeProject

from pbxphase.cli import main, setup_logging
from pbxphase.util.hmap import HeaderMap


def write_project(tmp_path: Path) -> Path:
    """Write a one-target project building main.c and return the bundle."""
    ids = [f"{n:024X}" for n in range(1, 10)]
    project, main_group, main_c, build_file, phase, target, configs, release, _ = ids
    tree = {
        "archiveVersion": "1",
        "classes": {},
        "objectVersion": "56",
        "rootObject": project,
        "objects": {
            main_c: {
                "isa": "PBXFileReference",
                "lastKnownFileType": "sourcecode.c.c",
                "path": "main.c",
                "sourceTree": "<group>",
            },
            main_group: {
                "isa": "PBXGroup",
                "children": [main_c],
                "sourceTree": "<group>",
            },
            build_file: {"isa": "PBXBuildFile", "fileRef": main_c},
            phase: {
                "isa": "PBXSourcesBuildPhase",
                "buildActionMask": "2147483647",
                "files": [build_file],
                "runOnlyForDeploymentPostprocessing": "0",
            },
            release: {
                "isa": "XCBuildConfiguration",
                "buildSettings": {"ARCHS": "x86_64"},
                "name": "Release",
            },
            configs: {
                "isa": "XCConfigurationList",
                "buildConfigurations": [release],
                "defaultConfigurationName": "Release",
            },
            target: {
                "isa": "PBXNativeTarget",
                "buildConfigurationList": configs,
                "buildPhases": [phase],
                "buildRules": [],
                "dependencies": [],
                "name": "App",
            },
            project: {
                "isa": "PBXProject",
                "buildConfigurationList": configs,
                "mainGroup": main_group,
                "projectDirPath": "",
                "projectRoot": "",
                "targets": [target],
            },
        },
    }
    bundle = tmp_path / "App.xcodeproj"
    bundle.mkdir()
    XcodeProject(tree, str(bundle / "project.pbxproj")).save()
    return bundle


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_setup_logging_normal(self) -> None:
        setup_logging(verbose=False, debug=False)

    def test_setup_logging_verbose(self) -> None:
        setup_logging(verbose=True, debug=False)

    def test_setup_logging_debug(self) -> None:
        setup_logging(verbose=False, debug=True)


class TestMain:
    def test_no_command(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main([]) == 1
        assert "resolve" in capsys.readouterr().out

    def test_version(self) -> None:
        result = subprocess.run(
            [sys.executable, "-m", "pbxphase.cli", "--version"],
            capture_output=True,
            text=True,
        )
        assert result.returncode == 0
        assert "0.1.0" in result.stdout


class TestDumpHeadermap:
    def test_prints_entries(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        hmap = HeaderMap()
        hmap.add("Widget.h", "/src/ui/", "Widget.h")
        hmap.add("App/Widget.h", "/src/ui/", "Widget.h")
        path = tmp_path / "App.hmap"
        path.write_bytes(hmap.encode())

        assert main(["dump-headermap", str(path)]) == 0

        lines = capsys.readouterr().out.splitlines()
        assert sorted(lines) == [
            "App/Widget.h -> /src/ui/Widget.h",
            "Widget.h -> /src/ui/Widget.h",
        ]

    def test_missing_file(self, tmp_path: Path) -> None:
        assert main(["dump-headermap", str(tmp_path / "none.hmap")]) == 1

    def test_invalid_file(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.hmap"
        path.write_bytes(b"\0" * 64)
        assert main(["dump-headermap", str(path)]) == 1

    def test_truncated_file(self, tmp_path: Path) -> None:
        hmap = HeaderMap()
        hmap.add("Widget.h", "/src/ui/", "Widget.h")
        path = tmp_path / "short.hmap"
        path.write_bytes(hmap.encode()[:30])
        assert main(["dump-headermap", str(path)]) == 1


class TestResolve:
    def test_missing_project(self, tmp_path: Path) -> None:
        assert main(["resolve", str(tmp_path / "Missing.xcodeproj")]) == 1

    def test_unknown_target(self, tmp_path: Path) -> None:
        bundle = write_project(tmp_path)
        assert main(["resolve", str(bundle), "-t", "Other"]) == 1

    def test_json(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        bundle = write_project(tmp_path)

        assert main(["resolve", str(bundle), "--json"]) == 0

        (result,) = json.loads(capsys.readouterr().out)
        assert result["target"] == "App"
        assert result["linker_driver"] == "clang"
        headermap, compile_main = result["invocations"]
        assert headermap["description"].startswith("Write headermap")
        assert compile_main["description"].startswith("CompileC")
        assert compile_main["inputs"] == [str(tmp_path / "main.c")]
        assert list(result["variants"]) == ["normal/x86_64"]
        assert result["variants"]["normal/x86_64"] == [compile_main]

    def test_text(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        bundle = write_project(tmp_path)

        assert main(["resolve", str(bundle), "-c", "Release"]) == 0

        out = capsys.readouterr().out
        assert out.startswith("Target App:")
        assert "main.c" in out
        assert "link driver: clang" in out
