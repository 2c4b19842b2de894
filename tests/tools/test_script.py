# SPDX-License-Identifier: MIT
"""Tests for pbxphase.tools.script."""

import pytest

from pbxphase.core.build_rules import BuildRule
from pbxphase.core.errors import ToolNotFoundError
from pbxphase.core.settings import Level, SettingsEnvironment
from pbxphase.tools.script import SHELL_SCRIPT_IDENTIFIER, ScriptResolver
from pbxphase.tools.specs import SpecRegistry, ToolSpec


@pytest.fixture
def script(make_phase_environment):
    return ScriptResolver.create(make_phase_environment())


def settings(**values):
    return SettingsEnvironment([Level.from_mapping(values)])


class TestScriptResolver:
    def test_create_requires_shell_spec(self, build_environment, make_phase_environment):
        phase_environment = make_phase_environment()
        build_environment.specs = SpecRegistry([ToolSpec("com.example.other")])
        with pytest.raises(ToolNotFoundError) as exc_info:
            ScriptResolver.create(phase_environment)
        assert exc_info.value.tool == SHELL_SCRIPT_IDENTIFIER

    def test_invocation(self, script):
        rule = BuildRule(
            "pattern.proxy",
            script='protoc "$INPUT_FILE_PATH"',
            output_files=("$(DERIVED)/$(INPUT_FILE_BASE).pb.c", "$(DERIVED)/$(INPUT_FILE_BASE).pb.h"),
        )

        invocation = script.invocation(
            "proto/msg.proto", rule, settings(DERIVED="/d", CONFIGURATION="Debug"), "/work"
        )

        assert invocation.identifier == SHELL_SCRIPT_IDENTIFIER
        assert invocation.executable == "/bin/sh"
        assert invocation.arguments == ("-c", 'protoc "$INPUT_FILE_PATH"')
        assert invocation.inputs == ("/work/proto/msg.proto",)
        assert invocation.outputs == ("/d/msg.pb.c", "/d/msg.pb.h")
        assert invocation.working_directory == "/work"
        assert invocation.description == "RuleScript /work/proto/msg.proto"

    def test_environment_exports(self, script):
        rule = BuildRule("text", script="true", output_files=("/out/$(INPUT_FILE_BASE).c",))

        invocation = script.invocation(
            "/src/table.txt", rule, settings(CONFIGURATION="Debug"), "/work"
        )

        env = invocation.environment_dict
        assert env["CONFIGURATION"] == "Debug"
        assert env["INPUT_FILE_PATH"] == "/src/table.txt"
        assert env["INPUT_FILE_BASE"] == "table"
        assert env["SCRIPT_OUTPUT_FILE_COUNT"] == "1"
        assert env["SCRIPT_OUTPUT_FILE_0"] == "/out/table.c"

    def test_no_outputs(self, script):
        invocation = script.invocation(
            "/src/x.txt", BuildRule("text", script="true"), settings(), "/work"
        )
        assert invocation.outputs == ()
        assert invocation.environment_dict["SCRIPT_OUTPUT_FILE_COUNT"] == "0"

    def test_settings_cycle_not_exported(self, script):
        invocation = script.invocation(
            "/src/x.txt",
            BuildRule("text", script="true"),
            settings(UNUSED_A="$(UNUSED_B)", UNUSED_B="$(UNUSED_A)", CONFIGURATION="Debug"),
            "/work",
        )
        env = invocation.environment_dict
        assert "UNUSED_A" not in env
        assert env["CONFIGURATION"] == "Debug"
        assert env["INPUT_FILE_NAME"] == "x.txt"
