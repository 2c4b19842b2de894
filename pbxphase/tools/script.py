# SPDX-License-Identifier: MIT
"""Script strategy: run a build rule's shell script for one file."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pbxphase.core.errors import ToolNotFoundError
from pbxphase.tools.invocation import ToolInvocation
from pbxphase.tools.tool_context import absolute_path, input_file_level

if TYPE_CHECKING:
    from pbxphase.core.build_rules import BuildRule
    from pbxphase.core.settings import SettingsEnvironment
    from pbxphase.phase.environment import PhaseEnvironment
    from pbxphase.tools.specs import ToolSpec

SHELL_SCRIPT_IDENTIFIER = "com.apple.commands.shell-script"


class ScriptResolver:
    """Creates shell script invocations for script build rules.

    The script runs through the shell spec's executable with every build
    setting exported to its environment, plus the INPUT_FILE_* variables
    for the file being processed and SCRIPT_OUTPUT_FILE_<n> for each
    declared output.
    """

    def __init__(self, tool: ToolSpec) -> None:
        self._tool = tool

    @classmethod
    def create(cls, phase_environment: PhaseEnvironment) -> ScriptResolver:
        """Create a resolver using the registered shell script spec.

        Raises:
            ToolNotFoundError: If no shell script spec is registered.
        """
        tool = phase_environment.build_environment.specs.find(SHELL_SCRIPT_IDENTIFIER)
        if tool is None:
            raise ToolNotFoundError(SHELL_SCRIPT_IDENTIFIER)
        return cls(tool)

    def invocation(
        self,
        input_path: str,
        build_rule: BuildRule,
        environment: SettingsEnvironment,
        working_directory: str,
    ) -> ToolInvocation:
        """Create the invocation running ``build_rule.script`` on one file."""
        input_path = absolute_path(input_path, working_directory)
        script_environment = environment.insert_front(input_file_level(input_path))

        outputs = [
            absolute_path(script_environment.expand(output), working_directory)
            for output in build_rule.output_files
        ]

        # Settings that fail to expand are not exported
        process_environment = script_environment.computed_values(ignore_errors=True)
        process_environment["SCRIPT_OUTPUT_FILE_COUNT"] = str(len(outputs))
        for index, output in enumerate(outputs):
            process_environment[f"SCRIPT_OUTPUT_FILE_{index}"] = output

        executable = script_environment.expand(self._tool.executable) or "/bin/sh"
        arguments = [script_environment.expand(a) for a in self._tool.arguments]
        arguments.append(build_rule.script)

        return ToolInvocation.create(
            self._tool.identifier,
            executable,
            arguments,
            environment=process_environment,
            working_directory=working_directory,
            inputs=[input_path],
            outputs=outputs,
            description=f"RuleScript {input_path}",
        )
