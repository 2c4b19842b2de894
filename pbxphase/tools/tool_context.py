# SPDX-License-Identifier: MIT
"""Generic tool invocations.

ToolInvocationContext binds a tool spec to a set of inputs in a settings
environment. It has no knowledge of compilers: the spec's executable,
argument and output templates are expanded as-is, with the input file
variables of the first input in scope.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pbxphase.core.settings import Level
from pbxphase.tools.invocation import ToolInvocation

if TYPE_CHECKING:
    from pbxphase.core.settings import SettingsEnvironment
    from pbxphase.tools.specs import ToolSpec


def input_file_level(input_path: str) -> Level:
    """Settings describing the file being processed.

    Provides INPUT_FILE_PATH, INPUT_FILE_DIR, INPUT_FILE_NAME,
    INPUT_FILE_BASE and INPUT_FILE_SUFFIX.
    """
    name = os.path.basename(input_path)
    base, suffix = os.path.splitext(name)
    return Level.from_mapping(
        {
            "INPUT_FILE_PATH": input_path,
            "INPUT_FILE_DIR": os.path.dirname(input_path),
            "INPUT_FILE_NAME": name,
            "INPUT_FILE_BASE": base,
            "INPUT_FILE_SUFFIX": suffix,
        }
    )


def absolute_path(path: str, working_directory: str) -> str:
    """Join a relative path onto the working directory and normalize it."""
    if not path:
        return path
    if not os.path.isabs(path):
        path = os.path.join(working_directory, path)
    return os.path.normpath(path)


@dataclass(frozen=True)
class ToolInvocationContext:
    """A tool bound to its inputs, ready to become an invocation."""

    tool: ToolSpec
    executable: str
    arguments: tuple[str, ...]
    inputs: tuple[str, ...]
    outputs: tuple[str, ...]
    input_dependencies: tuple[str, ...]
    environment: tuple[tuple[str, str], ...]
    working_directory: str

    @classmethod
    def create(
        cls,
        tool: ToolSpec,
        input_dependencies: Iterable[str],
        inputs: Iterable[str],
        environment: SettingsEnvironment,
        working_directory: str,
    ) -> ToolInvocationContext:
        """Expand a tool's templates for the given inputs.

        Args:
            tool: The tool to run.
            input_dependencies: Extra files the invocation depends on.
            inputs: Input file paths.
            environment: Settings to expand templates against.
            working_directory: Directory the tool runs in.
        """
        inputs = tuple(absolute_path(p, working_directory) for p in inputs)
        tool_environment = environment
        if inputs:
            tool_environment = environment.insert_front(input_file_level(inputs[0]))

        executable = tool_environment.expand(tool.executable) or tool.identifier
        arguments = [tool_environment.expand(template) for template in tool.arguments]
        outputs = tuple(
            absolute_path(tool_environment.expand(template), working_directory)
            for template in tool.outputs
        )
        process_environment = tuple(
            (name, tool_environment.expand(value)) for name, value in tool.environment
        )

        return cls(
            tool=tool,
            executable=executable,
            arguments=tuple(arguments),
            inputs=inputs,
            outputs=outputs,
            input_dependencies=tuple(input_dependencies),
            environment=process_environment,
            working_directory=working_directory,
        )

    @property
    def invocation(self) -> ToolInvocation:
        description = self.tool.name or self.tool.identifier
        if self.inputs:
            description = f"{description} {self.inputs[0]}"
        return ToolInvocation.create(
            self.tool.identifier,
            self.executable,
            self.arguments,
            environment=dict(self.environment),
            working_directory=self.working_directory,
            inputs=self.inputs,
            outputs=self.outputs,
            input_dependencies=self.input_dependencies,
            description=description,
        )
