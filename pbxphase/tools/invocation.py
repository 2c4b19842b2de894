# SPDX-License-Identifier: MIT
"""Tool invocations: the units of work produced by phase resolution.

A ToolInvocation fully describes one external command: what to run,
with which arguments, where, reading and writing which files. It is
immutable; collections are stored as tuples so invocations can be
compared and hashed.
"""

from __future__ import annotations

import shlex
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class AuxiliaryFile:
    """A file whose contents are known at resolution time.

    The executor writes it before running the invocation that owns it.
    """

    path: str
    contents: bytes
    executable: bool = False


@dataclass(frozen=True)
class ToolInvocation:
    """One fully specified external command.

    Attributes:
        identifier: Identifier of the tool spec that produced this invocation.
        executable: Program to run ("" for invocations that only write
            auxiliary files).
        arguments: Command line arguments, excluding the executable.
        environment: Extra environment variables as (name, value) pairs.
        working_directory: Directory to run in.
        inputs: Files read by the command.
        outputs: Files written by the command.
        input_dependencies: Additional files that must exist first
            (e.g. a precompiled header).
        dependency_info: Path of a depfile written by the command, if any.
        auxiliary_files: Files to write before running.
        description: Short log line for the build log.
    """

    identifier: str
    executable: str
    arguments: tuple[str, ...] = ()
    environment: tuple[tuple[str, str], ...] = ()
    working_directory: str = ""
    inputs: tuple[str, ...] = ()
    outputs: tuple[str, ...] = ()
    input_dependencies: tuple[str, ...] = ()
    dependency_info: str | None = None
    auxiliary_files: tuple[AuxiliaryFile, ...] = field(default=(), repr=False)
    description: str = ""

    @classmethod
    def create(
        cls,
        identifier: str,
        executable: str,
        arguments: Iterable[str] = (),
        *,
        environment: Mapping[str, str] | None = None,
        working_directory: str = "",
        inputs: Iterable[str] = (),
        outputs: Iterable[str] = (),
        input_dependencies: Iterable[str] = (),
        dependency_info: str | None = None,
        auxiliary_files: Iterable[AuxiliaryFile] = (),
        description: str = "",
    ) -> ToolInvocation:
        """Create an invocation from arbitrary iterables."""
        return cls(
            identifier=identifier,
            executable=executable,
            arguments=tuple(arguments),
            environment=tuple(sorted((environment or {}).items())),
            working_directory=working_directory,
            inputs=tuple(inputs),
            outputs=tuple(outputs),
            input_dependencies=tuple(input_dependencies),
            dependency_info=dependency_info,
            auxiliary_files=tuple(auxiliary_files),
            description=description,
        )

    @property
    def environment_dict(self) -> dict[str, str]:
        return dict(self.environment)

    def command_line(self) -> str:
        """Return the command as a single shell-quoted string."""
        if not self.executable:
            return ""
        return shlex.join([self.executable, *self.arguments])

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable description."""
        return {
            "identifier": self.identifier,
            "executable": self.executable,
            "arguments": list(self.arguments),
            "environment": dict(self.environment),
            "working_directory": self.working_directory,
            "inputs": list(self.inputs),
            "outputs": list(self.outputs),
            "input_dependencies": list(self.input_dependencies),
            "dependency_info": self.dependency_info,
            "auxiliary_files": [aux.path for aux in self.auxiliary_files],
            "description": self.description,
        }
