# SPDX-License-Identifier: MIT
"""Tool specifications and their registry.

A ToolSpec describes an external tool: how to find its executable, the
command line it takes and the outputs it produces. Executables,
arguments and outputs are templates expanded against the settings
environment, with ``$(INPUT_FILE_PATH)`` and friends available while
a single input is processed.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class ToolSpec:
    """Description of one tool.

    Attributes:
        identifier: Unique identifier (e.g. "com.apple.compilers.llvm.clang.1_0").
        name: Human readable name.
        executable: Executable template (e.g. "clang" or "$(CC:default=clang)").
        arguments: Argument templates, in order.
        outputs: Output path templates.
        environment: Extra environment variables for the process.
        linker: Link driver for objects built by this tool (compilers only).
        cplusplus_linker: Link driver for C++ objects (compilers only).
        file_types: File type identifiers this tool accepts.
    """

    identifier: str
    name: str = ""
    executable: str = ""
    arguments: tuple[str, ...] = ()
    outputs: tuple[str, ...] = ()
    environment: tuple[tuple[str, str], ...] = ()
    linker: str = ""
    cplusplus_linker: str = ""
    file_types: tuple[str, ...] = ()


class SpecRegistry:
    """Tool specifications keyed by identifier."""

    def __init__(self, specs: Iterable[ToolSpec] = ()) -> None:
        self._specs: dict[str, ToolSpec] = {}
        for spec in specs:
            self.register(spec)

    def register(self, spec: ToolSpec) -> None:
        """Add a spec, replacing any previous spec with the same identifier."""
        self._specs[spec.identifier] = spec

    def find(self, identifier: str) -> ToolSpec | None:
        """Return the spec with this identifier, or None."""
        return self._specs.get(identifier)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._specs

    def __len__(self) -> int:
        return len(self._specs)

    def identifiers(self) -> list[str]:
        return list(self._specs)

    def __repr__(self) -> str:
        return f"SpecRegistry({', '.join(self._specs)})"
