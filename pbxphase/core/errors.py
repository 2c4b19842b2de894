# SPDX-License-Identifier: MIT
"""Custom exceptions for pbxphase.

All pbxphase exceptions inherit from PhaseError. Only construction
failures are raised out of phase resolution; per-file problems (an
unresolvable reference, no matching build rule) are reported as plain
values and never surface as exceptions.
"""

from __future__ import annotations


class PhaseError(Exception):
    """Base class for all pbxphase exceptions.

    Attributes:
        message: The error message.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ResolverCreationError(PhaseError):
    """A resolver could not be constructed.

    Fatal to the whole phase: no partial resolver is produced.
    """


class ToolNotFoundError(ResolverCreationError):
    """A required tool specification is not registered.

    Attributes:
        tool: Identifier of the missing tool.
    """

    def __init__(self, tool: str) -> None:
        self.tool = tool
        super().__init__(f"tool not found: {tool}")


class SettingsError(PhaseError):
    """Error while evaluating build settings."""


class CircularSettingError(SettingsError):
    """Circular build setting reference detected.

    Attributes:
        chain: The chain of settings forming the cycle.
    """

    def __init__(self, chain: list[str]) -> None:
        self.chain = chain
        cycle_str = " -> ".join(chain)
        super().__init__(f"circular setting reference: {cycle_str}")


class ProjectLoadError(PhaseError):
    """A project file could not be loaded.

    Attributes:
        path: Path of the project that failed to load.
    """

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"cannot load project {path}: {reason}")
