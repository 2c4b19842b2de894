# SPDX-License-Identifier: MIT
"""
pbxphase: resolve the build phases of Xcode projects into tool invocations.

Given a project's targets, pbxphase works out which external tools a
Sources build phase has to run (compilers, precompiled headers, build
rule scripts and generic tools) for every build variant and
architecture, along with the headermap and the link configuration those
compilations imply.
"""

from __future__ import annotations

__version__ = "0.1.0"

# Re-export commonly used classes for convenient imports
from pbxphase.core.errors import PhaseError, ResolverCreationError  # noqa: E402
from pbxphase.phase.environment import (  # noqa: E402
    BuildEnvironment,
    PhaseEnvironment,
    TargetEnvironment,
)
from pbxphase.phase.sources import SourcesResolver  # noqa: E402
from pbxphase.project.loader import load_project  # noqa: E402

__all__ = [
    "BuildEnvironment",
    "PhaseEnvironment",
    "PhaseError",
    "ResolverCreationError",
    "SourcesResolver",
    "TargetEnvironment",
    "__version__",
    "load_project",
]
