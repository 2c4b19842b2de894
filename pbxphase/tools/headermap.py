# SPDX-License-Identifier: MIT
"""Headermap generation for a target.

Each resolution pass writes one header map mapping the target's headers
to their locations, so ``#include "Widget.h"`` finds a header anywhere
in the project without a search path per directory. The map is written
as an auxiliary file of a single invocation, which always comes first in
the resolved invocation list.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pbxphase.core.errors import ResolverCreationError, ToolNotFoundError
from pbxphase.core.model import ITEM_FILE_REFERENCE, SourcesBuildPhase
from pbxphase.tools.invocation import AuxiliaryFile, ToolInvocation
from pbxphase.tools.tool_context import absolute_path
from pbxphase.util.hmap import HeaderMap

if TYPE_CHECKING:
    from pbxphase.core.model import Target
    from pbxphase.core.settings import SettingsEnvironment
    from pbxphase.phase.environment import PhaseEnvironment
    from pbxphase.tools.search_paths import SearchPaths
    from pbxphase.tools.specs import ToolSpec

logger = logging.getLogger(__name__)

HEADERMAP_TOOL_IDENTIFIER = "com.apple.commands.built-in.headermap-generator"
HEADER_FILE_TYPE = "sourcecode.c.h"


@dataclass(frozen=True)
class HeadermapInfo:
    """Headermaps available to the compilations of one pass.

    Attributes:
        system_headermap_files: Headermaps searched like -I directories.
        user_headermap_files: Headermaps searched like -iquote directories.
    """

    system_headermap_files: tuple[str, ...] = ()
    user_headermap_files: tuple[str, ...] = ()


class HeadermapResolver:
    """Produces the headermap invocation of a resolution pass."""

    def __init__(self, phase_environment: PhaseEnvironment, tool: ToolSpec) -> None:
        self._phase_environment = phase_environment
        self._tool = tool

    @classmethod
    def create(
        cls, phase_environment: PhaseEnvironment, compiler: ToolSpec | None
    ) -> HeadermapResolver:
        """Create a resolver.

        Creation requires the compiler that will read the headermap.

        Raises:
            ResolverCreationError: If no compiler is known.
            ToolNotFoundError: If the headermap tool is not registered.
        """
        if compiler is None:
            raise ResolverCreationError(
                "cannot create headermap resolver: no compiler to format headermap flags for"
            )
        specs = phase_environment.build_environment.specs
        tool = specs.find(HEADERMAP_TOOL_IDENTIFIER)
        if tool is None:
            raise ToolNotFoundError(HEADERMAP_TOOL_IDENTIFIER)
        return cls(phase_environment, tool)

    def invocation(
        self,
        target: Target,
        search_paths: SearchPaths,
        environment: SettingsEnvironment,
        working_directory: str,
    ) -> tuple[ToolInvocation, HeadermapInfo]:
        """Build the headermap for a target.

        Args:
            target: Target whose headers are mapped.
            search_paths: Search paths of the pass.
            environment: Target settings.
            working_directory: Target working directory.

        Returns:
            The invocation writing the headermap, and the info describing
            how compilations should use it.
        """
        product_name = environment.resolve("PRODUCT_NAME") or target.name
        temp_dir = absolute_path(environment.resolve("TARGET_TEMP_DIR"), working_directory)
        hmap_path = os.path.join(temp_dir or working_directory, f"{product_name}.hmap")

        hmap = HeaderMap()
        for path in self._header_paths(target, environment):
            directory, name = os.path.split(path)
            prefix = directory + os.sep
            hmap.add(name, prefix, name)
            hmap.add(f"{product_name}/{name}", prefix, name)
        logger.debug("Headermap %s has %d entries", hmap_path, len(hmap))

        invocation = ToolInvocation.create(
            self._tool.identifier,
            "",
            working_directory=working_directory,
            outputs=[hmap_path],
            auxiliary_files=[AuxiliaryFile(hmap_path, hmap.encode())],
            description=f"Write headermap {hmap_path}",
        )

        if not environment.is_enabled("USE_HEADERMAP"):
            return invocation, HeadermapInfo()
        if environment.is_enabled("ALWAYS_SEARCH_USER_PATHS"):
            return invocation, HeadermapInfo(system_headermap_files=(hmap_path,))
        return invocation, HeadermapInfo(user_headermap_files=(hmap_path,))

    def _header_paths(self, target: Target, environment: SettingsEnvironment) -> list[str]:
        file_types = self._phase_environment.build_environment.file_types
        paths: list[str] = []
        for phase in target.build_phases:
            # Sources phase entries are resolved by the sources resolver itself
            if isinstance(phase, SourcesBuildPhase):
                continue
            for build_file in phase.files:
                ref = build_file.file_ref
                if ref is None or ref.item_type != ITEM_FILE_REFERENCE:
                    continue
                resolved = self._phase_environment.resolve_file_reference(ref, environment)
                if resolved is None:
                    continue
                if file_types.conforms_to(resolved.file_type, HEADER_FILE_TYPE):
                    paths.append(resolved.path)
        return paths
