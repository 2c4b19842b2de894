# SPDX-License-Identifier: MIT
"""Sources phase resolution.

The SourcesResolver turns the build files of a Sources build phase into
the tool invocations that build them:

1. Creates the script, compilation and headermap strategies. Failing to
   create any of them fails the whole phase.
2. Computes search paths and the headermap once for the pass. The
   headermap invocation always comes first.
3. Resolves every build file to a path and file type, once.
4. For every build variant and, inside it, every architecture, matches
   each file against the build rules and dispatches it to the strategy
   the match calls for. A file whose settings fail to expand is skipped
   with a warning.

Invocations are collected per (variant, architecture) pair and in one
flat list which is the concatenation of the pair lists behind the
headermap invocation.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

from pbxphase.core.build_rules import RuleKind
from pbxphase.core.errors import SettingsError
from pbxphase.core.model import ITEM_FILE_REFERENCE
from pbxphase.tools.clang import ClangResolver
from pbxphase.tools.compilation import CompilationInfo
from pbxphase.tools.headermap import HeadermapResolver
from pbxphase.tools.script import ScriptResolver
from pbxphase.tools.search_paths import SearchPaths
from pbxphase.tools.tool_context import ToolInvocationContext

if TYPE_CHECKING:
    from pbxphase.core.file_types import ResolvedFile
    from pbxphase.core.model import BuildFile, SourcesBuildPhase
    from pbxphase.core.settings import SettingsEnvironment
    from pbxphase.phase.environment import PhaseEnvironment
    from pbxphase.tools.headermap import HeadermapInfo
    from pbxphase.tools.invocation import ToolInvocation

logger = logging.getLogger(__name__)

VariantArchitecture = tuple[str, str]


def _output_base_name(
    build_file: BuildFile, file: ResolvedFile, disambiguation: dict[BuildFile, str]
) -> str:
    name = disambiguation.get(build_file)
    if name:
        return name
    return os.path.splitext(os.path.basename(file.path))[0]


def _create_compilation(
    clang: ClangResolver,
    build_file: BuildFile,
    file: ResolvedFile,
    output_base_name: str,
    headermap_info: HeadermapInfo,
    search_paths: SearchPaths,
    compilation_info: CompilationInfo,
    precompiled_header_hashes: set[str],
    environment: SettingsEnvironment,
    working_directory: str,
) -> list[ToolInvocation]:
    """Compile one file, preceded by its precompiled header if not yet built."""
    invocation = clang.source_invocation(
        file,
        build_file.compiler_flags,
        output_base_name,
        headermap_info,
        search_paths,
        compilation_info,
        environment,
        working_directory,
    )

    invocations: list[ToolInvocation] = []
    info = compilation_info.precompiled_header_info
    if info is not None:
        digest = info.hash()
        if digest not in precompiled_header_hashes:
            precompiled_header_hashes.add(digest)
            invocations.append(
                clang.precompiled_header_invocation(info, environment, working_directory)
            )
    invocations.append(invocation)
    return invocations


class SourcesResolver:
    """Resolved invocations of one Sources build phase.

    Attributes:
        invocations: Every invocation in build order: the headermap
            invocation, then each (variant, architecture) pair's
            invocations.
        variant_architecture_invocations: Invocations of each
            (variant, architecture) pair.
        linker_driver: Tool that should drive the link step.
        linker_arguments: Extra arguments the link step needs.
    """

    def __init__(
        self,
        invocations: list[ToolInvocation],
        variant_architecture_invocations: dict[VariantArchitecture, list[ToolInvocation]],
        linker_driver: str,
        linker_arguments: set[str],
    ) -> None:
        self.invocations = invocations
        self.variant_architecture_invocations = variant_architecture_invocations
        self.linker_driver = linker_driver
        self.linker_arguments = linker_arguments

    @classmethod
    def create(
        cls, phase_environment: PhaseEnvironment, build_phase: SourcesBuildPhase
    ) -> SourcesResolver:
        """Resolve a Sources build phase.

        Args:
            phase_environment: Build and target environments of the phase.
            build_phase: The phase to resolve.

        Returns:
            The resolved phase.

        Raises:
            PhaseError: If a strategy cannot be created.
        """
        target_environment = phase_environment.target_environment
        environment = target_environment.environment
        working_directory = target_environment.working_directory
        target = phase_environment.target

        script = ScriptResolver.create(phase_environment)
        clang = ClangResolver.create(phase_environment)
        headermap = HeadermapResolver.create(phase_environment, clang.compiler)

        search_paths = SearchPaths.create(working_directory, environment)

        invocations: list[ToolInvocation] = []
        headermap_invocation, headermap_info = headermap.invocation(
            target, search_paths, environment, working_directory
        )
        invocations.append(headermap_invocation)

        # File resolution does not depend on variant or architecture
        resolved_files: dict[BuildFile, ResolvedFile] = {}
        for build_file in build_phase.files:
            ref = build_file.file_ref
            if ref is None or ref.item_type != ITEM_FILE_REFERENCE:
                continue
            resolved = phase_environment.resolve_file_reference(ref, environment)
            if resolved is not None:
                resolved_files[build_file] = resolved

        compilation_info = CompilationInfo()
        precompiled_header_hashes: set[str] = set()
        disambiguation = target_environment.build_file_disambiguation
        build_rules = target_environment.build_rules

        pair_invocations: dict[VariantArchitecture, list[ToolInvocation]] = {}
        for variant in target_environment.variants:
            variant_environment = environment.insert_front(
                phase_environment.variant_level(variant)
            )
            for arch in target_environment.architectures:
                arch_environment = variant_environment.insert_front(
                    phase_environment.architecture_level(arch)
                )
                logger.debug(
                    "Resolving %d sources of '%s' for %s/%s",
                    len(resolved_files),
                    target.name,
                    variant,
                    arch,
                )

                pair: list[ToolInvocation] = []
                for build_file in build_phase.files:
                    file = resolved_files.get(build_file)
                    if file is None:
                        continue

                    match = build_rules.match(file)
                    try:
                        if match.kind is RuleKind.COMPILER:
                            pair.extend(
                                _create_compilation(
                                    clang,
                                    build_file,
                                    file,
                                    _output_base_name(build_file, file, disambiguation),
                                    headermap_info,
                                    search_paths,
                                    compilation_info,
                                    precompiled_header_hashes,
                                    arch_environment,
                                    working_directory,
                                )
                            )
                        elif match.kind is RuleKind.TOOL:
                            context = ToolInvocationContext.create(
                                match.tool,
                                [],
                                [file.path],
                                arch_environment,
                                working_directory,
                            )
                            pair.append(context.invocation)
                        elif match.kind is RuleKind.SCRIPT:
                            pair.append(
                                script.invocation(
                                    file.path, match.rule, arch_environment, working_directory
                                )
                            )
                        elif match.rule is None:
                            logger.warning(
                                "No matching build rule for %s (type %s)",
                                file.path,
                                file.file_type.identifier,
                            )
                    except SettingsError as e:
                        logger.warning("Skipping %s: %s", file.path, e.message)

                pair_invocations[(variant, arch)] = pair
                invocations.extend(pair)

        return cls(
            invocations=invocations,
            variant_architecture_invocations=pair_invocations,
            linker_driver=compilation_info.linker_driver,
            linker_arguments=set(compilation_info.linker_arguments),
        )
