# SPDX-License-Identifier: MIT
"""Compilation strategy for C-family sources.

ClangResolver turns one resolved source file into one compiler
invocation for the current variant and architecture. Along the way it
records in the pass's CompilationInfo which precompiled header the file
needs and what the link step will have to add.

Command layout:
    <cc> -x <dialect> -arch <arch> [-isysroot <sdk>] -O<level>
         [-std=...] [-fobjc-arc] [-fmodules] [-g] -D... <warning flags>
         <other flags> <headermap flags> <search path flags>
         [-include <prefix>] <per-file flags>
         -MMD -MT dependencies -MF <object>.d -c <source> -o <object>
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

from pbxphase.core.errors import ToolNotFoundError
from pbxphase.tools.compilation import (
    DRIVER_RANK_C,
    DRIVER_RANK_CPLUSPLUS,
    PrecompiledHeaderInfo,
)
from pbxphase.tools.invocation import ToolInvocation
from pbxphase.tools.tool_context import absolute_path

if TYPE_CHECKING:
    from pbxphase.core.file_types import FileType, FileTypeRegistry, ResolvedFile
    from pbxphase.core.settings import SettingsEnvironment
    from pbxphase.phase.environment import PhaseEnvironment
    from pbxphase.tools.compilation import CompilationInfo
    from pbxphase.tools.headermap import HeadermapInfo
    from pbxphase.tools.search_paths import SearchPaths
    from pbxphase.tools.specs import ToolSpec

logger = logging.getLogger(__name__)

CLANG_COMPILER_IDENTIFIER = "com.apple.compilers.llvm.clang.1_0"

# File type -> clang -x dialect
DIALECTS: dict[str, str] = {
    "sourcecode.c.c": "c",
    "sourcecode.c.objc": "objective-c",
    "sourcecode.cpp.cpp": "c++",
    "sourcecode.cpp.objcpp": "objective-c++",
    "sourcecode.asm": "assembler-with-cpp",
    "sourcecode.c.h": "c-header",
    "sourcecode.cpp.h": "c++-header",
}

CPLUSPLUS_DIALECTS = frozenset({"c++", "objective-c++", "c++-header"})
OBJC_DIALECTS = frozenset({"objective-c", "objective-c++"})
ASSEMBLER_DIALECT = "assembler-with-cpp"


def dialect_for(file_type: FileType, file_types: FileTypeRegistry) -> str:
    """Return the compiler dialect for a file type.

    Types without their own entry use the dialect of the nearest base
    type; C is the fallback.
    """
    current: FileType | None = file_type
    while current is not None:
        if current.identifier in DIALECTS:
            return DIALECTS[current.identifier]
        current = file_types.get(current.base) if current.base else None
    return "c"


class ClangResolver:
    """Builds clang compile and precompiled-header invocations."""

    def __init__(self, compiler: ToolSpec, file_types: FileTypeRegistry) -> None:
        self._compiler = compiler
        self._file_types = file_types

    @property
    def compiler(self) -> ToolSpec:
        return self._compiler

    @classmethod
    def create(cls, phase_environment: PhaseEnvironment) -> ClangResolver:
        """Create a resolver using the registered clang spec.

        Raises:
            ToolNotFoundError: If no clang spec is registered.
        """
        build_environment = phase_environment.build_environment
        compiler = build_environment.specs.find(CLANG_COMPILER_IDENTIFIER)
        if compiler is None:
            raise ToolNotFoundError(CLANG_COMPILER_IDENTIFIER)
        return cls(compiler, build_environment.file_types)

    def source_invocation(
        self,
        file: ResolvedFile,
        compiler_flags: str,
        output_base_name: str,
        headermap_info: HeadermapInfo,
        search_paths: SearchPaths,
        compilation_info: CompilationInfo,
        environment: SettingsEnvironment,
        working_directory: str,
    ) -> ToolInvocation:
        """Create the invocation compiling one source file.

        Clears ``compilation_info.precompiled_header_info`` and sets it
        again if this file uses a precompiled prefix header; adds the
        file's link requirements to ``compilation_info``.

        Args:
            file: The source file.
            compiler_flags: Per-file flags from the build file.
            output_base_name: Object file name without extension.
            headermap_info: Headermaps of the pass.
            search_paths: Search paths of the pass.
            compilation_info: Shared accumulator, updated in place.
            environment: Settings for the current variant and architecture.
            working_directory: Target working directory.

        Returns:
            The compile invocation.
        """
        compilation_info.precompiled_header_info = None

        dialect = dialect_for(file.file_type, self._file_types)
        executable = environment.expand(self._compiler.executable)
        arguments = self._common_arguments(
            dialect, headermap_info, search_paths, environment
        )
        input_dependencies: list[str] = []

        prefix_header = environment.resolve("GCC_PREFIX_HEADER")
        if prefix_header and dialect != ASSEMBLER_DIALECT:
            prefix_path = absolute_path(prefix_header, working_directory)
            if environment.is_enabled("GCC_PRECOMPILE_PREFIX_HEADER"):
                info = PrecompiledHeaderInfo(
                    executable=executable,
                    logical_input_path=prefix_path,
                    dialect=f"{dialect}-header",
                    arguments=tuple(arguments[2:]),
                )
                compilation_info.precompiled_header_info = info
                precomps_dir = absolute_path(
                    environment.resolve("SHARED_PRECOMPS_DIR"), working_directory
                )
                pch_path = info.compile_output_path(precomps_dir)
                arguments.extend(["-include", pch_path[: -len(".pch")]])
                input_dependencies.append(pch_path)
            else:
                arguments.extend(["-include", prefix_path])
                input_dependencies.append(prefix_path)

        arguments.extend(environment.expand_list(compiler_flags))

        object_dir = absolute_path(
            environment.expand("$(OBJECT_FILE_DIR_$(CURRENT_VARIANT))/$(CURRENT_ARCH)"),
            working_directory,
        )
        output_path = os.path.join(object_dir, f"{output_base_name}.o")
        dependency_path = os.path.join(object_dir, f"{output_base_name}.d")
        arguments.extend(
            ["-MMD", "-MT", "dependencies", "-MF", dependency_path]
        )
        arguments.extend(["-c", file.path, "-o", output_path])

        self._record_link_requirements(dialect, compilation_info, environment)

        return ToolInvocation.create(
            self._compiler.identifier,
            executable,
            arguments,
            working_directory=working_directory,
            inputs=[file.path],
            outputs=[output_path],
            input_dependencies=input_dependencies,
            dependency_info=dependency_path,
            description=(
                f"CompileC {output_path} {file.path} "
                f"{environment.resolve('CURRENT_VARIANT')} "
                f"{environment.resolve('CURRENT_ARCH')} {dialect}"
            ),
        )

    def precompiled_header_invocation(
        self,
        info: PrecompiledHeaderInfo,
        environment: SettingsEnvironment,
        working_directory: str,
    ) -> ToolInvocation:
        """Create the invocation building a precompiled header."""
        precomps_dir = absolute_path(
            environment.resolve("SHARED_PRECOMPS_DIR"), working_directory
        )
        output_path = info.compile_output_path(precomps_dir)
        dependency_path = f"{output_path}.d"

        arguments = ["-x", info.dialect, *info.arguments]
        arguments.extend(["-MMD", "-MT", "dependencies", "-MF", dependency_path])
        arguments.extend(["-c", info.logical_input_path, "-o", output_path])

        return ToolInvocation.create(
            self._compiler.identifier,
            info.executable,
            arguments,
            working_directory=working_directory,
            inputs=[info.logical_input_path],
            outputs=[output_path],
            dependency_info=dependency_path,
            description=f"ProcessPCH {output_path} {info.logical_input_path}",
        )

    def _common_arguments(
        self,
        dialect: str,
        headermap_info: HeadermapInfo,
        search_paths: SearchPaths,
        environment: SettingsEnvironment,
    ) -> list[str]:
        """Arguments shared by a source and its precompiled header.

        The first two entries are always ``-x <dialect>``.
        """
        cplusplus = dialect in CPLUSPLUS_DIALECTS
        arguments = ["-x", dialect, "-arch", environment.resolve("CURRENT_ARCH")]

        sdkroot = environment.resolve("SDKROOT")
        if sdkroot:
            arguments.extend(["-isysroot", sdkroot])

        optimization = environment.resolve("GCC_OPTIMIZATION_LEVEL")
        if optimization:
            arguments.append(f"-O{optimization}")

        standard = environment.resolve(
            "CLANG_CXX_LANGUAGE_STANDARD" if cplusplus else "GCC_C_LANGUAGE_STANDARD"
        )
        if standard and standard != "compiler-default" and dialect != ASSEMBLER_DIALECT:
            arguments.append(f"-std={standard}")

        if dialect in OBJC_DIALECTS and environment.is_enabled("CLANG_ENABLE_OBJC_ARC"):
            arguments.append("-fobjc-arc")
        if environment.is_enabled("CLANG_ENABLE_MODULES"):
            arguments.append("-fmodules")
        if environment.is_enabled("GCC_GENERATE_DEBUGGING_SYMBOLS"):
            arguments.append("-g")

        for define in environment.resolve_list("GCC_PREPROCESSOR_DEFINITIONS"):
            arguments.append(f"-D{define}")

        arguments.extend(environment.resolve_list("WARNING_CFLAGS"))
        arguments.extend(
            environment.resolve_list("OTHER_CPLUSPLUSFLAGS" if cplusplus else "OTHER_CFLAGS")
        )

        for path in headermap_info.system_headermap_files:
            arguments.extend(["-I", path])
        for path in headermap_info.user_headermap_files:
            arguments.extend(["-iquote", path])

        for path in search_paths.user_header_search_paths:
            arguments.extend(["-iquote", path])
        for path in search_paths.header_search_paths:
            arguments.append(f"-I{path}")
        for path in search_paths.framework_search_paths:
            arguments.append(f"-F{path}")

        return arguments

    def _record_link_requirements(
        self,
        dialect: str,
        compilation_info: CompilationInfo,
        environment: SettingsEnvironment,
    ) -> None:
        if dialect in CPLUSPLUS_DIALECTS:
            driver = environment.expand(self._compiler.cplusplus_linker)
            compilation_info.update_linker_driver(driver, DRIVER_RANK_CPLUSPLUS)
        elif dialect != ASSEMBLER_DIALECT:
            driver = environment.expand(self._compiler.linker)
            compilation_info.update_linker_driver(driver, DRIVER_RANK_C)

        if dialect in OBJC_DIALECTS:
            compilation_info.add_linker_arguments("-fobjc-link-runtime")
            if environment.is_enabled("CLANG_ENABLE_OBJC_ARC"):
                compilation_info.add_linker_arguments("-fobjc-arc")
