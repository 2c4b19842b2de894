# SPDX-License-Identifier: MIT
"""Default Xcode-style toolchain.

Provides the tool specs, default build rules and default build settings
a project gets when it does not declare its own:

- clang (com.apple.compilers.llvm.clang.1_0) and the GCC-compatible
  compiler proxy that default rules point C-family sources at
- shell script runner for script build rules
- built-in headermap writer
- yacc, lex and metal as generic tools
"""

from __future__ import annotations

from pbxphase.core.build_rules import BuildRule
from pbxphase.core.settings import Level
from pbxphase.tools.clang import CLANG_COMPILER_IDENTIFIER
from pbxphase.tools.headermap import HEADERMAP_TOOL_IDENTIFIER
from pbxphase.tools.script import SHELL_SCRIPT_IDENTIFIER
from pbxphase.tools.specs import SpecRegistry, ToolSpec

GCC_COMPILER_PROXY_IDENTIFIER = "com.apple.compilers.gcc"

CLANG_SPEC = ToolSpec(
    identifier=CLANG_COMPILER_IDENTIFIER,
    name="Apple Clang",
    executable="$(CC:default=clang)",
    linker="$(LD:default=clang)",
    cplusplus_linker="$(LDPLUSPLUS:default=clang++)",
    file_types=(
        "sourcecode.c.c",
        "sourcecode.c.objc",
        "sourcecode.cpp.cpp",
        "sourcecode.cpp.objcpp",
        "sourcecode.asm",
    ),
)

GCC_PROXY_SPEC = ToolSpec(
    identifier=GCC_COMPILER_PROXY_IDENTIFIER,
    name="GCC-compatible compiler",
    executable="$(CC:default=clang)",
)

SHELL_SCRIPT_SPEC = ToolSpec(
    identifier=SHELL_SCRIPT_IDENTIFIER,
    name="Shell Script",
    executable="/bin/sh",
    arguments=("-c",),
)

HEADERMAP_SPEC = ToolSpec(
    identifier=HEADERMAP_TOOL_IDENTIFIER,
    name="Headermap Generator",
)

YACC_SPEC = ToolSpec(
    identifier="com.apple.compilers.yacc",
    name="Yacc",
    executable="$(YACC:default=yacc)",
    arguments=(
        "-d",
        "-o",
        "$(DERIVED_FILE_DIR)/$(INPUT_FILE_BASE).tab.c",
        "$(INPUT_FILE_PATH)",
    ),
    outputs=(
        "$(DERIVED_FILE_DIR)/$(INPUT_FILE_BASE).tab.c",
        "$(DERIVED_FILE_DIR)/$(INPUT_FILE_BASE).tab.h",
    ),
    file_types=("sourcecode.yacc",),
)

LEX_SPEC = ToolSpec(
    identifier="com.apple.compilers.lex",
    name="Lex",
    executable="$(LEX:default=lex)",
    arguments=(
        "-o",
        "$(DERIVED_FILE_DIR)/$(INPUT_FILE_BASE).yy.c",
        "$(INPUT_FILE_PATH)",
    ),
    outputs=("$(DERIVED_FILE_DIR)/$(INPUT_FILE_BASE).yy.c",),
    file_types=("sourcecode.lex",),
)

METAL_SPEC = ToolSpec(
    identifier="com.apple.compilers.metal",
    name="Metal Compiler",
    executable="metal",
    arguments=(
        "-c",
        "$(INPUT_FILE_PATH)",
        "-o",
        "$(TARGET_TEMP_DIR)/Metal/$(INPUT_FILE_BASE).air",
    ),
    outputs=("$(TARGET_TEMP_DIR)/Metal/$(INPUT_FILE_BASE).air",),
    file_types=("sourcecode.metal",),
)

DEFAULT_TOOL_SPECS: tuple[ToolSpec, ...] = (
    CLANG_SPEC,
    GCC_PROXY_SPEC,
    SHELL_SCRIPT_SPEC,
    HEADERMAP_SPEC,
    YACC_SPEC,
    LEX_SPEC,
    METAL_SPEC,
)

# Default settings, layered behind project and target configurations
DEFAULT_SETTINGS: dict[str, str] = {
    "BUILD_DIR": "$(SRCROOT)/build",
    "BUILD_ROOT": "$(BUILD_DIR)",
    "OBJROOT": "$(BUILD_DIR)",
    "SYMROOT": "$(BUILD_DIR)",
    "CONFIGURATION_BUILD_DIR": "$(BUILD_DIR)/$(CONFIGURATION)",
    "BUILT_PRODUCTS_DIR": "$(CONFIGURATION_BUILD_DIR)",
    "PROJECT_TEMP_DIR": "$(OBJROOT)/$(PROJECT_NAME).build",
    "CONFIGURATION_TEMP_DIR": "$(PROJECT_TEMP_DIR)/$(CONFIGURATION)",
    "TARGET_TEMP_DIR": "$(CONFIGURATION_TEMP_DIR)/$(TARGET_NAME).build",
    "OBJECT_FILE_DIR": "$(TARGET_TEMP_DIR)/Objects",
    "DERIVED_FILE_DIR": "$(TARGET_TEMP_DIR)/DerivedSources",
    "SHARED_PRECOMPS_DIR": "$(OBJROOT)/SharedPrecompiledHeaders",
    "PRODUCT_NAME": "$(TARGET_NAME)",
    "BUILD_VARIANTS": "normal",
    "ARCHS": "x86_64",
    "USE_HEADERMAP": "YES",
    "ALWAYS_SEARCH_USER_PATHS": "NO",
    "GCC_OPTIMIZATION_LEVEL": "s",
    "GCC_PRECOMPILE_PREFIX_HEADER": "NO",
    "SDKROOT": "",
}


def default_specs() -> SpecRegistry:
    """Return a fresh registry holding the default tool specs."""
    return SpecRegistry(DEFAULT_TOOL_SPECS)


def default_build_rules(specs: SpecRegistry) -> list[BuildRule]:
    """Return the default build rules, bound to tools from ``specs``.

    Rules whose tool is not registered are left out.
    """
    table = (
        ("sourcecode.c.c", GCC_COMPILER_PROXY_IDENTIFIER),
        ("sourcecode.c.objc", GCC_COMPILER_PROXY_IDENTIFIER),
        ("sourcecode.cpp.cpp", GCC_COMPILER_PROXY_IDENTIFIER),
        ("sourcecode.cpp.objcpp", GCC_COMPILER_PROXY_IDENTIFIER),
        ("sourcecode.asm", GCC_COMPILER_PROXY_IDENTIFIER),
        ("sourcecode.yacc", YACC_SPEC.identifier),
        ("sourcecode.lex", LEX_SPEC.identifier),
        ("sourcecode.metal", METAL_SPEC.identifier),
    )
    rules: list[BuildRule] = []
    for file_type, identifier in table:
        tool = specs.find(identifier)
        if tool is not None:
            rules.append(BuildRule(file_type, tool=tool))
    return rules


def default_settings_level() -> Level:
    return Level.from_mapping(DEFAULT_SETTINGS)
