# SPDX-License-Identifier: MIT
"""Toolchain definitions: tool specs, default build rules and settings."""

from pbxphase.toolchains.xcode import (
    DEFAULT_SETTINGS,
    DEFAULT_TOOL_SPECS,
    default_build_rules,
    default_settings_level,
    default_specs,
)

__all__ = [
    "DEFAULT_SETTINGS",
    "DEFAULT_TOOL_SPECS",
    "default_build_rules",
    "default_settings_level",
    "default_specs",
]
