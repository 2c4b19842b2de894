# SPDX-License-Identifier: MIT
"""Environments phase resolution runs in.

- BuildEnvironment: process-wide tables (tool specs, file types,
  default build rules, default settings).
- TargetEnvironment: everything specific to one target in one
  configuration: layered settings, working directory, variants and
  architectures, build rules, output-name disambiguation.
- PhaseEnvironment: the pair of the above handed to phase resolvers,
  plus file reference resolution.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from pbxphase.core.build_rules import BuildRule, TargetBuildRules
from pbxphase.core.file_types import FileTypeRegistry, ResolvedFile
from pbxphase.core.model import ITEM_FILE_REFERENCE
from pbxphase.core.settings import Level, SettingsEnvironment
from pbxphase.toolchains import xcode
from pbxphase.tools.tool_context import absolute_path

if TYPE_CHECKING:
    from pbxphase.core.model import (
        BuildFile,
        BuildPhase,
        GroupItem,
        Project,
        Target,
    )
    from pbxphase.tools.specs import SpecRegistry

logger = logging.getLogger(__name__)

DEFAULT_VARIANT = "normal"
DEFAULT_ARCHITECTURE = "x86_64"


def _unique(values: Iterable[str]) -> list[str]:
    result: list[str] = []
    for value in values:
        if value not in result:
            result.append(value)
    return result


def compute_build_file_disambiguation(
    phases: Iterable[BuildPhase],
) -> dict[BuildFile, str]:
    """Assign unique output base names to build files whose names collide.

    Two build files collide when their referenced files share a name
    without extension (``ui/util.m`` and ``net/util.m``). Every member of
    a colliding group is named ``<stem>-<n>``, numbering from 1 in
    declaration order. Files without collisions get no entry.
    """
    by_stem: dict[str, list[BuildFile]] = {}
    for phase in phases:
        for build_file in phase.files:
            ref = build_file.file_ref
            if ref is None or ref.item_type != ITEM_FILE_REFERENCE:
                continue
            stem = os.path.splitext(os.path.basename(ref.path))[0]
            by_stem.setdefault(stem, []).append(build_file)

    names: dict[BuildFile, str] = {}
    for stem, build_files in by_stem.items():
        if len(build_files) < 2:
            continue
        for index, build_file in enumerate(build_files, start=1):
            names[build_file] = f"{stem}-{index}"
    return names


class BuildEnvironment:
    """Tables shared by every target of a build.

    Attributes:
        specs: Registered tool specs.
        file_types: File type table.
        default_rules: Build rules consulted after a target's own rules.
        base_settings: Settings behind every target's settings.
    """

    def __init__(
        self,
        specs: SpecRegistry,
        file_types: FileTypeRegistry,
        default_rules: Sequence[BuildRule],
        base_settings: SettingsEnvironment,
    ) -> None:
        self.specs = specs
        self.file_types = file_types
        self.default_rules = list(default_rules)
        self.base_settings = base_settings

    @classmethod
    def default(cls) -> BuildEnvironment:
        """Create a build environment with the default toolchain."""
        specs = xcode.default_specs()
        return cls(
            specs=specs,
            file_types=FileTypeRegistry(),
            default_rules=xcode.default_build_rules(specs),
            base_settings=SettingsEnvironment([xcode.default_settings_level()]),
        )


class TargetEnvironment:
    """Everything known about one target in one configuration.

    Attributes:
        target: The target.
        environment: Layered target settings.
        working_directory: Directory tools run in (the project directory).
        variants: Build variants, in order.
        architectures: Architectures, in order.
        build_rules: Build rules in effect.
        build_file_disambiguation: Output base names for colliding files.
    """

    def __init__(
        self,
        *,
        target: Target,
        environment: SettingsEnvironment,
        working_directory: str,
        variants: Sequence[str],
        architectures: Sequence[str],
        build_rules: TargetBuildRules,
        build_file_disambiguation: dict[BuildFile, str] | None = None,
    ) -> None:
        self.target = target
        self.environment = environment
        self.working_directory = working_directory
        self.variants = list(variants)
        self.architectures = list(architectures)
        self.build_rules = build_rules
        self.build_file_disambiguation = build_file_disambiguation or {}

    @classmethod
    def create(
        cls,
        build_environment: BuildEnvironment,
        project: Project,
        target: Target,
        configuration: str | None = None,
    ) -> TargetEnvironment:
        """Create the environment of a target.

        Settings are layered (front to back): target configuration,
        project configuration, target identity, build environment
        defaults.

        Args:
            build_environment: Shared tables.
            project: Project owning the target.
            target: The target.
            configuration: Configuration name; the project's default
                configuration if omitted.
        """
        configuration = configuration or project.default_configuration
        project_dir = os.path.abspath(project.project_dir)

        identity = {
            "TARGET_NAME": target.name,
            "PROJECT_NAME": project.name,
            "CONFIGURATION": configuration,
            "SRCROOT": project_dir,
            "SOURCE_ROOT": project_dir,
            "PROJECT_DIR": project_dir,
        }
        if target.product_name:
            identity["PRODUCT_NAME"] = target.product_name

        environment = build_environment.base_settings.insert_front(
            Level.from_mapping(identity)
        )
        for settings in (
            project.configurations.get(configuration),
            target.configurations.get(configuration),
        ):
            if settings is None:
                continue
            environment = environment.insert_front(Level.from_mapping(settings))

        if configuration not in target.configurations:
            logger.debug(
                "Target '%s' has no configuration '%s'", target.name, configuration
            )

        variants = _unique(environment.resolve_list("BUILD_VARIANTS")) or [
            DEFAULT_VARIANT
        ]
        architectures = _unique(environment.resolve_list("ARCHS")) or [
            DEFAULT_ARCHITECTURE
        ]

        build_rules = TargetBuildRules.create(
            target.build_rules,
            build_environment.default_rules,
            build_environment.specs,
            build_environment.file_types,
        )

        return cls(
            target=target,
            environment=environment,
            working_directory=project_dir,
            variants=variants,
            architectures=architectures,
            build_rules=build_rules,
            build_file_disambiguation=compute_build_file_disambiguation(
                target.sources_phases
            ),
        )


class PhaseEnvironment:
    """Context handed to phase resolvers."""

    def __init__(
        self, build_environment: BuildEnvironment, target_environment: TargetEnvironment
    ) -> None:
        self.build_environment = build_environment
        self.target_environment = target_environment

    @property
    def target(self) -> Target:
        return self.target_environment.target

    @staticmethod
    def variant_level(variant: str) -> Level:
        """Settings describing the current build variant."""
        return Level.from_mapping(
            {
                "CURRENT_VARIANT": variant,
                "variant": variant,
                f"OBJECT_FILE_DIR_{variant}": f"$(OBJECT_FILE_DIR)-{variant}",
            }
        )

    @staticmethod
    def architecture_level(arch: str) -> Level:
        """Settings describing the current architecture."""
        return Level.from_mapping({"CURRENT_ARCH": arch, "arch": arch})

    def resolve_item_path(
        self, item: GroupItem, environment: SettingsEnvironment
    ) -> str:
        """Return the absolute path of a group item.

        Paths are interpreted according to the item's source tree:
        "<absolute>", "<group>" (relative to the enclosing groups, rooted
        at SOURCE_ROOT) or the name of a setting holding a directory.
        """
        working_directory = self.target_environment.working_directory
        tree = item.source_tree
        if tree == "<absolute>":
            base = ""
        elif tree == "<group>":
            if item.parent is not None:
                base = self.resolve_item_path(item.parent, environment)
            else:
                base = environment.resolve("SOURCE_ROOT") or working_directory
        else:
            base = environment.resolve(tree)
            if not base:
                logger.debug("Source tree '%s' is not set for %s", tree, item.path)

        path = environment.expand(item.path)
        joined = os.path.join(base, path) if path else base
        return absolute_path(joined or ".", working_directory)

    def resolve_file_reference(
        self, file_reference: GroupItem, environment: SettingsEnvironment
    ) -> ResolvedFile | None:
        """Resolve a file reference to a path and file type.

        Returns:
            The resolved file, or None if its type cannot be determined.
        """
        path = self.resolve_item_path(file_reference, environment)
        file_type = self.build_environment.file_types.resolve(
            path,
            getattr(file_reference, "explicit_file_type", None),
            getattr(file_reference, "last_known_file_type", None),
        )
        if file_type is None:
            return None
        return ResolvedFile(path, file_type)
