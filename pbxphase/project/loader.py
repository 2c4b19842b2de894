# SPDX-License-Identifier: MIT
"""Load Xcode projects into the pbxphase data model.

Reading and parsing ``project.pbxproj`` is done by the ``pbxproj``
package; this module walks the parsed object graph and builds Project,
Target, Group and BuildPhase instances from it.

Only what phase resolution needs is converted: the group tree with its
file references, native targets with their Sources and Headers phases,
build rules and build configurations. Other phases and aggregate
targets are skipped.
"""

from __future__ import annotations

import logging
import os
from typing import Any

from pbxproj import XcodeProject

from pbxphase.core.errors import ProjectLoadError
from pbxphase.core.model import (
    BuildPhase,
    BuildRuleDefinition,
    FileReference,
    Group,
    GroupItem,
    HeadersBuildPhase,
    Project,
    SourcesBuildPhase,
    Target,
    VariantGroup,
)

logger = logging.getLogger(__name__)

PBXPROJ_NAME = "project.pbxproj"

PHASE_CLASSES: dict[str, type[BuildPhase]] = {
    "PBXSourcesBuildPhase": SourcesBuildPhase,
    "PBXHeadersBuildPhase": HeadersBuildPhase,
}

GROUP_CLASSES: dict[str, type[Group]] = {
    "PBXGroup": Group,
    "PBXVariantGroup": VariantGroup,
    "XCVersionGroup": Group,
}


def _get(obj: Any, key: str, default: Any = None) -> Any:
    """Read an attribute of a pbxproj object, or ``default`` if unset."""
    if obj is None or key not in obj:
        return default
    value = obj[key]
    return default if value is None else value


def _setting_value(value: Any) -> str | list[str]:
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    return str(value)


class _ProjectConverter:
    """Converts one parsed project. Keeps the id -> item mapping."""

    def __init__(self, xcode_project: XcodeProject) -> None:
        self._xcode_project = xcode_project
        self._items: dict[str, GroupItem] = {}

    def _object(self, object_id: Any) -> Any:
        if object_id is None:
            return None
        return self._xcode_project.objects[str(object_id)]

    def convert(self, name: str, project_dir: str) -> Project:
        root = self._object(self._xcode_project.rootObject)
        if root is None or _get(root, "isa") != "PBXProject":
            raise ProjectLoadError(project_dir, "no PBXProject root object")

        main_group = self._convert_item(self._object(_get(root, "mainGroup")), None)
        if not isinstance(main_group, Group):
            main_group = Group()

        configurations, default_configuration = self._configurations(
            _get(root, "buildConfigurationList")
        )

        targets: list[Target] = []
        for target_id in _get(root, "targets", []):
            target = self._convert_target(self._object(target_id))
            if target is not None:
                targets.append(target)

        project_dir_path = _get(root, "projectDirPath", "")
        return Project(
            name=name,
            project_dir=os.path.normpath(os.path.join(project_dir, project_dir_path)),
            main_group=main_group,
            targets=targets,
            configurations=configurations,
            default_configuration=default_configuration or "Release",
        )

    def _convert_item(self, obj: Any, parent: Group | None) -> GroupItem | None:
        if obj is None:
            return None
        object_id = obj.get_id()
        if object_id in self._items:
            return self._items[object_id]

        isa = _get(obj, "isa")
        common = {
            "path": str(_get(obj, "path", "")),
            "source_tree": str(_get(obj, "sourceTree", "<group>")),
            "name": _get(obj, "name"),
        }
        item: GroupItem
        if isa == "PBXFileReference":
            item = FileReference(
                **common,
                last_known_file_type=_get(obj, "lastKnownFileType"),
                explicit_file_type=_get(obj, "explicitFileType"),
            )
        elif isa in GROUP_CLASSES:
            item = GROUP_CLASSES[isa](**common)
            self._items[object_id] = item
            for child_id in _get(obj, "children", []):
                child = self._convert_item(self._object(child_id), item)
                if child is not None:
                    item.add(child)
        else:
            logger.debug("Skipping group item %s of type %s", object_id, isa)
            return None

        item.parent = parent
        self._items[object_id] = item
        return item

    def _reference(self, object_id: Any) -> GroupItem | None:
        """Item a build file points at, converted on demand."""
        if object_id is None:
            return None
        item = self._items.get(str(object_id))
        if item is None:
            item = self._convert_item(self._object(object_id), None)
        return item

    def _configurations(self, list_id: Any) -> tuple[dict[str, dict[str, Any]], str | None]:
        configuration_list = self._object(list_id)
        configurations: dict[str, dict[str, Any]] = {}
        if configuration_list is None:
            return configurations, None

        for config_id in _get(configuration_list, "buildConfigurations", []):
            config = self._object(config_id)
            if config is None:
                continue
            settings: dict[str, Any] = {}
            build_settings = _get(config, "buildSettings")
            if build_settings is not None:
                for key in build_settings.get_keys():
                    settings[key] = _setting_value(build_settings[key])
            configurations[str(_get(config, "name", ""))] = settings

        default = _get(configuration_list, "defaultConfigurationName")
        return configurations, str(default) if default else None

    def _convert_target(self, obj: Any) -> Target | None:
        if obj is None:
            return None
        isa = _get(obj, "isa")
        name = str(_get(obj, "name", ""))
        if isa != "PBXNativeTarget":
            logger.debug("Skipping target '%s' of type %s", name, isa)
            return None

        configurations, _ = self._configurations(_get(obj, "buildConfigurationList"))
        product_name = _get(obj, "productName")
        target = Target(
            name=name,
            configurations=configurations,
            product_name=str(product_name) if product_name else None,
        )

        for phase_id in _get(obj, "buildPhases", []):
            phase = self._convert_phase(self._object(phase_id))
            if phase is not None:
                target.build_phases.append(phase)

        for rule_id in _get(obj, "buildRules", []):
            rule = self._object(rule_id)
            if rule is None:
                continue
            target.build_rules.append(
                BuildRuleDefinition(
                    file_type=str(_get(rule, "fileType", "")),
                    compiler_spec=str(_get(rule, "compilerSpec", "")),
                    file_patterns=str(_get(rule, "filePatterns", "")),
                    script=str(_get(rule, "script", "")),
                    output_files=tuple(str(f) for f in _get(rule, "outputFiles", [])),
                )
            )
        return target

    def _convert_phase(self, obj: Any) -> BuildPhase | None:
        if obj is None:
            return None
        phase_class = PHASE_CLASSES.get(_get(obj, "isa"))
        if phase_class is None:
            return None

        phase = phase_class(name=str(_get(obj, "name", "")))
        for build_file_id in _get(obj, "files", []):
            build_file = self._object(build_file_id)
            if build_file is None:
                continue
            settings = _get(build_file, "settings")
            flags = _get(settings, "COMPILER_FLAGS", "")
            phase.add_file(self._reference(_get(build_file, "fileRef")), str(flags))
        return phase


def project_from_pbxproj(
    xcode_project: XcodeProject, project_dir: str, name: str = ""
) -> Project:
    """Convert a parsed Xcode project.

    Args:
        xcode_project: Parsed project.
        project_dir: Directory containing the ``.xcodeproj`` bundle.
        name: Project name; defaults to the last component of
            ``project_dir``.

    Raises:
        ProjectLoadError: If the object graph has no project root.
    """
    name = name or os.path.basename(os.path.normpath(project_dir))
    return _ProjectConverter(xcode_project).convert(name, project_dir)


def load_project(path: str | os.PathLike[str]) -> Project:
    """Load an Xcode project.

    Args:
        path: A ``.xcodeproj`` bundle or the ``project.pbxproj`` inside it.

    Raises:
        ProjectLoadError: If the file is missing or cannot be parsed.
    """
    path = os.path.abspath(os.fspath(path))
    if os.path.basename(path) == PBXPROJ_NAME:
        bundle = os.path.dirname(path)
        pbxproj_path = path
    else:
        bundle = path
        pbxproj_path = os.path.join(path, PBXPROJ_NAME)

    if not os.path.isfile(pbxproj_path):
        raise ProjectLoadError(path, f"{PBXPROJ_NAME} not found")

    try:
        xcode_project = XcodeProject.load(pbxproj_path)
    except Exception as e:
        raise ProjectLoadError(path, str(e)) from e

    name = os.path.splitext(os.path.basename(bundle))[0]
    logger.info("Loaded project '%s' from %s", name, pbxproj_path)
    return project_from_pbxproj(xcode_project, os.path.dirname(bundle), name)
