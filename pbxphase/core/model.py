# SPDX-License-Identifier: MIT
"""Project data model consumed by phase resolution.

These classes are a read-only description of a project: groups and file
references, build files attached to build phases, targets and their
build configurations. They are usually produced by
``pbxphase.project.loader`` but can be built directly in code.

Build files are compared and hashed by identity: the same file
reference may appear in a phase more than once, and each entry is
resolved and named separately.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Values of GroupItem.item_type
ITEM_FILE_REFERENCE = "file"
ITEM_GROUP = "group"
ITEM_VARIANT_GROUP = "variant_group"


@dataclass(eq=False)
class GroupItem:
    """Common base for entries of the project navigator tree.

    Attributes:
        path: Path relative to ``source_tree`` (may be empty for groups).
        source_tree: "<group>", "<absolute>", "SOURCE_ROOT" or a setting name.
        name: Display name; defaults to the last path component.
        parent: Enclosing group, None for the main group.
    """

    path: str = ""
    source_tree: str = "<group>"
    name: str | None = None
    parent: Group | None = field(default=None, repr=False)

    item_type = ""

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        return self.path.rsplit("/", 1)[-1]


@dataclass(eq=False)
class FileReference(GroupItem):
    """A reference to one file on disk."""

    last_known_file_type: str | None = None
    explicit_file_type: str | None = None

    item_type = ITEM_FILE_REFERENCE


@dataclass(eq=False)
class Group(GroupItem):
    """A folder-like container of other items."""

    children: list[GroupItem] = field(default_factory=list, repr=False)

    item_type = ITEM_GROUP

    def add(self, item: GroupItem) -> GroupItem:
        """Append a child and set its parent. Returns the child."""
        item.parent = self
        self.children.append(item)
        return item

    def walk(self):
        """Yield every item below this group, depth first."""
        for child in self.children:
            yield child
            if isinstance(child, Group):
                yield from child.walk()


@dataclass(eq=False)
class VariantGroup(Group):
    """A group of localized variants of one file.

    Build files that reference a variant group are not compiled by the
    sources phase.
    """

    item_type = ITEM_VARIANT_GROUP


@dataclass(eq=False)
class BuildFile:
    """A file reference attached to a build phase.

    Attributes:
        file_ref: The referenced item (None if the reference is dangling).
        compiler_flags: Extra per-file compiler flags (a shell string).
    """

    file_ref: GroupItem | None
    compiler_flags: str = ""


@dataclass(eq=False)
class BuildPhase:
    """An ordered list of build files processed the same way."""

    files: list[BuildFile] = field(default_factory=list)
    name: str = ""

    kind = ""

    def add_file(self, file_ref: GroupItem | None, compiler_flags: str = "") -> BuildFile:
        """Create a build file for a reference and append it."""
        build_file = BuildFile(file_ref, compiler_flags)
        self.files.append(build_file)
        return build_file


@dataclass(eq=False)
class SourcesBuildPhase(BuildPhase):
    kind = "sources"


@dataclass(eq=False)
class HeadersBuildPhase(BuildPhase):
    kind = "headers"


@dataclass(frozen=True)
class BuildRuleDefinition:
    """A build rule as declared by a target.

    Attributes:
        file_type: File type identifier, or "pattern.proxy".
        compiler_spec: Tool identifier, or the script proxy identifier.
        file_patterns: Space separated fnmatch patterns for pattern.proxy.
        script: Shell script body for script rules.
        output_files: Output paths (may contain setting references).
    """

    file_type: str
    compiler_spec: str
    file_patterns: str = ""
    script: str = ""
    output_files: tuple[str, ...] = ()


@dataclass(eq=False)
class Target:
    """A buildable target.

    Attributes:
        name: Target name.
        build_phases: Phases in declaration order.
        build_rules: Target-specific build rules, highest priority first.
        configurations: Build settings per configuration name.
        product_name: Product name, if declared on the target.
    """

    name: str
    build_phases: list[BuildPhase] = field(default_factory=list)
    build_rules: list[BuildRuleDefinition] = field(default_factory=list)
    configurations: dict[str, dict[str, Any]] = field(default_factory=dict)
    product_name: str | None = None

    def phases_of_kind(self, kind: str) -> list[BuildPhase]:
        return [phase for phase in self.build_phases if phase.kind == kind]

    @property
    def sources_phases(self) -> list[BuildPhase]:
        return self.phases_of_kind(SourcesBuildPhase.kind)


@dataclass(eq=False)
class Project:
    """A project: a main group, targets and project-level settings."""

    name: str
    project_dir: str
    main_group: Group = field(default_factory=Group)
    targets: list[Target] = field(default_factory=list)
    configurations: dict[str, dict[str, Any]] = field(default_factory=dict)
    default_configuration: str = "Release"

    def target(self, name: str) -> Target | None:
        """Return the target with the given name, if any."""
        for target in self.targets:
            if target.name == name:
                return target
        return None
