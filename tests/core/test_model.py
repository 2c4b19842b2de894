# SPDX-License-Identifier: MIT
"""Tests for pbxphase.core.model."""

from pbxphase.core.model import (
    ITEM_FILE_REFERENCE,
    ITEM_GROUP,
    ITEM_VARIANT_GROUP,
    FileReference,
    Group,
    HeadersBuildPhase,
    Project,
    SourcesBuildPhase,
    Target,
    VariantGroup,
)


class TestGroupTree:
    def test_add_sets_parent(self):
        root = Group()
        ref = root.add(FileReference(path="main.c"))
        assert ref.parent is root
        assert root.children == [ref]

    def test_walk(self):
        root = Group()
        sub = root.add(Group(path="ui"))
        a = sub.add(FileReference(path="a.m"))
        b = root.add(FileReference(path="b.m"))
        assert list(root.walk()) == [sub, a, b]

    def test_item_types(self):
        assert FileReference().item_type == ITEM_FILE_REFERENCE
        assert Group().item_type == ITEM_GROUP
        assert VariantGroup().item_type == ITEM_VARIANT_GROUP

    def test_display_name(self):
        assert FileReference(path="src/ui/View.m").display_name == "View.m"
        assert FileReference(path="x", name="Named").display_name == "Named"


class TestBuildFiles:
    def test_identity(self):
        ref = FileReference(path="a.c")
        phase = SourcesBuildPhase()
        first = phase.add_file(ref)
        second = phase.add_file(ref, "-DSECOND")
        assert first != second
        assert len({first, second}) == 2
        assert second.compiler_flags == "-DSECOND"


class TestTarget:
    def test_phases_of_kind(self):
        sources = SourcesBuildPhase()
        headers = HeadersBuildPhase()
        target = Target(name="App", build_phases=[headers, sources])
        assert target.sources_phases == [sources]
        assert target.phases_of_kind("headers") == [headers]

    def test_project_target_lookup(self):
        app = Target(name="App")
        project = Project(name="App", project_dir="/src", targets=[app])
        assert project.target("App") is app
        assert project.target("Other") is None
