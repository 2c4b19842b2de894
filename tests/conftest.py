# SPDX-License-Identifier: MIT
"""Shared fixtures for pbxphase tests."""

from __future__ import annotations

import pytest

from pbxphase.core.model import (
    FileReference,
    Group,
    Project,
    SourcesBuildPhase,
    Target,
)
from pbxphase.phase.environment import (
    BuildEnvironment,
    PhaseEnvironment,
    TargetEnvironment,
)


@pytest.fixture
def build_environment():
    return BuildEnvironment.default()


@pytest.fixture
def project(tmp_path):
    """An empty project rooted at tmp_path with a Release configuration."""
    return Project(
        name="App",
        project_dir=str(tmp_path),
        configurations={"Release": {}},
    )


@pytest.fixture
def target(project):
    """Target "App" with one empty sources phase."""
    target = Target(
        name="App",
        build_phases=[SourcesBuildPhase()],
        configurations={"Release": {}},
    )
    project.targets.append(target)
    return target


@pytest.fixture
def sources_phase(target):
    return target.sources_phases[0]


@pytest.fixture
def add_source(project, sources_phase):
    """Add a file to the project and to the sources phase.

    ``path`` may contain directories; each becomes a group.
    """

    def add(path, compiler_flags="", phase=None, **kwargs):
        group = project.main_group
        *dirs, name = path.split("/")
        for directory in dirs:
            existing = [
                child
                for child in group.children
                if isinstance(child, Group) and child.path == directory
            ]
            group = existing[0] if existing else group.add(Group(path=directory))
        ref = group.add(FileReference(path=name, **kwargs))
        return (phase or sources_phase).add_file(ref, compiler_flags)

    return add


@pytest.fixture
def make_phase_environment(build_environment, project, target):
    """Create the phase environment of the target, with extra settings."""

    def make(settings=None, configuration=None):
        if settings:
            target.configurations.setdefault("Release", {}).update(settings)
        target_environment = TargetEnvironment.create(
            build_environment, project, target, configuration
        )
        return PhaseEnvironment(build_environment, target_environment)

    return make
