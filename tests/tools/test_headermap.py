# SPDX-License-Identifier: MIT
"""Tests for pbxphase.tools.headermap."""

import os

import pytest

from pbxphase.core.errors import ResolverCreationError, ToolNotFoundError
from pbxphase.core.model import HeadersBuildPhase
from pbxphase.toolchains.xcode import DEFAULT_TOOL_SPECS
from pbxphase.tools.clang import ClangResolver
from pbxphase.tools.headermap import (
    HEADERMAP_TOOL_IDENTIFIER,
    HeadermapInfo,
    HeadermapResolver,
)
from pbxphase.tools.search_paths import SearchPaths
from pbxphase.tools.specs import SpecRegistry
from pbxphase.util.hmap import HeaderMap


@pytest.fixture
def headers_phase(target):
    phase = HeadersBuildPhase()
    target.build_phases.append(phase)
    return phase


def run(phase_environment):
    resolver = HeadermapResolver.create(
        phase_environment, ClangResolver.create(phase_environment).compiler
    )
    target_environment = phase_environment.target_environment
    return resolver.invocation(
        phase_environment.target,
        SearchPaths(),
        target_environment.environment,
        target_environment.working_directory,
    )


def hmap_path(tmp_path, product="App"):
    return os.path.join(
        str(tmp_path), "build", "App.build", "Release", "App.build", f"{product}.hmap"
    )


class TestCreate:
    def test_requires_compiler(self, make_phase_environment):
        with pytest.raises(ResolverCreationError):
            HeadermapResolver.create(make_phase_environment(), None)

    def test_requires_tool(self, build_environment, make_phase_environment):
        phase_environment = make_phase_environment()
        compiler = ClangResolver.create(phase_environment).compiler
        build_environment.specs = SpecRegistry(
            spec for spec in DEFAULT_TOOL_SPECS if spec.identifier != HEADERMAP_TOOL_IDENTIFIER
        )

        with pytest.raises(ToolNotFoundError):
            HeadermapResolver.create(phase_environment, compiler)


class TestInvocation:
    def test_writes_auxiliary_file(self, tmp_path, make_phase_environment):
        invocation, _ = run(make_phase_environment())

        assert invocation.identifier == HEADERMAP_TOOL_IDENTIFIER
        assert invocation.executable == ""
        assert invocation.outputs == (hmap_path(tmp_path),)
        assert [aux.path for aux in invocation.auxiliary_files] == [hmap_path(tmp_path)]

    def test_maps_headers(self, tmp_path, add_source, headers_phase, make_phase_environment):
        add_source("ui/Widget.h", phase=headers_phase)
        add_source("model/Store.h", phase=headers_phase)

        invocation, _ = run(make_phase_environment())

        hmap = HeaderMap.decode(invocation.auxiliary_files[0].contents)
        widget = os.path.join(str(tmp_path), "ui", "Widget.h")
        assert hmap.lookup("Widget.h").path == widget
        assert hmap.lookup("App/Widget.h").path == widget
        assert hmap.lookup("store.h").path == os.path.join(str(tmp_path), "model", "Store.h")
        assert len(hmap) == 4

    def test_product_name_prefix(
        self, tmp_path, add_source, headers_phase, make_phase_environment
    ):
        add_source("Widget.h", phase=headers_phase)

        invocation, _ = run(make_phase_environment({"PRODUCT_NAME": "Kit"}))

        assert invocation.outputs == (hmap_path(tmp_path, "Kit"),)
        hmap = HeaderMap.decode(invocation.auxiliary_files[0].contents)
        assert hmap.lookup("Kit/Widget.h") is not None

    def test_sources_and_non_headers_skipped(
        self, add_source, headers_phase, make_phase_environment
    ):
        add_source("Private.h")
        add_source("main.c", phase=headers_phase)

        invocation, _ = run(make_phase_environment())

        assert len(HeaderMap.decode(invocation.auxiliary_files[0].contents)) == 0


class TestInfo:
    def test_user_headermap_by_default(self, tmp_path, make_phase_environment):
        _, info = run(make_phase_environment())
        assert info == HeadermapInfo(user_headermap_files=(hmap_path(tmp_path),))

    def test_always_search_user_paths(self, tmp_path, make_phase_environment):
        _, info = run(make_phase_environment({"ALWAYS_SEARCH_USER_PATHS": "YES"}))
        assert info == HeadermapInfo(system_headermap_files=(hmap_path(tmp_path),))

    def test_disabled(self, make_phase_environment):
        invocation, info = run(make_phase_environment({"USE_HEADERMAP": "NO"}))
        assert info == HeadermapInfo()
        assert len(invocation.auxiliary_files) == 1
