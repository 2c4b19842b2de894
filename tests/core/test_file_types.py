# SPDX-License-Identifier: MIT
"""Tests for pbxphase.core.file_types."""

import pytest

from pbxphase.core.file_types import FileType, FileTypeRegistry, ResolvedFile


@pytest.fixture
def registry():
    return FileTypeRegistry()


class TestForPath:
    @pytest.mark.parametrize(
        ("path", "identifier"),
        [
            ("main.c", "sourcecode.c.c"),
            ("View.m", "sourcecode.c.objc"),
            ("engine.cpp", "sourcecode.cpp.cpp"),
            ("engine.cc", "sourcecode.cpp.cpp"),
            ("Bridge.mm", "sourcecode.cpp.objcpp"),
            ("Widget.h", "sourcecode.c.h"),
            ("start.s", "sourcecode.asm"),
            ("grammar.y", "sourcecode.yacc"),
            ("shader.metal", "sourcecode.metal"),
        ],
    )
    def test_extension(self, registry, path, identifier):
        assert registry.for_path(path).identifier == identifier

    def test_uppercase_c_is_cplusplus(self, registry):
        assert registry.for_path("legacy.C").identifier == "sourcecode.cpp.cpp"

    def test_case_insensitive_fallback(self, registry):
        assert registry.for_path("MAIN.CPP").identifier == "sourcecode.cpp.cpp"

    def test_no_extension(self, registry):
        assert registry.for_path("Makefile") is None

    def test_unknown_extension(self, registry):
        assert registry.for_path("data.bin") is None


class TestConformance:
    def test_self(self, registry):
        objc = registry.get("sourcecode.c.objc")
        assert registry.conforms_to(objc, "sourcecode.c.objc")

    def test_base_chain(self, registry):
        objc = registry.get("sourcecode.c.objc")
        assert registry.conforms_to(objc, "sourcecode.c")
        assert registry.conforms_to(objc, "sourcecode")
        assert registry.conforms_to(objc, "text")

    def test_unrelated(self, registry):
        objc = registry.get("sourcecode.c.objc")
        assert not registry.conforms_to(objc, "sourcecode.cpp")

    def test_cplusplus_header_is_a_header(self, registry):
        header = registry.get("sourcecode.cpp.h")
        assert registry.conforms_to(header, "sourcecode.c.h")

    def test_cycle_terminates(self):
        registry = FileTypeRegistry([FileType("a", "b"), FileType("b", "a")])
        assert not registry.conforms_to(registry.get("a"), "c")


class TestResolve:
    def test_explicit_wins(self, registry):
        file_type = registry.resolve("gen.txt", explicit_file_type="sourcecode.c.c")
        assert file_type.identifier == "sourcecode.c.c"

    def test_last_known_over_extension(self, registry):
        file_type = registry.resolve("x.h", last_known_file_type="sourcecode.cpp.h")
        assert file_type.identifier == "sourcecode.cpp.h"

    def test_unknown_declared_falls_through(self, registry):
        file_type = registry.resolve("x.c", last_known_file_type="sourcecode.unknown")
        assert file_type.identifier == "sourcecode.c.c"

    def test_register_overrides_extension(self, registry):
        registry.register(FileType("sourcecode.custom", "sourcecode", ("c",)))
        assert registry.resolve("x.c").identifier == "sourcecode.custom"


class TestResolvedFile:
    def test_name(self):
        resolved = ResolvedFile("/src/app/main.c", FileType("sourcecode.c.c"))
        assert resolved.name == "main.c"
