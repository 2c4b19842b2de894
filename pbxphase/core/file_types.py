# SPDX-License-Identifier: MIT
"""File type table and type-resolved files.

A FileType is identified by a dotted identifier such as
``sourcecode.c.objc``. Types form a conformance chain through their
``base``: ``sourcecode.c.objc`` conforms to ``sourcecode.c`` which
conforms to ``sourcecode``. Build rules match against that chain.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileType:
    """A file type.

    Attributes:
        identifier: Dotted type identifier.
        base: Identifier of the type this one conforms to, if any.
        extensions: File name extensions (without dot) mapping to this type.
    """

    identifier: str
    base: str | None = None
    extensions: tuple[str, ...] = ()


@dataclass(frozen=True)
class ResolvedFile:
    """A build file resolved to a concrete path and file type."""

    path: str
    file_type: FileType

    @property
    def name(self) -> str:
        return os.path.basename(self.path)


DEFAULT_FILE_TYPES: tuple[FileType, ...] = (
    FileType("file"),
    FileType("text", "file", ("txt",)),
    FileType("sourcecode", "text"),
    FileType("sourcecode.c", "sourcecode"),
    FileType("sourcecode.c.c", "sourcecode.c", ("c",)),
    FileType("sourcecode.c.objc", "sourcecode.c", ("m",)),
    FileType("sourcecode.c.h", "sourcecode.c", ("h", "pch")),
    FileType("sourcecode.cpp", "sourcecode"),
    FileType("sourcecode.cpp.cpp", "sourcecode.cpp", ("cpp", "cc", "cxx", "c++", "C")),
    FileType("sourcecode.cpp.objcpp", "sourcecode.cpp", ("mm", "M")),
    FileType("sourcecode.cpp.h", "sourcecode.c.h", ("hpp", "hh", "hxx", "h++")),
    FileType("sourcecode.asm", "sourcecode", ("s", "S")),
    FileType("sourcecode.metal", "sourcecode", ("metal",)),
    FileType("sourcecode.yacc", "sourcecode", ("y", "ym", "yy", "ymm")),
    FileType("sourcecode.lex", "sourcecode", ("l", "lm", "ll", "lmm")),
    FileType("sourcecode.swift", "sourcecode", ("swift",)),
    FileType("sourcecode.glsl", "sourcecode", ("glsl", "vsh", "fsh")),
    FileType("text.plist", "text"),
    FileType("text.plist.strings", "text.plist", ("strings",)),
    FileType("text.script", "text"),
    FileType("text.script.sh", "text.script", ("sh",)),
    FileType("text.script.python", "text.script", ("py",)),
    FileType("file.xib", "file", ("xib",)),
    FileType("archive.ar", "file", ("a",)),
    FileType("compiled.mach-o.dylib", "file", ("dylib",)),
    FileType("wrapper.framework", "file", ("framework",)),
)


class FileTypeRegistry:
    """Lookup of file types by identifier and by extension."""

    def __init__(self, file_types: Iterable[FileType] = DEFAULT_FILE_TYPES) -> None:
        self._by_identifier: dict[str, FileType] = {}
        self._by_extension: dict[str, FileType] = {}
        for file_type in file_types:
            self.register(file_type)

    def register(self, file_type: FileType) -> None:
        """Add a file type. Later registrations win for shared extensions."""
        self._by_identifier[file_type.identifier] = file_type
        for ext in file_type.extensions:
            self._by_extension[ext] = file_type

    def get(self, identifier: str) -> FileType | None:
        return self._by_identifier.get(identifier)

    def for_path(self, path: str) -> FileType | None:
        """Infer a file type from a path's extension.

        Extensions are matched case-sensitively first (``.C`` is C++),
        then case-insensitively.
        """
        ext = os.path.splitext(path)[1][1:]
        if not ext:
            return None
        return self._by_extension.get(ext) or self._by_extension.get(ext.lower())

    def conforms_to(self, file_type: FileType, identifier: str) -> bool:
        """Check whether a type is, or derives from, the given identifier."""
        current: FileType | None = file_type
        seen: set[str] = set()
        while current is not None and current.identifier not in seen:
            if current.identifier == identifier:
                return True
            seen.add(current.identifier)
            current = self.get(current.base) if current.base else None
        return False

    def resolve(
        self,
        path: str,
        explicit_file_type: str | None = None,
        last_known_file_type: str | None = None,
    ) -> FileType | None:
        """Determine the type of a file.

        A declared explicit type wins over the last known type, which wins
        over the extension. Unknown declared types fall through to the next
        source.
        """
        for declared in (explicit_file_type, last_known_file_type):
            if declared:
                file_type = self.get(declared)
                if file_type is not None:
                    return file_type
                logger.debug("Unknown file type '%s' for %s", declared, path)
        return self.for_path(path)
