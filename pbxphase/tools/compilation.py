# SPDX-License-Identifier: MIT
"""Bookkeeping shared across the compilations of one resolution pass.

CompilationInfo accumulates what the link step needs to know about the
objects compiled so far (link driver and extra linker arguments) and
carries the precompiled header the most recent compilation asked for.

PrecompiledHeaderInfo describes one distinct precompiled header build.
Its hash identifies it: compilations whose prefix header, dialect,
compiler and shared arguments agree get the same hash and share a
single precompiled header.
"""

from __future__ import annotations

import hashlib
import logging
import os
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

# Link driver precedence: a C++ driver is never replaced by a C driver
DRIVER_RANK_C = 1
DRIVER_RANK_CPLUSPLUS = 2


@dataclass(frozen=True)
class PrecompiledHeaderInfo:
    """A distinct precompiled header configuration.

    Attributes:
        executable: Compiler that builds (and consumes) the header.
        logical_input_path: The prefix header source.
        dialect: Compiler ``-x`` dialect for the header
            (e.g. "objective-c-header").
        arguments: Compiler arguments shared by every compilation using it.
    """

    executable: str
    logical_input_path: str
    dialect: str
    arguments: tuple[str, ...] = ()

    def hash(self) -> str:
        """Deterministic content hash identifying this configuration."""
        digest = hashlib.sha256()
        for part in (self.executable, self.logical_input_path, self.dialect, *self.arguments):
            digest.update(part.encode("utf-8"))
            digest.update(b"\0")
        return digest.hexdigest()

    def compile_output_path(self, shared_precomps_dir: str) -> str:
        """Path of the compiled header inside the shared precomps directory.

        Format: <dir>/<prefix stem>-<hash>/<prefix name>.pch
        """
        name = os.path.basename(self.logical_input_path)
        stem = os.path.splitext(name)[0]
        return os.path.join(shared_precomps_dir, f"{stem}-{self.hash()}", f"{name}.pch")


@dataclass
class CompilationInfo:
    """Mutable accumulator for one resolution pass.

    Attributes:
        precompiled_header_info: Precompiled header required by the most
            recent compilation, or None.
        linker_driver: Tool that should drive the link ("" if no file
            has been compiled).
        linker_arguments: Union of linker arguments reported by every
            compilation.
    """

    precompiled_header_info: PrecompiledHeaderInfo | None = None
    linker_driver: str = ""
    linker_arguments: set[str] = field(default_factory=set)
    _linker_driver_rank: int = field(default=0, repr=False)

    def update_linker_driver(self, driver: str, rank: int = DRIVER_RANK_C) -> None:
        """Record the link driver a compilation asks for.

        A higher-ranked driver replaces a lower-ranked one and is never
        replaced by it. Between equal ranks the latest driver wins; a
        change of driver at the same rank is logged.
        """
        if not driver or rank < self._linker_driver_rank:
            return
        if (
            rank == self._linker_driver_rank
            and self.linker_driver
            and driver != self.linker_driver
        ):
            logger.warning(
                "Link driver changed from '%s' to '%s'", self.linker_driver, driver
            )
        self.linker_driver = driver
        self._linker_driver_rank = rank

    def add_linker_arguments(self, *arguments: str) -> None:
        self.linker_arguments.update(arguments)
