# SPDX-License-Identifier: MIT
"""Header, framework and library search paths for a target."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pbxphase.tools.tool_context import absolute_path

if TYPE_CHECKING:
    from pbxphase.core.settings import SettingsEnvironment

# Paths ending in this suffix include every directory below them
RECURSIVE_SUFFIX = "/**"


def _walk_directories(root: str) -> list[str]:
    """Return root and all its subdirectories, in sorted walk order."""
    found: list[str] = []
    for dirpath, dirnames, _ in os.walk(root):
        dirnames.sort()
        found.append(dirpath)
    return found or [root]


def _expand_paths(
    environment: SettingsEnvironment, working_directory: str, setting: str
) -> list[str]:
    paths: list[str] = []
    for entry in environment.resolve_list(setting):
        recursive = entry.endswith(RECURSIVE_SUFFIX)
        if recursive:
            entry = entry[: -len(RECURSIVE_SUFFIX)]
        path = absolute_path(entry, working_directory)
        candidates = _walk_directories(path) if recursive else [path]
        for candidate in candidates:
            if candidate not in paths:
                paths.append(candidate)
    return paths


@dataclass(frozen=True)
class SearchPaths:
    """Search directories computed once per resolution pass.

    Attributes:
        header_search_paths: Passed to the compiler with -I.
        user_header_search_paths: Passed with -iquote.
        framework_search_paths: Passed with -F.
        library_search_paths: Directories for the linker's -L flags. Sources
            phase invocations do not use them; the link step that consumes
            the compiled objects does.
    """

    header_search_paths: tuple[str, ...] = ()
    user_header_search_paths: tuple[str, ...] = ()
    framework_search_paths: tuple[str, ...] = ()
    library_search_paths: tuple[str, ...] = ()

    @classmethod
    def create(
        cls, working_directory: str, environment: SettingsEnvironment
    ) -> SearchPaths:
        """Compute search paths from the target's settings.

        Relative entries are taken relative to ``working_directory``.
        The built products directory is searched for frameworks and
        libraries ahead of declared paths, and for headers (in its
        ``include`` subdirectory) behind them.
        """
        header = _expand_paths(environment, working_directory, "HEADER_SEARCH_PATHS")
        user_header = _expand_paths(
            environment, working_directory, "USER_HEADER_SEARCH_PATHS"
        )
        framework = _expand_paths(
            environment, working_directory, "FRAMEWORK_SEARCH_PATHS"
        )
        library = _expand_paths(environment, working_directory, "LIBRARY_SEARCH_PATHS")

        built_products = environment.resolve("BUILT_PRODUCTS_DIR")
        if built_products:
            built_products = absolute_path(built_products, working_directory)
            header.append(os.path.join(built_products, "include"))
            framework.insert(0, built_products)
            library.insert(0, built_products)

        return cls(
            header_search_paths=tuple(header),
            user_header_search_paths=tuple(user_header),
            framework_search_paths=tuple(framework),
            library_search_paths=tuple(library),
        )
