# SPDX-License-Identifier: MIT
"""Layered build settings and $(VAR) expansion.

A SettingsEnvironment is an immutable stack of Levels. Lookups walk the
levels front to back and stop at the first level that defines the name;
pushing a level in front never changes environments created earlier.

Supported syntax in setting values:
- References: $(NAME), ${NAME}, $NAME
- Nested references: $(OBJECT_FILE_DIR_$(CURRENT_VARIANT))
- Escaped dollars: $$ becomes a literal $
- Inheritance: $(inherited), or a setting referring to its own name,
  expands to the value defined by the levels behind the current one
- Operators: $(NAME:base), :dir, :file, :suffix, :lower, :upper,
  :identifier, :rfc1034identifier, :standardizepath, :quote,
  :default=VALUE

Setting keys may carry conditions, e.g. ``OTHER_CFLAGS[arch=arm64]``.
A conditional setting applies only when its patterns (fnmatch style)
match the current architecture, variant, SDK or configuration.
"""

from __future__ import annotations

import logging
import os
import re
import shlex
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from typing import Any

from pbxphase.core.errors import CircularSettingError, SettingsError

logger = logging.getLogger(__name__)

# Condition keys and the settings they are evaluated against
CONDITION_SETTINGS: dict[str, str] = {
    "arch": "CURRENT_ARCH",
    "variant": "CURRENT_VARIANT",
    "sdk": "SDK_NAME",
    "config": "CONFIGURATION",
}

_SETTING_KEY = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)((?:\[[^\]]*\])*)$")
_CONDITION = re.compile(r"\[([A-Za-z_]+)=([^\]]*)\]")
_BARE_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_TRUE_VALUES = frozenset({"YES", "TRUE", "1"})


def format_value(value: Any) -> str:
    """Convert a declared setting value to its string form.

    Lists (as found in project files) are joined with spaces; items
    containing whitespace are double-quoted so they survive splitting.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        parts = []
        for item in value:
            item = str(item)
            if any(ch.isspace() for ch in item) and not item.startswith('"'):
                item = f'"{item}"'
            parts.append(item)
        return " ".join(parts)
    if isinstance(value, bool):
        return "YES" if value else "NO"
    return str(value)


@dataclass(frozen=True)
class Setting:
    """A single named setting, optionally guarded by conditions."""

    name: str
    value: str
    conditions: tuple[tuple[str, str], ...] = ()

    @classmethod
    def parse(cls, key: str, value: Any) -> Setting:
        """Create a setting from a possibly conditional key.

        Args:
            key: Setting name with optional ``[cond=pattern]`` suffixes.
            value: Declared value (string or list of strings).

        Raises:
            SettingsError: If the key is malformed.
        """
        match = _SETTING_KEY.match(key.strip())
        if match is None:
            raise SettingsError(f"invalid setting name: {key!r}")
        conditions = tuple(
            (cond.lower(), pattern) for cond, pattern in _CONDITION.findall(match.group(2))
        )
        return cls(match.group(1), format_value(value), conditions)


@dataclass(frozen=True)
class Level:
    """An immutable group of settings pushed as one layer."""

    settings: tuple[Setting, ...] = ()
    _index: dict[str, tuple[Setting, ...]] = field(
        init=False, repr=False, compare=False, hash=False
    )

    def __post_init__(self) -> None:
        index: dict[str, list[Setting]] = {}
        for setting in self.settings:
            index.setdefault(setting.name, []).append(setting)
        # Most specific (most conditions) first; later definitions win ties
        ordered = {
            name: tuple(
                sorted(
                    reversed(found),
                    key=lambda s: len(s.conditions),
                    reverse=True,
                )
            )
            for name, found in index.items()
        }
        object.__setattr__(self, "_index", ordered)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> Level:
        """Create a level from a ``{key: value}`` mapping."""
        return cls(tuple(Setting.parse(key, value) for key, value in mapping.items()))

    def lookup(self, name: str) -> tuple[Setting, ...]:
        """Return the settings defined for a name, most specific first."""
        return self._index.get(name, ())

    def names(self) -> list[str]:
        return list(self._index)


class SettingsEnvironment:
    """Immutable layered settings lookup.

    Example:
        env = SettingsEnvironment([Level.from_mapping({"A": "1"})])
        env = env.insert_front(Level.from_mapping({"B": "$(A)2"}))
        env.resolve("B")  # "12"
    """

    __slots__ = ("_levels",)

    def __init__(self, levels: Iterable[Level] = ()) -> None:
        self._levels: tuple[Level, ...] = tuple(levels)

    @property
    def levels(self) -> tuple[Level, ...]:
        """Levels, front (highest precedence) first."""
        return self._levels

    def insert_front(self, level: Level) -> SettingsEnvironment:
        """Return a new environment with a level in front of all others."""
        return SettingsEnvironment((level, *self._levels))

    def insert_back(self, level: Level) -> SettingsEnvironment:
        """Return a new environment with a level behind all others."""
        return SettingsEnvironment((*self._levels, level))

    def resolve(self, name: str) -> str:
        """Return the fully expanded value of a setting ("" if undefined)."""
        return self._resolve(name, 0, ())

    def resolve_list(self, name: str) -> list[str]:
        """Return a setting's value split into shell words."""
        return _split(self.resolve(name), name)

    def is_enabled(self, name: str) -> bool:
        """Return True if a boolean setting is set to YES."""
        return self.resolve(name).strip().upper() in _TRUE_VALUES

    def expand(self, template: str) -> str:
        """Expand setting references in an arbitrary string."""
        return self._expand(template, 0, None, ())

    def expand_list(self, template: str) -> list[str]:
        """Expand a template and split the result into shell words."""
        return _split(self.expand(template), template)

    def names(self) -> list[str]:
        """Return every setting name defined in any level, sorted."""
        found: set[str] = set()
        for level in self._levels:
            found.update(level.names())
        return sorted(found)

    def computed_values(self, ignore_errors: bool = False) -> dict[str, str]:
        """Return every defined setting, fully expanded.

        Args:
            ignore_errors: Leave out settings that fail to expand (for
                example ones in a reference cycle) instead of raising.

        Raises:
            SettingsError: If a setting fails to expand and
                ``ignore_errors`` is False.
        """
        if not ignore_errors:
            return {name: self.resolve(name) for name in self.names()}

        values: dict[str, str] = {}
        for name in self.names():
            try:
                values[name] = self.resolve(name)
            except SettingsError as e:
                logger.debug("Leaving out setting %s: %s", name, e.message)
        return values

    def _resolve(
        self, name: str, start: int, chain: tuple[tuple[str, int], ...]
    ) -> str:
        if (name, start) in chain:
            raise CircularSettingError([n for n, _ in chain] + [name])
        chain = (*chain, (name, start))

        for index in range(start, len(self._levels)):
            setting = self._select(self._levels[index], name, chain)
            if setting is not None:
                return self._expand(setting.value, index, name, chain)
        return ""

    def _select(
        self, level: Level, name: str, chain: tuple[tuple[str, int], ...]
    ) -> Setting | None:
        for setting in level.lookup(name):
            if all(
                fnmatchcase(
                    self._resolve(CONDITION_SETTINGS.get(cond, cond.upper()), 0, chain),
                    pattern,
                )
                for cond, pattern in setting.conditions
            ):
                return setting
        return None

    def _expand(
        self,
        template: str,
        index: int,
        owner: str | None,
        chain: tuple[tuple[str, int], ...],
    ) -> str:
        if "$" not in template:
            return template

        out: list[str] = []
        i = 0
        length = len(template)
        while i < length:
            ch = template[i]
            if ch != "$" or i + 1 >= length:
                out.append(ch)
                i += 1
                continue

            nxt = template[i + 1]
            if nxt == "$":
                out.append("$")
                i += 2
            elif nxt in "({":
                end = _matching_close(template, i + 1)
                if end < 0:
                    # Unterminated reference: keep the text as written
                    out.append(template[i:])
                    break
                inner = self._expand(template[i + 2 : end], index, owner, chain)
                out.append(self._reference(inner, index, owner, chain))
                i = end + 1
            else:
                match = _BARE_NAME.match(template, i + 1)
                if match is None:
                    out.append(ch)
                    i += 1
                else:
                    out.append(self._reference(match.group(0), index, owner, chain))
                    i = match.end()

        return "".join(out)

    def _reference(
        self,
        expression: str,
        index: int,
        owner: str | None,
        chain: tuple[tuple[str, int], ...],
    ) -> str:
        name, *operators = expression.split(":")
        if name == "inherited" or name == owner:
            value = self._resolve(owner, index + 1, chain) if owner else ""
        else:
            value = self._resolve(name, 0, chain)

        for operator in operators:
            value = _apply_operator(operator, value)
        return value

    def __repr__(self) -> str:
        return f"SettingsEnvironment(levels={len(self._levels)})"


def _matching_close(text: str, open_index: int) -> int:
    """Return the index of the bracket closing text[open_index], or -1."""
    opener = text[open_index]
    closer = ")" if opener == "(" else "}"
    depth = 0
    for i in range(open_index, len(text)):
        if text[i] == opener:
            depth += 1
        elif text[i] == closer:
            depth -= 1
            if depth == 0:
                return i
    return -1


def _apply_operator(operator: str, value: str) -> str:
    if operator.startswith("default="):
        return value or operator[len("default=") :]
    if operator == "base":
        return os.path.splitext(os.path.basename(value))[0]
    if operator == "dir":
        return os.path.dirname(value)
    if operator == "file":
        return os.path.basename(value)
    if operator == "suffix":
        return os.path.splitext(value)[1]
    if operator == "lower":
        return value.lower()
    if operator == "upper":
        return value.upper()
    if operator == "identifier":
        ident = re.sub(r"[^A-Za-z0-9_]", "_", value)
        return f"_{ident}" if ident[:1].isdigit() else ident
    if operator == "rfc1034identifier":
        return re.sub(r"[^A-Za-z0-9.-]", "-", value)
    if operator == "standardizepath":
        return os.path.normpath(value) if value else value
    if operator == "quote":
        return re.sub(r"([\s\\'\"])", r"\\\1", value)

    logger.debug("Ignoring unknown setting operator '%s'", operator)
    return value


def _split(value: str, source: str) -> list[str]:
    try:
        return shlex.split(value)
    except ValueError as e:
        raise SettingsError(f"cannot split {source!r}: {e}") from e
