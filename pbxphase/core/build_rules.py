# SPDX-License-Identifier: MIT
"""Build rules: which strategy processes which file.

A BuildRule maps a file type (or a set of file name patterns) to either
a tool or a shell script. A target's own rules are consulted before the
default rules; the first matching rule wins.

Matching produces a RuleMatch, a tagged value with one of four kinds:

- RuleKind.COMPILER: a C-family compiler tool; handled by the
  compilation strategy.
- RuleKind.TOOL: any other tool; handled by the generic tool strategy.
- RuleKind.SCRIPT: a rule with a non-empty script body.
- RuleKind.NONE: nothing to run for this file.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from fnmatch import fnmatchcase
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pbxphase.core.file_types import FileTypeRegistry, ResolvedFile
    from pbxphase.core.model import BuildRuleDefinition
    from pbxphase.tools.specs import SpecRegistry, ToolSpec

logger = logging.getLogger(__name__)

PATTERN_PROXY = "pattern.proxy"
SCRIPT_PROXY_IDENTIFIER = "com.apple.compilers.proxy.script"

# Tool identifiers dispatched to the compilation strategy
COMPILER_FAMILY: frozenset[str] = frozenset(
    {
        "com.apple.compilers.gcc",
        "com.apple.compilers.llvm.clang.1_0",
    }
)


@dataclass(frozen=True)
class BuildRule:
    """A resolved build rule.

    Attributes:
        file_type: File type identifier the rule applies to, or PATTERN_PROXY.
        tool: Tool that processes matching files (None for script rules).
        script: Shell script body (empty for tool rules).
        file_patterns: fnmatch patterns for PATTERN_PROXY rules.
        output_files: Output path templates of script rules.
    """

    file_type: str
    tool: ToolSpec | None = None
    script: str = ""
    file_patterns: tuple[str, ...] = ()
    output_files: tuple[str, ...] = ()

    def matches(self, file: ResolvedFile, file_types: FileTypeRegistry) -> bool:
        if self.file_type == PATTERN_PROXY:
            return any(fnmatchcase(file.name, pattern) for pattern in self.file_patterns)
        return file_types.conforms_to(file.file_type, self.file_type)


class RuleKind(Enum):
    COMPILER = "compiler"
    TOOL = "tool"
    SCRIPT = "script"
    NONE = "none"


@dataclass(frozen=True)
class RuleMatch:
    """Outcome of build rule matching for one file.

    ``rule`` is None only for a file no rule matched; a matched rule that
    has neither a tool nor a script is also of kind NONE but keeps its
    rule, so callers can tell the two apart.
    """

    kind: RuleKind
    rule: BuildRule | None = None

    @property
    def tool(self) -> ToolSpec | None:
        return self.rule.tool if self.rule is not None else None

    @classmethod
    def classify(cls, rule: BuildRule | None) -> RuleMatch:
        if rule is None:
            return cls(RuleKind.NONE)
        if rule.tool is not None:
            if rule.tool.identifier in COMPILER_FAMILY:
                return cls(RuleKind.COMPILER, rule)
            return cls(RuleKind.TOOL, rule)
        if rule.script:
            return cls(RuleKind.SCRIPT, rule)
        return cls(RuleKind.NONE, rule)


class TargetBuildRules:
    """The ordered build rules in effect for one target."""

    def __init__(self, rules: Iterable[BuildRule], file_types: FileTypeRegistry) -> None:
        self._rules = list(rules)
        self._file_types = file_types

    @property
    def rules(self) -> list[BuildRule]:
        return list(self._rules)

    @classmethod
    def create(
        cls,
        definitions: Iterable[BuildRuleDefinition],
        default_rules: Iterable[BuildRule],
        specs: SpecRegistry,
        file_types: FileTypeRegistry,
    ) -> TargetBuildRules:
        """Build the rule table for a target.

        Declared rules come first, in declaration order, followed by the
        defaults. A declared rule naming an unknown tool is skipped with a
        warning.
        """
        rules: list[BuildRule] = []
        for definition in definitions:
            rule = _rule_from_definition(definition, specs)
            if rule is not None:
                rules.append(rule)
        rules.extend(default_rules)
        return cls(rules, file_types)

    def resolve(self, file: ResolvedFile) -> BuildRule | None:
        """Return the first rule matching a file, or None."""
        for rule in self._rules:
            if rule.matches(file, self._file_types):
                return rule
        return None

    def match(self, file: ResolvedFile) -> RuleMatch:
        return RuleMatch.classify(self.resolve(file))


def _rule_from_definition(
    definition: BuildRuleDefinition, specs: SpecRegistry
) -> BuildRule | None:
    patterns = tuple(definition.file_patterns.split())
    if definition.compiler_spec == SCRIPT_PROXY_IDENTIFIER:
        return BuildRule(
            definition.file_type,
            script=definition.script,
            file_patterns=patterns,
            output_files=definition.output_files,
        )

    tool = specs.find(definition.compiler_spec)
    if tool is None:
        logger.warning(
            "Ignoring build rule for '%s': unknown tool '%s'",
            definition.file_type,
            definition.compiler_spec,
        )
        return None
    return BuildRule(definition.file_type, tool=tool, file_patterns=patterns)
