"""
Core types for the lintcore engine.

This module provides the shared dataclasses used across the engine and the
rule catalog: rule metadata, diagnostic kinds, findings and the three-valued
classification result.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Literal, Optional, Protocol, Sequence, Tuple


# Type aliases for clarity
Severity = Literal["info", "warn", "error"]
NodeRange = Tuple[int, int]  # (start_byte, end_byte) 0-based

MISSING_ARGUMENT = "<missing>"

_PLACEHOLDER = re.compile(r"\{(\d+)\}")


class Group(str, Enum):
    """Severity group a rule belongs to."""
    ERRORS = "errors"
    STYLE = "style"


class Tristate(str, Enum):
    """Result of a classification query that may not be decidable."""
    MATCH = "match"
    NO_MATCH = "no_match"
    UNKNOWN = "unknown"

    @classmethod
    def of(cls, value: bool) -> "Tristate":
        return cls.MATCH if value else cls.NO_MATCH


@dataclass(frozen=True)
class DiagnosticKind:
    """A named, templated category of finding.

    Attributes:
        name: Name of the rule that owns this kind
        id: Stable unique identifier (e.g., "LintCode.unsafe_html_method")
        template: Message with ordered placeholders ``{0}``, ``{1}``, ...
        severity: Default severity of findings of this kind
        correction: Optional hint telling the user how to fix the issue
    """
    name: str
    id: str
    template: str
    severity: Severity = "info"
    correction: Optional[str] = None

    @property
    def placeholder_indexes(self) -> List[int]:
        return sorted({int(m.group(1)) for m in _PLACEHOLDER.finditer(self.template)})

    @property
    def arity(self) -> int:
        """Number of arguments the template expects."""
        indexes = self.placeholder_indexes
        return indexes[-1] + 1 if indexes else 0

    def is_well_formed(self) -> bool:
        """Placeholders must be exactly 0..n-1 with no gaps."""
        return self.placeholder_indexes == list(range(self.arity))

    def format(self, arguments: Sequence[Any]) -> str:
        """Substitute arguments into the template.

        Placeholders without a matching argument render as MISSING_ARGUMENT.
        """
        def substitute(match):
            index = int(match.group(1))
            if index < len(arguments):
                return str(arguments[index])
            return MISSING_ARGUMENT

        return _PLACEHOLDER.sub(substitute, self.template)


@dataclass(frozen=True)
class RuleMeta:
    """Metadata about a rule.

    Attributes:
        name: Unique, stable rule name (e.g., "unsafe_html")
        description: One-line description
        group: Severity group
        codes: Every diagnostic kind the rule can emit
        details: Long description with examples
    """
    name: str
    description: str
    group: Group
    codes: Tuple[DiagnosticKind, ...] = ()
    details: str = ""

    def __post_init__(self):
        if not isinstance(self.codes, tuple):
            object.__setattr__(self, 'codes', tuple(self.codes))

    @property
    def code_ids(self) -> Tuple[str, ...]:
        return tuple(code.id for code in self.codes)


@dataclass(frozen=True)
class Finding:
    """A finding represents one reported diagnostic instance."""
    rule: str
    code: DiagnosticKind
    file: str
    start_byte: int
    end_byte: int
    arguments: Tuple[Any, ...] = ()
    severity: Severity = "info"
    message: str = ""
    line: int = 1
    column: int = 1

    @property
    def key(self) -> Tuple[str, str, int, int]:
        """Identity used for deduplication: (rule, kind, span)."""
        return (self.rule, self.code.id, self.start_byte, self.end_byte)

    def render(self) -> str:
        return f"{self.rule}: {self.severity}: {self.message} @ {self.file}:{self.line}:{self.column}"


@dataclass(frozen=True)
class HandlerFailure:
    """A rule handler raised while processing a node."""
    rule: str
    node_kind: str
    file: str
    start_byte: int
    end_byte: int
    error: str


@dataclass
class RuleContext:
    """Per-file context handed to rules when they register node processors."""
    file_path: str
    tree: Any
    types: 'TypeQuery'  # Forward reference
    reporter: 'DiagnosticReporter'  # Forward reference
    config: Dict[str, Any] = field(default_factory=dict)

    def report(self, rule: 'Rule', node: Any, code: DiagnosticKind,
               arguments: Sequence[Any] = ()) -> Optional[Finding]:
        """Shortcut for reporter.report()."""
        return self.reporter.report(rule, node, code, arguments)


NodeHandler = Callable[[Any], None]


class NodeLintRegistrar(Protocol):
    """The part of the node registry rules see while registering."""

    def add(self, kind: Any, rule: 'Rule', handler: NodeHandler) -> None:
        ...


class Rule(Protocol):
    """Protocol for all rules in the engine.

    Rules hold no cross-node state. They register handlers for the node kinds
    they care about and report through the context.
    """
    meta: RuleMeta

    def register_node_processors(self, registry: NodeLintRegistrar, context: RuleContext) -> None:
        """Register per-node-kind handlers for one file's traversal."""
        ...
