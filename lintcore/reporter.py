"""
Diagnostic reporter.

Rules report through a reporter scoped to one file's traversal. The reporter
renders the message, locates it in the file and suppresses duplicates: a
(rule, diagnostic kind, span) triple is recorded at most once per run.
"""

import logging
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

from .errors import DiagnosticArgumentError, UndeclaredDiagnosticError
from .types import DiagnosticKind, Finding, RuleMeta

logger = logging.getLogger(__name__)


def rule_name_of(rule: Any) -> str:
    """Accept a rule, its RuleMeta or a bare name."""
    if isinstance(rule, str):
        return rule
    if isinstance(rule, RuleMeta):
        return rule.name
    return rule.meta.name


class DiagnosticReporter:
    """Append-only, deduplicated collection of findings for one file."""

    def __init__(self, tree, strict: bool = False,
                 severity_overrides: Optional[Dict[str, str]] = None,
                 max_findings: Optional[int] = None):
        """
        Args:
            tree: SyntaxTree the findings are located in
            strict: Raise on rule programming errors instead of degrading
            severity_overrides: rule name -> severity
            max_findings: Stop recording after this many findings (None = no limit)
        """
        self.tree = tree
        self.strict = strict
        self.severity_overrides = severity_overrides or {}
        self.max_findings = max_findings
        self._findings: List[Finding] = []
        self._seen: Set[Tuple[str, str, int, int]] = set()
        self._declared: Dict[str, FrozenSet[str]] = {}
        self.duplicates = 0
        self.dropped = 0

    def declare(self, meta: RuleMeta) -> None:
        """Record the diagnostic vocabulary of a rule taking part in this run."""
        self._declared[meta.name] = frozenset(meta.code_ids)

    def report(self, rule: Any, node, code: DiagnosticKind,
               arguments: Sequence[Any] = ()) -> Optional[Finding]:
        """Report a finding anchored at ``node``.

        Returns the new Finding, or None if it was a duplicate or the per-file
        limit has been reached.
        """
        rule_name = rule_name_of(rule)
        arguments = tuple(arguments)

        if len(arguments) != code.arity:
            if self.strict:
                raise DiagnosticArgumentError(code.id, code.arity, len(arguments))
            logger.debug(f"Rule '{rule_name}' passed {len(arguments)} argument(s) to "
                         f"'{code.id}' which expects {code.arity}")

        if self.strict:
            declared = self._declared.get(rule_name)
            if declared is not None and code.id not in declared:
                raise UndeclaredDiagnosticError(rule_name, code.id)

        start_byte, end_byte = node.span
        key = (rule_name, code.id, start_byte, end_byte)
        if key in self._seen:
            self.duplicates += 1
            return None

        if self.max_findings is not None and len(self._findings) >= self.max_findings:
            self.dropped += 1
            return None

        line, column = self.tree.line_col(start_byte)
        finding = Finding(
            rule=rule_name,
            code=code,
            file=self.tree.file_path,
            start_byte=start_byte,
            end_byte=end_byte,
            arguments=arguments,
            severity=self.severity_overrides.get(rule_name, code.severity),
            message=code.format(arguments),
            line=line,
            column=column,
        )
        self._seen.add(key)
        self._findings.append(finding)
        return finding

    @property
    def findings(self) -> List[Finding]:
        """Findings in emission order."""
        return self._findings.copy()

    def __len__(self):
        return len(self._findings)
