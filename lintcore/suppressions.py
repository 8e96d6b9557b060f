"""
Suppression system for lint findings.

Source files can silence findings with comments:

    // ignore: unsafe_html
    foo.src = url;               // ignore: unsafe_html, prefer_*
    // ignore_for_file: prefer_double_literals

An ``ignore`` comment covers its own line and the line after it; an
``ignore_for_file`` comment covers the whole file. Names may be globs.
"""

import fnmatch
import re
from typing import Dict, List, Set, Tuple

from .types import Finding

_IGNORE = re.compile(r'//\s*ignore:\s*([^\n]+)')
_IGNORE_FOR_FILE = re.compile(r'//\s*ignore_for_file:\s*([^\n]+)')
_VALID_NAME = re.compile(r'^[A-Za-z0-9_.*?\[\]-]+$')


def _split_names(raw: str) -> Set[str]:
    names = set()
    for name in raw.split(','):
        name = name.strip()
        if name:
            names.add(name)
    return names


class SuppressionParser:
    """Parser for ignore comments."""

    def __init__(self, text: str):
        self.text = text
        self.lines = text.split('\n')
        self._parse_suppressions()

    def _parse_suppressions(self):
        """Parse all suppression comments in the text."""
        self.line_suppressions: Dict[int, Set[str]] = {}  # line_number -> {rule_patterns}
        self.file_suppressions: Set[str] = set()

        for line_num, line in enumerate(self.lines, 1):
            for match in _IGNORE_FOR_FILE.finditer(line):
                self.file_suppressions.update(_split_names(match.group(1)))
            for match in _IGNORE.finditer(line):
                patterns = _split_names(match.group(1))
                for covered in (line_num, line_num + 1):
                    self.line_suppressions.setdefault(covered, set()).update(patterns)

    def is_suppressed(self, rule_name: str, line_num: int) -> bool:
        """Check if a finding of ``rule_name`` on ``line_num`` should be dropped."""
        if any(fnmatch.fnmatch(rule_name, pattern) for pattern in self.file_suppressions):
            return True
        patterns = self.line_suppressions.get(line_num, ())
        return any(fnmatch.fnmatch(rule_name, pattern) for pattern in patterns)

    def get_suppression_stats(self) -> Dict[str, int]:
        """Get statistics about suppressions in the file."""
        return {
            "suppressed_lines": len(self.line_suppressions),
            "file_suppressions": len(self.file_suppressions),
        }

    def filter_findings(self, findings: List[Finding]) -> List[Finding]:
        return [finding for finding in findings
                if not self.is_suppressed(finding.rule, finding.line)]


def validate_suppression_patterns(text: str) -> List[Tuple[int, str]]:
    """
    Validate suppression comments in text and return any errors.

    Returns:
        List of (line_number, error_message) tuples
    """
    errors = []
    for line_num, line in enumerate(text.split('\n'), 1):
        for pattern in (_IGNORE_FOR_FILE, _IGNORE):
            for match in pattern.finditer(line):
                names = [name.strip() for name in match.group(1).split(',')]
                if not any(names):
                    errors.append((line_num, "Empty suppression list"))
                for name in names:
                    if name and not _VALID_NAME.match(name):
                        errors.append((line_num, f"Invalid rule name '{name}'"))
    return errors
