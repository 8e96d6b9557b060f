"""
Tests for diagnostic kinds and the deduplicating reporter.
"""

import pytest

from lintcore.errors import DiagnosticArgumentError, UndeclaredDiagnosticError
from lintcore.reporter import DiagnosticReporter, rule_name_of
from lintcore.syntax import CompilationUnit, IntegerLiteral, SyntaxTree
from lintcore.types import MISSING_ARGUMENT, DiagnosticKind, Group, RuleMeta

METHOD_CODE = DiagnosticKind(
    name="sample",
    id="sample.method",
    template="calling the '{0}' method of {1}.",
    severity="warn",
)
PLAIN_CODE = DiagnosticKind(name="sample", id="sample.plain", template="no arguments here.")
OTHER_CODE = DiagnosticKind(name="other", id="other.code", template="other.")

SAMPLE_META = RuleMeta(name="sample", description="Sample.", group=Group.ERRORS,
                       codes=(METHOD_CODE, PLAIN_CODE))


class TestDiagnosticKind:
    """Test message templates."""

    def test_arity(self):
        assert METHOD_CODE.arity == 2
        assert PLAIN_CODE.arity == 0

    def test_repeated_placeholder_counts_once(self):
        code = DiagnosticKind("r", "r.id", "{0} and {0} again")
        assert code.arity == 1
        assert code.is_well_formed()

    def test_gap_in_placeholders_is_malformed(self):
        code = DiagnosticKind("r", "r.id", "{0} then {2}")
        assert code.arity == 3
        assert not code.is_well_formed()

    def test_format(self):
        assert METHOD_CODE.format(["open", "Window"]) == "calling the 'open' method of Window."

    def test_format_missing_argument(self):
        assert METHOD_CODE.format(["open"]) == f"calling the 'open' method of {MISSING_ARGUMENT}."


class TestDiagnosticReporter:
    """Test reporting, deduplication and location."""

    def setup_method(self):
        self.first = IntegerLiteral(span=(4, 5), lexeme="1", value=1)
        self.second = IntegerLiteral(span=(10, 12), lexeme="22", value=22)
        root = CompilationUnit(span=(0, 20), declarations=(self.first, self.second))
        self.tree = SyntaxTree(root, file_path="lib/a.dart", text="var\n a = 1;\nb = 22;\n")

    def make_reporter(self, **kwargs):
        reporter = DiagnosticReporter(self.tree, **kwargs)
        reporter.declare(SAMPLE_META)
        return reporter

    def test_report_builds_located_finding(self):
        reporter = self.make_reporter()
        finding = reporter.report("sample", self.first, METHOD_CODE, ["open", "Window"])

        assert finding.rule == "sample"
        assert finding.code is METHOD_CODE
        assert finding.file == "lib/a.dart"
        assert (finding.start_byte, finding.end_byte) == (4, 5)
        assert finding.arguments == ("open", "Window")
        assert finding.severity == "warn"
        assert finding.message == "calling the 'open' method of Window."
        assert (finding.line, finding.column) == (2, 1)
        assert finding.render() == ("sample: warn: calling the 'open' method of Window. "
                                    "@ lib/a.dart:2:1")

    def test_same_rule_kind_and_span_reported_once(self):
        reporter = self.make_reporter()
        assert reporter.report("sample", self.first, PLAIN_CODE) is not None
        assert reporter.report("sample", self.first, PLAIN_CODE) is None

        assert len(reporter) == 1
        assert reporter.duplicates == 1

    def test_duplicate_check_ignores_arguments(self):
        reporter = self.make_reporter()
        reporter.report("sample", self.first, METHOD_CODE, ["open", "Window"])
        reporter.report("sample", self.first, METHOD_CODE, ["setInnerHtml", "Element"])

        assert [f.arguments for f in reporter.findings] == [("open", "Window")]

    def test_different_kind_or_span_is_not_duplicate(self):
        reporter = self.make_reporter()
        reporter.report("sample", self.first, PLAIN_CODE)
        reporter.report("sample", self.first, METHOD_CODE, ["a", "b"])
        reporter.report("sample", self.second, PLAIN_CODE)

        assert len(reporter) == 3

    def test_same_span_from_another_rule_is_not_duplicate(self):
        reporter = self.make_reporter()
        reporter.report("sample", self.first, PLAIN_CODE)
        reporter.report("other", self.first, OTHER_CODE)

        assert [f.rule for f in reporter.findings] == ["sample", "other"]

    def test_findings_are_in_emission_order(self):
        reporter = self.make_reporter()
        reporter.report("sample", self.second, PLAIN_CODE)
        reporter.report("sample", self.first, PLAIN_CODE)

        assert [f.start_byte for f in reporter.findings] == [10, 4]

    def test_findings_returns_copy(self):
        reporter = self.make_reporter()
        reporter.report("sample", self.first, PLAIN_CODE)
        reporter.findings.clear()

        assert len(reporter) == 1

    def test_missing_argument_renders_marker(self):
        reporter = self.make_reporter()
        finding = reporter.report("sample", self.first, METHOD_CODE, ["open"])

        assert finding.message == f"calling the 'open' method of {MISSING_ARGUMENT}."

    def test_extra_arguments_are_ignored(self):
        reporter = self.make_reporter()
        finding = reporter.report("sample", self.first, PLAIN_CODE, ["unused"])

        assert finding.message == "no arguments here."

    def test_strict_mode_rejects_argument_mismatch(self):
        reporter = self.make_reporter(strict=True)

        with pytest.raises(DiagnosticArgumentError) as exc_info:
            reporter.report("sample", self.first, METHOD_CODE, ["open"])

        assert exc_info.value.expected == 2
        assert exc_info.value.actual == 1
        assert len(reporter) == 0

    def test_strict_mode_rejects_undeclared_kind(self):
        reporter = self.make_reporter(strict=True)

        with pytest.raises(UndeclaredDiagnosticError):
            reporter.report("sample", self.first, OTHER_CODE)

    def test_undeclared_kind_is_kept_outside_strict_mode(self):
        reporter = self.make_reporter()
        assert reporter.report("sample", self.first, OTHER_CODE) is not None

    def test_severity_override(self):
        reporter = self.make_reporter(severity_overrides={"sample": "error"})
        finding = reporter.report("sample", self.first, PLAIN_CODE)

        assert finding.severity == "error"
        assert finding.code.severity == "info"

    def test_max_findings(self):
        reporter = self.make_reporter(max_findings=1)
        reporter.report("sample", self.first, PLAIN_CODE)
        assert reporter.report("sample", self.second, PLAIN_CODE) is None

        assert len(reporter) == 1
        assert reporter.dropped == 1

    def test_rule_name_of(self):
        class Holder:
            meta = SAMPLE_META

        assert rule_name_of("sample") == "sample"
        assert rule_name_of(SAMPLE_META) == "sample"
        assert rule_name_of(Holder()) == "sample"
