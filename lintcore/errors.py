"""
Exception types for the lintcore engine.

Resolution gaps are never errors; rules handle them through their own
unknown-type policy. Everything here signals a programming or setup mistake.
"""


class LintEngineError(Exception):
    """Base class for all engine errors."""


class RuleRegistrationError(LintEngineError):
    """A rule set failed validation while the registry was being built."""


class RegistryFrozenError(LintEngineError):
    """A node processor was added after the registry was frozen."""


class ConfigError(LintEngineError):
    """The configuration file could not be read or is invalid."""


class RuleProgrammingError(LintEngineError):
    """A rule reported a diagnostic incorrectly."""


class DiagnosticArgumentError(RuleProgrammingError):
    """The arguments passed to report() do not match the message template."""

    def __init__(self, code_id: str, expected: int, actual: int):
        self.code_id = code_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Diagnostic '{code_id}' expects {expected} argument(s), got {actual}"
        )


class UndeclaredDiagnosticError(RuleProgrammingError):
    """A rule reported a diagnostic kind it does not declare."""

    def __init__(self, rule_name: str, code_id: str):
        self.rule_name = rule_name
        self.code_id = code_id
        super().__init__(f"Rule '{rule_name}' reported undeclared diagnostic '{code_id}'")
