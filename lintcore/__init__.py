"""
lintcore engine package.

This package provides a node-dispatch lint engine: many independently
authored rules share one traversal of a resolved syntax tree.
"""

from .types import (
    DiagnosticKind, Finding, Group, HandlerFailure, Rule, RuleContext, RuleMeta,
    Severity, Tristate, MISSING_ARGUMENT,
)

from .errors import (
    LintEngineError, RuleRegistrationError, RegistryFrozenError, ConfigError,
    RuleProgrammingError, DiagnosticArgumentError, UndeclaredDiagnosticError,
)

from .syntax import NodeKind, SyntaxNode, SyntaxTree

from .type_query import TypeQuery

from .registry import (
    NodeLintRegistry, RuleCatalog, validate_rules, build_node_registry,
    register_rule, get_rule, get_all_rules, get_enabled_rules, get_rule_codes,
    discover_rules, clear,
)

from .reporter import DiagnosticReporter

from .dispatch import traverse

from .config import (
    EngineConfig, EngineSettings, load_config, get_default_config, save_config,
    find_config_file, resolve_config, get_rule_severity,
)

from .runner import AnalysisResult, analyze_tree, analyze_trees, load_rules, format_output

__all__ = [
    # Types
    "DiagnosticKind", "Finding", "Group", "HandlerFailure", "Rule", "RuleContext",
    "RuleMeta", "Severity", "Tristate", "MISSING_ARGUMENT",

    # Errors
    "LintEngineError", "RuleRegistrationError", "RegistryFrozenError", "ConfigError",
    "RuleProgrammingError", "DiagnosticArgumentError", "UndeclaredDiagnosticError",

    # Model
    "NodeKind", "SyntaxNode", "SyntaxTree", "TypeQuery",

    # Registry
    "NodeLintRegistry", "RuleCatalog", "validate_rules", "build_node_registry",
    "register_rule", "get_rule", "get_all_rules", "get_enabled_rules", "get_rule_codes",
    "discover_rules", "clear",

    # Reporting and dispatch
    "DiagnosticReporter", "traverse",

    # Config
    "EngineConfig", "EngineSettings", "load_config", "get_default_config", "save_config",
    "find_config_file", "resolve_config", "get_rule_severity",

    # Runner
    "AnalysisResult", "analyze_tree", "analyze_trees", "load_rules", "format_output",
]
