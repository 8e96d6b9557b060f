"""
Runner for the lintcore engine.

Ties the pieces together for each file: a fresh reporter and node registry,
one traversal, suppression filtering, and the output formats.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .config import EngineConfig, get_default_config
from .dispatch import traverse
from .models import FindingModel, HandlerFailureModel, MetricsModel, ReportModel, RuleTimingModel
from .registry import build_node_registry, get_catalog, validate_rules
from .reporter import DiagnosticReporter
from .suppressions import SuppressionParser, validate_suppression_patterns
from .syntax import SyntaxTree
from .type_query import TypeQuery
from .types import Finding, HandlerFailure, Rule, RuleContext

logger = logging.getLogger(__name__)

# Current protocol version
PROTOCOL_VERSION = "1"
ENGINE_VERSION = "0.1.0"

DEFAULT_RULE_PACKAGES = ["lintrules"]


@dataclass
class AnalysisResult:
    """Outcome of analyzing one file."""
    file_path: str
    findings: List[Finding] = field(default_factory=list)
    failures: List[HandlerFailure] = field(default_factory=list)
    timing: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    elapsed_ms: float = 0.0
    suppressed: int = 0
    suppression_stats: Dict[str, int] = field(default_factory=dict)
    duplicates: int = 0


def load_rules(config: Optional[EngineConfig] = None,
               packages: Optional[List[str]] = None) -> List[Rule]:
    """Discover the rule catalog and return the rules the config enables."""
    config = config or get_default_config()
    catalog = get_catalog()
    discovered = catalog.discover_rules(packages or DEFAULT_RULE_PACKAGES)
    if discovered:
        logger.info(f"Discovered {discovered} rules: {catalog.get_rule_names()}")
    return catalog.get_enabled_rules(config.enabled_rules, config.disabled_rules)


def analyze_tree(tree: SyntaxTree, rules: Sequence[Rule],
                 config: Optional[EngineConfig] = None) -> AnalysisResult:
    """Run ``rules`` over one resolved tree."""
    validate_rules(rules)
    return _analyze(tree, rules, config or get_default_config(), TypeQuery())


def analyze_trees(trees: Iterable[SyntaxTree], rules: Sequence[Rule],
                  config: Optional[EngineConfig] = None) -> List[AnalysisResult]:
    """Run ``rules`` over several files.

    The rule set is validated once, before any file is analyzed. Each file
    gets its own node registry and finding collection.
    """
    config = config or get_default_config()
    validate_rules(rules)
    logger.info(f"Running {len(rules)} rules: {[rule.meta.name for rule in rules]}")

    types = TypeQuery()
    return [_analyze(tree, rules, config, types) for tree in trees]


def _analyze(tree: SyntaxTree, rules: Sequence[Rule], config: EngineConfig,
             types: TypeQuery) -> AnalysisResult:
    start_time = time.perf_counter()

    reporter = DiagnosticReporter(
        tree,
        strict=config.strict,
        severity_overrides=config.rule_severities,
        max_findings=config.max_findings_per_file,
    )
    context = RuleContext(
        file_path=tree.file_path,
        tree=tree,
        types=types,
        reporter=reporter,
        config=config.rule_configs,
    )
    registry = build_node_registry(rules, context)

    timing = {} if config.collect_timing else None
    failures = traverse(tree, registry, strict=config.strict, timing=timing)

    findings = reporter.findings
    suppressed = 0
    suppression_stats: Dict[str, int] = {}
    if config.honor_suppressions and tree.text:
        for line, error in validate_suppression_patterns(tree.text):
            logger.warning(f"{tree.file_path}:{line}: {error}")
        parser = SuppressionParser(tree.text)
        suppression_stats = parser.get_suppression_stats()
        kept = parser.filter_findings(findings)
        suppressed = len(findings) - len(kept)
        findings = kept

    if reporter.dropped:
        logger.info(f"{tree.file_path}: dropped {reporter.dropped} findings over the per-file limit")

    return AnalysisResult(
        file_path=tree.file_path,
        findings=findings,
        failures=failures,
        timing=timing or {},
        elapsed_ms=(time.perf_counter() - start_time) * 1000,
        suppressed=suppressed,
        suppression_stats=suppression_stats,
        duplicates=reporter.duplicates,
    )


def build_report(results: Sequence[AnalysisResult], rules_count: int) -> ReportModel:
    """Collect per-file results into the protocol report model."""
    rule_timing: Dict[str, RuleTimingModel] = {}
    for result in results:
        for rule_name, entry in result.timing.items():
            model = rule_timing.setdefault(rule_name, RuleTimingModel())
            model.total_ms += entry["total_ms"]
            model.call_count += entry["call_count"]

    return ReportModel(
        protocol=PROTOCOL_VERSION,
        engine_version=ENGINE_VERSION,
        files_scanned=len(results),
        rules_run=rules_count,
        findings=[FindingModel.from_finding(f) for result in results for f in result.findings],
        failures=[HandlerFailureModel.from_failure(f) for result in results for f in result.failures],
        metrics=MetricsModel(
            total_ms=sum(result.elapsed_ms for result in results),
            rules=rule_timing,
        ),
    )


def format_output(results: Sequence[AnalysisResult], format_type: str = "text",
                  rules_count: int = 0) -> str:
    """Format output according to specified format."""
    if format_type == "json":
        return build_report(results, rules_count).model_dump_json(indent=2)

    elif format_type == "text":
        lines = []
        for result in results:
            lines.extend(finding.render() for finding in result.findings)
        return "\n".join(lines)

    else:
        raise ValueError(f"Unknown format: {format_type}")
