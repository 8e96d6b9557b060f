"""
Registries for rules and node processors.

Two levels live here:

* RuleCatalog: the process-wide set of known rules, filled by explicit
  registration or by discovering packages that expose a ``RULES`` list.
* NodeLintRegistry: the per-traversal mapping from node kind to the ordered
  (rule, handler) pairs registered for it. It is built once per file from an
  explicit rule list and frozen before the traversal starts.
"""

import fnmatch
import importlib
import logging
import pkgutil
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .errors import RegistryFrozenError, RuleRegistrationError
from .reporter import rule_name_of
from .syntax import NodeKind
from .types import DiagnosticKind, NodeHandler, Rule, RuleContext, RuleMeta

logger = logging.getLogger(__name__)

NodeProcessor = Tuple[Rule, NodeHandler]


class NodeLintRegistry:
    """Node kind -> ordered list of (rule, handler) pairs."""

    def __init__(self, rules: Optional[Sequence[Rule]] = None):
        self._processors: Dict[NodeKind, List[NodeProcessor]] = {}
        self._allowed = None if rules is None else {rule_name_of(rule) for rule in rules}
        self._frozen = False

    def add(self, kind, rule: Rule, handler: NodeHandler) -> None:
        """Append a handler for ``kind``; handlers run in registration order."""
        if self._frozen:
            raise RegistryFrozenError(
                f"Rule '{rule_name_of(rule)}' tried to register after the registry was frozen")
        try:
            kind = NodeKind(kind)
        except ValueError:
            raise RuleRegistrationError(
                f"Rule '{rule_name_of(rule)}' registered for unknown node kind {kind!r}") from None
        if not callable(handler):
            raise RuleRegistrationError(
                f"Rule '{rule_name_of(rule)}' registered a non-callable handler for '{kind.value}'")
        if self._allowed is not None and rule_name_of(rule) not in self._allowed:
            raise RuleRegistrationError(
                f"Rule '{rule_name_of(rule)}' is not part of this registry's rule set")

        self._processors.setdefault(kind, []).append((rule, handler))

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def processors_for(self, kind: NodeKind) -> Sequence[NodeProcessor]:
        return self._processors.get(kind, ())

    def kinds(self) -> List[NodeKind]:
        return list(self._processors.keys())

    def rules_for(self, kind: NodeKind) -> List[str]:
        return [rule_name_of(rule) for rule, _ in self.processors_for(kind)]

    def __len__(self):
        return sum(len(processors) for processors in self._processors.values())


def validate_rules(rules: Sequence[Rule]) -> None:
    """Check a rule set before any file is analyzed.

    Raises:
        RuleRegistrationError: listing every problem found
    """
    problems = []
    names = set()
    code_owners: Dict[str, str] = {}

    for rule in rules:
        meta = getattr(rule, 'meta', None)
        if not isinstance(meta, RuleMeta):
            problems.append(f"{rule!r} has no RuleMeta")
            continue
        if not callable(getattr(rule, 'register_node_processors', None)):
            problems.append(f"Rule '{meta.name}' does not implement register_node_processors")

        if meta.name in names:
            problems.append(f"Duplicate rule name '{meta.name}'")
        names.add(meta.name)

        if not meta.codes:
            problems.append(f"Rule '{meta.name}' declares no diagnostic kinds")

        for code in meta.codes:
            if not isinstance(code, DiagnosticKind):
                problems.append(f"Rule '{meta.name}' declares {code!r}, which is not a DiagnosticKind")
                continue
            if code.name != meta.name:
                problems.append(f"Rule '{meta.name}' declares '{code.id}' owned by '{code.name}'")
            if not code.is_well_formed():
                problems.append(f"Diagnostic '{code.id}' has non-contiguous placeholders "
                                f"{code.placeholder_indexes}")
            owner = code_owners.get(code.id)
            if owner is not None and owner != meta.name:
                problems.append(f"Diagnostic id '{code.id}' is declared by both '{owner}' and '{meta.name}'")
            elif owner == meta.name:
                problems.append(f"Rule '{meta.name}' declares '{code.id}' twice")
            code_owners[code.id] = meta.name

    if problems:
        raise RuleRegistrationError("Invalid rule set:\n  " + "\n  ".join(problems))


def build_node_registry(rules: Sequence[Rule], context: RuleContext) -> NodeLintRegistry:
    """Let every rule register its handlers for one file, then freeze.

    The rule set must already have passed validate_rules().
    """
    registry = NodeLintRegistry(rules)
    for rule in rules:
        context.reporter.declare(rule.meta)
        before = len(registry)
        try:
            rule.register_node_processors(registry, context)
        except (RuleRegistrationError, RegistryFrozenError):
            raise
        except Exception as e:
            raise RuleRegistrationError(
                f"Rule '{rule.meta.name}' failed to register node processors: {e}") from e
        if len(registry) == before:
            logger.warning(f"Rule '{rule.meta.name}' registered no node processors")
    registry.freeze()
    logger.debug(f"Node registry for {context.file_path}: "
                 f"{len(registry)} processors over {len(registry.kinds())} node kinds")
    return registry


class RuleCatalog:
    """Central catalog of known rules."""

    def __init__(self):
        self._rules: List[Rule] = []
        self._rule_index: Dict[str, Rule] = {}  # name -> rule

    def register_rule(self, rule: Rule) -> None:
        """Register a rule in the catalog."""
        if rule.meta.name in self._rule_index:
            # Skip duplicate registration silently to avoid import noise
            return

        self._rules.append(rule)
        self._rule_index[rule.meta.name] = rule

    def get_rule(self, name: str) -> Optional[Rule]:
        """Get rule by name."""
        return self._rule_index.get(name)

    def get_all_rules(self) -> List[Rule]:
        """Get all registered rules, in registration order."""
        return self._rules.copy()

    def get_rules(self, filter_names: Optional[List[str]] = None) -> List[Rule]:
        """Get rules, optionally filtered by names."""
        if filter_names is None:
            return self.get_all_rules()

        rules = []
        for name in filter_names:
            rule = self.get_rule(name)
            if rule:
                rules.append(rule)
            else:
                logger.warning(f"Rule '{name}' not found")
        return rules

    def get_rule_names(self) -> List[str]:
        return list(self._rule_index.keys())

    def get_enabled_rules(self, enabled_patterns: List[str],
                          disabled_patterns: Iterable[str] = ()) -> List[Rule]:
        """Get rules whose names match an enabled glob and no disabled glob."""
        if not enabled_patterns:
            return []

        disabled_patterns = list(disabled_patterns)
        enabled_rules = []
        for rule in self._rules:
            name = rule.meta.name
            if not any(fnmatch.fnmatch(name, pattern) for pattern in enabled_patterns):
                continue
            if any(fnmatch.fnmatch(name, pattern) for pattern in disabled_patterns):
                continue
            enabled_rules.append(rule)
        return enabled_rules

    def get_rule_codes(self) -> Dict[str, List[str]]:
        """Full output vocabulary of every rule: name -> stable diagnostic ids."""
        return {rule.meta.name: list(rule.meta.code_ids) for rule in self._rules}

    def discover_rules(self, entry_packages: List[str]) -> int:
        """
        Auto-discover and register rules from packages.

        Args:
            entry_packages: List of package names to discover from

        Returns:
            Number of rules discovered and registered
        """
        initial_count = len(self._rules)

        for package_name in entry_packages:
            try:
                package = importlib.import_module(package_name)
            except ImportError as e:
                logger.warning(f"Could not import package {package_name}: {e}")
                continue

            self._extract_rules_from_module(package, package_name)
            if hasattr(package, '__path__'):
                for _, modname, _ in pkgutil.walk_packages(package.__path__, package.__name__ + "."):
                    try:
                        module = importlib.import_module(modname)
                    except Exception as e:
                        logger.warning(f"Failed to import {modname}: {e}")
                        continue
                    self._extract_rules_from_module(module, modname)

        return len(self._rules) - initial_count

    def _extract_rules_from_module(self, module, module_name: str) -> None:
        """Register every entry of the module's RULES list."""
        rules = getattr(module, 'RULES', None)
        if not isinstance(rules, (list, tuple)):
            return
        for rule in rules:
            try:
                # If it's a class, instantiate it
                self.register_rule(rule() if isinstance(rule, type) else rule)
            except Exception as e:
                logger.warning(f"Failed to register rule {rule!r} from {module_name}: {e}")

    def clear(self) -> None:
        """Clear all registered rules (mainly for testing)."""
        self._rules.clear()
        self._rule_index.clear()


# Global catalog instance
_global_catalog = RuleCatalog()


def register_rule(rule: Rule) -> None:
    """Register a rule in the global catalog."""
    _global_catalog.register_rule(rule)


def get_rule(name: str) -> Optional[Rule]:
    """Get rule by name from the global catalog."""
    return _global_catalog.get_rule(name)


def get_all_rules() -> List[Rule]:
    """Get all registered rules from the global catalog."""
    return _global_catalog.get_all_rules()


def get_rules(filter_names: Optional[List[str]] = None) -> List[Rule]:
    """Get rules, optionally filtered by names."""
    return _global_catalog.get_rules(filter_names)


def get_rule_names() -> List[str]:
    """Get all registered rule names."""
    return _global_catalog.get_rule_names()


def get_enabled_rules(enabled_patterns: List[str], disabled_patterns: Iterable[str] = ()) -> List[Rule]:
    """Get rules enabled by glob patterns from the global catalog."""
    return _global_catalog.get_enabled_rules(enabled_patterns, disabled_patterns)


def get_rule_codes() -> Dict[str, List[str]]:
    """Get every rule's diagnostic ids from the global catalog."""
    return _global_catalog.get_rule_codes()


def discover_rules(entry_packages: List[str]) -> int:
    """Auto-discover and register rules from packages."""
    return _global_catalog.discover_rules(entry_packages)


def clear() -> None:
    """Clear the global catalog (mainly for testing)."""
    _global_catalog.clear()


def get_catalog() -> RuleCatalog:
    """Get the global catalog instance (for advanced usage)."""
    return _global_catalog
