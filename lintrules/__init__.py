"""
Rule catalog for the lintcore engine.

Each module exposes a ``RULES`` list picked up by
``lintcore.registry.discover_rules(["lintrules"])``.
"""

from .prefer_double_literals import PreferDoubleLiteralsRule
from .unsafe_html import UnsafeHtmlRule


def all_rules():
    """Fresh instances of every rule in this package, in a stable order."""
    return [UnsafeHtmlRule(), PreferDoubleLiteralsRule()]


__all__ = ["PreferDoubleLiteralsRule", "UnsafeHtmlRule", "all_rules"]
