"""
Security Rule: Unsafe HTML APIs

Flags writes to URL-bearing attributes of HTML elements and calls to the
HTML-parsing constructors and methods of ``dart:html``. Any of these can load
or inject markup from an untrusted string.

A receiver whose type cannot be resolved is treated as unsafe: the rule
cannot prove it is not one of the flagged classes.
"""

from lintcore.elements import HTML_LIBRARY
from lintcore.syntax import (
    AssignmentExpression, InstanceCreationExpression, MethodInvocation, NodeKind,
    PrefixedIdentifier, PropertyAccess, SimpleIdentifier,
)
from lintcore.types import DiagnosticKind, Group, RuleContext, RuleMeta, Tristate

_DESC_PREFIX = "Avoid unsafe HTML APIs"

_DETAILS = """
**AVOID**

* assigning directly to the `href` field of an AnchorElement
* assigning directly to the `src` field of an EmbedElement, IFrameElement,
  ImageElement, or ScriptElement
* assigning directly to the `srcdoc` field of an IFrameElement
* calling the `createFragment` method of Element
* calling the `open` method of Window
* calling the `setInnerHtml` method of Element
* calling the `Element.html` constructor
* calling the `DocumentFragment.html` constructor


**BAD:**
```dart
var script = ScriptElement()..src = 'foo.js';
```
"""

# Allow-lists downstream are keyed on the exact message text; do not reword.
UNSAFE_ATTRIBUTE = DiagnosticKind(
    name="unsafe_html",
    id="LintCode.unsafe_html_attribute",
    template=f'{_DESC_PREFIX} (assigning "{{0}}" attribute).',
    severity="warn",
)
UNSAFE_METHOD = DiagnosticKind(
    name="unsafe_html",
    id="LintCode.unsafe_html_method",
    template=f"{_DESC_PREFIX} (calling the '{{0}}' method of {{1}}).",
    severity="warn",
)
UNSAFE_CONSTRUCTOR = DiagnosticKind(
    name="unsafe_html",
    id="LintCode.unsafe_html_constructor",
    template=f"{_DESC_PREFIX} (calling the '{{0}}' constructor of {{1}}).",
    severity="warn",
)

# Property name -> classes on which assigning it is unsafe
UNSAFE_ATTRIBUTES = {
    "href": ("AnchorElement",),
    "src": ("EmbedElement", "IFrameElement", "ImageElement", "ScriptElement"),
    "srcdoc": ("IFrameElement",),
}

# Method name -> class declaring the unsafe method
UNSAFE_METHODS = {
    "createFragment": "Element",
    "setInnerHtml": "Element",
    "open": "Window",
}

# Checked in order; DocumentFragment is not an Element
UNSAFE_CONSTRUCTOR_CLASSES = ("DocumentFragment", "Element")


class UnsafeHtmlRule:
    """Rule to detect unsafe HTML attribute writes, constructors and methods."""

    meta = RuleMeta(
        name="unsafe_html",
        description=f"{_DESC_PREFIX}.",
        group=Group.ERRORS,
        codes=(UNSAFE_ATTRIBUTE, UNSAFE_METHOD, UNSAFE_CONSTRUCTOR),
        details=_DETAILS,
    )

    def register_node_processors(self, registry, context: RuleContext) -> None:
        visitor = _Visitor(self, context)
        registry.add(NodeKind.ASSIGNMENT_EXPRESSION, self, visitor.visit_assignment_expression)
        registry.add(NodeKind.INSTANCE_CREATION_EXPRESSION, self, visitor.visit_instance_creation_expression)
        registry.add(NodeKind.METHOD_INVOCATION, self, visitor.visit_method_invocation)


class _Visitor:

    def __init__(self, rule: UnsafeHtmlRule, context: RuleContext):
        self.rule = rule
        self.context = context
        self.types = context.types

    def _is_unsafe(self, type, class_names) -> bool:
        # Unknown counts as unsafe
        return self.types.classify_extends(type, class_names, HTML_LIBRARY) is not Tristate.NO_MATCH

    def visit_assignment_expression(self, node: AssignmentExpression) -> None:
        left_part = node.left_hand_side.unparenthesized if node.left_hand_side else None

        if isinstance(left_part, SimpleIdentifier):
            # Implicit `this`: only a member of a class is an attribute write
            if node.write_element is None:
                return
            target_type = self.types.enclosing_class_type(node.write_element)
            if target_type is None:
                return
            self._check_assignment(target_type, left_part.name, node)
        elif isinstance(left_part, PropertyAccess):
            if left_part.property_name is None:
                return
            target_type = self.types.static_type_of(left_part.real_target)
            self._check_assignment(target_type, left_part.property_name.name, node)
        elif isinstance(left_part, PrefixedIdentifier):
            if left_part.identifier is None:
                return
            target_type = self.types.static_type_of(left_part.prefix)
            self._check_assignment(target_type, left_part.identifier.name, node)

    def _check_assignment(self, target_type, property_name: str, assignment: AssignmentExpression) -> None:
        # Cheaper to check the setter's name before the target's type
        class_names = UNSAFE_ATTRIBUTES.get(property_name)
        if class_names is None:
            return
        if self._is_unsafe(target_type, class_names):
            self.context.report(self.rule, assignment, UNSAFE_ATTRIBUTE, [property_name])

    def visit_instance_creation_expression(self, node: InstanceCreationExpression) -> None:
        constructor_name = node.constructor_name.name if node.constructor_name else None
        if constructor_name != "html":
            return
        created_type = self.types.static_type_of(node)
        if created_type is None:
            return

        for class_name in UNSAFE_CONSTRUCTOR_CLASSES:
            if self.types.extends_class(created_type, class_name, HTML_LIBRARY):
                self.context.report(self.rule, node, UNSAFE_CONSTRUCTOR, ["html", class_name])
                return

    def visit_method_invocation(self, node: MethodInvocation) -> None:
        method_name = node.method_name.name if node.method_name else None
        class_name = UNSAFE_METHODS.get(method_name)
        if class_name is None:
            return

        target = node.real_target
        if target is None:
            # Implicit `this` target
            method_element = node.method_name.static_element
            if method_element is None:
                return
            target_type = self.types.enclosing_class_type(method_element)
            if target_type is None:
                return
        else:
            target_type = self.types.static_type_of(target)

        if self._is_unsafe(target_type, (class_name,)):
            self.context.report(self.rule, node, UNSAFE_METHOD, [method_name, class_name])


RULES = [UnsafeHtmlRule]
