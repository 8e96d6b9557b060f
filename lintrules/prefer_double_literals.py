"""
Style Rule: Prefer double literals

Flags integer literals written where the surrounding code expects a
``double``, e.g. ``const double myDouble = 8;``. The literal has to convert to
a double without loss, and the expected type has to be known: unresolved
contexts never produce a suggestion.
"""

from typing import Optional

from lintcore.elements import ResolvedType
from lintcore.syntax import (
    ArgumentList, BlockFunctionBody, Expression, ExpressionFunctionBody, FunctionDeclaration,
    FunctionExpression, IntegerLiteral, ListLiteral, MethodDeclaration, NamedExpression,
    NodeKind, PrefixExpression, ReturnStatement, SyntaxNode, VariableDeclaration,
    VariableDeclarationList,
)
from lintcore.types import DiagnosticKind, Group, RuleContext, RuleMeta, Tristate

_DESC = "Prefer double literals over int literals."

_DETAILS = """
**DO** use double literals rather than the corresponding int literal.

**BAD:**
```dart
const double myDouble = 8;
final anotherDouble = myDouble + 700;
main() {
  someMethodThatReceivesDouble(6);
}
```

**GOOD:**
```dart
const double myDouble = 8.0;
final anotherDouble = myDouble + 7.0e2;
main() {
  someMethodThatReceivesDouble(6.0);
}
```
"""

PREFER_DOUBLE_LITERAL = DiagnosticKind(
    name="prefer_double_literals",
    id="LintCode.prefer_double_literals",
    template="'int' literal used where the value is a 'double'.",
    severity="info",
    correction="Try using a 'double' literal.",
)


class PreferDoubleLiteralsRule:
    """Rule to suggest double literals where an int literal is given a double context.

    Contexts that are understood:
    - positional and named call arguments (the parameter's declared type)
    - elements of a list literal with a single type argument
    - returns from expression- and block-bodied functions and methods
    - initializers of declared variables
    """

    meta = RuleMeta(
        name="prefer_double_literals",
        description=_DESC,
        group=Group.STYLE,
        codes=(PREFER_DOUBLE_LITERAL,),
        details=_DETAILS,
    )

    def register_node_processors(self, registry, context: RuleContext) -> None:
        registry.add(NodeKind.INTEGER_LITERAL, self, _Visitor(self, context).visit_integer_literal)


class _Visitor:

    def __init__(self, rule: PreferDoubleLiteralsRule, context: RuleContext):
        self.rule = rule
        self.context = context
        self.types = context.types

    def visit_integer_literal(self, node: IntegerLiteral) -> None:
        # Out of range or lossy literals are not reportable
        if self.types.classify_double_representable(node.value) is not Tristate.MATCH:
            return

        if self.can_replace_with_double_literal(node):
            self.context.report(self.rule, node, PREFER_DOUBLE_LITERAL)

    def can_replace_with_double_literal(self, literal: IntegerLiteral) -> bool:
        """Determine if the given literal can be replaced by a double literal."""
        parent = literal.parent
        if isinstance(parent, PrefixExpression):
            if parent.operator == "-":
                return self.has_type(parent, "int")
            return False
        return self.has_type(literal, "double")

    def has_type(self, expression: Expression, class_name: str) -> bool:
        """Whether the context of ``expression`` expects exactly ``class_name``.

        Unknown context types are a non-match.
        """
        expected = self.expected_type_classification(expression, class_name)
        return expected is Tristate.MATCH

    def expected_type_classification(self, expression: Expression, class_name: str) -> Tristate:
        return self.types.classify_exact(self.context_type(expression), class_name)

    def context_type(self, expression: Expression) -> Optional[ResolvedType]:
        """The type the code around ``expression`` expects it to have, if known."""
        parent = expression.parent

        if isinstance(parent, ArgumentList):
            return self.types.parameter_type_at_call_site(expression)

        if isinstance(parent, ListLiteral):
            return self._list_element_type(parent)

        if isinstance(parent, NamedExpression):
            if isinstance(parent.parent, ArgumentList):
                return self.types.parameter_type_at_call_site(parent)
            return None

        if isinstance(parent, ExpressionFunctionBody):
            return self._declared_return_type(parent.parent)

        if isinstance(parent, ReturnStatement):
            body = parent.this_or_ancestor_of_type(BlockFunctionBody)
            if body is None:
                return None
            return self._declared_return_type(body.parent)

        if isinstance(parent, VariableDeclaration):
            declaration_list = parent.parent
            if isinstance(declaration_list, VariableDeclarationList):
                return self.types.declared_type_of(declaration_list.type)

        return None

    def _list_element_type(self, list_literal: ListLiteral) -> Optional[ResolvedType]:
        """Element type from the explicit type argument, else from the type the
        list's own context expects; only a single type argument counts.

        The literal's inferred static type is not used: it comes from the
        elements themselves.
        """
        if list_literal.type_arguments is not None:
            if len(list_literal.type_arguments) != 1:
                return None
            return self.types.declared_type_of(list_literal.type_arguments[0])

        expected = self.context_type(list_literal)
        type_arguments = getattr(expected, 'type_arguments', ())
        if len(type_arguments) != 1:
            return None
        return type_arguments[0]

    def _declared_return_type(self, node: Optional[SyntaxNode]) -> Optional[ResolvedType]:
        if isinstance(node, FunctionExpression):
            declaration = node.parent
            if isinstance(declaration, FunctionDeclaration):
                return self.types.declared_type_of(declaration.return_type)
        elif isinstance(node, MethodDeclaration):
            return self.types.declared_type_of(node.return_type)
        return None


RULES = [PreferDoubleLiteralsRule]
