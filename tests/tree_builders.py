"""
Helpers for building resolved syntax trees in tests.

The parser and resolver are external to the engine, so tests assemble the
trees they would produce by hand. Every node gets its own span.
"""

from types import SimpleNamespace

from lintcore.elements import (
    DYNAMIC, HTML_LIBRARY, INT_TYPE, OBJECT, ClassElement, ExecutableElement, ParameterElement,
    ParameterKind, VariableElement,
)
from lintcore.syntax import (
    ArgumentList, AssignmentExpression, Block, BlockFunctionBody, CascadeExpression,
    ClassDeclaration, CompilationUnit, ExpressionFunctionBody, ExpressionStatement,
    FunctionDeclaration, FunctionExpression, InstanceCreationExpression, IntegerLiteral,
    ListLiteral, MethodDeclaration, MethodInvocation, NamedExpression, NamedType,
    ParenthesizedExpression, PrefixedIdentifier, PrefixExpression, PropertyAccess,
    ReturnStatement, SimpleIdentifier, StringLiteral, SyntaxTree, TopLevelVariableDeclaration,
    VariableDeclaration, VariableDeclarationList, VariableDeclarationStatement,
)
from lintcore.types import DiagnosticKind, Group, RuleMeta


def html_class(name, superclass=None, interfaces=()):
    return ClassElement(
        name=name,
        library_id=HTML_LIBRARY,
        superclass=(superclass or OBJECT).this_type,
        interfaces=[i.this_type for i in interfaces],
    )


def make_html_library():
    """The slice of dart:html the unsafe_html rule cares about."""
    node = html_class("Node")
    element = html_class("Element", node)
    html_element = html_class("HtmlElement", element)
    return SimpleNamespace(
        Node=node,
        Element=element,
        HtmlElement=html_element,
        AnchorElement=html_class("AnchorElement", html_element),
        EmbedElement=html_class("EmbedElement", html_element),
        IFrameElement=html_class("IFrameElement", html_element),
        ImageElement=html_class("ImageElement", html_element),
        ScriptElement=html_class("ScriptElement", html_element),
        DivElement=html_class("DivElement", html_element),
        DocumentFragment=html_class("DocumentFragment", node),
        Window=html_class("Window"),
    )


def positional(name, type):
    return ParameterElement(name, type, ParameterKind.REQUIRED_POSITIONAL)


def named(name, type):
    return ParameterElement(name, type, ParameterKind.NAMED)


def function_element(name, *parameters, return_type=None, enclosing=None):
    return ExecutableElement(name=name, parameters=list(parameters),
                             return_type=return_type, enclosing_element=enclosing)


class NodeFactory:
    """Builds nodes with unique, increasing spans."""

    def __init__(self):
        self._next_offset = 0

    def span(self, width=4):
        start = self._next_offset
        self._next_offset += width + 1
        return (start, start + width)

    def tree(self, *declarations, text=None, file_path="test.dart"):
        unit = CompilationUnit(span=(0, 10_000), declarations=tuple(declarations))
        return SyntaxTree(unit, file_path=file_path, text=text)

    # === Expressions ===

    def int_literal(self, value, lexeme=None, span=None):
        return IntegerLiteral(span=span or self.span(), lexeme=lexeme or str(value),
                              value=value, static_type=INT_TYPE)

    def string(self, value="x"):
        return StringLiteral(span=self.span(), value=value)

    def ident(self, name, element=None, static_type=None):
        return SimpleIdentifier(span=self.span(), name=name, static_element=element,
                                static_type=static_type)

    def named_type(self, type, name=None, type_arguments=()):
        return NamedType(span=self.span(), name=name or str(type), type=type,
                         type_arguments=tuple(type_arguments))

    def args(self, *arguments):
        return ArgumentList(span=self.span(), arguments=tuple(arguments))

    def named_arg(self, name, expression):
        return NamedExpression(span=self.span(), name=name, expression=expression)

    def call(self, method_name, *arguments, target=None, element=None, cascaded=False,
             static_type=None):
        return MethodInvocation(
            span=self.span(),
            target=target,
            method_name=self.ident(method_name, element=element),
            argument_list=self.args(*arguments),
            is_cascaded=cascaded,
            static_type=static_type,
        )

    def new(self, type, constructor_name=None, *arguments, static_type=None, element=None):
        return InstanceCreationExpression(
            span=self.span(),
            constructor_type=self.named_type(type),
            constructor_name=self.ident(constructor_name) if constructor_name else None,
            argument_list=self.args(*arguments),
            element=element,
            static_type=type if static_type is None else static_type,
        )

    def list_literal(self, *elements, type_arguments=None, static_type=None):
        return ListLiteral(span=self.span(), elements=tuple(elements),
                           type_arguments=None if type_arguments is None else tuple(type_arguments),
                           static_type=static_type)

    def prefix(self, operator, operand):
        return PrefixExpression(span=self.span(), operator=operator, operand=operand,
                                static_type=getattr(operand, 'static_type', None))

    def parens(self, expression):
        return ParenthesizedExpression(span=self.span(), expression=expression,
                                       static_type=expression.static_type)

    def assign(self, left, right, write_element=None, span=None):
        return AssignmentExpression(span=span or self.span(), left_hand_side=left,
                                    right_hand_side=right, write_element=write_element)

    def property(self, target, name, cascaded=False):
        return PropertyAccess(span=self.span(), target=None if cascaded else target,
                              property_name=self.ident(name), is_cascaded=cascaded)

    def prefixed(self, prefix_name, name, prefix_type=None):
        return PrefixedIdentifier(span=self.span(),
                                  prefix=self.ident(prefix_name, static_type=prefix_type),
                                  identifier=self.ident(name))

    def cascade(self, target, *sections):
        return CascadeExpression(span=self.span(), target=target, sections=tuple(sections),
                                 static_type=target.static_type)

    # === Statements and declarations ===

    def stmt(self, expression):
        return ExpressionStatement(span=self.span(), expression=expression)

    def ret(self, expression):
        return ReturnStatement(span=self.span(), expression=expression)

    def block(self, *statements):
        return Block(span=self.span(), statements=tuple(statements))

    def block_body(self, *statements):
        return BlockFunctionBody(span=self.span(), block=self.block(*statements))

    def expression_body(self, expression):
        return ExpressionFunctionBody(span=self.span(), expression=expression)

    def declaration_list(self, type, name, initializer, keyword=None):
        variable = VariableDeclaration(span=self.span(), name=name, initializer=initializer,
                                       element=VariableElement(name, type))
        return VariableDeclarationList(
            span=self.span(),
            keyword=keyword,
            type=self.named_type(type) if type is not None else None,
            variables=(variable,),
        )

    def local_variable(self, type, name, initializer, keyword=None):
        return VariableDeclarationStatement(
            span=self.span(), variables=self.declaration_list(type, name, initializer, keyword))

    def top_level_variable(self, type, name, initializer, keyword=None):
        return TopLevelVariableDeclaration(
            span=self.span(), variables=self.declaration_list(type, name, initializer, keyword))

    def function(self, name, return_type, body):
        return FunctionDeclaration(
            span=self.span(),
            name=name,
            return_type=self.named_type(return_type) if return_type is not None else None,
            function_expression=FunctionExpression(span=self.span(), body=body),
        )

    def method(self, name, return_type, body, element=None):
        return MethodDeclaration(
            span=self.span(),
            name=name,
            return_type=self.named_type(return_type) if return_type is not None else None,
            body=body,
            element=element,
        )

    def class_declaration(self, element, *members):
        return ClassDeclaration(span=self.span(), name=element.name,
                                members=tuple(members), element=element)

    def main(self, *statements):
        """``void main() { ... }`` with the given statements."""
        return self.function("main", None, self.block_body(*statements))


class RecordingRule:
    """A rule that logs every node it is handed and can report or fail on it."""

    def __init__(self, name, kinds, log=None, report=False, fail_when=None, error=None):
        self.code = DiagnosticKind(name=name, id=f"test.{name}", template=f"{name} saw {{0}}")
        self.meta = RuleMeta(name=name, description=f"Test rule {name}.", group=Group.STYLE,
                             codes=(self.code,))
        self.kinds = kinds
        self.log = log if log is not None else []
        self.report = report
        self.fail_when = fail_when
        self.error = error or RuntimeError(f"{name} blew up")
        self.context = None

    def register_node_processors(self, registry, context):
        self.context = context
        for kind in self.kinds:
            registry.add(kind, self, self.visit)

    def visit(self, node):
        self.log.append((self.meta.name, node))
        if self.fail_when is not None and self.fail_when(node):
            raise self.error
        if self.report:
            self.context.report(self, node, self.code, [node.kind.value])


__all__ = [
    "DYNAMIC", "NodeFactory", "RecordingRule", "function_element", "html_class",
    "make_html_library", "named", "positional",
]
