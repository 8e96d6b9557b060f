"""
Syntax tree model consumed by the engine.

The external parser and resolver produce these nodes; the engine only walks
them. Every node is a frozen dataclass whose SyntaxNode-valued fields are its
children, in source order. Parent back-references are linked once when the
SyntaxTree is built.
"""

import bisect
from dataclasses import dataclass, fields
from enum import Enum
from typing import ClassVar, Iterator, List, Optional, Tuple, Type, TypeVar

from .elements import ClassElement, Element, ExecutableElement, ResolvedType, VariableElement
from .types import NodeRange


class NodeKind(str, Enum):
    COMPILATION_UNIT = "compilation_unit"
    CLASS_DECLARATION = "class_declaration"
    METHOD_DECLARATION = "method_declaration"
    FUNCTION_DECLARATION = "function_declaration"
    FUNCTION_EXPRESSION = "function_expression"
    BLOCK_FUNCTION_BODY = "block_function_body"
    EXPRESSION_FUNCTION_BODY = "expression_function_body"
    BLOCK = "block"
    RETURN_STATEMENT = "return_statement"
    EXPRESSION_STATEMENT = "expression_statement"
    VARIABLE_DECLARATION_STATEMENT = "variable_declaration_statement"
    TOP_LEVEL_VARIABLE_DECLARATION = "top_level_variable_declaration"
    FIELD_DECLARATION = "field_declaration"
    VARIABLE_DECLARATION_LIST = "variable_declaration_list"
    VARIABLE_DECLARATION = "variable_declaration"
    NAMED_TYPE = "named_type"
    ASSIGNMENT_EXPRESSION = "assignment_expression"
    SIMPLE_IDENTIFIER = "simple_identifier"
    PREFIXED_IDENTIFIER = "prefixed_identifier"
    PROPERTY_ACCESS = "property_access"
    METHOD_INVOCATION = "method_invocation"
    FUNCTION_EXPRESSION_INVOCATION = "function_expression_invocation"
    INSTANCE_CREATION_EXPRESSION = "instance_creation_expression"
    ARGUMENT_LIST = "argument_list"
    NAMED_EXPRESSION = "named_expression"
    LIST_LITERAL = "list_literal"
    INTEGER_LITERAL = "integer_literal"
    DOUBLE_LITERAL = "double_literal"
    STRING_LITERAL = "string_literal"
    PREFIX_EXPRESSION = "prefix_expression"
    PARENTHESIZED_EXPRESSION = "parenthesized_expression"
    CASCADE_EXPRESSION = "cascade_expression"
    BINARY_EXPRESSION = "binary_expression"


N = TypeVar("N", bound="SyntaxNode")


@dataclass(frozen=True, eq=False)
class SyntaxNode:
    """Base class for all nodes. Nodes compare and hash by identity."""
    kind: ClassVar[NodeKind]

    span: NodeRange = (0, 0)

    @property
    def parent(self) -> Optional['SyntaxNode']:
        return self.__dict__.get('_parent')

    @property
    def offset(self) -> int:
        return self.span[0]

    @property
    def end(self) -> int:
        return self.span[1]

    def child_nodes(self) -> Iterator['SyntaxNode']:
        """Yield direct children in source order."""
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, SyntaxNode):
                yield value
            elif isinstance(value, (tuple, list)):
                for item in value:
                    if isinstance(item, SyntaxNode):
                        yield item

    def ancestors(self) -> Iterator['SyntaxNode']:
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def this_or_ancestor_of_type(self, node_type: Type[N]) -> Optional[N]:
        if isinstance(self, node_type):
            return self
        for ancestor in self.ancestors():
            if isinstance(ancestor, node_type):
                return ancestor
        return None

    def describe(self) -> str:
        return f"{self.kind.value}@{self.span[0]}..{self.span[1]}"


@dataclass(frozen=True, eq=False)
class Expression(SyntaxNode):
    static_type: Optional[ResolvedType] = None

    @property
    def unparenthesized(self) -> 'Expression':
        expression = self
        while isinstance(expression, ParenthesizedExpression) and expression.expression is not None:
            expression = expression.expression
        return expression


# === Declarations ===

@dataclass(frozen=True, eq=False)
class CompilationUnit(SyntaxNode):
    kind = NodeKind.COMPILATION_UNIT
    declarations: Tuple[SyntaxNode, ...] = ()


@dataclass(frozen=True, eq=False)
class NamedType(SyntaxNode):
    """A type annotation such as ``List<double>``."""
    kind = NodeKind.NAMED_TYPE
    name: str = ""
    type_arguments: Tuple['NamedType', ...] = ()
    type: Optional[ResolvedType] = None


@dataclass(frozen=True, eq=False)
class ClassDeclaration(SyntaxNode):
    kind = NodeKind.CLASS_DECLARATION
    name: str = ""
    members: Tuple[SyntaxNode, ...] = ()
    element: Optional[ClassElement] = None


@dataclass(frozen=True, eq=False)
class BlockFunctionBody(SyntaxNode):
    kind = NodeKind.BLOCK_FUNCTION_BODY
    block: Optional['Block'] = None


@dataclass(frozen=True, eq=False)
class ExpressionFunctionBody(SyntaxNode):
    kind = NodeKind.EXPRESSION_FUNCTION_BODY
    expression: Optional[Expression] = None


@dataclass(frozen=True, eq=False)
class MethodDeclaration(SyntaxNode):
    kind = NodeKind.METHOD_DECLARATION
    return_type: Optional[NamedType] = None
    name: str = ""
    body: Optional[SyntaxNode] = None
    element: Optional[ExecutableElement] = None


@dataclass(frozen=True, eq=False)
class FunctionExpression(Expression):
    kind = NodeKind.FUNCTION_EXPRESSION
    body: Optional[SyntaxNode] = None
    element: Optional[ExecutableElement] = None


@dataclass(frozen=True, eq=False)
class FunctionDeclaration(SyntaxNode):
    kind = NodeKind.FUNCTION_DECLARATION
    return_type: Optional[NamedType] = None
    name: str = ""
    function_expression: Optional[FunctionExpression] = None
    element: Optional[ExecutableElement] = None


# === Statements ===

@dataclass(frozen=True, eq=False)
class Block(SyntaxNode):
    kind = NodeKind.BLOCK
    statements: Tuple[SyntaxNode, ...] = ()


@dataclass(frozen=True, eq=False)
class ReturnStatement(SyntaxNode):
    kind = NodeKind.RETURN_STATEMENT
    expression: Optional[Expression] = None


@dataclass(frozen=True, eq=False)
class ExpressionStatement(SyntaxNode):
    kind = NodeKind.EXPRESSION_STATEMENT
    expression: Optional[Expression] = None


@dataclass(frozen=True, eq=False)
class VariableDeclaration(SyntaxNode):
    kind = NodeKind.VARIABLE_DECLARATION
    name: str = ""
    initializer: Optional[Expression] = None
    element: Optional[VariableElement] = None


@dataclass(frozen=True, eq=False)
class VariableDeclarationList(SyntaxNode):
    """The keyword, annotation and declarations of ``const double a = 1, b = 2``."""
    kind = NodeKind.VARIABLE_DECLARATION_LIST
    keyword: Optional[str] = None
    type: Optional[NamedType] = None
    variables: Tuple[VariableDeclaration, ...] = ()


@dataclass(frozen=True, eq=False)
class VariableDeclarationStatement(SyntaxNode):
    kind = NodeKind.VARIABLE_DECLARATION_STATEMENT
    variables: Optional[VariableDeclarationList] = None


@dataclass(frozen=True, eq=False)
class TopLevelVariableDeclaration(SyntaxNode):
    kind = NodeKind.TOP_LEVEL_VARIABLE_DECLARATION
    variables: Optional[VariableDeclarationList] = None


@dataclass(frozen=True, eq=False)
class FieldDeclaration(SyntaxNode):
    kind = NodeKind.FIELD_DECLARATION
    variables: Optional[VariableDeclarationList] = None


# === Expressions ===

@dataclass(frozen=True, eq=False)
class SimpleIdentifier(Expression):
    kind = NodeKind.SIMPLE_IDENTIFIER
    name: str = ""
    static_element: Optional[Element] = None


@dataclass(frozen=True, eq=False)
class PrefixedIdentifier(Expression):
    """``prefix.identifier`` where the prefix is itself an identifier."""
    kind = NodeKind.PREFIXED_IDENTIFIER
    prefix: Optional[SimpleIdentifier] = None
    identifier: Optional[SimpleIdentifier] = None


def _cascade_target(node: SyntaxNode) -> Optional[Expression]:
    for ancestor in node.ancestors():
        if isinstance(ancestor, CascadeExpression):
            return ancestor.target
    return None


@dataclass(frozen=True, eq=False)
class PropertyAccess(Expression):
    """``target.property``; a cascade section has no target of its own."""
    kind = NodeKind.PROPERTY_ACCESS
    target: Optional[Expression] = None
    property_name: Optional[SimpleIdentifier] = None
    is_cascaded: bool = False

    @property
    def real_target(self) -> Optional[Expression]:
        if self.is_cascaded:
            return _cascade_target(self)
        return self.target


@dataclass(frozen=True, eq=False)
class AssignmentExpression(Expression):
    kind = NodeKind.ASSIGNMENT_EXPRESSION
    left_hand_side: Optional[Expression] = None
    operator: str = "="
    right_hand_side: Optional[Expression] = None
    write_element: Optional[Element] = None


@dataclass(frozen=True, eq=False)
class ArgumentList(SyntaxNode):
    kind = NodeKind.ARGUMENT_LIST
    arguments: Tuple[Expression, ...] = ()


@dataclass(frozen=True, eq=False)
class NamedExpression(Expression):
    """A named argument ``name: expression``."""
    kind = NodeKind.NAMED_EXPRESSION
    name: str = ""
    expression: Optional[Expression] = None


@dataclass(frozen=True, eq=False)
class MethodInvocation(Expression):
    kind = NodeKind.METHOD_INVOCATION
    target: Optional[Expression] = None
    method_name: Optional[SimpleIdentifier] = None
    argument_list: Optional[ArgumentList] = None
    is_cascaded: bool = False

    @property
    def real_target(self) -> Optional[Expression]:
        if self.is_cascaded:
            return _cascade_target(self)
        return self.target


@dataclass(frozen=True, eq=False)
class FunctionExpressionInvocation(Expression):
    kind = NodeKind.FUNCTION_EXPRESSION_INVOCATION
    function: Optional[Expression] = None
    argument_list: Optional[ArgumentList] = None
    element: Optional[ExecutableElement] = None


@dataclass(frozen=True, eq=False)
class InstanceCreationExpression(Expression):
    """``new? Type.name(arguments)``; ``element`` is the resolved constructor."""
    kind = NodeKind.INSTANCE_CREATION_EXPRESSION
    keyword: Optional[str] = None
    constructor_type: Optional[NamedType] = None
    constructor_name: Optional[SimpleIdentifier] = None
    argument_list: Optional[ArgumentList] = None
    element: Optional[ExecutableElement] = None


@dataclass(frozen=True, eq=False)
class ListLiteral(Expression):
    kind = NodeKind.LIST_LITERAL
    const_keyword: Optional[str] = None
    type_arguments: Optional[Tuple[NamedType, ...]] = None
    elements: Tuple[Expression, ...] = ()


@dataclass(frozen=True, eq=False)
class IntegerLiteral(Expression):
    """An integer literal; ``value`` is None when the resolver could not
    represent the literal's magnitude."""
    kind = NodeKind.INTEGER_LITERAL
    lexeme: str = ""
    value: Optional[int] = None


@dataclass(frozen=True, eq=False)
class DoubleLiteral(Expression):
    kind = NodeKind.DOUBLE_LITERAL
    lexeme: str = ""
    value: float = 0.0


@dataclass(frozen=True, eq=False)
class StringLiteral(Expression):
    kind = NodeKind.STRING_LITERAL
    value: str = ""


@dataclass(frozen=True, eq=False)
class PrefixExpression(Expression):
    kind = NodeKind.PREFIX_EXPRESSION
    operator: str = ""
    operand: Optional[Expression] = None


@dataclass(frozen=True, eq=False)
class ParenthesizedExpression(Expression):
    kind = NodeKind.PARENTHESIZED_EXPRESSION
    expression: Optional[Expression] = None


@dataclass(frozen=True, eq=False)
class CascadeExpression(Expression):
    """``target..a = 1..b()``; sections are cascaded property accesses,
    assignments and invocations."""
    kind = NodeKind.CASCADE_EXPRESSION
    target: Optional[Expression] = None
    sections: Tuple[Expression, ...] = ()


@dataclass(frozen=True, eq=False)
class BinaryExpression(Expression):
    kind = NodeKind.BINARY_EXPRESSION
    left_operand: Optional[Expression] = None
    operator: str = ""
    right_operand: Optional[Expression] = None


class SyntaxTree:
    """A parsed, resolved file: the root node plus location information."""

    def __init__(self, root: SyntaxNode, file_path: str = "<memory>",
                 text: Optional[str] = None, line_starts: Optional[List[int]] = None):
        self.root = root
        self.file_path = file_path
        self.text = text
        if line_starts is None:
            line_starts = _compute_line_starts(text) if text is not None else [0]
        self.line_starts = line_starts
        self._link_parents()

    def _link_parents(self) -> None:
        stack = [self.root]
        seen = {id(self.root)}
        while stack:
            node = stack.pop()
            for child in node.child_nodes():
                if id(child) in seen:
                    raise ValueError(f"{child.describe()} appears more than once in the tree")
                seen.add(id(child))
                object.__setattr__(child, '_parent', node)
                stack.append(child)

    def walk(self) -> Iterator[SyntaxNode]:
        """Yield every node once, pre-order, children in source order."""
        stack = [self.root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(list(node.child_nodes())))

    def line_col(self, offset: int) -> Tuple[int, int]:
        """Convert a 0-based offset to a 1-based (line, column)."""
        offset = max(offset, 0)
        index = bisect.bisect_right(self.line_starts, offset) - 1
        return index + 1, offset - self.line_starts[index] + 1

    def __repr__(self):
        return f"SyntaxTree({self.file_path})"


def _compute_line_starts(text: str) -> List[int]:
    starts = [0]
    for index, char in enumerate(text):
        if char == '\n':
            starts.append(index + 1)
    return starts
