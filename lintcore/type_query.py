"""
Type query facade over the resolved model.

Rules never walk the element model themselves; they ask this facade. Every
query is side-effect free and tolerant of partially resolved input: anything
that cannot be answered comes back as None, False or Tristate.UNKNOWN. The
facade does not decide what "unknown" means; each rule does.
"""

import logging
from typing import Dict, Iterable, Optional, Tuple

from .elements import (
    CORE_LIBRARY, ClassElement, DynamicType, ExecutableElement, InterfaceType,
    ParameterElement, ResolvedType,
)
from .syntax import (
    ArgumentList, Expression, FunctionExpressionInvocation, InstanceCreationExpression,
    MethodInvocation, NamedExpression, NamedType, SyntaxNode,
)
from .types import Tristate

logger = logging.getLogger(__name__)


class TypeQuery:
    """Answers subtype, exact-type and static-type questions for rules."""

    def __init__(self):
        self._extends_cache: Dict[Tuple[ClassElement, str, str], bool] = {}

    # === Type classification ===

    def is_dynamic_or_unresolved(self, type: Optional[ResolvedType]) -> bool:
        return type is None or isinstance(type, DynamicType)

    def extends_class(self, type: Optional[ResolvedType], class_name: str, library_id: str) -> bool:
        """True iff ``type`` is, or transitively extends, mixes in or implements,
        the class ``class_name`` declared in ``library_id``."""
        if not isinstance(type, InterfaceType):
            return False

        key = (type.element, class_name, library_id)
        cached = self._extends_cache.get(key)
        if cached is None:
            cached = self._search_supertypes(type.element, class_name, library_id)
            self._extends_cache[key] = cached
        return cached

    def _search_supertypes(self, element: ClassElement, class_name: str, library_id: str) -> bool:
        stack = [element]
        seen = set()
        try:
            while stack:
                current = stack.pop()
                if current in seen:
                    continue
                seen.add(current)
                if current.name == class_name and current.library_id == library_id:
                    return True
                for supertype in current.supertypes:
                    if isinstance(supertype, InterfaceType):
                        stack.append(supertype.element)
        except (AttributeError, TypeError) as e:
            logger.debug(f"Malformed class hierarchy under {element!r}: {e}")
        return False

    def classify_extends(self, type: Optional[ResolvedType], class_names: Iterable[str],
                         library_id: str) -> Tristate:
        """MATCH if the type extends any of the classes, UNKNOWN if the type is
        dynamic or unresolved."""
        if self.is_dynamic_or_unresolved(type):
            return Tristate.UNKNOWN
        return Tristate.of(any(self.extends_class(type, name, library_id) for name in class_names))

    def is_exact_builtin(self, type: Optional[ResolvedType], class_name: str) -> bool:
        """True iff the type is exactly the core class (``int``, ``double``...)."""
        return (isinstance(type, InterfaceType)
                and type.element.name == class_name
                and type.element.library_id == CORE_LIBRARY)

    def classify_exact(self, type: Optional[ResolvedType], class_name: str) -> Tristate:
        if self.is_dynamic_or_unresolved(type):
            return Tristate.UNKNOWN
        return Tristate.of(self.is_exact_builtin(type, class_name))

    def classify_double_representable(self, value: Optional[int]) -> Tristate:
        """Whether an integer literal value converts to a double without loss.

        None (the resolver could not represent the literal) and overflow are
        UNKNOWN; precision loss is NO_MATCH.
        """
        if value is None:
            return Tristate.UNKNOWN
        try:
            as_double = float(value)
        except OverflowError:
            return Tristate.UNKNOWN
        return Tristate.of(int(as_double) == value)

    # === Expression and element queries ===

    def static_type_of(self, expression: Optional[SyntaxNode]) -> Optional[ResolvedType]:
        """The resolver's best-known static type of an expression, or None."""
        if not isinstance(expression, Expression):
            return None
        expression = expression.unparenthesized
        if expression.static_type is not None:
            return expression.static_type
        element = getattr(expression, 'static_element', None)
        return getattr(element, 'type', None)

    def declared_type_of(self, annotation: Optional[NamedType]) -> Optional[ResolvedType]:
        if annotation is None:
            return None
        return annotation.type

    def enclosing_class_type(self, element) -> Optional[InterfaceType]:
        """``this`` type of the class declaring ``element``, if it is a class member."""
        enclosing = getattr(element, 'enclosing_element', None)
        if isinstance(enclosing, ClassElement):
            return enclosing.this_type
        return None

    def invoked_element(self, invocation: Optional[SyntaxNode]) -> Optional[ExecutableElement]:
        if isinstance(invocation, MethodInvocation):
            element = invocation.method_name.static_element if invocation.method_name else None
        elif isinstance(invocation, (FunctionExpressionInvocation, InstanceCreationExpression)):
            element = invocation.element
        else:
            element = None
        return element if isinstance(element, ExecutableElement) else None

    def parameter_at_call_site(self, argument: Optional[SyntaxNode]) -> Optional[ParameterElement]:
        """The parameter an argument binds to.

        Named arguments (NamedExpression) match by name; positional arguments
        match by their index among the positional arguments.
        """
        if argument is None:
            return None
        argument_list = argument.parent
        if not isinstance(argument_list, ArgumentList):
            return None
        executable = self.invoked_element(argument_list.parent)
        if executable is None:
            return None

        if isinstance(argument, NamedExpression):
            return executable.named_parameter(argument.name)

        index = 0
        for candidate in argument_list.arguments:
            if candidate is argument:
                break
            if not isinstance(candidate, NamedExpression):
                index += 1
        else:
            return None

        positional = executable.positional_parameters
        if index < len(positional):
            return positional[index]
        return None

    def parameter_type_at_call_site(self, argument: Optional[SyntaxNode]) -> Optional[ResolvedType]:
        """Declared type of the parameter matching a call argument, or None."""
        parameter = self.parameter_at_call_site(argument)
        if parameter is None:
            return None
        return parameter.type

    def clear_cache(self) -> None:
        self._extends_cache.clear()
