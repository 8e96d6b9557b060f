"""
Resolved element and type model.

These are the handles the external resolver attaches to syntax nodes. The
engine never computes them; it only reads them through the type query facade.
Elements compare by identity, types compare structurally.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union


CORE_LIBRARY = "dart.core"
HTML_LIBRARY = "dart.dom.html"


@dataclass(eq=False)
class ClassElement:
    """A class, mixin or interface declaration."""
    name: str
    library_id: str
    superclass: Optional['InterfaceType'] = None
    mixins: List['InterfaceType'] = field(default_factory=list)
    interfaces: List['InterfaceType'] = field(default_factory=list)
    type_parameters: Tuple[str, ...] = ()

    @property
    def this_type(self) -> 'InterfaceType':
        return InterfaceType(self)

    @property
    def supertypes(self) -> List['InterfaceType']:
        result = []
        if self.superclass is not None:
            result.append(self.superclass)
        result.extend(self.mixins)
        result.extend(self.interfaces)
        return result

    def __repr__(self):
        return f"ClassElement({self.library_id}::{self.name})"


@dataclass(frozen=True)
class InterfaceType:
    """An instantiation of a class, e.g. ``List<double>``."""
    element: ClassElement
    type_arguments: Tuple['ResolvedType', ...] = ()

    @property
    def name(self) -> str:
        return self.element.name

    def __str__(self):
        if not self.type_arguments:
            return self.element.name
        return f"{self.element.name}<{', '.join(str(t) for t in self.type_arguments)}>"


class DynamicType:
    """The top type whose members are not statically known."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "dynamic"

    __str__ = __repr__


DYNAMIC = DynamicType()

ResolvedType = Union[InterfaceType, DynamicType]


class ParameterKind(str, Enum):
    REQUIRED_POSITIONAL = "required_positional"
    OPTIONAL_POSITIONAL = "optional_positional"
    NAMED = "named"

    @property
    def is_positional(self) -> bool:
        return self is not ParameterKind.NAMED


@dataclass(eq=False)
class ParameterElement:
    name: str
    type: Optional[ResolvedType] = None
    kind: ParameterKind = ParameterKind.REQUIRED_POSITIONAL

    @property
    def is_named(self) -> bool:
        return self.kind is ParameterKind.NAMED


@dataclass(eq=False)
class ExecutableElement:
    """A method, function, constructor, getter or setter."""
    name: str
    parameters: List[ParameterElement] = field(default_factory=list)
    return_type: Optional[ResolvedType] = None
    enclosing_element: Optional[ClassElement] = None

    @property
    def positional_parameters(self) -> List[ParameterElement]:
        return [p for p in self.parameters if p.kind.is_positional]

    def named_parameter(self, name: str) -> Optional[ParameterElement]:
        for parameter in self.parameters:
            if parameter.is_named and parameter.name == name:
                return parameter
        return None


@dataclass(eq=False)
class VariableElement:
    """A field, top-level variable or local variable."""
    name: str
    type: Optional[ResolvedType] = None
    enclosing_element: Optional[ClassElement] = None


Element = Union[ClassElement, ExecutableElement, ParameterElement, VariableElement]


def core_class(name: str, *type_parameters: str) -> ClassElement:
    """Create a class element in the core library."""
    return ClassElement(name=name, library_id=CORE_LIBRARY,
                        type_parameters=tuple(type_parameters))


# Built-in core classes shared by every resolved tree
OBJECT = core_class("Object")
NUM = ClassElement("num", CORE_LIBRARY, superclass=OBJECT.this_type)
INT = ClassElement("int", CORE_LIBRARY, superclass=NUM.this_type)
DOUBLE = ClassElement("double", CORE_LIBRARY, superclass=NUM.this_type)
STRING = ClassElement("String", CORE_LIBRARY, superclass=OBJECT.this_type)
LIST = ClassElement("List", CORE_LIBRARY, superclass=OBJECT.this_type, type_parameters=("E",))

INT_TYPE = INT.this_type
DOUBLE_TYPE = DOUBLE.this_type
NUM_TYPE = NUM.this_type
STRING_TYPE = STRING.this_type


def list_of(element_type: ResolvedType) -> InterfaceType:
    return InterfaceType(LIST, (element_type,))
