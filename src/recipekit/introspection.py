"""Introspection of classes into constructor, method and field descriptors.

The accessor resolver and the constructor selector never look at classes
directly; they work from a :class:`TypeDescriptor` produced by an
:class:`Introspector`. The default introspector reads Python classes with
:mod:`inspect` and :func:`typing.get_type_hints`, applying these conventions:

- A member whose attribute name starts with one underscore is non-public; its
  logical name is the attribute name without the underscore. Dunder and
  name-mangled members are never described.
- ``staticmethod`` and ``classmethod`` members are static.
- ``@property`` objects are setter-like methods named after the property; the
  setter's value parameter is their only parameter. Read-only properties have
  no parameters.
- Fields are annotated class attributes; ``ClassVar`` annotations are static.
- Constructors are the ``typing.overload`` variants registered for
  ``__init__`` when there are any, otherwise the ``__init__`` (or ``__new__``)
  signature itself.

Subclass :class:`Introspector` to describe types some other way.
"""

import dataclasses
import inspect
import logging
import sys
import typing
from dataclasses import dataclass
from typing import Any, ClassVar, Iterator, Optional, get_args, get_origin, get_type_hints

from recipekit.errors import InvocationError
from recipekit.primitives import type_name

__all__ = [
    "ParameterDescriptor",
    "MethodDescriptor",
    "ConstructorDescriptor",
    "FieldDescriptor",
    "TypeDescriptor",
    "Introspector",
    "call_shapes",
]

logger = logging.getLogger(__name__)

_EMPTY = inspect.Parameter.empty
_NONE_TYPE = type(None)


@dataclass(frozen=True)
class ParameterDescriptor:
    """A single parameter of a constructor or method.

    Attributes:
        name: The parameter name.
        annotation: The resolved annotation, or ``inspect.Parameter.empty``.
        required: False when the parameter declares a default.
        keyword_only: True for parameters that must be passed by keyword.
        positional_only: True for parameters that can not be passed by keyword.
    """

    name: str
    annotation: Any = _EMPTY
    required: bool = True
    keyword_only: bool = False
    positional_only: bool = False

    def __str__(self):
        if self.annotation is _EMPTY:
            return self.name
        return f"{self.name}: {type_name(self.annotation)}"


def call_shapes(parameters: tuple[ParameterDescriptor, ...]) -> Iterator[tuple[ParameterDescriptor, ...]]:
    """Yield each parameter list a callable can be invoked with.

    Trailing positional parameters with defaults may be left out, so a callable
    with parameters ``(a, b=1, *, c)`` can be called as ``(a, c)`` or
    ``(a, b, c)``. Optional keyword-only parameters are never part of a shape.

    Example:
        >>> class Pool:
        ...     def __init__(self, size: int = 4, name: str = "default"): ...
        >>> init = Introspector().describe(Pool).constructors[0]
        >>> [len(shape) for shape in call_shapes(init.parameters)]
        [0, 1, 2]
    """
    positional = [p for p in parameters if not p.keyword_only]
    keyword = tuple(p for p in parameters if p.keyword_only and p.required)
    first_optional = next(
        (i for i, p in enumerate(positional) if not p.required), len(positional)
    )
    for count in range(first_optional, len(positional) + 1):
        yield tuple(positional[:count]) + keyword


def _split_arguments(shape, arguments):
    # overload parameters bind to the implementation by name
    args = [a for p, a in zip(shape, arguments) if p.positional_only]
    kwargs = {p.name: a for p, a in zip(shape, arguments) if not p.positional_only}
    return args, kwargs


@dataclass(frozen=True)
class ConstructorDescriptor:
    """One constructor signature of a class."""

    owner: type
    parameters: tuple[ParameterDescriptor, ...]
    public: bool = True

    @property
    def parameter_types(self) -> tuple:
        return tuple(p.annotation for p in self.parameters)

    def invoke(self, shape: tuple[ParameterDescriptor, ...], arguments: list) -> Any:
        """Create an instance, passing ``arguments`` in the order of ``shape``.

        Raises:
            InvocationError: If the constructor raises; the original exception is the cause.
        """
        args, kwargs = _split_arguments(shape, arguments)
        try:
            return self.owner(*args, **kwargs)
        except Exception as e:
            raise InvocationError(str(self)) from e

    def __str__(self):
        return f"{type_name(self.owner)}({', '.join(map(str, self.parameters))})"


@dataclass(frozen=True)
class MethodDescriptor:
    """A method, static method, class method or property of a class.

    Attributes:
        name: The logical name (attribute name without a leading underscore).
        attribute: The attribute name on the class.
        owner: The class declaring the member.
        parameters: The fixed parameters, excluding ``self`` or ``cls``.
        return_annotation: The return annotation, or ``inspect.Parameter.empty``.
        public: False for underscore-prefixed members.
        static: True for static and class methods.
        abstract: True for abstract methods and properties.
        is_property: True when the member is a property (assigned, not called).
    """

    name: str
    attribute: str
    owner: type
    parameters: tuple[ParameterDescriptor, ...]
    return_annotation: Any = _EMPTY
    public: bool = True
    static: bool = False
    abstract: bool = False
    is_property: bool = False

    @property
    def parameter_types(self) -> tuple:
        return tuple(p.annotation for p in self.parameters)

    @property
    def returns_value(self) -> bool:
        """True when the method is annotated to return something other than None."""
        return self.return_annotation not in (_EMPTY, None, _NONE_TYPE)

    @property
    def returns_nothing(self) -> bool:
        """True when the method is explicitly annotated to return None."""
        return self.return_annotation in (None, _NONE_TYPE)

    def invoke(self, target: Any, shape: tuple[ParameterDescriptor, ...], arguments: list) -> Any:
        """Call the method on ``target`` (an instance, or the class for static members).

        Properties are assigned their single argument instead of being called.

        Raises:
            InvocationError: If the call raises; the original exception is the cause.
        """
        try:
            if self.is_property:
                setattr(target, self.attribute, arguments[0])
                return None
            args, kwargs = _split_arguments(shape, arguments)
            return getattr(target, self.attribute)(*args, **kwargs)
        except Exception as e:
            raise InvocationError(str(self)) from e

    def __str__(self):
        prefix = "static " if self.static else ""
        if self.is_property:
            return f"property {type_name(self.owner)}.{self.attribute}"
        return f"{prefix}{type_name(self.owner)}.{self.attribute}({', '.join(map(str, self.parameters))})"


@dataclass(frozen=True)
class FieldDescriptor:
    """An annotated attribute of a class."""

    name: str
    attribute: str
    owner: type
    annotation: Any = _EMPTY
    public: bool = True
    static: bool = False

    def assign(self, instance: Any, value: Any):
        """Set the field on ``instance``.

        Raises:
            InvocationError: If the assignment raises (frozen dataclasses, slots, descriptors).
        """
        try:
            setattr(instance, self.attribute, value)
        except Exception as e:
            raise InvocationError(str(self)) from e

    def __str__(self):
        prefix = "static " if self.static else ""
        return f"{prefix}{type_name(self.owner)}.{self.attribute}: {type_name(self.annotation)}"


@dataclass(frozen=True)
class TypeDescriptor:
    """Everything the resolver and selector need to know about a class.

    Attributes:
        cls: The described class.
        public: False for classes whose name starts with an underscore.
        interface: True for ``typing.Protocol`` classes.
        abstract: True for classes with unimplemented abstract methods.
        constructors: Constructors that may be used.
        declared_constructors: All constructors, including non-public ones.
        methods: Public methods of the class and its ancestors, most-derived first.
        declared_methods: All methods declared directly on the class.
        fields: Fields of the class, then of each ancestor, most-derived first.
    """

    cls: type
    public: bool
    interface: bool
    abstract: bool
    constructors: tuple[ConstructorDescriptor, ...]
    declared_constructors: tuple[ConstructorDescriptor, ...]
    methods: tuple[MethodDescriptor, ...]
    declared_methods: tuple[MethodDescriptor, ...]
    fields: tuple[FieldDescriptor, ...]

    @property
    def name(self) -> str:
        return type_name(self.cls)


def _logical_name(attribute: str) -> str:
    return attribute[1:] if attribute.startswith("_") else attribute


def _is_described(klass: type, attribute: str) -> bool:
    if attribute.startswith("__"):
        return False
    mangled_prefix = f"_{klass.__name__.lstrip('_')}__"
    return not attribute.startswith(mangled_prefix)


def _type_hints(obj: Any) -> dict[str, Any]:
    try:
        return get_type_hints(obj)
    except (NameError, TypeError, AttributeError):
        annotations = dict(getattr(obj, "__annotations__", None) or {})
        return _resolve_each(annotations, getattr(obj, "__globals__", None) or {})


def _resolve_each(annotations: dict[str, Any], globalns: dict, localns: Optional[dict] = None) -> dict[str, Any]:
    """Evaluate string annotations one by one.

    Used when :func:`typing.get_type_hints` fails because some annotation can
    not be resolved, typically a name imported only under ``TYPE_CHECKING``.
    Those annotations stay strings and are treated as unchecked; every other
    annotation is resolved as usual.
    """
    resolved = {}
    for name, annotation in annotations.items():
        if isinstance(annotation, str):
            try:
                annotation = eval(annotation, globalns, localns)
            except (NameError, AttributeError, TypeError, SyntaxError):
                logger.debug("Annotation %r of %s left unresolved", annotation, name)
        resolved[name] = _NONE_TYPE if annotation is None else annotation
    return resolved


def _parameters(func: Any, drop_first: bool) -> tuple[ParameterDescriptor, ...]:
    try:
        signature = inspect.signature(func)
    except (ValueError, TypeError):
        return ()
    hints = _type_hints(func)
    parameters = list(signature.parameters.values())
    if drop_first and parameters and parameters[0].kind in (
        inspect.Parameter.POSITIONAL_ONLY,
        inspect.Parameter.POSITIONAL_OR_KEYWORD,
    ):
        parameters = parameters[1:]
    return tuple(
        ParameterDescriptor(
            p.name,
            hints.get(p.name, _EMPTY),
            p.default is _EMPTY,
            p.kind is inspect.Parameter.KEYWORD_ONLY,
            p.kind is inspect.Parameter.POSITIONAL_ONLY,
        )
        for p in parameters
        if p.kind not in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
    )


class Introspector:
    """Build :class:`TypeDescriptor` objects from Python classes."""

    def describe(self, cls: type) -> TypeDescriptor:
        constructors = tuple(self.constructors(cls))
        return TypeDescriptor(
            cls,
            not cls.__name__.startswith("_"),
            bool(getattr(cls, "_is_protocol", False)),
            inspect.isabstract(cls),
            tuple(c for c in constructors if c.public),
            constructors,
            tuple(self.methods(cls)),
            tuple(self.declared_methods(cls)),
            tuple(self.fields(cls)),
        )

    def constructors(self, cls: type) -> Iterator[ConstructorDescriptor]:
        init = cls.__init__
        overloads = typing.get_overloads(init) if inspect.isfunction(init) else []
        if overloads:
            for overload in overloads:
                yield ConstructorDescriptor(cls, _parameters(overload, drop_first=True))
        elif init is object.__init__ and cls.__new__ is not object.__new__:
            yield ConstructorDescriptor(cls, _parameters(cls.__new__, drop_first=True))
        elif init is object.__init__:
            yield ConstructorDescriptor(cls, ())
        else:
            yield ConstructorDescriptor(cls, _parameters(init, drop_first=True))

    def methods(self, cls: type) -> Iterator[MethodDescriptor]:
        seen = set()
        for klass in _ancestry(cls):
            for method in self.declared_methods(klass):
                if method.attribute in seen:
                    continue
                seen.add(method.attribute)
                if method.public:
                    yield method

    def declared_methods(self, cls: type) -> Iterator[MethodDescriptor]:
        for attribute, raw in vars(cls).items():
            if not _is_described(cls, attribute):
                continue
            method = self._method(cls, attribute, raw)
            if method is not None:
                yield method

    def fields(self, cls: type) -> Iterator[FieldDescriptor]:
        for klass in _ancestry(cls):
            yield from self.declared_fields(klass)

    def declared_fields(self, cls: type) -> Iterator[FieldDescriptor]:
        hints = _class_hints(cls)
        for attribute in inspect.get_annotations(cls):
            if not _is_described(cls, attribute):
                continue
            annotation = hints.get(attribute, _EMPTY)
            if isinstance(annotation, dataclasses.InitVar):
                continue
            static = annotation is ClassVar or get_origin(annotation) is ClassVar
            if static:
                args = get_args(annotation)
                annotation = args[0] if args else _EMPTY
            yield FieldDescriptor(
                _logical_name(attribute),
                attribute,
                cls,
                annotation,
                not attribute.startswith("_"),
                static,
            )

    def _method(self, cls: type, attribute: str, raw: Any) -> Optional[MethodDescriptor]:
        name = _logical_name(attribute)
        public = not attribute.startswith("_")
        if isinstance(raw, property):
            parameters = _parameters(raw.fset, drop_first=True) if raw.fset else ()
            return MethodDescriptor(
                name, attribute, cls, parameters, None, public,
                abstract=bool(getattr(raw, "__isabstractmethod__", False)),
                is_property=True,
            )
        if isinstance(raw, (staticmethod, classmethod)):
            func = raw.__func__
            static = True
            drop_first = isinstance(raw, classmethod)
        elif inspect.isfunction(raw):
            func = raw
            static = False
            drop_first = True
        else:
            return None
        return MethodDescriptor(
            name,
            attribute,
            cls,
            _parameters(func, drop_first),
            _type_hints(func).get("return", _EMPTY),
            public,
            static,
            bool(getattr(func, "__isabstractmethod__", False)),
        )


def _ancestry(cls: type) -> list[type]:
    return [klass for klass in cls.__mro__ if klass is not object]


def _class_hints(cls: type) -> dict[str, Any]:
    try:
        return get_type_hints(cls)
    except (NameError, TypeError, AttributeError):
        module = sys.modules.get(cls.__module__)
        return _resolve_each(
            dict(inspect.get_annotations(cls)), vars(module) if module else {}, dict(vars(cls))
        )
