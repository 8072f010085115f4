# reflector/runtime.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
"""
Runtime type facility.

Everything the wrappers know about Python values goes through this module:
type identity, kinds, declared struct fields, method sets, signatures,
assignability and zero values. Structs are dataclasses; addressability is
modelled explicitly with Pointer, so a dataclass instance wrapped directly
behaves as a value and one wrapped in a Pointer behaves as addressable.
"""

from __future__ import annotations

import collections.abc
import dataclasses
import inspect
import sys
import types
import typing
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, Dict, Generic, Optional, Tuple, TypeVar

from reflector.errors import NilPointerError
from reflector.types import FieldPath, TypeDescriptor

T = TypeVar("T")

TAG_METADATA_KEY = "reflector.tag"
EMBEDDED_METADATA_KEY = "reflector.embedded"
POINTER_RECEIVER_ATTR = "__reflector_pointer_receiver__"

_HINT_ERRORS = (NameError, TypeError, AttributeError, SyntaxError)


class Kind(Enum):
    """Coarse classification of a value or a declared type."""

    INVALID = auto()
    BOOL = auto()
    INT = auto()
    FLOAT = auto()
    COMPLEX = auto()
    STRING = auto()
    BYTES = auto()
    SLICE = auto()
    ARRAY = auto()
    MAP = auto()
    STRUCT = auto()
    POINTER = auto()
    INTERFACE = auto()
    FUNC = auto()
    OTHER = auto()

    def __str__(self) -> str:
        return self.name.lower()


# bool before int: bool is an int subclass.
_KIND_TABLE = (
    (bool, Kind.BOOL),
    (int, Kind.INT),
    (float, Kind.FLOAT),
    (complex, Kind.COMPLEX),
    (str, Kind.STRING),
    ((bytes, bytearray), Kind.BYTES),
    (list, Kind.SLICE),
    (tuple, Kind.ARRAY),
    (dict, Kind.MAP),
    ((types.FunctionType, types.BuiltinFunctionType, types.MethodType), Kind.FUNC),
)

_ZERO_CONSTRUCTIBLE = (bool, int, float, complex, str, bytes, bytearray, list, tuple, dict, set, frozenset)

_PROMOTIONS = {float: (int, float), complex: (int, float, complex)}


@dataclass(frozen=True)
class PointerType:
    """Type descriptor of a Pointer. Two pointers to the same element type compare equal."""

    elem: TypeDescriptor

    def __str__(self) -> str:
        return type_string(self)


class Pointer(Generic[T]):
    """
    An addressable reference to a value.

    Wrapping ``Pointer(person)`` instead of ``person`` makes the struct's
    fields settable. ``Pointer.null(Person)`` is a nil pointer that still
    knows its element type.
    """

    __slots__ = ("_target", "_elem")

    def __init__(self, target: Optional[T], elem: TypeDescriptor = None) -> None:
        if target is None and elem is None:
            raise TypeError("a nil Pointer needs an element type")
        self._target = target
        self._elem = elem if elem is not None else type_of(target)

    @classmethod
    def null(cls, elem: TypeDescriptor) -> "Pointer":
        return cls(None, elem)

    @property
    def elem(self) -> TypeDescriptor:
        return self._elem

    def is_nil(self) -> bool:
        return self._target is None

    def deref(self) -> T:
        """
        Return the pointed-to value.

        :raises NilPointerError: If the pointer is nil.
        """
        if self._target is None:
            raise NilPointerError(f"nil pointer dereference of {type_string(PointerType(self._elem))}")
        return self._target

    def store(self, value: T) -> None:
        """Replace the pointed-to value."""
        self._target = value

    def __repr__(self) -> str:
        if self._target is None:
            return f"Pointer.null({type_string(self._elem)})"
        return f"Pointer({self._target!r})"


@dataclass(frozen=True)
class StructField:
    """One declared field of a struct type."""

    name: str
    type: Any
    tag: str
    anonymous: bool
    exported: bool
    index: int


@dataclass(frozen=True)
class MethodSpec:
    """One entry of a type's method set."""

    name: str
    func: Callable[..., Any]
    pointer_receiver: bool


# -----------------------------------------------------------------------------
# DECLARATION MARKERS
# -----------------------------------------------------------------------------


def tagged(tag: str, **kwargs: Any) -> Any:
    """
    Declare a dataclass field carrying a raw struct tag, e.g.
    ``street: str = tagged('json:"street" db:"st"', default="")``.
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[TAG_METADATA_KEY] = tag
    return dataclasses.field(metadata=metadata, **kwargs)


def embed(struct_type: type, tag: str = "", **kwargs: Any) -> Any:
    """
    Declare an embedded (anonymous) struct field. Its exported fields are
    promoted into the enclosing struct's namespace. The embedded type is
    recorded in the field metadata, so embedding does not depend on the
    annotation being resolvable.
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[EMBEDDED_METADATA_KEY] = struct_type
    if tag:
        metadata[TAG_METADATA_KEY] = tag
    if "default" not in kwargs and "default_factory" not in kwargs:
        kwargs["default_factory"] = struct_type
    return dataclasses.field(metadata=metadata, **kwargs)


def pointer_receiver(func: Callable[..., Any]) -> Callable[..., Any]:
    """Mark a method as callable only through a Pointer."""
    setattr(func, POINTER_RECEIVER_ATTR, True)
    return func


# -----------------------------------------------------------------------------
# TYPE IDENTITY AND KINDS
# -----------------------------------------------------------------------------


def type_of(value: Any) -> TypeDescriptor:
    if value is None:
        return None
    if isinstance(value, Pointer):
        return PointerType(value.elem)
    return type(value)


def kind_of(value: Any) -> Kind:
    return kind_of_type(type_of(value))


def kind_of_type(tp: Any) -> Kind:
    """Classify a type descriptor or a declared type hint."""
    if tp is None:
        return Kind.INVALID
    if isinstance(tp, PointerType) or tp is Pointer:
        return Kind.POINTER
    if tp is Any:
        return Kind.INTERFACE
    origin = typing.get_origin(tp)
    if origin is Pointer:
        return Kind.POINTER
    if origin is typing.Union or origin is types.UnionType:
        return Kind.INTERFACE
    if origin is collections.abc.Callable:
        return Kind.FUNC
    base = origin if origin is not None else tp
    if not isinstance(base, type):
        return Kind.OTHER
    if dataclasses.is_dataclass(base):
        return Kind.STRUCT
    for classes, kind in _KIND_TABLE:
        if issubclass(base, classes):
            return kind
    return Kind.OTHER


def is_struct_type(tp: Any) -> bool:
    return isinstance(tp, type) and dataclasses.is_dataclass(tp)


def elem_type(tp: Any) -> TypeDescriptor:
    """Element type of a pointer descriptor or ``Pointer[X]`` hint, else None."""
    if isinstance(tp, PointerType):
        return tp.elem
    if typing.get_origin(tp) is Pointer:
        return typing.get_args(tp)[0]
    return None


def type_string(tp: Any) -> str:
    if tp is None:
        return "nil"
    if isinstance(tp, PointerType):
        return "*" + type_string(tp.elem)
    if isinstance(tp, type) and typing.get_origin(tp) is None:
        if tp.__module__ == "builtins":
            return tp.__qualname__
        return f"{tp.__module__}.{tp.__qualname__}"
    return repr(tp)


def is_exported(name: str) -> bool:
    return bool(name) and not name.startswith("_")


def _type_hints(obj: Any) -> Dict[str, Any]:
    try:
        return typing.get_type_hints(obj)
    except _HINT_ERRORS:
        # Unresolvable forward references fall back to the raw annotations.
        return {}


def _class_hints(tp: type) -> Dict[str, Any]:
    """
    Annotations of a class, resolved one at a time.

    A string annotation that cannot be evaluated in its defining module and
    class namespace stays a string; the other annotations still resolve.
    """
    hints = _type_hints(tp)
    if hints:
        return hints
    for klass in reversed(tp.__mro__):
        annotations = klass.__dict__.get("__annotations__", {})
        if not annotations:
            continue
        module = sys.modules.get(klass.__module__)
        globalns = dict(getattr(module, "__dict__", {}))
        localns = dict(vars(klass))
        localns.setdefault(klass.__name__, klass)
        for name, annotation in annotations.items():
            hints[name] = _resolve_annotation(annotation, globalns, localns)
    return hints


def _resolve_annotation(annotation: Any, globalns: Dict[str, Any], localns: Dict[str, Any]) -> Any:
    if isinstance(annotation, typing.ForwardRef):
        annotation = annotation.__forward_arg__
    if not isinstance(annotation, str):
        return annotation
    try:
        return eval(annotation, globalns, localns)
    except _HINT_ERRORS:
        return annotation


# -----------------------------------------------------------------------------
# STRUCT FIELDS
# -----------------------------------------------------------------------------


def _declared_type(f: dataclasses.Field, hints: Dict[str, Any]) -> Any:
    embedded = f.metadata.get(EMBEDDED_METADATA_KEY)
    if isinstance(embedded, type):
        return embedded
    return hints.get(f.name, f.type)


def struct_fields(tp: Any) -> Tuple[StructField, ...]:
    """Declared fields of a struct type in declaration order; empty for anything else."""
    if not is_struct_type(tp):
        return ()
    hints = _class_hints(tp)
    return tuple(
        StructField(
            name=f.name,
            type=_declared_type(f, hints),
            tag=f.metadata.get(TAG_METADATA_KEY, ""),
            anonymous=EMBEDDED_METADATA_KEY in f.metadata,
            exported=is_exported(f.name),
            index=index,
        )
        for index, f in enumerate(dataclasses.fields(tp))
    )


def resolve_parent(struct_value: Any, path: FieldPath) -> Any:
    """
    Walk every step of ``path`` but the last, starting at ``struct_value``.

    Returns the object owning the final attribute, or None when a step is
    missing or nil.
    """
    current = struct_value
    for name in path[:-1]:
        if current is None:
            return None
        current = getattr(current, name, None)
    return current


# -----------------------------------------------------------------------------
# METHODS
# -----------------------------------------------------------------------------


def method_set(tp: Any) -> Tuple[MethodSpec, ...]:
    """
    Public methods visible on a type descriptor, sorted by name.

    A class sees its value methods; a PointerType additionally sees the
    element's pointer-receiver methods. Pointers to pointers have none.
    """
    include_pointer = False
    if isinstance(tp, PointerType):
        tp = tp.elem
        include_pointer = True
    if not isinstance(tp, type) or typing.get_origin(tp) is not None:
        return ()

    specs = []
    for name in sorted(dir(tp)):
        if not is_exported(name):
            continue
        raw = inspect.getattr_static(tp, name)
        if not inspect.isfunction(raw):
            continue
        on_pointer = bool(getattr(raw, POINTER_RECEIVER_ATTR, False))
        if on_pointer and not include_pointer:
            continue
        specs.append(MethodSpec(name=name, func=raw, pointer_receiver=on_pointer))
    return tuple(specs)


def result_types(hint: Any) -> Tuple[Any, ...]:
    """
    Output types described by a return annotation.

    None means no results; a fixed-length tuple of two or more elements is
    a multi-value return; anything else is a single result.
    """
    if hint is None or hint is type(None):
        return ()
    if hint is tuple or hint is typing.Tuple:
        return (hint,)
    if typing.get_origin(hint) is tuple:
        args = typing.get_args(hint)
        if args == () or args == ((),):
            return ()
        if len(args) >= 2 and args[-1] is not Ellipsis:
            return tuple(args)
    return (hint,)


def signature_types(func: Callable[..., Any]) -> Tuple[inspect.Signature, Tuple[Any, ...], Tuple[Any, ...]]:
    """
    Signature of an unbound method with its input types (receiver excluded)
    and output types.
    """
    signature = inspect.signature(func)
    hints = _type_hints(func)
    params = list(signature.parameters.values())[1:]
    in_types = tuple(
        hints.get(p.name, Any if p.annotation is inspect.Parameter.empty else p.annotation) for p in params
    )
    if "return" in hints:
        out_types = result_types(hints["return"])
    elif signature.return_annotation is inspect.Signature.empty:
        out_types = (Any,)
    else:
        out_types = result_types(signature.return_annotation)
    return signature, in_types, out_types


# -----------------------------------------------------------------------------
# VALUES
# -----------------------------------------------------------------------------


def is_assignable(value: Any, hint: Any) -> bool:
    """Whether ``value`` may be stored where ``hint`` is declared."""
    if hint is Any or isinstance(hint, (TypeVar, str, typing.ForwardRef)):
        return True
    if hint is None or hint is type(None):
        return value is None
    if isinstance(hint, PointerType):
        return isinstance(value, Pointer)
    origin = typing.get_origin(hint)
    if origin is typing.Union or origin is types.UnionType:
        return any(is_assignable(value, arg) for arg in typing.get_args(hint))
    if origin is typing.Literal:
        return value in typing.get_args(hint)
    if origin is collections.abc.Callable:
        return callable(value)
    base = origin if origin is not None else hint
    if not isinstance(base, type):
        return True
    try:
        return isinstance(value, _PROMOTIONS.get(base, base))
    except TypeError:
        # Protocols that are not runtime checkable.
        return True


def zero_value(tp: Any, _seen: Optional[set] = None) -> Any:
    """Zero value of a type: 0, "", empty containers, nil pointers, zeroed structs, else None."""
    pointee = elem_type(tp)
    if pointee is not None:
        return Pointer.null(pointee)
    origin = typing.get_origin(tp)
    base = origin if origin is not None else tp
    if is_struct_type(base):
        seen = set() if _seen is None else _seen
        if base in seen:
            return None
        return _zero_struct(base, seen | {base})
    if isinstance(base, type) and issubclass(base, _ZERO_CONSTRUCTIBLE):
        try:
            return base()
        except TypeError:
            return None
    return None


def _zero_struct(tp: type, seen: set) -> Any:
    hints = _class_hints(tp)
    kwargs = {}
    for f in dataclasses.fields(tp):
        if not f.init:
            continue
        if f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
            kwargs[f.name] = zero_value(_declared_type(f, hints), seen)
    return tp(**kwargs)


class DataclassFacility:
    """TypeFacility implementation over dataclasses, typing and inspect."""

    type_of = staticmethod(type_of)
    kind_of_type = staticmethod(kind_of_type)
    is_struct_type = staticmethod(is_struct_type)
    elem_type = staticmethod(elem_type)
    struct_fields = staticmethod(struct_fields)
    method_set = staticmethod(method_set)
    signature_types = staticmethod(signature_types)
    is_assignable = staticmethod(is_assignable)
    zero_value = staticmethod(zero_value)
    type_string = staticmethod(type_string)


NATIVE_FACILITY = DataclassFacility()
