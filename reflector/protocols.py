# reflector/protocols.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
from typing import Any, Callable, Protocol, Tuple, runtime_checkable

from reflector.types import TypeDescriptor


@runtime_checkable
class TypeFacility(Protocol):
    """
    Capability protocol for the primitive runtime type operations the
    metadata builder and the wrappers rely on.

    Methods:
        type_of(value): Type descriptor of a value, None for nil.
        kind_of_type(tp): Kind of a type descriptor or declared type hint.
        is_struct_type(tp): Whether fields can be enumerated on tp.
        elem_type(tp): Element type of a pointer type, None otherwise.
        struct_fields(tp): Declared fields in declaration order.
        method_set(tp): Methods visible on tp, sorted by name.
        signature_types(func): (signature, input types, output types).
        is_assignable(value, hint): Whether value may be stored under hint.
        zero_value(tp): A fresh zero value of tp.
        type_string(tp): Human readable type name.

    Runtime Invariants:
    - Every answer depends only on the type, never on a particular value,
      except type_of and is_assignable.
    - Descriptors returned by type_of are hashable and compare equal for
      the same type.

    Error Handling:
    - Implementations report "nothing" (empty tuples, None, Kind.INVALID)
      for types they cannot inspect rather than raising.
    """

    def type_of(self, value: Any) -> TypeDescriptor: ...

    def kind_of_type(self, tp: Any) -> Any: ...

    def is_struct_type(self, tp: Any) -> bool: ...

    def elem_type(self, tp: Any) -> TypeDescriptor: ...

    def struct_fields(self, tp: Any) -> Tuple[Any, ...]: ...

    def method_set(self, tp: Any) -> Tuple[Any, ...]: ...

    def signature_types(self, func: Callable[..., Any]) -> Tuple[Any, Tuple[Any, ...], Tuple[Any, ...]]: ...

    def is_assignable(self, value: Any, hint: Any) -> bool: ...

    def zero_value(self, tp: Any) -> Any: ...

    def type_string(self, tp: Any) -> str: ...
