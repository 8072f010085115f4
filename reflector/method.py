# reflector/method.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import copy
import inspect
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, List, Optional, Sequence

from reflector.errors import ArgumentError, MethodResolutionError
from reflector.metadata import MethodMetadata

if TYPE_CHECKING:
    from reflector.obj import Obj


@dataclass
class CallResult:
    """
    Values returned by a dynamic call.

    If the last value is an exception instance it is also exposed as
    ``error``; ``result`` always keeps every returned value.
    """

    result: List[Any] = field(default_factory=list)
    error: Optional[BaseException] = None

    @classmethod
    def from_values(cls, values: Sequence[Any]) -> "CallResult":
        values = list(values)
        error = None
        if values and isinstance(values[-1], BaseException):
            error = values[-1]
        return cls(result=values, error=error)

    def is_error(self) -> bool:
        return self.error is not None


class ObjMethod:
    """A method of one wrapped value. The name may not exist; check is_valid()."""

    __slots__ = ("_obj", "_metadata")

    def __init__(self, obj: "Obj", metadata: MethodMetadata) -> None:
        self._obj = obj
        self._metadata = metadata

    @property
    def metadata(self) -> MethodMetadata:
        return self._metadata

    def name(self) -> str:
        return self._metadata.name

    def in_types(self) -> List[Any]:
        return list(self._metadata.in_types)

    def out_types(self) -> List[Any]:
        return list(self._metadata.out_types)

    def is_valid(self) -> bool:
        return self._metadata.valid

    def call(self, *args: Any) -> CallResult:
        """
        Invoke the method on the wrapped value.

        Errors returned by the method end up in CallResult.error; this method
        only raises when the call cannot be made. Exceptions raised by the
        method itself propagate unchanged. A wrapper that is not a Pointer
        calls the method on a shallow copy of the value.

        :raises MethodResolutionError: If the object or method is invalid, or
            the receiver is a nil pointer.
        :raises ArgumentError: If the arguments do not fit the signature.
        """
        if not self._obj.is_valid():
            raise MethodResolutionError(f"invalid object type {self._obj} for method {self.name()}")
        if not self.is_valid():
            raise MethodResolutionError(f"invalid method {self.name()} in {self._obj}")

        receiver = self._obj._receiver()
        if not self._obj.is_ptr():
            # Value wrappers call on a shallow copy; only a Pointer shares the value.
            receiver = copy.copy(receiver)
        self._check_arguments(receiver, args)
        returned = self._metadata.func(receiver, *args)
        return CallResult.from_values(self._pack(returned))

    def _check_arguments(self, receiver: Any, args: Sequence[Any]) -> None:
        signature = self._metadata.signature
        try:
            bound = signature.bind(receiver, *args)
        except TypeError as e:
            raise ArgumentError(f"wrong arguments for method {self.name()}: {e}") from e

        facility = self._obj.facility
        params = list(signature.parameters.values())[1:]
        hints = {p.name: hint for p, hint in zip(params, self._metadata.in_types)}
        for param in params:
            if param.name not in bound.arguments:
                continue
            value = bound.arguments[param.name]
            if param.kind is inspect.Parameter.VAR_POSITIONAL:
                values = value
            elif param.kind is inspect.Parameter.VAR_KEYWORD:
                continue
            else:
                values = (value,)
            for v in values:
                if not facility.is_assignable(v, hints[param.name]):
                    raise ArgumentError(
                        f"argument {param.name} of method {self.name()}: cannot use "
                        f"{facility.type_string(facility.type_of(v))} as {facility.type_string(hints[param.name])}"
                    )

    def _pack(self, returned: Any) -> List[Any]:
        out_types = self._metadata.out_types
        if not out_types:
            return []
        if len(out_types) > 1 and isinstance(returned, tuple):
            return list(returned)
        return [returned]

    def __repr__(self) -> str:
        return f"ObjMethod({self.name()!r}, valid={self.is_valid()})"
