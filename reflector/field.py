# reflector/field.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from typing import TYPE_CHECKING, Any, List

from reflector.errors import FieldTypeError, InvalidFieldError, NotSettableError, UnexportedFieldError
from reflector.metadata import FieldMetadata
from reflector.runtime import Kind, resolve_parent
from reflector.tags import expand_tag_value, lookup_tag, parse_tag
from reflector.types import TagMap

if TYPE_CHECKING:
    from reflector.obj import Obj


class ObjField:
    """
    A field of one wrapped value. The name may not exist; check is_valid().

    Declared facts (kind, type, tag, anonymity, export status) come from the
    cached FieldMetadata. Values are read from and written to the live
    object at call time.
    """

    __slots__ = ("_obj", "_metadata")

    def __init__(self, obj: "Obj", metadata: FieldMetadata) -> None:
        self._obj = obj
        self._metadata = metadata

    @property
    def metadata(self) -> FieldMetadata:
        return self._metadata

    def name(self) -> str:
        return self._metadata.name

    def kind(self) -> Kind:
        """Kind of the declared type, Kind.INVALID for unknown fields."""
        return self._metadata.kind

    def type(self) -> Any:
        """Declared type of the field, None for unknown fields."""
        return self._metadata.type

    def _parent(self) -> Any:
        struct_value = self._obj._fields_value
        if struct_value is None:
            return None
        return resolve_parent(struct_value, self._metadata.path)

    def is_valid(self) -> bool:
        """
        True when the name is a declared field of the underlying struct type
        and the object holding it can be reached on the live value.
        """
        return self._metadata.valid and self._parent() is not None

    def _assert_valid(self) -> None:
        if not self.is_valid():
            raise InvalidFieldError(f"invalid field {self.name()}")

    def is_anonymous(self) -> bool:
        return self.is_valid() and self._metadata.anonymous

    def is_exported(self) -> bool:
        return self.is_valid() and self._metadata.exported

    def tag(self, key: str) -> str:
        """
        Value of one tag key, or an empty string if the key is absent.

        :raises InvalidFieldError: If the field is invalid.
        """
        self._assert_valid()
        return lookup_tag(self._metadata.tag, key)

    def tags(self) -> TagMap:
        """
        Every key/value pair of the field's tag.

        :raises InvalidFieldError: If the field is invalid.
        """
        self._assert_valid()
        return parse_tag(self._metadata.tag)

    def tags_string(self) -> str:
        """
        The raw, unparsed tag.

        :raises InvalidFieldError: If the field is invalid.
        """
        self._assert_valid()
        return self._metadata.tag

    def tag_expanded(self, key: str) -> List[str]:
        """
        Tag value split on commas. An absent key gives ``[""]``.

        :raises InvalidFieldError: If the field is invalid.
        """
        self._assert_valid()
        return expand_tag_value(lookup_tag(self._metadata.tag, key))

    def is_settable(self) -> bool:
        return self.is_valid() and self._obj.metadata.is_ptr_to_struct and self._metadata.exported

    def set(self, value: Any) -> None:
        """
        Assign a value to the field.

        :raises InvalidFieldError: If the field is invalid.
        :raises NotSettableError: If the object is not a pointer, the field is
            unexported, or the object refuses the assignment.
        :raises FieldTypeError: If the value does not fit the declared type.
        """
        self._assert_valid()
        if not self.is_settable():
            raise NotSettableError(f"field {self.name()} in {self._obj} not settable")

        facility = self._obj.facility
        if not facility.is_assignable(value, self._metadata.type):
            raise FieldTypeError(
                f"cannot assign {facility.type_string(facility.type_of(value))} "
                f"to field {self.name()} of type {facility.type_string(self._metadata.type)}"
            )

        try:
            setattr(self._parent(), self.name(), value)
        except AttributeError as e:
            # Frozen dataclasses and read-only attributes.
            raise NotSettableError(f"field {self.name()} in {self._obj} not settable: {e}") from e

    def get(self) -> Any:
        """
        Current value of the field.

        :raises InvalidFieldError: If the field is invalid.
        :raises UnexportedFieldError: If the field is unexported.
        """
        self._assert_valid()
        if not self._metadata.exported:
            raise UnexportedFieldError(f"cannot read unexported field {self.name()}")
        return getattr(self._parent(), self.name())

    def __repr__(self) -> str:
        return f"ObjField({self.name()!r}, kind={self.kind()}, valid={self._metadata.valid})"
