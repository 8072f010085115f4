# reflector/obj.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from reflector.cache import MetadataCache, get_cache
from reflector.errors import CollectionAccessError, MethodResolutionError
from reflector.field import ObjField
from reflector.metadata import FieldListing, TypeMetadata
from reflector.method import ObjMethod
from reflector.protocols import TypeFacility
from reflector.runtime import Kind, Pointer
from reflector.types import NOT_FOUND, FieldName, Lookup, TypeDescriptor

_SIZED_KINDS = frozenset({Kind.STRING, Kind.BYTES, Kind.SLICE, Kind.ARRAY, Kind.MAP})
_INDEXED_KINDS = frozenset({Kind.STRING, Kind.BYTES, Kind.SLICE, Kind.ARRAY})


def _in_range(index: Any, length: int) -> bool:
    return isinstance(index, int) and not isinstance(index, bool) and 0 <= index < length


def _is_hashable(key: Any) -> bool:
    try:
        hash(key)
    except TypeError:
        return False
    return True


class Obj:
    """
    Wrapper around a value of any type.

    The type's metadata is fetched from the metadata cache (built on first
    use) and shared; the wrapper itself only holds the value and the struct
    to read fields from, which is the pointee for a pointer to a struct and
    the value itself for a struct.
    """

    def __init__(self, value: Any, cache: Optional[MetadataCache] = None) -> None:
        """
        :param value: Any value; None gives an invalid wrapper.
        :param cache: Metadata cache to use, the process-wide one by default.
        """
        self._value = value
        self._cache = cache if cache is not None else get_cache()
        self._metadata = self._cache.get_or_build(self._cache.facility.type_of(value))
        self._fields_value = self._resolve_fields_value()

    def _resolve_fields_value(self) -> Any:
        if self._metadata.is_ptr_to_struct:
            return None if self._value.is_nil() else self._value.deref()
        if self._metadata.is_struct:
            return self._value
        return None

    @property
    def value(self) -> Any:
        return self._value

    @property
    def metadata(self) -> TypeMetadata:
        return self._metadata

    @property
    def facility(self) -> TypeFacility:
        return self._cache.facility

    def is_valid(self) -> bool:
        """False for nil values."""
        return self._metadata.kind != Kind.INVALID

    def is_ptr(self) -> bool:
        return self._metadata.kind == Kind.POINTER

    def is_struct_or_ptr_to_struct(self) -> bool:
        return self._metadata.is_struct or self._metadata.is_ptr_to_struct

    def kind(self) -> Kind:
        return self._metadata.kind

    def type(self) -> TypeDescriptor:
        return self._metadata.descriptor

    # -------------------------------------------------------------------------
    # Fields
    # -------------------------------------------------------------------------

    def _fields(self, policy: FieldListing) -> List[ObjField]:
        metadata = self._metadata
        return [ObjField(self, metadata.field_metadata(name)) for name in metadata.listing(policy)]

    def fields(self) -> List[ObjField]:
        """Exported fields; embedded fields are listed as themselves."""
        return self._fields(FieldListing.NON_FLATTENED)

    def fields_flattened(self) -> List[ObjField]:
        """Exported fields; embedded structs are replaced by their own fields."""
        return self._fields(FieldListing.FLATTENED)

    def fields_all(self) -> List[ObjField]:
        """Exported fields, each embedded field followed by the fields declared inside it."""
        return self._fields(FieldListing.ALL)

    def fields_anonymous(self) -> List[ObjField]:
        """Only the directly declared embedded fields."""
        return self._fields(FieldListing.ANONYMOUS)

    def find_duplicate_field_names(self) -> List[FieldName]:
        """
        Names declared more than once across this struct and its embedded
        structs, each reported once in the order the duplicate appears.
        """
        counts: Dict[FieldName, int] = {}
        duplicates = []
        for name in self._metadata.fields_all:
            counts[name] = counts.get(name, 0) + 1
            if counts[name] == 2:
                duplicates.append(name)
        return duplicates

    def field(self, name: FieldName) -> ObjField:
        """A field view. Unknown names give an invalid view rather than an error."""
        return ObjField(self, self._metadata.field_metadata(name))

    # -------------------------------------------------------------------------
    # Methods
    # -------------------------------------------------------------------------

    def method(self, name: str) -> ObjMethod:
        """A method view. Unknown names give an invalid view rather than an error."""
        return ObjMethod(self, self._metadata.method_metadata(name))

    def methods(self) -> List[ObjMethod]:
        metadata = self._metadata
        return [ObjMethod(self, metadata.method_metadata(name)) for name in metadata.method_names]

    def _receiver(self) -> Any:
        if isinstance(self._value, Pointer):
            if self._value.is_nil():
                raise MethodResolutionError(f"nil receiver of type {self}")
            return self._value.deref()
        return self._value

    # -------------------------------------------------------------------------
    # Sequences and mappings
    # -------------------------------------------------------------------------

    def _container(self) -> Tuple[Any, Kind, Optional[Pointer]]:
        """The value with one level of pointer removed, its kind and the removed pointer."""
        value = self._value
        pointer = None
        if isinstance(value, Pointer):
            if value.is_nil():
                return None, Kind.INVALID, value
            pointer = value
            value = value.deref()
        facility = self.facility
        return value, facility.kind_of_type(facility.type_of(value)), pointer

    def length(self) -> int:
        """Element count of strings, bytes, lists, tuples and dicts; 0 for anything else."""
        value, kind, _ = self._container()
        if kind in _SIZED_KINDS:
            return len(value)
        return 0

    def get_by_index(self, index: int) -> Lookup:
        value, kind, _ = self._container()
        if kind not in _INDEXED_KINDS or not _in_range(index, len(value)):
            return NOT_FOUND
        return Lookup(value[index], True)

    def set_by_index(self, index: int, item: Any) -> None:
        """
        Replace one element. Lists are always settable, tuples only behind
        a Pointer (the pointer then refers to a new tuple).

        :raises CollectionAccessError: On a wrong kind, a bad index or an unaddressable tuple.
        """
        value, kind, pointer = self._container()
        if kind not in (Kind.SLICE, Kind.ARRAY):
            raise CollectionAccessError(f"cannot set by index on {self}")
        if not _in_range(index, len(value)):
            raise CollectionAccessError(f"index {index} out of range for {self} of length {len(value)}")
        if kind == Kind.SLICE:
            value[index] = item
            return
        if pointer is None:
            raise CollectionAccessError(f"cannot set by index on {self}: tuple is not addressable")
        items = list(value)
        items[index] = item
        pointer.store(tuple(items) if type(value) is tuple else type(value)(*items))

    def get_by_key(self, key: Any) -> Lookup:
        value, kind, _ = self._container()
        if kind != Kind.MAP or not _is_hashable(key) or key not in value:
            return NOT_FOUND
        return Lookup(value[key], True)

    def set_by_key(self, key: Any, item: Any) -> None:
        """
        :raises CollectionAccessError: If the value is not a dict or the key is unhashable.
        """
        value, kind, _ = self._container()
        if kind != Kind.MAP:
            raise CollectionAccessError(f"cannot set by key on {self}")
        if not _is_hashable(key):
            raise CollectionAccessError(f"unhashable key {key!r} for {self}")
        value[key] = item

    def keys(self) -> List[Any]:
        """
        :raises CollectionAccessError: If the value is not a dict.
        """
        value, kind, _ = self._container()
        if kind != Kind.MAP:
            raise CollectionAccessError(f"cannot list keys of {self}")
        return list(value.keys())

    def __str__(self) -> str:
        return self.facility.type_string(self._metadata.descriptor)

    def __repr__(self) -> str:
        return f"<Obj {self}>"


def new(value: Any, cache: Optional[MetadataCache] = None) -> Obj:
    """Wrap a value."""
    return Obj(value, cache)


def new_from_type(descriptor: TypeDescriptor, cache: Optional[MetadataCache] = None) -> Obj:
    """
    Wrap a Pointer to a fresh zero value of ``descriptor``. None gives the
    same invalid wrapper as ``new(None)``.
    """
    if descriptor is None:
        return Obj(None, cache)
    facility = cache.facility if cache is not None else get_cache().facility
    return Obj(Pointer(facility.zero_value(descriptor), descriptor), cache)
