# reflector/metadata.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
"""
Per-type metadata and the builder that derives it.

TypeMetadata is computed once per type descriptor and shared by every
wrapper of that type, so it never references a value. Field listings come
in four policies that differ only in how embedded structs are treated:

- all: every exported field, plus the fields of embedded structs right
  after the embedded field itself
- anonymous: only the directly declared embedded fields
- flattened: embedded structs replaced by their own (flattened) fields
- non-flattened: declared fields as they are, never expanded
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from reflector.protocols import TypeFacility
from reflector.runtime import NATIVE_FACILITY, Kind, StructField
from reflector.types import FieldName, FieldPath, MethodName, TypeDescriptor

logger = logging.getLogger(__name__)


class FieldListing(Enum):
    """Embedding policy for a field listing."""

    ALL = auto()
    ANONYMOUS = auto()
    FLATTENED = auto()
    NON_FLATTENED = auto()


@dataclass(frozen=True)
class FieldMetadata:
    """Declared facts about one field name of one struct type."""

    name: FieldName
    kind: Kind = Kind.INVALID
    type: Any = None
    tag: str = ""
    anonymous: bool = False
    exported: bool = False
    valid: bool = False
    path: FieldPath = ()

    @classmethod
    def invalid(cls, name: FieldName) -> "FieldMetadata":
        return cls(name=name)


@dataclass(frozen=True)
class MethodMetadata:
    """Resolved signature and callable of one method name of one type."""

    name: MethodName
    func: Optional[Callable[..., Any]] = None
    signature: Optional[inspect.Signature] = field(default=None, compare=False)
    in_types: Tuple[Any, ...] = ()
    out_types: Tuple[Any, ...] = ()
    pointer_receiver: bool = False
    valid: bool = False

    @classmethod
    def invalid(cls, name: MethodName) -> "MethodMetadata":
        return cls(name=name)


def _empty_mapping() -> Mapping[str, Any]:
    return MappingProxyType({})


@dataclass(frozen=True)
class TypeMetadata:
    """Everything derivable from a type descriptor alone."""

    descriptor: TypeDescriptor
    kind: Kind
    is_struct: bool = False
    is_ptr_to_struct: bool = False
    underlying_type: TypeDescriptor = None
    fields_all: Tuple[FieldName, ...] = ()
    fields_anonymous: Tuple[FieldName, ...] = ()
    fields_flattened: Tuple[FieldName, ...] = ()
    fields_non_flattened: Tuple[FieldName, ...] = ()
    fields_by_name: Mapping[FieldName, FieldMetadata] = field(default_factory=_empty_mapping)
    method_names: Tuple[MethodName, ...] = ()
    methods_by_name: Mapping[MethodName, MethodMetadata] = field(default_factory=_empty_mapping)

    def listing(self, policy: FieldListing) -> Tuple[FieldName, ...]:
        return {
            FieldListing.ALL: self.fields_all,
            FieldListing.ANONYMOUS: self.fields_anonymous,
            FieldListing.FLATTENED: self.fields_flattened,
            FieldListing.NON_FLATTENED: self.fields_non_flattened,
        }[policy]

    def field_metadata(self, name: FieldName) -> FieldMetadata:
        found = self.fields_by_name.get(name)
        return found if found is not None else FieldMetadata.invalid(name)

    def method_metadata(self, name: MethodName) -> MethodMetadata:
        found = self.methods_by_name.get(name)
        return found if found is not None else MethodMetadata.invalid(name)


def build_type_metadata(descriptor: TypeDescriptor, facility: TypeFacility = NATIVE_FACILITY) -> TypeMetadata:
    """
    Compute the TypeMetadata of a type descriptor.

    :param descriptor: A type descriptor as returned by facility.type_of, or None.
    :param facility: Runtime type facility used for every primitive query.
    :return: Immutable metadata; degenerate (Kind.INVALID, empty) for None.
    """
    if descriptor is None:
        logger.debug("Built metadata for nil")
        return TypeMetadata(descriptor=None, kind=Kind.INVALID)

    builder = _TypeMetadataBuilder(descriptor, facility)
    metadata = builder.build()
    logger.debug(
        "Built metadata for %s: %d fields, %d methods",
        facility.type_string(descriptor),
        len(metadata.fields_all),
        len(metadata.method_names),
    )
    return metadata


class _TypeMetadataBuilder:
    """
    Internal helper holding one build's state. Struct fields of every
    visited type are memoized for the duration of the build.
    """

    def __init__(self, descriptor: TypeDescriptor, facility: TypeFacility) -> None:
        self._descriptor = descriptor
        self._facility = facility
        self._fields_memo: dict = {}

    def build(self) -> TypeMetadata:
        facility = self._facility
        kind = facility.kind_of_type(self._descriptor)

        is_struct = facility.is_struct_type(self._descriptor)
        is_ptr_to_struct = False
        underlying = self._descriptor
        pointee = facility.elem_type(self._descriptor) if kind == Kind.POINTER else None
        if pointee is not None and facility.is_struct_type(pointee):
            is_ptr_to_struct = True
            underlying = pointee

        if is_struct or is_ptr_to_struct:
            listings = {policy: tuple(self._list_fields(underlying, policy)) for policy in FieldListing}
            fields_by_name = self._field_metadata(underlying)
        else:
            listings = {policy: () for policy in FieldListing}
            fields_by_name = {}

        methods = self._method_metadata()

        return TypeMetadata(
            descriptor=self._descriptor,
            kind=kind,
            is_struct=is_struct,
            is_ptr_to_struct=is_ptr_to_struct,
            underlying_type=underlying,
            fields_all=listings[FieldListing.ALL],
            fields_anonymous=listings[FieldListing.ANONYMOUS],
            fields_flattened=listings[FieldListing.FLATTENED],
            fields_non_flattened=listings[FieldListing.NON_FLATTENED],
            fields_by_name=MappingProxyType(fields_by_name),
            method_names=tuple(methods),
            methods_by_name=MappingProxyType(methods),
        )

    def _struct_fields(self, tp: Any) -> Tuple[StructField, ...]:
        if tp not in self._fields_memo:
            self._fields_memo[tp] = self._facility.struct_fields(tp)
        return self._fields_memo[tp]

    def _is_embedded_struct(self, sf: StructField) -> bool:
        return sf.anonymous and self._facility.is_struct_type(sf.type)

    def _list_fields(self, tp: Any, policy: FieldListing) -> List[FieldName]:
        names: List[FieldName] = []
        for sf in self._struct_fields(tp):
            if not sf.exported:
                continue
            embedded = self._is_embedded_struct(sf)
            if policy == FieldListing.ALL:
                names.append(sf.name)
                if embedded:
                    names.extend(self._list_fields(sf.type, policy))
            elif policy == FieldListing.ANONYMOUS:
                if sf.anonymous:
                    names.append(sf.name)
            elif policy == FieldListing.FLATTENED and embedded:
                names.extend(self._list_fields(sf.type, policy))
            else:
                names.append(sf.name)
        return names

    def _reachable_names(self, tp: Any, seen: set) -> List[FieldName]:
        """Every field name declared on tp or inside its embedded structs, exported or not."""
        names: List[FieldName] = []
        if tp in seen:
            return names
        seen = seen | {tp}
        for sf in self._struct_fields(tp):
            names.append(sf.name)
            if self._is_embedded_struct(sf):
                names.extend(self._reachable_names(sf.type, seen))
        return names

    def _resolve(self, tp: Any, name: FieldName) -> Optional[Tuple[StructField, FieldPath]]:
        """
        Find a field by name the way promotion works: breadth first over
        embedding depth, shallowest match wins, two matches at the same
        depth are ambiguous.

        A struct type reached through more than one path at the same depth
        is scanned once but counted twice, so a match inside it is
        ambiguous too. Types already scanned at a shallower depth are
        skipped.
        """
        level: List[Tuple[Any, FieldPath]] = [(tp, ())]
        counts: Dict[Any, int] = {tp: 1}
        visited = set()
        depth = 0
        while level:
            found: Optional[Tuple[StructField, FieldPath]] = None
            ambiguous = False
            next_level: List[Tuple[Any, FieldPath]] = []
            next_counts: Dict[Any, int] = {}
            for struct_type, path in level:
                if struct_type in visited:
                    continue
                visited.add(struct_type)
                for sf in self._struct_fields(struct_type):
                    if sf.name == name:
                        if found is not None or counts[struct_type] > 1:
                            ambiguous = True
                        found = (sf, path + (sf.name,))
                        continue
                    if found is not None or not self._is_embedded_struct(sf):
                        continue
                    if sf.type in next_counts:
                        next_counts[sf.type] = 2
                        continue
                    next_counts[sf.type] = 2 if counts[struct_type] > 1 else 1
                    next_level.append((sf.type, path + (sf.name,)))
            if ambiguous:
                logger.debug("Field name %r is ambiguous at depth %d", name, depth)
                return None
            if found is not None:
                return found
            level = next_level
            counts = next_counts
            depth += 1
        return None

    def _field_metadata(self, tp: Any) -> dict:
        result = {}
        for name in self._reachable_names(tp, set()):
            if name in result:
                continue
            resolved = self._resolve(tp, name)
            if resolved is None:
                continue
            sf, path = resolved
            result[name] = FieldMetadata(
                name=name,
                kind=self._facility.kind_of_type(sf.type),
                type=sf.type,
                tag=sf.tag,
                anonymous=sf.anonymous,
                exported=sf.exported,
                valid=True,
                path=path,
            )
        return result

    def _method_metadata(self) -> dict:
        result = {}
        for spec in self._facility.method_set(self._descriptor):
            signature, in_types, out_types = self._facility.signature_types(spec.func)
            result[spec.name] = MethodMetadata(
                name=spec.name,
                func=spec.func,
                signature=signature,
                in_types=in_types,
                out_types=out_types,
                pointer_receiver=spec.pointer_receiver,
                valid=True,
            )
        return result
