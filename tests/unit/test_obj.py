# tests/unit/test_obj.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import pytest

from reflector import Kind, MethodResolutionError, Pointer, PointerType, new, new_from_type
from reflector.errors import ReflectorError
from reflector.obj import Obj
from tests.samples import Address, Company, CustomType, Hidden, Node, Person, Required, WithInnerStruct


def names(fields):
    return [f.name() for f in fields]


# -----------------------------------------------------------------------------
# CONSTRUCTION AND IDENTITY
# -----------------------------------------------------------------------------


def test_new_wraps_value(person):
    obj = new(person)
    assert isinstance(obj, Obj)
    assert obj.value is person
    assert obj.is_valid()
    assert not obj.is_ptr()
    assert obj.is_struct_or_ptr_to_struct()
    assert obj.kind() == Kind.STRUCT
    assert obj.type() is Person


def test_new_with_pointer(person_ptr):
    obj = new(person_ptr)
    assert obj.is_ptr()
    assert obj.is_struct_or_ptr_to_struct()
    assert obj.kind() == Kind.POINTER
    assert obj.type() == PointerType(Person)


def test_string_of_obj(person, person_ptr):
    assert str(new(person)) == "tests.samples.Person"
    assert str(new(person_ptr)) == "*tests.samples.Person"
    assert str(new(5)) == "int"
    assert str(new(None)) == "nil"
    assert repr(new(5)) == "<Obj int>"


def test_wrappers_share_metadata(cache):
    first = new(Pointer(Person()), cache=cache)
    second = new(Pointer(Person(name="other")), cache=cache)
    assert first.metadata is second.metadata
    assert cache.stats.builds == 1


def test_new_uses_process_wide_cache_by_default():
    from reflector import get_cache

    obj = new(Address())
    assert obj.metadata is get_cache().get_or_build(Address)


def test_empty_isolated_cache_is_used(cache):
    new(Company(), cache=cache)
    assert Company in cache


def test_custom_type_is_not_struct():
    obj = new(CustomType(5))
    assert not obj.is_struct_or_ptr_to_struct()
    assert obj.fields() == []
    assert new(Pointer(CustomType(5))).is_ptr()
    assert not new(Pointer(CustomType(5))).is_struct_or_ptr_to_struct()


# -----------------------------------------------------------------------------
# FIELD LISTINGS
# -----------------------------------------------------------------------------


@pytest.mark.parametrize("wrap", [lambda p: p, Pointer], ids=["value", "pointer"])
def test_field_listings(wrap, person):
    obj = new(wrap(person))
    assert names(obj.fields()) == ["name", "address"]
    assert names(obj.fields_flattened()) == ["name", "street", "number"]
    assert names(obj.fields_all()) == ["name", "address", "street", "number"]
    assert names(obj.fields_anonymous()) == ["address"]


def test_field_listing_with_double_fields(company):
    obj = new(company)
    assert names(obj.fields_all()) == ["address", "street", "number", "number"]


def test_find_duplicate_field_names(company):
    assert new(company).find_duplicate_field_names() == ["number"]
    assert new(Person()).find_duplicate_field_names() == []


def test_inner_struct_is_not_expanded():
    obj = new(WithInnerStruct())
    fields = obj.fields()
    assert names(fields) == ["aaa", "bbb"]
    assert fields[0].type() is str
    assert str(fields[0].kind()) == "string"
    assert str(fields[1].kind()) == "struct"
    assert len(obj.fields_all()) == 2
    assert len(obj.fields_flattened()) == 2


def test_unexported_fields_are_not_listed():
    assert names(new(Pointer(Hidden())).fields()) == ["exported"]


def test_no_fields_on_non_structs():
    for value in ("", 5, [1, 2], {"a": 1}, CustomType(1)):
        obj = new(value)
        assert obj.fields() == []
        assert obj.fields_all() == []
        assert obj.find_duplicate_field_names() == []


# -----------------------------------------------------------------------------
# NIL VALUES
# -----------------------------------------------------------------------------


def test_nil():
    obj = new(None)
    assert not obj.is_valid()
    assert obj.kind() == Kind.INVALID
    assert obj.type() is None
    assert obj.fields() == []
    assert obj.methods() == []
    assert not obj.field("aaa").is_valid()
    with pytest.raises(ReflectorError):
        obj.field("aaa").get()
    with pytest.raises(ReflectorError):
        obj.field("aaa").set(1)
    with pytest.raises(MethodResolutionError):
        obj.method("aaa").call("bu")


def test_new_from_nil_type():
    obj = new_from_type(None)
    assert not obj.is_valid()
    assert obj.fields() == []
    assert obj.methods() == []
    with pytest.raises(MethodResolutionError):
        obj.method("aaa").call("bu")


def test_nil_struct_pointer_lists_but_cannot_access():
    obj = new(Pointer.null(Person))
    assert obj.is_valid()
    assert obj.is_ptr()
    assert names(obj.fields()) == ["name", "address"]
    assert [m.name() for m in obj.methods()] == ["add", "hi", "returns_error", "subtract"]
    name = obj.field("name")
    assert not name.is_valid()
    assert not name.is_settable()
    with pytest.raises(ReflectorError):
        name.get()
    with pytest.raises(MethodResolutionError, match="nil receiver"):
        obj.method("add").call(1, 2, 3)


def test_nil_pointer_to_non_struct():
    obj = new(Pointer.null(str))
    assert obj.is_valid()
    assert obj.fields() == []
    assert obj.methods() == []
    assert obj.length() == 0


def test_string_obj():
    obj = new("")
    assert obj.fields() == []
    assert obj.methods() == []
    with pytest.raises(ReflectorError):
        obj.field("aaa").get()
    with pytest.raises(ReflectorError):
        obj.field("aaa").set(1)
    with pytest.raises(MethodResolutionError):
        obj.method("aaa").call("bu")


# -----------------------------------------------------------------------------
# NEW FROM TYPE
# -----------------------------------------------------------------------------


def test_new_from_type_matches_pointer_wrapper():
    from_type = new_from_type(Person)
    from_value = new(Pointer(Person()))
    assert from_type.type() == from_value.type()
    assert from_type.kind() == from_value.kind()
    assert from_type.metadata.underlying_type is from_value.metadata.underlying_type
    assert str(from_type) == str(from_value)


def test_new_from_type_is_settable():
    obj = new_from_type(Person)
    obj.field("number").set(3)
    assert obj.value.deref().address.number == 3


def test_new_from_type_zeroes_required_fields():
    obj = new_from_type(Required)
    assert obj.field("name").get() == ""
    assert obj.field("tags").get() == []
    assert obj.field("ref").get().is_nil()


def test_new_from_type_of_builtin():
    obj = new_from_type(int)
    assert obj.is_ptr()
    assert obj.value.deref() == 0


def test_field_kinds_of_declared_types():
    obj = new(Node())
    assert obj.field("parent").kind() == Kind.INTERFACE
    assert obj.field("owner").kind() == Kind.POINTER
    assert obj.field("children").kind() == Kind.SLICE
    assert obj.field("attrs").kind() == Kind.MAP
