# tests/conftest.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import pytest

from reflector import MetadataCache, Pointer
from tests.samples import Address, Company, Person


@pytest.fixture
def cache():
    """An isolated metadata cache, so build counts start at zero."""
    return MetadataCache()


@pytest.fixture
def person():
    """A populated Person with an embedded Address."""
    return Person(name="John", address=Address(street="Main", number=7))


@pytest.fixture
def person_ptr(person):
    """The same Person behind a Pointer, which makes its fields settable."""
    return Pointer(person)


@pytest.fixture
def company():
    """A Company whose own number shadows the embedded Address.number."""
    return Company(address=Address(street="Dock", number=1), number=99)


@pytest.fixture
def error_classes():
    """Provides a tuple of error classes for quick reference."""
    from reflector.errors import (
        ArgumentError,
        CollectionAccessError,
        FieldTypeError,
        InvalidFieldError,
        MethodResolutionError,
        NilPointerError,
        NotSettableError,
        ReflectorError,
        ResolutionError,
        UnexportedFieldError,
    )

    return (
        ReflectorError,
        ResolutionError,
        InvalidFieldError,
        MethodResolutionError,
        ArgumentError,
        NotSettableError,
        UnexportedFieldError,
        FieldTypeError,
        NilPointerError,
        CollectionAccessError,
    )
