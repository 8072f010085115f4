# reflector/errors.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details


class ReflectorError(Exception):
    """
    Base exception class for errors raised by the reflection wrappers.
    """


class ResolutionError(ReflectorError):
    """
    Raised when a field or method name cannot be resolved against a value.
    """


class InvalidFieldError(ResolutionError):
    """
    Raised when a field accessor is used with a name that is not a real field
    of the wrapped value, or whose value cannot be reached.
    """


class MethodResolutionError(ResolutionError):
    """
    Raised when a method cannot be resolved or invoked on the wrapped value.
    """


class ArgumentError(MethodResolutionError):
    """
    Raised when call arguments do not match the method's signature.
    """


class NotSettableError(ReflectorError):
    """
    Raised when assigning to a valid field that is not addressable or not exported.
    """


class UnexportedFieldError(ReflectorError):
    """
    Raised when reading the value of an unexported field. Tags stay readable.
    """


class FieldTypeError(ReflectorError):
    """
    Raised when a value cannot be assigned to a field's declared type.
    """


class NilPointerError(ReflectorError):
    """
    Raised when dereferencing a nil Pointer.
    """


class CollectionAccessError(ReflectorError):
    """
    Raised when an indexed or keyed write, or a key listing, is not supported
    by the wrapped value.
    """
