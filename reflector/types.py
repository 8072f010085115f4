# reflector/types.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
from typing import Any, Dict, NamedTuple, Tuple

FieldName = str
MethodName = str
FieldPath = Tuple[FieldName, ...]
TagMap = Dict[str, str]

# A class, a PointerType, or None for nil values.
TypeDescriptor = Any


class Lookup(NamedTuple):
    value: Any
    found: bool


NOT_FOUND = Lookup(None, False)
