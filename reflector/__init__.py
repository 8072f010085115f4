"""reflector: generic object introspection with per-type metadata caching

This package wraps values of unknown shape and exposes a uniform way to
list their fields (including fields of embedded structs), read and write
field values, read struct tags, and discover and call methods.

Responsibilities:
    - Field enumeration under four embedding policies
    - Addressability-aware field get/set
    - Struct tag parsing
    - Dynamic method invocation with argument checking
    - Sequence and mapping access by index or key

Interactions:
    - Client code through new()/new_from_type() and the Obj wrapper
    - dataclasses, typing and inspect through the runtime type facility
    - Logging system for diagnostics

Cross-cutting Concerns:
    Thread Safety:
        - Type metadata is built at most once per type and shared read-only
        - Cache reads never take a lock; builds are serialized
        - Wrappers do not synchronize mutation of the wrapped value

    Error Handling:
        - Structured error hierarchy rooted at ReflectorError
        - Indexed/keyed reads report (value, found) instead of raising

    Logging:
        - Module level loggers, DEBUG only
"""

from .cache import CacheStats, MetadataCache, get_cache
from .errors import (
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
from .field import ObjField
from .metadata import FieldListing, FieldMetadata, MethodMetadata, TypeMetadata, build_type_metadata
from .method import CallResult, ObjMethod
from .obj import Obj, new, new_from_type
from .protocols import TypeFacility
from .runtime import (
    EMBEDDED_METADATA_KEY,
    TAG_METADATA_KEY,
    Kind,
    Pointer,
    PointerType,
    embed,
    pointer_receiver,
    tagged,
    type_of,
)
from .tags import parse_tag
from .types import Lookup

__version__ = "0.1.0"

__all__ = [
    # Wrappers
    "Obj",
    "ObjField",
    "ObjMethod",
    "CallResult",
    "Lookup",
    "new",
    "new_from_type",
    # Metadata
    "TypeMetadata",
    "FieldMetadata",
    "MethodMetadata",
    "FieldListing",
    "build_type_metadata",
    "MetadataCache",
    "CacheStats",
    "get_cache",
    # Runtime facility
    "TypeFacility",
    "Kind",
    "Pointer",
    "PointerType",
    "type_of",
    "embed",
    "tagged",
    "pointer_receiver",
    "TAG_METADATA_KEY",
    "EMBEDDED_METADATA_KEY",
    "parse_tag",
    # Errors
    "ReflectorError",
    "ResolutionError",
    "InvalidFieldError",
    "MethodResolutionError",
    "ArgumentError",
    "NotSettableError",
    "UnexportedFieldError",
    "FieldTypeError",
    "NilPointerError",
    "CollectionAccessError",
]
