"""Domain models for Fragments."""

from .base import (
    ConversionError,
    FragmentError,
    NotFoundError,
    StorageError,
    UnknownExtensionError,
    UnsupportedTypeError,
    ValidationError,
)
from .conversion import FORMATS, ConversionEngine, formats_for
from .fragment import Fragment
from .repository import FragmentRepository
from .types import (
    DEFAULT_REGISTRY,
    ContentType,
    TypeRegistry,
    bare_type,
    parse_content_type,
)
from .validation import ContentValidator

__all__ = [
    "DEFAULT_REGISTRY",
    "FORMATS",
    "ContentType",
    "ContentValidator",
    "ConversionEngine",
    "ConversionError",
    "Fragment",
    "FragmentError",
    "FragmentRepository",
    "NotFoundError",
    "StorageError",
    "TypeRegistry",
    "UnknownExtensionError",
    "UnsupportedTypeError",
    "ValidationError",
    "bare_type",
    "formats_for",
    "parse_content_type",
]
