"""Supported content types and the extension lookup tables."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType

from .base import UnsupportedTypeError


class ContentType(StrEnum):
    """Bare content types a fragment may declare."""

    TEXT_PLAIN = "text/plain"
    TEXT_MARKDOWN = "text/markdown"
    TEXT_HTML = "text/html"
    TEXT_CSV = "text/csv"
    APPLICATION_JSON = "application/json"
    APPLICATION_YAML = "application/yaml"
    APPLICATION_X_YAML = "application/x-yaml"
    IMAGE_PNG = "image/png"
    IMAGE_JPEG = "image/jpeg"
    IMAGE_WEBP = "image/webp"
    IMAGE_AVIF = "image/avif"
    IMAGE_GIF = "image/gif"

    @property
    def is_text(self) -> bool:
        return self.value.startswith("text/")

    @property
    def is_image(self) -> bool:
        return self.value.startswith("image/")


YAML_TYPES = frozenset({ContentType.APPLICATION_YAML, ContentType.APPLICATION_X_YAML})

# RFC 7230 token characters
_TOKEN = r"[!#$%&'*+.^_`|~0-9A-Za-z-]+"
_MEDIA_TYPE_RE = re.compile(rf"^({_TOKEN})/({_TOKEN})$")
_PARAM_RE = re.compile(rf'^({_TOKEN})=({_TOKEN}|"(?:[^"\\]|\\.)*")$')


def parse_content_type(value: str) -> tuple[str, dict[str, str]]:
    """Split a Content-Type value into its lowercase bare type and parameters.

    "text/html; charset=utf-8" -> ("text/html", {"charset": "utf-8"})

    Raises ValueError if the value is not a well-formed media type.
    """
    if not isinstance(value, str):
        raise ValueError(f"Content type must be a string, got {type(value).__name__}")

    bare, *raw_params = value.split(";")
    bare = bare.strip()
    if not _MEDIA_TYPE_RE.match(bare):
        raise ValueError(f"Invalid media type: {value!r}")

    params: dict[str, str] = {}
    for raw in raw_params:
        raw = raw.strip()
        if not raw:
            # Tolerate a trailing semicolon
            continue
        match = _PARAM_RE.match(raw)
        if not match:
            raise ValueError(f"Invalid parameter {raw!r} in {value!r}")
        name, param_value = match.groups()
        if param_value.startswith('"'):
            param_value = re.sub(r"\\(.)", r"\1", param_value[1:-1])
        params[name.lower()] = param_value

    return bare.lower(), params


def bare_type(value: str) -> str:
    """Return the media type of a Content-Type value without parameters."""
    return parse_content_type(value)[0]


_EXTENSIONS: dict[str, ContentType] = {
    ".txt": ContentType.TEXT_PLAIN,
    ".md": ContentType.TEXT_MARKDOWN,
    ".markdown": ContentType.TEXT_MARKDOWN,
    ".html": ContentType.TEXT_HTML,
    ".htm": ContentType.TEXT_HTML,
    ".csv": ContentType.TEXT_CSV,
    ".json": ContentType.APPLICATION_JSON,
    ".yaml": ContentType.APPLICATION_YAML,
    ".yml": ContentType.APPLICATION_YAML,
    ".png": ContentType.IMAGE_PNG,
    ".jpg": ContentType.IMAGE_JPEG,
    ".jpeg": ContentType.IMAGE_JPEG,
    ".webp": ContentType.IMAGE_WEBP,
    ".avif": ContentType.IMAGE_AVIF,
    ".gif": ContentType.IMAGE_GIF,
}

_CANONICAL_EXTENSIONS: dict[ContentType, str] = {
    ContentType.TEXT_PLAIN: ".txt",
    ContentType.TEXT_MARKDOWN: ".md",
    ContentType.TEXT_HTML: ".html",
    ContentType.TEXT_CSV: ".csv",
    ContentType.APPLICATION_JSON: ".json",
    ContentType.APPLICATION_YAML: ".yaml",
    ContentType.APPLICATION_X_YAML: ".yaml",
    ContentType.IMAGE_PNG: ".png",
    ContentType.IMAGE_JPEG: ".jpg",
    ContentType.IMAGE_WEBP: ".webp",
    ContentType.IMAGE_AVIF: ".avif",
    ContentType.IMAGE_GIF: ".gif",
}


def _normalize_extension(extension: str) -> str:
    extension = extension.strip().lower()
    if not extension.startswith("."):
        extension = f".{extension}"
    return extension


@dataclass(frozen=True)
class TypeRegistry:
    """Immutable registry of supported types, built once and passed around."""

    supported_types: frozenset[ContentType]
    extension_map: Mapping[str, ContentType]
    canonical_extensions: Mapping[ContentType, str]

    @classmethod
    def default(cls) -> TypeRegistry:
        """Build the registry of every ContentType."""
        return cls(
            supported_types=frozenset(ContentType),
            extension_map=MappingProxyType(dict(_EXTENSIONS)),
            canonical_extensions=MappingProxyType(dict(_CANONICAL_EXTENSIONS)),
        )

    def is_supported(self, value: str) -> bool:
        """Check whether a Content-Type header names a supported type.

        Malformed headers are treated as unsupported rather than raising.
        """
        try:
            bare, _ = parse_content_type(value)
        except ValueError:
            return False
        return bare in self.supported_types

    def content_type(self, value: str) -> ContentType:
        """Resolve a Content-Type header to its ContentType.

        Raises UnsupportedTypeError for malformed or unknown types.
        """
        try:
            bare, _ = parse_content_type(value)
        except ValueError as e:
            raise UnsupportedTypeError(value) from e
        if bare not in self.supported_types:
            raise UnsupportedTypeError(value)
        return ContentType(bare)

    def extension_for(self, value: str) -> str:
        """Canonical extension (with leading dot) for a type, or "" if unknown."""
        if not self.is_supported(value):
            return ""
        return self.canonical_extensions.get(ContentType(bare_type(value)), "")

    def type_for_extension(self, extension: str) -> ContentType | None:
        """Look up the type for a file extension like "md", ".md" or ".MD"."""
        if not extension or not extension.strip(". "):
            return None
        content_type = self.extension_map.get(_normalize_extension(extension))
        if content_type not in self.supported_types:
            return None
        return content_type


DEFAULT_REGISTRY = TypeRegistry.default()
