"""Conversion of fragment content between supported representations."""

from __future__ import annotations

import io
import json
import re
from collections.abc import Callable

import markdown
import structlog
import yaml
from PIL import Image, UnidentifiedImageError

from fragments.metrics import conversion_duration, conversions_performed

from .base import ConversionError, UnsupportedTypeError
from .types import DEFAULT_REGISTRY, ContentType, TypeRegistry
from .validation import parse_json

logger = structlog.get_logger()

Converter = Callable[[bytes], bytes]


class _SourceError(Exception):
    """Source bytes could not be parsed as their declared type."""


def _decode(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise _SourceError(f"not valid UTF-8 ({e.reason})") from e


def _load_json(data: bytes):
    try:
        return parse_json(_decode(data))
    except ValueError as e:
        raise _SourceError(f"malformed JSON ({e})") from e
    except RecursionError as e:
        raise _SourceError("JSON nested too deeply") from e


def _load_yaml(data: bytes):
    try:
        return yaml.safe_load(_decode(data))
    except yaml.YAMLError as e:
        raise _SourceError(f"malformed YAML ({e})") from e
    except RecursionError as e:
        raise _SourceError("YAML nested too deeply") from e


_JSON_KEY_TYPES = (str, int, float, bool, type(None))


def _json_ready(value, path: tuple[int, ...] = ()):
    """Copy value with every mapping key in a form json.dumps accepts.

    YAML allows dates (and other scalars) as keys, and aliases can make a
    container contain itself. Cycles raise ValueError.
    """
    if not isinstance(value, (dict, list)):
        return value
    if id(value) in path:
        raise ValueError("circular reference")
    path = (*path, id(value))
    if isinstance(value, list):
        return [_json_ready(item, path) for item in value]
    return {
        (key if isinstance(key, _JSON_KEY_TYPES) else str(key)): _json_ready(item, path)
        for key, item in value.items()
    }


def _dump_json(value) -> bytes:
    try:
        # default=str covers YAML timestamps and dates used as values
        text = json.dumps(
            _json_ready(value),
            indent=2,
            ensure_ascii=False,
            allow_nan=False,
            default=str,
        )
    except (TypeError, ValueError, RecursionError) as e:
        raise _SourceError(f"no JSON representation ({e})") from e
    return text.encode("utf-8")


# Block-level markdown, applied line by line before inline markup
_MD_BLOCK_RULES: list[tuple[re.Pattern, str]] = [
    (re.compile(r"^[ \t]*(```|~~~).*$", re.M), ""),
    (re.compile(r"^[ \t]{0,3}#{1,6}[ \t]*(.*?)(?:[ \t]+#+)?[ \t]*$", re.M), r"\1"),
    (re.compile(r"^[ \t]*=+[ \t]*$", re.M), ""),
    (re.compile(r"^[ \t]*([-*_])([ \t]*\1){2,}[ \t]*$", re.M), ""),
    (re.compile(r"^[ \t]*(>[ \t]?)+", re.M), ""),
    (re.compile(r"^([ \t]*)[-*+][ \t]+", re.M), r"\1"),
    (re.compile(r"^([ \t]*)\d+[.)][ \t]+", re.M), r"\1"),
]

_MD_INLINE_RULES: list[tuple[re.Pattern, str]] = [
    (re.compile(r"!\[([^\]]*)\]\([^)]*\)"), r"\1"),
    (re.compile(r"\[([^\]]+)\]\([^)]*\)"), r"\1"),
    (re.compile(r"`([^`]*)`"), r"\1"),
    (re.compile(r"\*\*(.+?)\*\*"), r"\1"),
    (re.compile(r"(?<!\w)__(.+?)__(?!\w)"), r"\1"),
    (re.compile(r"~~(.+?)~~"), r"\1"),
    (re.compile(r"\*(.+?)\*"), r"\1"),
    (re.compile(r"(?<!\w)_(.+?)_(?!\w)"), r"\1"),
]

_BLANK_RUNS_RE = re.compile(r"\n[ \t]*(\n[ \t]*)+\n")
_HTML_TAG_RE = re.compile(r"<[^>]+>")


def markdown_to_text(data: bytes) -> bytes:
    """Strip markdown syntax, keeping the readable text."""
    text = _decode(data).replace("\r\n", "\n")
    for pattern, replacement in _MD_BLOCK_RULES:
        text = pattern.sub(replacement, text)
    for pattern, replacement in _MD_INLINE_RULES:
        text = pattern.sub(replacement, text)
    text = _BLANK_RUNS_RE.sub("\n\n", text)
    return text.strip().encode("utf-8")


def markdown_to_html(data: bytes) -> bytes:
    html = markdown.markdown(_decode(data), extensions=["extra", "sane_lists"])
    return html.encode("utf-8")


def html_to_text(data: bytes) -> bytes:
    return _HTML_TAG_RE.sub("", _decode(data)).encode("utf-8")


def json_to_text(data: bytes) -> bytes:
    return _dump_json(_load_json(data))


def passthrough(data: bytes) -> bytes:
    return data


def csv_to_json(data: bytes) -> bytes:
    """Map each row after the header to {header: value}, all strings."""
    lines = [line for line in _decode(data).strip().splitlines() if line.strip()]
    if not lines:
        return _dump_json([])

    headers = [h.strip() for h in lines[0].split(",")]
    rows = []
    for line in lines[1:]:
        values = [v.strip() for v in line.split(",")]
        values += [""] * (len(headers) - len(values))
        rows.append(dict(zip(headers, values)))
    return _dump_json(rows)


def json_to_yaml(data: bytes) -> bytes:
    value = _load_json(data)
    try:
        dumped = yaml.safe_dump(
            value, default_flow_style=False, sort_keys=False, allow_unicode=True
        )
    except RecursionError as e:
        raise _SourceError("JSON nested too deeply") from e
    return dumped.encode("utf-8")


def yaml_to_json(data: bytes) -> bytes:
    return _dump_json(_load_yaml(data))


RASTER_TYPES: tuple[ContentType, ...] = (
    ContentType.IMAGE_PNG,
    ContentType.IMAGE_JPEG,
    ContentType.IMAGE_WEBP,
    ContentType.IMAGE_GIF,
)

_PIL_FORMATS = {
    ContentType.IMAGE_PNG: "PNG",
    ContentType.IMAGE_JPEG: "JPEG",
    ContentType.IMAGE_WEBP: "WEBP",
    ContentType.IMAGE_GIF: "GIF",
}


def reencode_image(data: bytes, target: ContentType, quality: int = 85) -> bytes:
    """Decode a raster image and encode it in the target format."""
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            if target == ContentType.IMAGE_JPEG and image.mode not in ("RGB", "L"):
                # JPEG has no alpha channel or palette
                image = image.convert("RGB")
            buffer = io.BytesIO()
            options = {}
            if target in (ContentType.IMAGE_JPEG, ContentType.IMAGE_WEBP):
                options["quality"] = quality
            image.save(buffer, format=_PIL_FORMATS[target], **options)
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise _SourceError(f"unreadable image ({e})") from e
    return buffer.getvalue()


# Legal non-identity conversions, in the order they appear in `formats`
TEXT_CONVERSIONS: dict[ContentType, dict[ContentType, Converter]] = {
    ContentType.TEXT_PLAIN: {},
    ContentType.TEXT_MARKDOWN: {
        ContentType.TEXT_PLAIN: markdown_to_text,
        ContentType.TEXT_HTML: markdown_to_html,
    },
    ContentType.TEXT_HTML: {
        ContentType.TEXT_PLAIN: html_to_text,
    },
    ContentType.TEXT_CSV: {
        ContentType.TEXT_PLAIN: passthrough,
        ContentType.APPLICATION_JSON: csv_to_json,
    },
    ContentType.APPLICATION_JSON: {
        ContentType.TEXT_PLAIN: json_to_text,
        ContentType.APPLICATION_YAML: json_to_yaml,
        ContentType.APPLICATION_X_YAML: json_to_yaml,
    },
    ContentType.APPLICATION_YAML: {
        ContentType.TEXT_PLAIN: passthrough,
        ContentType.APPLICATION_JSON: yaml_to_json,
    },
    ContentType.APPLICATION_X_YAML: {
        ContentType.TEXT_PLAIN: passthrough,
        ContentType.APPLICATION_JSON: yaml_to_json,
    },
}


def _build_formats() -> dict[ContentType, tuple[ContentType, ...]]:
    formats: dict[ContentType, tuple[ContentType, ...]] = {}
    for content_type in ContentType:
        if content_type in RASTER_TYPES:
            others = tuple(t for t in RASTER_TYPES if t != content_type)
        else:
            others = tuple(TEXT_CONVERSIONS.get(content_type, {}))
        formats[content_type] = (content_type, *others)
    return formats


FORMATS: dict[ContentType, tuple[ContentType, ...]] = _build_formats()


def formats_for(content_type: ContentType) -> tuple[ContentType, ...]:
    """Types that content of content_type may be exported as, itself first."""
    return FORMATS[content_type]


class ConversionEngine:
    """Transforms bytes between the types of the conversion matrix."""

    def __init__(self, registry: TypeRegistry = DEFAULT_REGISTRY, image_quality: int = 85):
        self.registry = registry
        self.image_quality = image_quality

    def can_convert(self, source: str, target: str) -> bool:
        try:
            resolved_source = self.registry.content_type(source)
            resolved_target = self.registry.content_type(target)
        except UnsupportedTypeError:
            return False
        return resolved_target in FORMATS[resolved_source]

    def _converter(self, source: ContentType, target: ContentType) -> Converter | None:
        if source in RASTER_TYPES and target in RASTER_TYPES:
            return lambda data: reencode_image(data, target, self.image_quality)
        return TEXT_CONVERSIONS.get(source, {}).get(target)

    def convert(self, source: str, data: bytes, target: str) -> bytes:
        """Convert data declared as source into the target type.

        Raises ConversionError if the pair is not legal or the source bytes
        cannot be parsed as their declared type.
        """
        try:
            resolved_source = self.registry.content_type(source)
            resolved_target = self.registry.content_type(target)
        except UnsupportedTypeError as e:
            raise ConversionError(source, target, str(e)) from e

        if resolved_source == resolved_target:
            return data

        converter = self._converter(resolved_source, resolved_target)
        if converter is None:
            logger.warning(
                "conversion_not_supported",
                source_type=str(resolved_source),
                target_type=str(resolved_target),
            )
            raise ConversionError(resolved_source, resolved_target)

        with conversion_duration.labels(
            source=resolved_source, target=resolved_target
        ).time():
            try:
                converted = converter(bytes(data))
            except _SourceError as e:
                logger.warning(
                    "conversion_failed",
                    source_type=str(resolved_source),
                    target_type=str(resolved_target),
                    error=str(e),
                )
                raise ConversionError(resolved_source, resolved_target, str(e)) from e

        conversions_performed.labels(source=resolved_source, target=resolved_target).inc()
        logger.debug(
            "content_converted",
            source_type=str(resolved_source),
            target_type=str(resolved_target),
            size=len(converted),
        )
        return converted
