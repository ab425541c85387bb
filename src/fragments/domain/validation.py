"""Structural validation of fragment content against its declared type."""

from __future__ import annotations

import json
import re
from collections.abc import Callable

import yaml

from .base import ValidationError
from .types import DEFAULT_REGISTRY, ContentType, TypeRegistry

# Returns None when valid, otherwise the reason it is not
Validator = Callable[[str], "str | None"]

_TAG_RE = re.compile(r"</?[^>]+>")
_SELF_CLOSING_RE = re.compile(r"/\s*>$")
_OPEN_NAME_RE = re.compile(r"^<([A-Za-z0-9]+)")
_CLOSE_NAME_RE = re.compile(r"^</\s*([A-Za-z0-9]+)\s*>$")
_CSV_SEPARATORS = (",", ";", "\t", "|")


def check_html(text: str) -> str | None:
    """Check that every opened element is closed in order.

    Self-closing tags (<br/>) are skipped, as are declarations, comments and
    processing instructions. Attributes and void elements are not checked.
    """
    tags = _TAG_RE.findall(text)
    if not tags:
        return "missing HTML tags"

    stack: list[str] = []
    for tag in tags:
        if _SELF_CLOSING_RE.search(tag):
            continue

        if tag.startswith("</"):
            match = _CLOSE_NAME_RE.match(tag)
            name = match.group(1).lower() if match else tag[2:-1].strip().lower()
            if not stack or stack.pop() != name:
                return f"mismatched closing tag {tag}"
            continue

        match = _OPEN_NAME_RE.match(tag)
        if not match:
            # <!DOCTYPE>, <!-- -->, <?xml?>
            continue
        stack.append(match.group(1).lower())

    if stack:
        return f"unclosed tag <{stack[-1]}>"
    return None


def _reject_constant(name: str):
    raise ValueError(f"{name} is not a JSON value")


def parse_json(text: str):
    """Parse JSON text, rejecting the NaN and Infinity literals json.loads allows.

    Nesting deep enough to exhaust the interpreter stack raises RecursionError.
    """
    return json.loads(text, parse_constant=_reject_constant)


def check_json(text: str) -> str | None:
    """Check that the text parses as one complete JSON value."""
    try:
        parse_json(text)
    except ValueError as e:
        return f"not valid JSON ({e})"
    except RecursionError:
        return "nested too deeply"
    return None


def check_csv(text: str) -> str | None:
    """Heuristic CSV check: the first line must contain a separator."""
    lines = text.strip().splitlines()
    if not lines:
        return "no rows"
    if not any(sep in lines[0] for sep in _CSV_SEPARATORS):
        return "first line has no field separator"
    return None


def check_yaml(text: str) -> str | None:
    """Check that the text is a YAML mapping (not a scalar or sequence)."""
    if ":" not in text:
        return "no mapping syntax"
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        return f"not valid YAML ({e})"
    except RecursionError:
        return "nested too deeply"
    if not isinstance(document, dict):
        return "top level is not a mapping"
    return None


VALIDATORS: dict[ContentType, Validator] = {
    ContentType.TEXT_HTML: check_html,
    ContentType.TEXT_CSV: check_csv,
    ContentType.APPLICATION_JSON: check_json,
    ContentType.APPLICATION_YAML: check_yaml,
    ContentType.APPLICATION_X_YAML: check_yaml,
}


class ContentValidator:
    """Validates raw bytes for a declared bare type.

    Only types with recognizable structure are checked. Plain text, markdown
    and images are accepted as-is; broken images surface during conversion.
    """

    def __init__(
        self,
        registry: TypeRegistry = DEFAULT_REGISTRY,
        validators: dict[ContentType, Validator] | None = None,
    ):
        self.registry = registry
        self.validators = VALIDATORS if validators is None else validators

    def validate(self, content_type: str, data: bytes) -> None:
        """Raise ValidationError if data is not well-formed for content_type."""
        resolved = self.registry.content_type(content_type)
        check = self.validators.get(resolved)
        if check is None:
            return

        try:
            text = bytes(data).decode("utf-8")
        except UnicodeDecodeError as e:
            raise ValidationError(resolved, f"not valid UTF-8 ({e.reason})") from e

        reason = check(text)
        if reason is not None:
            raise ValidationError(resolved, reason)

    def is_valid(self, content_type: str, data: bytes) -> bool:
        """Return whether data is well-formed for content_type."""
        try:
            self.validate(content_type, data)
        except ValidationError:
            return False
        return True
