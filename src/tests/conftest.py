"""
Shared test fixtures for Fragments.
"""
import pytest

from fragments.domain import DEFAULT_REGISTRY, ContentType, TypeRegistry

SAMPLE_CONTENT: dict[ContentType, bytes] = {
    ContentType.TEXT_PLAIN: b"hello",
    ContentType.TEXT_MARKDOWN: b"# Hello World",
    ContentType.TEXT_HTML: b"<p>Hello <strong>World</strong></p>",
    ContentType.TEXT_CSV: b"name,age\nJohn,30\nJane,25",
    ContentType.APPLICATION_JSON: b'{"name":"test","value":123}',
    ContentType.APPLICATION_YAML: b"name: test\nvalue: 123",
    ContentType.APPLICATION_X_YAML: b"name: test\nvalue: 123",
}


@pytest.fixture
def registry() -> TypeRegistry:
    """The process-wide type registry."""
    return DEFAULT_REGISTRY


@pytest.fixture
def text_only_registry() -> TypeRegistry:
    """A registry that supports every type except images."""
    return TypeRegistry(
        supported_types=frozenset(t for t in ContentType if not t.is_image),
        extension_map=DEFAULT_REGISTRY.extension_map,
        canonical_extensions=DEFAULT_REGISTRY.canonical_extensions,
    )


@pytest.fixture
def sample_content() -> dict[ContentType, bytes]:
    """Valid content for every text-like type."""
    return dict(SAMPLE_CONTENT)
