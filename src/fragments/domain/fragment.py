"""Fragment domain model."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace

import pendulum

from .base import UnsupportedTypeError
from .conversion import formats_for
from .types import DEFAULT_REGISTRY, ContentType, TypeRegistry, bare_type


def _now() -> str:
    return pendulum.now("UTC").isoformat()


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Fragment:
    """Metadata for one owned, typed piece of content.

    Fragments are immutable values. Writes go through FragmentRepository,
    which hands back an updated copy.
    """

    owner_id: str | None = None
    type: str | None = None
    id: str = field(default_factory=_new_id)
    size: int = 0
    created: str = field(default_factory=_now)
    updated: str = field(default_factory=_now)
    registry: TypeRegistry = field(default=DEFAULT_REGISTRY, repr=False, compare=False)

    def __post_init__(self):
        """Validate the fragment after creation."""
        if not self.owner_id:
            raise ValueError("owner_id is required")

        if not self.type or not self.registry.is_supported(self.type):
            raise UnsupportedTypeError(self.type)

        # bool is an int subclass, but True is not a size
        if not isinstance(self.size, int) or isinstance(self.size, bool) or self.size < 0:
            raise ValueError("size must be a non-negative integer")

    @staticmethod
    def is_supported_type(value: str, registry: TypeRegistry = DEFAULT_REGISTRY) -> bool:
        """Return True if we know how to work with this Content-Type value."""
        return registry.is_supported(value)

    @property
    def mime_type(self) -> ContentType:
        """The type without parameters: "text/html; charset=utf-8" -> "text/html"."""
        return ContentType(bare_type(self.type))

    @property
    def is_text(self) -> bool:
        return self.mime_type.is_text

    @property
    def is_image(self) -> bool:
        return self.mime_type.is_image

    @property
    def formats(self) -> tuple[ContentType, ...]:
        """Types this fragment's content can be exported as, its own first.

        Targets the fragment's registry does not support are left out.
        """
        return tuple(
            t for t in formats_for(self.mime_type) if t in self.registry.supported_types
        )

    def touched(self) -> Fragment:
        """Copy with a fresh updated timestamp."""
        return replace(self, updated=_now())

    def with_size(self, size: int) -> Fragment:
        """Copy reflecting a content write of size bytes."""
        return replace(self, size=size, updated=_now())

    def to_dict(self) -> dict:
        """Convert to dictionary for metadata storage."""
        return {
            "id": self.id,
            "ownerId": self.owner_id,
            "created": self.created,
            "updated": self.updated,
            "type": self.type,
            "size": self.size,
        }

    @classmethod
    def from_dict(cls, data: dict, registry: TypeRegistry = DEFAULT_REGISTRY) -> Fragment:
        """Create a Fragment from stored metadata, checked against registry.

        Accepts both ownerId and owner_id spellings. Unknown keys are ignored.
        """
        kwargs = {
            "registry": registry,
            "owner_id": data.get("ownerId", data.get("owner_id")),
            "type": data.get("type"),
        }
        for key in ("id", "size", "created", "updated"):
            if data.get(key) is not None:
                kwargs[key] = data[key]
        return cls(**kwargs)
