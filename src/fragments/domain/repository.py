"""Fragment repository: the validated write path and converted read path."""

from __future__ import annotations

from dataclasses import replace

import structlog

from fragments.infrastructure.storage import StorageGateway
from fragments.metrics import fragments_written, track_operation, validation_failures

from .base import (
    ConversionError,
    NotFoundError,
    UnknownExtensionError,
    UnsupportedTypeError,
    ValidationError,
)
from .conversion import ConversionEngine
from .fragment import Fragment
from .types import DEFAULT_REGISTRY, ContentType, TypeRegistry
from .validation import ContentValidator

logger = structlog.get_logger()


class FragmentRepository:
    """Stores fragments through a StorageGateway.

    Content writes are two gateway calls (metadata, then content) and are not
    atomic: a failure between them leaves metadata whose size describes
    content that was never written.
    """

    def __init__(
        self,
        storage: StorageGateway,
        registry: TypeRegistry = DEFAULT_REGISTRY,
        validator: ContentValidator | None = None,
        engine: ConversionEngine | None = None,
        max_size: int | None = None,
    ):
        """Initialize with a storage gateway and optional collaborators."""
        self.storage = storage
        self.registry = registry
        self.validator = validator or ContentValidator(registry)
        self.engine = engine or ConversionEngine(registry)
        self.max_size = max_size

    def is_supported_type(self, value: str) -> bool:
        return self.registry.is_supported(value)

    @track_operation("save")
    async def save(self, fragment: Fragment) -> Fragment:
        """Persist fragment metadata and return the saved copy.

        Raises UnsupportedTypeError if this repository's registry does not
        support the fragment's type.
        """
        saved = replace(fragment, registry=self.registry).touched()
        try:
            await self.storage.put_metadata(saved.owner_id, saved.to_dict())
        except Exception as e:
            logger.error("metadata_save_failed", fragment_id=saved.id, error=str(e))
            raise
        logger.info("fragment_saved", fragment_id=saved.id, owner_id=saved.owner_id)
        return saved

    def validate(self, fragment: Fragment, data: bytes | None) -> None:
        """Check data against the fragment's declared type without writing."""
        if not data:
            logger.warning("empty_fragment_data", fragment_id=fragment.id)
            raise ValidationError(fragment.mime_type, "data cannot be empty")

        if self.max_size is not None and len(data) > self.max_size:
            logger.warning(
                "fragment_too_large",
                fragment_id=fragment.id,
                size=len(data),
                max_size=self.max_size,
            )
            raise ValidationError(
                fragment.mime_type,
                f"{len(data)} bytes exceeds the {self.max_size} byte limit",
            )

        try:
            self.validator.validate(fragment.mime_type, data)
        except ValidationError as e:
            validation_failures.labels(type=fragment.mime_type).inc()
            logger.warning(
                "invalid_fragment_data",
                fragment_id=fragment.id,
                content_type=str(fragment.mime_type),
                reason=e.reason,
            )
            raise

    @track_operation("set_data")
    async def set_data(self, fragment: Fragment, data: bytes | None) -> Fragment:
        """Validate and store content, returning the fragment with its new size.

        Nothing is written if validation fails.
        """
        self.validate(fragment, data)
        data = bytes(data)

        updated = fragment.with_size(len(data))
        try:
            await self.storage.put_metadata(updated.owner_id, updated.to_dict())
            await self.storage.put_content(updated.owner_id, updated.id, data)
        except Exception as e:
            logger.error("fragment_data_save_failed", fragment_id=updated.id, error=str(e))
            raise

        fragments_written.labels(type=updated.mime_type).inc()
        logger.info("fragment_data_saved", fragment_id=updated.id, size=updated.size)
        return updated

    @track_operation("get_data")
    async def get_data(self, fragment: Fragment) -> bytes:
        """Return the stored content unchanged."""
        data = await self.storage.get_content(fragment.owner_id, fragment.id)
        if data is None:
            logger.warning("fragment_data_missing", fragment_id=fragment.id)
            raise NotFoundError(fragment.owner_id, fragment.id)
        logger.debug("fragment_data_read", fragment_id=fragment.id, size=len(data))
        return data

    @track_operation("export")
    async def export(self, fragment: Fragment, target: str) -> bytes:
        """Return the content converted to target.

        Raises ConversionError if the fragment cannot be exported as target.
        """
        try:
            target_type = self.registry.content_type(target)
        except UnsupportedTypeError as e:
            raise ConversionError(fragment.mime_type, target) from e

        if target_type not in fragment.formats:
            logger.warning(
                "unsupported_conversion",
                fragment_id=fragment.id,
                content_type=str(fragment.mime_type),
                target_type=str(target_type),
            )
            raise ConversionError(fragment.mime_type, target_type)

        data = await self.get_data(fragment)
        if target_type == fragment.mime_type:
            return data

        converted = self.engine.convert(fragment.mime_type, data, target_type)
        logger.info(
            "fragment_exported",
            fragment_id=fragment.id,
            content_type=str(fragment.mime_type),
            target_type=str(target_type),
            size=len(converted),
        )
        return converted

    async def export_by_extension(
        self, fragment: Fragment, extension: str
    ) -> tuple[ContentType, bytes]:
        """Export to the type a file extension names, e.g. "html" or ".md"."""
        target_type = self.registry.type_for_extension(extension)
        if target_type is None:
            logger.warning("unknown_extension", fragment_id=fragment.id, extension=extension)
            raise UnknownExtensionError(extension)
        return target_type, await self.export(fragment, target_type)

    @track_operation("by_id")
    async def by_id(self, owner_id: str, fragment_id: str) -> Fragment:
        """Get a fragment for the owner by id."""
        data = await self.storage.get_metadata(owner_id, fragment_id)
        if data is None:
            logger.warning("fragment_not_found", owner_id=owner_id, fragment_id=fragment_id)
            raise NotFoundError(owner_id, fragment_id)
        return Fragment.from_dict({"ownerId": owner_id, **data}, registry=self.registry)

    @track_operation("by_user")
    async def by_user(
        self, owner_id: str, expand: bool = False
    ) -> list[str] | list[Fragment]:
        """List an owner's fragment ids, or full fragments when expand is True."""
        if not owner_id:
            logger.warning("missing_owner_id")
            raise ValueError("owner_id is required")

        fragment_ids = await self.storage.list_ids(owner_id)
        if not expand:
            logger.debug("fragment_ids_listed", owner_id=owner_id, count=len(fragment_ids))
            return fragment_ids

        fragments = [await self.by_id(owner_id, fid) for fid in fragment_ids]
        logger.info("fragments_listed", owner_id=owner_id, count=len(fragments))
        return fragments

    @track_operation("delete")
    async def delete(self, owner_id: str, fragment_id: str) -> None:
        """Delete the fragment's metadata and content."""
        await self.by_id(owner_id, fragment_id)
        try:
            await self.storage.delete_all(owner_id, fragment_id)
        except Exception as e:
            logger.error("fragment_delete_failed", fragment_id=fragment_id, error=str(e))
            raise
        logger.info("fragment_deleted", owner_id=owner_id, fragment_id=fragment_id)

    async def create(self, owner_id: str, content_type: str, data: bytes) -> Fragment:
        """Create a fragment with its first content.

        The content is validated before anything is written.
        """
        self.registry.content_type(content_type)
        fragment = Fragment(owner_id=owner_id, type=content_type, registry=self.registry)
        self.validate(fragment, data)

        fragment = await self.save(fragment)
        fragment = await self.set_data(fragment, data)
        logger.info(
            "fragment_created",
            owner_id=owner_id,
            fragment_id=fragment.id,
            size=fragment.size,
        )
        return fragment

    async def replace_data(
        self, owner_id: str, fragment_id: str, content_type: str, data: bytes
    ) -> Fragment:
        """Replace an existing fragment's content.

        The content type must match the one the fragment was created with.
        """
        self.registry.content_type(content_type)
        fragment = await self.by_id(owner_id, fragment_id)

        if fragment.type != content_type:
            logger.warning(
                "content_type_mismatch",
                fragment_id=fragment_id,
                original_type=fragment.type,
                request_type=content_type,
            )
            raise ValidationError(
                fragment.mime_type, "content type cannot be changed on update"
            )

        return await self.set_data(fragment, data)
