"""Storage gateway protocol and the in-memory gateway."""

from __future__ import annotations

import copy
from typing import Protocol, runtime_checkable

import structlog

logger = structlog.get_logger()


@runtime_checkable
class StorageGateway(Protocol):
    """Key-addressed persistence for fragment metadata and content.

    Implementations must make each put/get atomic per key. Failures should be
    raised as fragments.domain.StorageError; the core propagates them as-is.
    """

    async def put_metadata(self, owner_id: str, fragment: dict) -> None:
        ...

    async def get_metadata(self, owner_id: str, fragment_id: str) -> dict | None:
        ...

    async def put_content(self, owner_id: str, fragment_id: str, data: bytes) -> None:
        ...

    async def get_content(self, owner_id: str, fragment_id: str) -> bytes | None:
        ...

    async def list_ids(self, owner_id: str) -> list[str]:
        ...

    async def delete_all(self, owner_id: str, fragment_id: str) -> None:
        """Remove metadata and content together."""
        ...


class MemoryStorage:
    """Dict-backed storage gateway for development and testing.

    Values are copied in and out so callers never share state with the store.
    """

    def __init__(self) -> None:
        self._metadata: dict[tuple[str, str], dict] = {}
        self._content: dict[tuple[str, str], bytes] = {}

    @staticmethod
    def _key(owner_id: str, fragment_id: str) -> tuple[str, str]:
        if not owner_id or not fragment_id:
            raise ValueError("owner_id and fragment_id are required")
        return owner_id, fragment_id

    async def put_metadata(self, owner_id: str, fragment: dict) -> None:
        key = self._key(owner_id, fragment.get("id"))
        self._metadata[key] = copy.deepcopy(fragment)

    async def get_metadata(self, owner_id: str, fragment_id: str) -> dict | None:
        data = self._metadata.get(self._key(owner_id, fragment_id))
        return copy.deepcopy(data) if data is not None else None

    async def put_content(self, owner_id: str, fragment_id: str, data: bytes) -> None:
        self._content[self._key(owner_id, fragment_id)] = bytes(data)

    async def get_content(self, owner_id: str, fragment_id: str) -> bytes | None:
        return self._content.get(self._key(owner_id, fragment_id))

    async def list_ids(self, owner_id: str) -> list[str]:
        return [fid for (owner, fid) in self._metadata if owner == owner_id]

    async def delete_all(self, owner_id: str, fragment_id: str) -> None:
        key = self._key(owner_id, fragment_id)
        self._metadata.pop(key, None)
        self._content.pop(key, None)
        logger.debug("storage_deleted", owner_id=owner_id, fragment_id=fragment_id)

    def clear(self) -> None:
        """Drop everything (tests)."""
        self._metadata.clear()
        self._content.clear()
