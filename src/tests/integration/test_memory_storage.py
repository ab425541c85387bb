"""Integration tests for the in-memory storage gateway."""
import pytest

from fragments.infrastructure.storage import MemoryStorage, StorageGateway
from tests.fixtures.storage import memory_storage  # noqa: F401


class TestMemoryStorage:
    """Test the gateway contract against MemoryStorage."""

    def test_satisfies_protocol(self, memory_storage: MemoryStorage):
        """Test that MemoryStorage is a StorageGateway."""
        assert isinstance(memory_storage, StorageGateway)

    @pytest.mark.asyncio
    async def test_metadata_round_trip(self, memory_storage: MemoryStorage):
        """Test that stored metadata reads back equal."""
        await memory_storage.put_metadata("a", {"id": "1", "type": "text/plain"})
        assert await memory_storage.get_metadata("a", "1") == {"id": "1", "type": "text/plain"}

    @pytest.mark.asyncio
    async def test_metadata_is_copied(self, memory_storage: MemoryStorage):
        """Mutating a returned or stored dict does not affect the store."""
        stored = {"id": "1", "tags": ["x"]}
        await memory_storage.put_metadata("a", stored)
        stored["tags"].append("y")

        fetched = await memory_storage.get_metadata("a", "1")
        fetched["tags"].append("z")

        assert await memory_storage.get_metadata("a", "1") == {"id": "1", "tags": ["x"]}

    @pytest.mark.asyncio
    async def test_content_round_trip(self, memory_storage: MemoryStorage):
        """Test that content is stored as bytes."""
        await memory_storage.put_content("a", "1", bytearray(b"data"))
        content = await memory_storage.get_content("a", "1")
        assert content == b"data"
        assert isinstance(content, bytes)

    @pytest.mark.asyncio
    async def test_missing_values(self, memory_storage: MemoryStorage):
        """Test that missing keys read as None or empty."""
        assert await memory_storage.get_metadata("a", "1") is None
        assert await memory_storage.get_content("a", "1") is None
        assert await memory_storage.list_ids("a") == []

    @pytest.mark.asyncio
    async def test_list_ids_by_owner(self, memory_storage: MemoryStorage):
        """Test that ids are listed per owner."""
        await memory_storage.put_metadata("a", {"id": "1"})
        await memory_storage.put_metadata("a", {"id": "2"})
        await memory_storage.put_metadata("b", {"id": "3"})

        assert sorted(await memory_storage.list_ids("a")) == ["1", "2"]
        assert await memory_storage.list_ids("b") == ["3"]

    @pytest.mark.asyncio
    async def test_delete_all(self, memory_storage: MemoryStorage):
        """Test that delete_all removes metadata and content."""
        await memory_storage.put_metadata("a", {"id": "1"})
        await memory_storage.put_content("a", "1", b"data")

        await memory_storage.delete_all("a", "1")

        assert await memory_storage.get_metadata("a", "1") is None
        assert await memory_storage.get_content("a", "1") is None

    @pytest.mark.asyncio
    async def test_delete_missing_is_quiet(self, memory_storage: MemoryStorage):
        """Test that deleting nothing does not raise."""
        await memory_storage.delete_all("a", "missing")

    @pytest.mark.asyncio
    async def test_keys_required(self, memory_storage: MemoryStorage):
        """Test that an empty owner or id is rejected."""
        with pytest.raises(ValueError):
            await memory_storage.put_metadata("a", {"type": "text/plain"})
        with pytest.raises(ValueError):
            await memory_storage.put_content("", "1", b"data")

    @pytest.mark.asyncio
    async def test_clear(self, memory_storage: MemoryStorage):
        """Test that clear drops everything."""
        await memory_storage.put_metadata("a", {"id": "1"})
        memory_storage.clear()
        assert await memory_storage.list_ids("a") == []
