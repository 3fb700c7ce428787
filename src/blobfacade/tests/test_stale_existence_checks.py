import logging

import pytest

from blobfacade import BlobOperations, ClientCache, ConflictError, NotFoundError


class StaleContainer:
    """
    Container whose exists() answer is out of date: another client created
    or deleted it between the check and the call that follows.
    """

    def __init__(self, name, exists, error):
        self.name = name
        self._exists = exists
        self._error = error
        self.calls: list[str] = []

    async def exists(self):
        return self._exists

    async def create(self):
        self.calls.append("create")
        raise self._error

    async def delete(self):
        self.calls.append("delete")
        raise self._error


class StaleAdapter:
    def __init__(self, exists, error):
        self.exists = exists
        self.error = error
        self.handles: list[StaleContainer] = []

    def get_container(self, container_name):
        handle = StaleContainer(container_name, self.exists, self.error)
        self.handles.append(handle)
        return handle

    async def list_container_names(self):
        for handle in self.handles:
            yield handle.name

    async def close(self):
        pass


@pytest.mark.asyncio
async def test_create_conflict_counts_as_already_exists(caplog):
    caplog.set_level(logging.INFO, logger="blobfacade")
    adapter = StaleAdapter(exists=False, error=ConflictError("taken", "req-409"))
    async with BlobOperations(ClientCache(adapter)) as ops:
        assert await ops.create_container("race") is None

    assert adapter.handles[0].calls == ["create"]
    assert "Container race already exists" in caplog.text


@pytest.mark.asyncio
async def test_delete_not_found_counts_as_missing_and_invalidates(caplog):
    caplog.set_level(logging.INFO, logger="blobfacade")
    adapter = StaleAdapter(exists=True, error=NotFoundError("gone", "req-404"))
    async with BlobOperations(ClientCache(adapter)) as ops:
        stale = ops.cache.get_container_handle("race")

        assert await ops.delete_container("race") is None

        assert stale.calls == ["delete"]
        assert "race" not in ops.cache
        assert ops.cache.get_container_handle("race") is not stale
    assert "Container race does not exist" in caplog.text


@pytest.mark.asyncio
async def test_create_propagates_other_errors():
    adapter = StaleAdapter(exists=False, error=NotFoundError("account gone"))
    async with BlobOperations(ClientCache(adapter)) as ops:
        with pytest.raises(NotFoundError):
            await ops.create_container("race")


@pytest.mark.asyncio
async def test_delete_propagates_other_errors_and_keeps_cache():
    adapter = StaleAdapter(exists=True, error=ConflictError("being deleted"))
    async with BlobOperations(ClientCache(adapter)) as ops:
        with pytest.raises(ConflictError):
            await ops.delete_container("race")
        assert "race" in ops.cache
