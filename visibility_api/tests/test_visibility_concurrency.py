"""
Persistence write-through, lazy loading, failure handling and concurrent
access of the visibility store.
"""
import asyncio

import pytest

from src.core.errors import StorageUnavailableError
from src.services.visibility import PermissionEdge, VisibilityStore

from conftest import BrokenStorage, RecordingStorage


async def test_store_loads_existing_edges_lazily():
    storage = RecordingStorage(pairs=[(1, 2), (3, 2)])
    store = VisibilityStore(storage)
    assert storage.loads == 0

    assert await store.get_teams_that_can_see(2) == {1, 3}
    assert await store.is_permitted(1, 2) is True
    assert storage.loads == 1


async def test_writes_go_through_to_storage(persistent_store, recording_storage):
    await persistent_store.grant(1, 2)
    await persistent_store.grant(1, 2)
    await persistent_store.revoke(1, 2)
    await persistent_store.revoke(1, 2)

    # No-op writes never reach storage.
    assert recording_storage.ops == [("add", 1, 2), ("remove", 1, 2)]
    assert recording_storage.pairs == set()


async def test_failed_grant_leaves_index_unchanged():
    store = VisibilityStore(BrokenStorage())

    with pytest.raises(StorageUnavailableError) as info:
        await store.grant(1, 2)

    assert info.value.operation == "grant"
    assert await store.is_permitted(1, 2) is False
    assert await store.get_all_permissions() == []


async def test_failed_revoke_keeps_edge():
    store = VisibilityStore(BrokenStorage(pairs=[(1, 2)]))

    with pytest.raises(StorageUnavailableError):
        await store.revoke(1, 2)
    with pytest.raises(StorageUnavailableError):
        await store.forget_team(1)

    assert await store.is_permitted(1, 2) is True


async def test_failed_load_is_retried_on_next_call():
    class FlakyStorage(RecordingStorage):
        async def load_all(self):
            self.loads += 1
            if self.loads == 1:
                raise StorageUnavailableError("load")
            return sorted(self.pairs)

    store = VisibilityStore(FlakyStorage(pairs=[(7, 8)]))

    with pytest.raises(StorageUnavailableError):
        await store.is_permitted(7, 8)
    assert await store.is_permitted(7, 8) is True


async def test_concurrent_writes_keep_indexes_and_storage_in_step(persistent_store, recording_storage):
    teams = range(8)
    await asyncio.gather(*(persistent_store.grant(s, o) for s in teams for o in teams))
    await asyncio.gather(
        *(persistent_store.revoke(s, o) for s in teams for o in teams if (s + o) % 2)
    )

    expected = {(s, o) for s in teams for o in teams if (s + o) % 2 == 0}
    assert set(await persistent_store.get_all_permissions()) == expected
    assert recording_storage.pairs == expected
    for t in teams:
        assert await persistent_store.get_teams_that_can_see(t) == {s for s, o in expected if o == t}
        assert await persistent_store.get_teams_that_it_sees(t) == {o for s, o in expected if s == t}


async def test_racing_grant_and_revoke_end_in_last_writers_state(persistent_store, recording_storage):
    await persistent_store.load()
    await asyncio.gather(persistent_store.grant(1, 2), persistent_store.revoke(1, 2))

    last_op = recording_storage.ops[-1][0]
    present = await persistent_store.is_permitted(1, 2)
    assert present is (last_op == "add")
    assert recording_storage.pairs == {(e.subject_id, e.object_id) for e in await persistent_store.get_all_permissions()}


async def test_readers_wait_for_an_in_flight_grant():
    class GatedStorage(RecordingStorage):
        def __init__(self):
            super().__init__()
            self.gate = asyncio.Event()

        async def add(self, subject_id, object_id):
            await self.gate.wait()
            await super().add(subject_id, object_id)

    storage = GatedStorage()
    store = VisibilityStore(storage)
    await store.load()

    grant = asyncio.create_task(store.grant(1, 2))
    for _ in range(3):
        await asyncio.sleep(0)
    read = asyncio.create_task(store.get_teams_that_can_see(2))
    listing = asyncio.create_task(store.get_all_permissions())
    for _ in range(3):
        await asyncio.sleep(0)
    assert not read.done()
    assert not listing.done()

    storage.gate.set()
    await grant
    assert await read == {1}
    assert await listing == [PermissionEdge(1, 2)]


class SlowCommitStorage(RecordingStorage):
    """Commits each write, then stalls until released, like a slow round-trip."""

    def __init__(self, pairs=()):
        super().__init__(pairs)
        self.release = asyncio.Event()

    async def add(self, subject_id, object_id):
        self.pairs.add((subject_id, object_id))
        await self.release.wait()

    async def remove(self, subject_id, object_id):
        self.pairs.discard((subject_id, object_id))
        await self.release.wait()


async def test_cancelled_grant_still_indexes_committed_edge():
    storage = SlowCommitStorage()
    store = VisibilityStore(storage)
    await store.load()

    grant = asyncio.create_task(store.grant(1, 2))
    for _ in range(3):
        await asyncio.sleep(0)
    grant.cancel()
    for _ in range(3):
        await asyncio.sleep(0)
    storage.release.set()
    with pytest.raises(asyncio.CancelledError):
        await grant

    assert storage.pairs == {(1, 2)}
    assert await store.is_permitted(1, 2) is True

    await store.revoke(1, 2)
    assert storage.pairs == set()

    restarted = VisibilityStore(storage)
    assert await restarted.is_permitted(1, 2) is False


async def test_cancelled_revoke_still_drops_committed_edge():
    storage = SlowCommitStorage(pairs=[(3, 4)])
    store = VisibilityStore(storage)
    await store.load()

    revoke = asyncio.create_task(store.revoke(3, 4))
    for _ in range(3):
        await asyncio.sleep(0)
    revoke.cancel()
    storage.release.set()
    with pytest.raises(asyncio.CancelledError):
        await revoke

    assert storage.pairs == set()
    assert await store.is_permitted(3, 4) is False
    assert await store.get_teams_that_can_see(4) == set()
