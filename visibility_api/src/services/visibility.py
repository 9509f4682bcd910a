from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Dict, List, NamedTuple, Optional, Set

from src.core.errors import StorageUnavailableError
from src.services.locks import ReadWriteLock
from src.services.storage import PermissionStorage, SqlPermissionStorage

logger = logging.getLogger(__name__)


class PermissionEdge(NamedTuple):
    """Ordered pair: subject team may view the object team's detailed statistics."""
    subject_id: int
    object_id: int


class VisibilityStore:
    """
    Directed set of team-to-team visibility grants.

    The edge set is indexed three ways: a hash set of pairs for O(1) decisions,
    and subject -> objects / object -> subjects maps for enumeration. All three
    are updated together under the writer lock, so readers always see them in
    agreement.

    The relation is neither symmetric nor transitive and no team implicitly
    sees itself; whether a team may view its own stats is up to the caller.

    When a storage adapter is given, the edge set is loaded from it on first
    use and every write goes to the adapter before the index changes.
    """

    def __init__(self, storage: Optional[PermissionStorage] = None) -> None:
        self._storage = storage
        self._lock = ReadWriteLock()
        self._edges: Set[PermissionEdge] = set()
        self._by_subject: Dict[int, Set[int]] = {}
        self._by_object: Dict[int, Set[int]] = {}
        self._loaded = storage is None

    # PUBLIC_INTERFACE
    async def load(self) -> None:
        """
        Load the edge set from storage now instead of on the first call.

        Raises:
            StorageUnavailableError: storage could not be read.
        """
        async with self._lock.write():
            await self._load_locked()

    async def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        async with self._lock.write():
            await self._load_locked()

    async def _load_locked(self) -> None:
        if self._loaded or self._storage is None:
            self._loaded = True
            return
        pairs = await self._storage.load_all()
        self._edges.clear()
        self._by_subject.clear()
        self._by_object.clear()
        for subject_id, object_id in pairs:
            self._index_add(subject_id, object_id)
        self._loaded = True
        logger.info("Loaded %d team permission edges", len(self._edges))

    async def _persist(self, write: Awaitable[object]) -> bool:
        """
        Run a storage write to completion even if the caller is cancelled.

        Returns True when a cancellation arrived meanwhile; the caller applies
        the matching index change and then re-raises it, so the index never
        falls behind what storage has committed.
        """
        task = asyncio.ensure_future(write)
        interrupted = False
        while True:
            try:
                await asyncio.shield(task)
                return interrupted
            except asyncio.CancelledError:
                if task.done():
                    raise
                interrupted = True

    def _index_add(self, subject_id: int, object_id: int) -> None:
        self._edges.add(PermissionEdge(subject_id, object_id))
        self._by_subject.setdefault(subject_id, set()).add(object_id)
        self._by_object.setdefault(object_id, set()).add(subject_id)

    def _index_remove(self, subject_id: int, object_id: int) -> None:
        self._edges.discard(PermissionEdge(subject_id, object_id))
        objects = self._by_subject.get(subject_id)
        if objects is not None:
            objects.discard(object_id)
            if not objects:
                del self._by_subject[subject_id]
        subjects = self._by_object.get(object_id)
        if subjects is not None:
            subjects.discard(subject_id)
            if not subjects:
                del self._by_object[object_id]

    # PUBLIC_INTERFACE
    async def grant(self, subject_id: int, object_id: int) -> None:
        """
        Permit subject_id to view object_id's detailed statistics.

        Idempotent: granting an existing edge changes nothing.

        Raises:
            StorageUnavailableError: storage could not be written; the edge is not granted.
        """
        await self._ensure_loaded()
        edge = PermissionEdge(subject_id, object_id)
        async with self._lock.write():
            if edge in self._edges:
                logger.debug("Grant %s -> %s already present", subject_id, object_id)
                return
            interrupted = False
            if self._storage is not None:
                interrupted = await self._persist(self._storage.add(subject_id, object_id))
            self._index_add(subject_id, object_id)
        logger.info("Granted team %s visibility of team %s", subject_id, object_id)
        if interrupted:
            raise asyncio.CancelledError()

    # PUBLIC_INTERFACE
    async def revoke(self, subject_id: int, object_id: int) -> None:
        """
        Remove the grant, if any. Revoking an absent edge is not an error.

        Raises:
            StorageUnavailableError: storage could not be written; the edge is kept.
        """
        await self._ensure_loaded()
        edge = PermissionEdge(subject_id, object_id)
        async with self._lock.write():
            if edge not in self._edges:
                logger.debug("Revoke %s -> %s: no such edge", subject_id, object_id)
                return
            interrupted = False
            if self._storage is not None:
                interrupted = await self._persist(self._storage.remove(subject_id, object_id))
            self._index_remove(subject_id, object_id)
        logger.info("Revoked team %s visibility of team %s", subject_id, object_id)
        if interrupted:
            raise asyncio.CancelledError()

    # PUBLIC_INTERFACE
    async def is_permitted(self, subject_id: int, object_id: int) -> bool:
        """True iff the edge (subject_id, object_id) has been granted and not revoked."""
        await self._ensure_loaded()
        async with self._lock.read():
            return PermissionEdge(subject_id, object_id) in self._edges

    # PUBLIC_INTERFACE
    async def get_all_permissions(self) -> List[PermissionEdge]:
        """Snapshot of every edge. Order is unspecified."""
        await self._ensure_loaded()
        async with self._lock.read():
            return list(self._edges)

    # PUBLIC_INTERFACE
    async def get_teams_that_can_see(self, object_id: int) -> Set[int]:
        """Subjects holding a grant on object_id."""
        await self._ensure_loaded()
        async with self._lock.read():
            return set(self._by_object.get(object_id, ()))

    # PUBLIC_INTERFACE
    async def get_teams_that_it_sees(self, subject_id: int) -> Set[int]:
        """Objects that subject_id holds a grant on."""
        await self._ensure_loaded()
        async with self._lock.read():
            return set(self._by_subject.get(subject_id, ()))

    # PUBLIC_INTERFACE
    async def forget_team(self, team_id: int) -> int:
        """
        Drop every edge in which team_id is the subject or the object.

        Edges of deleted teams are otherwise kept forever; the team-management
        service calls this when it deletes a team. Returns the number of edges
        removed.

        Raises:
            StorageUnavailableError: storage could not be written; nothing is removed.
        """
        await self._ensure_loaded()
        async with self._lock.write():
            doomed = [PermissionEdge(team_id, o) for o in self._by_subject.get(team_id, ())]
            doomed.extend(
                PermissionEdge(s, team_id) for s in self._by_object.get(team_id, ()) if s != team_id
            )
            if not doomed:
                return 0
            interrupted = False
            if self._storage is not None:
                interrupted = await self._persist(self._storage.remove_team(team_id))
            for edge in doomed:
                self._index_remove(edge.subject_id, edge.object_id)
        logger.info("Removed %d permission edges of team %s", len(doomed), team_id)
        if interrupted:
            raise asyncio.CancelledError()
        return len(doomed)


async def build_visibility_store(backend: str) -> VisibilityStore:
    """
    Construct the application's store for the configured backend.

    'memory' keeps edges only for the life of the process; 'database' persists
    them through SqlPermissionStorage. A database that is down at start-up is
    logged and the load is retried on first use.
    """
    if backend == "memory":
        logger.warning("Visibility store is in-memory only; grants are lost on restart.")
        return VisibilityStore()

    from src.db.session import get_session_maker

    store = VisibilityStore(SqlPermissionStorage(get_session_maker()))
    try:
        await store.load()
    except StorageUnavailableError:
        logger.exception("Initial permission load failed; will retry on first request")
    return store
