"""Registry state: creature table, global count and ownership index.

Three persisted stores:
- AssetCount: number of creatures ever created (u64)
- Assets: creature id -> Creature
- OwnershipIndex: owner -> ordered list of creature ids, bounded by max_owned

All mutations go through a shared Journal. Inside
StorageContext.transactional() every mutation records how to undo
itself; if the block raises, the undo log is replayed in reverse, so a
failed operation leaves no partial writes.

Thread-safety: NOT thread-safe. Operations are serialized by the caller.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager

from .constants import DEFAULT_MAX_OWNED, MAX_CREATURE_COUNT
from .errors import (
    AssetNotFoundError,
    CounterOverflowError,
    DuplicateIdentifierError,
    ExceedMaxOwnedError,
)
from .models import Creature


class Journal:
    """Undo log for the current transaction, if any."""

    def __init__(self) -> None:
        self._entries: list[Callable[[], None]] | None = None

    @property
    def active(self) -> bool:
        return self._entries is not None

    def record(self, undo: Callable[[], None]) -> None:
        """Remember how to revert a mutation. No-op outside a transaction."""
        if self._entries is not None:
            self._entries.append(undo)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Run a block all-or-nothing. Nested calls join the outer transaction."""
        if self._entries is not None:
            yield
            return
        self._entries = []
        try:
            yield
        except BaseException:
            entries, self._entries = self._entries, None
            for undo in reversed(entries):
                undo()
            raise
        else:
            self._entries = None


class AssetStore:
    """Authoritative creature table plus the global creature count."""

    def __init__(self, journal: Journal | None = None) -> None:
        self._journal = journal or Journal()
        self._creatures: dict[str, Creature] = {}
        self._count = 0

    def count(self) -> int:
        return self._count

    def get(self, creature_id: str) -> Creature | None:
        return self._creatures.get(creature_id)

    def contains(self, creature_id: str) -> bool:
        return creature_id in self._creatures

    def items(self) -> list[tuple[str, Creature]]:
        """All (id, creature) pairs in insertion order."""
        return list(self._creatures.items())

    def __len__(self) -> int:
        return len(self._creatures)

    def increment_count(self) -> int:
        """Return count + 1 without storing it.

        Raises:
            CounterOverflowError: If the count is already at the u64 ceiling.
        """
        if self._count >= MAX_CREATURE_COUNT:
            raise CounterOverflowError(
                "creature count overflow", count=self._count
            )
        return self._count + 1

    def set_count(self, value: int) -> None:
        if not 0 <= value <= MAX_CREATURE_COUNT:
            raise ValueError(f"count out of range: {value}")
        previous = self._count
        self._count = value
        self._journal.record(lambda: setattr(self, "_count", previous))

    def insert(self, creature_id: str, creature: Creature) -> None:
        """Store a new creature.

        Raises:
            DuplicateIdentifierError: If the id is already present. Existing
                entries are never overwritten.
        """
        if creature_id in self._creatures:
            raise DuplicateIdentifierError(
                f"creature id collision: {creature_id}", creature_id=creature_id
            )
        self._creatures[creature_id] = creature
        self._journal.record(lambda: self._creatures.pop(creature_id, None))

    def update(self, creature_id: str, creature: Creature) -> None:
        """Replace the record of an existing creature.

        Raises:
            AssetNotFoundError: If the id is not present.
        """
        previous = self._creatures.get(creature_id)
        if previous is None:
            raise AssetNotFoundError(
                f"creature not found: {creature_id}", creature_id=creature_id
            )
        self._creatures[creature_id] = creature

        def undo() -> None:
            self._creatures[creature_id] = previous

        self._journal.record(undo)


class OwnershipIndex:
    """Per-owner ordered, duplicate-free, bounded lists of creature ids."""

    def __init__(self, max_owned: int = DEFAULT_MAX_OWNED, journal: Journal | None = None) -> None:
        if max_owned < 1:
            raise ValueError("max_owned must be at least 1")
        self.max_owned = max_owned
        self._journal = journal or Journal()
        self._owned: dict[str, list[str]] = {}

    def owned_by(self, owner: str) -> list[str]:
        """Ids owned by ``owner`` in acquisition order. Empty if none."""
        return list(self._owned.get(owner, []))

    def owners(self) -> list[str]:
        return [owner for owner, ids in self._owned.items() if ids]

    def has_capacity(self, owner: str) -> bool:
        return len(self._owned.get(owner, [])) < self.max_owned

    def try_append(self, owner: str, creature_id: str) -> None:
        """Append ``creature_id`` to the owner's list.

        Raises:
            ExceedMaxOwnedError: If the owner is at capacity. Nothing changes.
            DuplicateIdentifierError: If the owner already lists the id.
        """
        ids = self._owned.get(owner, [])
        if len(ids) >= self.max_owned:
            raise ExceedMaxOwnedError(
                f"{owner} already owns {len(ids)} creatures (max {self.max_owned})",
                owner=owner,
                max_owned=self.max_owned,
            )
        if creature_id in ids:
            raise DuplicateIdentifierError(
                f"{creature_id} already listed for {owner}",
                creature_id=creature_id,
                owner=owner,
            )
        created = owner not in self._owned
        self._owned.setdefault(owner, []).append(creature_id)

        def undo() -> None:
            self._owned[owner].pop()
            if created:
                del self._owned[owner]

        self._journal.record(undo)

    def remove(self, owner: str, creature_id: str) -> None:
        """Remove ``creature_id`` from the owner's list, keeping order.

        Raises:
            AssetNotFoundError: If the owner does not list that id.
        """
        ids = self._owned.get(owner, [])
        if creature_id not in ids:
            raise AssetNotFoundError(
                f"{creature_id} is not owned by {owner}",
                creature_id=creature_id,
                owner=owner,
            )
        position = ids.index(creature_id)
        del ids[position]
        self._journal.record(lambda: ids.insert(position, creature_id))


class StorageContext:
    """Explicitly owned registry state passed to the lifecycle service."""

    def __init__(self, max_owned: int = DEFAULT_MAX_OWNED) -> None:
        self.journal = Journal()
        self.assets = AssetStore(self.journal)
        self.owned = OwnershipIndex(max_owned, self.journal)

    @property
    def max_owned(self) -> int:
        return self.owned.max_owned

    @contextmanager
    def transactional(self) -> Iterator[None]:
        """All-or-nothing block over every store in this context."""
        with self.journal.transaction():
            yield
