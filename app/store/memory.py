"""
In-memory entity store.

One dict table and one id counter per entity type. Counters only move
forward, so an id is never handed out twice even after its row is deleted.
Rows go in and come out as deep copies; callers can never mutate stored
state through a returned dict.

No locking: every call is a single synchronous dict mutation and the host
is expected to serialise mutations.
"""

import copy

from app.store.base import EntityStore
from app.store.schema import TABLES, EntityKind


class MemStorage(EntityStore):
    """Dict-backed store used for development and as the test double."""

    def __init__(self):
        self._tables: dict[EntityKind, dict[int, dict]] = {kind: {} for kind in EntityKind}
        self._counters: dict[EntityKind, int] = {kind: 1 for kind in EntityKind}

    def __repr__(self):
        sizes = ", ".join(f"{k.value}={len(t)}" for k, t in self._tables.items())
        return f"<MemStorage {sizes}>"

    def _rows(self, kind):
        return [copy.deepcopy(row) for row in self._tables[kind].values()]

    def _get_row(self, kind, entity_id):
        row = self._tables[kind].get(entity_id)
        return copy.deepcopy(row) if row is not None else None

    def _find_one(self, kind, field, value):
        for row in self._tables[kind].values():
            if row[field] == value:
                return copy.deepcopy(row)
        return None

    def _insert(self, kind, data):
        entity_id = self._counters[kind]
        self._counters[kind] += 1
        row = TABLES[kind].build_row(entity_id, data)
        self._tables[kind][entity_id] = row
        return copy.deepcopy(row)

    def _patch(self, kind, entity_id, changes):
        existing = self._tables[kind].get(entity_id)
        if existing is None:
            return None
        updated = {**existing, **changes, "id": existing["id"]}
        self._tables[kind][entity_id] = updated
        return copy.deepcopy(updated)

    def _remove(self, kind, entity_id):
        return self._tables[kind].pop(entity_id, None) is not None
