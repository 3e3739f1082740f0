"""
Entity Store
============
Integer entity ids with one component dict per component type.

An entity is "active" while it exists and has not been marked for
removal. Marked entities vanish from queries at once but keep their
components until `process_dead_entities` runs at the end of the tick,
so systems iterating a query never see a half-removed entity.
"""

from typing import Any, Dict, Iterator, Optional, Set, Tuple, Type, TypeVar


C = TypeVar('C')


class World:
    """Container for every entity and component in one play session."""

    def __init__(self):
        self._next_id: int = 0
        self._entities: Set[int] = set()
        self._stores: Dict[Type, Dict[int, Any]] = {}
        self._doomed: Set[int] = set()

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def create_entity(self) -> int:
        entity_id = self._next_id
        self._next_id += 1
        self._entities.add(entity_id)
        return entity_id

    def destroy_entity(self, entity_id: int) -> None:
        """Mark an entity for removal at the end of the tick."""
        if entity_id in self._entities:
            self._doomed.add(entity_id)

    def process_dead_entities(self) -> int:
        """Drop every marked entity and its components. Returns the count."""
        removed = 0
        for entity_id in self._doomed:
            if entity_id not in self._entities:
                continue
            self._entities.discard(entity_id)
            for store in self._stores.values():
                store.pop(entity_id, None)
            removed += 1
        self._doomed.clear()
        return removed

    def is_alive(self, entity_id: Optional[int]) -> bool:
        if entity_id is None:
            return False
        return entity_id in self._entities and entity_id not in self._doomed

    def entity_count(self) -> int:
        return len(self._entities) - len(self._doomed)

    # =========================================================================
    # COMPONENTS
    # =========================================================================

    def add_component(self, entity_id: int, component: Any) -> None:
        self._stores.setdefault(type(component), {})[entity_id] = component

    def remove_component(self, entity_id: int, component_type: Type) -> None:
        store = self._stores.get(component_type)
        if store is not None:
            store.pop(entity_id, None)

    def get_component(self, entity_id: int, component_type: Type[C]) -> Optional[C]:
        store = self._stores.get(component_type)
        if store is None:
            return None
        return store.get(entity_id)

    def has_component(self, entity_id: int, component_type: Type) -> bool:
        store = self._stores.get(component_type)
        return store is not None and entity_id in store

    # =========================================================================
    # QUERIES
    # =========================================================================

    def query(self, *component_types: Type) -> Iterator[Tuple[Any, ...]]:
        """
        Yield (entity_id, comp1, comp2, ...) for active entities owning
        every requested component type.

        Candidates are snapshotted up front, so creating or destroying
        entities while iterating is safe. Entities destroyed mid-iteration
        are skipped.
        """
        if not component_types:
            return

        stores = []
        for component_type in component_types:
            store = self._stores.get(component_type)
            if not store:
                return
            stores.append(store)

        smallest = min(stores, key=len)
        candidates = [eid for eid in smallest if all(eid in s for s in stores)]
        candidates.sort()

        for entity_id in candidates:
            if entity_id in self._doomed or entity_id not in self._entities:
                continue
            if not all(entity_id in s for s in stores):
                continue
            yield (entity_id,) + tuple(s[entity_id] for s in stores)

    def entities_with(self, *component_types: Type) -> Iterator[int]:
        for row in self.query(*component_types):
            yield row[0]

    def count(self, *component_types: Type) -> int:
        return sum(1 for _ in self.query(*component_types))

    def first(self, *component_types: Type) -> Optional[Tuple[Any, ...]]:
        """Return the first matching row, or None."""
        for row in self.query(*component_types):
            return row
        return None
