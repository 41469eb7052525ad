"""
Invalidation Dispatcher
Turns a committed mutation into the set of cache tags it affects and bumps them.

Call on_mutation() only after db.commit() has returned: invalidating before the
commit lets a concurrent reader recompute from pre-commit rows and store them
as a fresh entry.
"""
from enum import Enum
from typing import Iterable, NamedTuple, Optional, Set
import logging

from fastapi import Depends

from moviedb.utils.cache import CacheBackend, get_cache_store
from moviedb.utils.cache_tags import EntityId, EntityType, tags_to_invalidate

logger = logging.getLogger(__name__)


class Effect(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


class Relation(NamedTuple):
    type: EntityType
    id: EntityId


class InvalidationDispatcher:
    """Marks cache tags invalidated after mutations."""

    def __init__(self, store: CacheBackend):
        self.store = store

    @staticmethod
    def affected_tags(
        entity_type: EntityType,
        entity_id: Optional[EntityId],
        relations: Iterable[Relation] = (),
    ) -> Set[str]:
        """Union of the entity's own tags and both directions of each relation."""
        tags = tags_to_invalidate(entity_type, entity_id)
        for relation in relations:
            tags |= tags_to_invalidate(entity_type, entity_id, relation.type, relation.id)
        return tags

    def on_mutation(
        self,
        entity_type: EntityType,
        entity_id: Optional[EntityId],
        effect: Effect,
        relations: Iterable[Relation] = (),
    ) -> Set[str]:
        """
        Invalidate every tag affected by a committed mutation.

        Args:
            entity_type: Type of the mutated entity
            entity_id: Its id
            effect: CREATED, UPDATED or DELETED
            relations: Related entities whose views depend on this mutation
                (joined ids must be collected before a delete removes them)

        Returns:
            The tags that were invalidated (empty if the store failed)
        """
        tags = self.affected_tags(entity_type, entity_id, relations)
        try:
            self.store.invalidate_tags(tags)
        except Exception as e:
            logger.warning(
                f"Cache invalidation failed for {entity_type.value} {entity_id} ({effect.value}): {str(e)}"
            )
            return set()

        logger.debug(f"{effect.value} {entity_type.value} {entity_id}: invalidated {sorted(tags)}")
        return tags

    def revalidate_tags(self, tags: Iterable[str]) -> Set[str]:
        """Invalidate arbitrary tags (admin use)."""
        tag_set = set(tags)
        try:
            self.store.invalidate_tags(tag_set)
        except Exception as e:
            logger.warning(f"Cache invalidation failed for {sorted(tag_set)}: {str(e)}")
            return set()
        return tag_set


def get_invalidation_dispatcher(
    store: CacheBackend = Depends(get_cache_store),
) -> InvalidationDispatcher:
    """FastAPI dependency: dispatcher bound to the request's cache store."""
    return InvalidationDispatcher(store)
