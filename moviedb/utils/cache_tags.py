"""
Cache tag registry.

Tag names are string contracts shared by every read and every mutation:

    "<type>s-list"             reads enumerating the type (home lists, search, ranking)
    "<type>s-all"              every read containing data of arbitrary instances of the type
    "<type>-<id>"              reads of one instance
    "<type>-<id>-<related>s"   reads of one instance's relation (e.g. "movie-5-actors")

A read declares its tags with tags_for_read(); a mutation invalidates
tags_to_invalidate(). The two must stay in step: any read whose result a
mutation can change has to carry at least one tag that mutation invalidates.
"""
from enum import Enum
from typing import Iterable, Optional, Set, Union


class EntityType(str, Enum):
    MOVIE = "movie"
    ACTOR = "actor"
    DIRECTOR = "director"
    RATING = "rating"
    REVIEW = "review"
    USER = "user"


class ReadScope(str, Enum):
    LIST = "list"
    DETAIL = "detail"
    RELATION = "relation"


EntityId = Union[int, str]


def list_tag(entity_type: EntityType) -> str:
    return f"{entity_type.value}s-list"


def all_tag(entity_type: EntityType) -> str:
    return f"{entity_type.value}s-all"


def instance_tag(entity_type: EntityType, entity_id: EntityId) -> str:
    return f"{entity_type.value}-{entity_id}"


def relation_tag(entity_type: EntityType, entity_id: EntityId, related_type: EntityType) -> str:
    return f"{entity_type.value}-{entity_id}-{related_type.value}s"


def tags_for_read(
    entity_type: EntityType,
    scope: ReadScope,
    entity_id: Optional[EntityId] = None,
    related_type: Optional[EntityType] = None,
    embeds: Iterable[EntityType] = (),
) -> Set[str]:
    """
    Tags a cached read must carry.

    Args:
        entity_type: Type the read is about
        scope: LIST, DETAIL (one instance) or RELATION (one instance's related rows)
        entity_id: Required for DETAIL and RELATION
        related_type: Required for RELATION
        embeds: Other types whose rows are embedded in the result

    Raises:
        ValueError: If a required argument for the scope is missing
    """
    if scope is ReadScope.LIST:
        tags = {list_tag(entity_type), all_tag(entity_type)}
    elif scope is ReadScope.DETAIL:
        if entity_id is None:
            raise ValueError("DETAIL reads need an entity id")
        tags = {instance_tag(entity_type, entity_id)}
    else:
        if entity_id is None or related_type is None:
            raise ValueError("RELATION reads need an entity id and a related type")
        tags = {relation_tag(entity_type, entity_id, related_type), all_tag(related_type)}

    tags.update(all_tag(embedded) for embedded in embeds)
    return tags


def tags_to_invalidate(
    entity_type: EntityType,
    entity_id: Optional[EntityId] = None,
    related_type: Optional[EntityType] = None,
    related_id: Optional[EntityId] = None,
) -> Set[str]:
    """
    Tags a mutation must invalidate.

    Any create/update/delete invalidates the type's list and all tags. With an
    id, the instance tag too. With a related entity, the relation tag in both
    directions, since each side's view depends on the same join rows.
    """
    tags = {list_tag(entity_type), all_tag(entity_type)}
    if entity_id is not None:
        tags.add(instance_tag(entity_type, entity_id))
    if entity_id is not None and related_type is not None and related_id is not None:
        tags.add(relation_tag(entity_type, entity_id, related_type))
        tags.add(relation_tag(related_type, related_id, entity_type))
    return tags
