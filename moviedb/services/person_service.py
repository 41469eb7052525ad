"""
Person Service - actor and director mutations

Actors and directors share columns and rules, so the work is done once in
PersonService and bound to a model by ActorService and DirectorService.
"""

from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from moviedb.models.person import Actor, Director
from moviedb.models.user import User
from moviedb.schemas.common import ActionError, ActionResult
from moviedb.schemas.person import DeletedPerson, PersonFieldUpdate
from moviedb.services.invalidation import Effect, InvalidationDispatcher, Relation
from moviedb.utils.cache_tags import EntityType
from moviedb.utils.guards import with_actor_auth, with_director_auth
from moviedb.utils.transactions import commit_or_error

logger = logging.getLogger(__name__)


class PersonService:
    model = None
    entity_type: EntityType = None
    links_attr: str = None

    @classmethod
    def create(cls, db: Session, user: Optional[User], dispatcher: InvalidationDispatcher) -> ActionResult:
        """Create an empty record to be filled in through metadata updates"""
        if user is None:
            return ActionError.not_authenticated()

        person = cls.model()
        db.add(person)
        error = commit_or_error(db)
        if error:
            return error

        db.refresh(person)
        logger.info(f"User {user.id} created {cls.entity_type.value} {person.id}")
        dispatcher.on_mutation(cls.entity_type, person.id, Effect.CREATED)
        return person

    @classmethod
    def list_all(cls, db: Session) -> List:
        """Dashboard listing (not cached)"""
        return db.query(cls.model).order_by(cls.model.name).all()

    @classmethod
    def _update_metadata(
        cls,
        db: Session,
        person,
        update: PersonFieldUpdate,
        dispatcher: InvalidationDispatcher,
    ) -> ActionResult:
        setattr(person, update.field, update.value)
        error = commit_or_error(db)
        if error:
            return error

        db.refresh(person)
        dispatcher.on_mutation(cls.entity_type, person.id, Effect.UPDATED)
        return person

    @classmethod
    def _delete(cls, db: Session, person, dispatcher: InvalidationDispatcher) -> ActionResult[DeletedPerson]:
        person_id = person.id

        # Collect filmography before the join rows cascade away
        relations = [Relation(EntityType.MOVIE, link.movie_id) for link in getattr(person, cls.links_attr)]

        db.delete(person)
        error = commit_or_error(db)
        if error:
            return error

        logger.info(f"Deleted {cls.entity_type.value} {person_id} ({len(relations)} credits)")
        dispatcher.on_mutation(cls.entity_type, person_id, Effect.DELETED, relations)
        return DeletedPerson(id=person_id)


class ActorService(PersonService):
    model = Actor
    entity_type = EntityType.ACTOR
    links_attr = "movie_actors"

    @staticmethod
    @with_actor_auth
    def update_metadata(db, user, actor, update: PersonFieldUpdate, dispatcher: InvalidationDispatcher):
        return ActorService._update_metadata(db, actor, update, dispatcher)

    @staticmethod
    @with_actor_auth
    def delete(db, user, actor, dispatcher: InvalidationDispatcher):
        return ActorService._delete(db, actor, dispatcher)


class DirectorService(PersonService):
    model = Director
    entity_type = EntityType.DIRECTOR
    links_attr = "movie_directors"

    @staticmethod
    @with_director_auth
    def update_metadata(db, user, director, update: PersonFieldUpdate, dispatcher: InvalidationDispatcher):
        return DirectorService._update_metadata(db, director, update, dispatcher)

    @staticmethod
    @with_director_auth
    def delete(db, user, director, dispatcher: InvalidationDispatcher):
        return DirectorService._delete(db, director, dispatcher)
