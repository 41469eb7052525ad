"""
Actor and Director Routes

Both resources expose the same endpoints, so one factory builds a router per
person type from its service and fetchers.
"""

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from moviedb.database import get_db
from moviedb.models.user import User
from moviedb.schemas.person import DeletedPerson, PersonDetail, PersonFieldUpdateBody, PersonResponse
from moviedb.schemas.validation import validate_pagination
from moviedb.services import fetchers
from moviedb.services.invalidation import InvalidationDispatcher, get_invalidation_dispatcher
from moviedb.services.person_service import ActorService, DirectorService
from moviedb.utils.cache import CacheBackend, get_cache_store
from moviedb.utils.dependencies import get_current_user, get_optional_user
from moviedb.utils.responses import action_response


def build_person_router(prefix, tag, label, service, home_page, search, by_name, detail) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=[tag])

    @router.get("/", response_model=List[PersonResponse])
    def list_home_page(
        db: Session = Depends(get_db),
        store: CacheBackend = Depends(get_cache_store)
    ):
        return home_page(db, store=store)

    @router.get("/all", response_model=List[PersonResponse])
    def list_all(
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
    ):
        """Dashboard listing, not cached"""
        return service.list_all(db)

    @router.get("/search", response_model=List[PersonResponse])
    def search_by_name(
        q: str = Query(..., min_length=1, max_length=200),
        db: Session = Depends(get_db),
        store: CacheBackend = Depends(get_cache_store)
    ):
        return search(db, q, store=store)

    @router.get("/by-name/{name}", response_model=PersonResponse)
    def get_by_name(
        name: str,
        db: Session = Depends(get_db),
        store: CacheBackend = Depends(get_cache_store)
    ):
        person = by_name(db, name, store=store)
        if person is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")
        return person

    @router.get("/{person_id}", response_model=PersonDetail)
    def get_detail(
        person_id: int = Path(..., gt=0),
        page: int = Query(1, ge=1),
        limit: int = Query(5, ge=1, le=100),
        db: Session = Depends(get_db),
        store: CacheBackend = Depends(get_cache_store)
    ):
        """Details, top 4 movies by rating and a paginated filmography"""
        page, limit = validate_pagination(page, limit)
        result = detail(db, person_id, page, limit, store=store)
        if result is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")
        return result

    @router.post("/", response_model=PersonResponse, status_code=status.HTTP_201_CREATED)
    def create(
        current_user: Optional[User] = Depends(get_optional_user),
        db: Session = Depends(get_db),
        dispatcher: InvalidationDispatcher = Depends(get_invalidation_dispatcher)
    ):
        return action_response(service.create(db, current_user, dispatcher))

    @router.patch("/{person_id}", response_model=PersonResponse)
    def update_metadata(
        update: PersonFieldUpdateBody,
        person_id: int = Path(..., gt=0),
        current_user: Optional[User] = Depends(get_optional_user),
        db: Session = Depends(get_db),
        dispatcher: InvalidationDispatcher = Depends(get_invalidation_dispatcher)
    ):
        """Change one field: name, image or age"""
        return action_response(service.update_metadata(db, current_user, person_id, update, dispatcher=dispatcher))

    @router.delete("/{person_id}", response_model=DeletedPerson)
    def delete(
        person_id: int = Path(..., gt=0),
        current_user: Optional[User] = Depends(get_optional_user),
        db: Session = Depends(get_db),
        dispatcher: InvalidationDispatcher = Depends(get_invalidation_dispatcher)
    ):
        return action_response(service.delete(db, current_user, person_id, dispatcher=dispatcher))

    return router


actors_router = build_person_router(
    prefix="/api/actors",
    tag="Actors",
    label="Actor",
    service=ActorService,
    home_page=fetchers.get_home_page_actors,
    search=fetchers.search_actors_by_name,
    by_name=fetchers.get_actor_data_by_name,
    detail=fetchers.get_actor_detail,
)

directors_router = build_person_router(
    prefix="/api/directors",
    tag="Directors",
    label="Director",
    service=DirectorService,
    home_page=fetchers.get_home_page_directors,
    search=fetchers.search_directors_by_name,
    by_name=fetchers.get_director_data_by_name,
    detail=fetchers.get_director_detail,
)
