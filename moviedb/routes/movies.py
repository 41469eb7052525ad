from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from moviedb.database import get_db
from moviedb.models.movie import Genre
from moviedb.models.user import User
from moviedb.schemas.movie import (
    ActorCreditRequest,
    ActorCreditResponse,
    DeletedMovie,
    DirectorCreditRequest,
    DirectorCreditResponse,
    MovieCard,
    MovieDetail,
    MovieFieldUpdateBody,
    MovieResponse,
    MovieUpdate,
    RankedMovies,
)
from moviedb.schemas.person import PersonResponse
from moviedb.schemas.validation import validate_pagination
from moviedb.services import fetchers
from moviedb.services.invalidation import InvalidationDispatcher, get_invalidation_dispatcher
from moviedb.services.movie_service import MovieService
from moviedb.utils.cache import CacheBackend, get_cache_store
from moviedb.utils.dependencies import get_current_user, get_optional_user, get_user_id
from moviedb.utils.responses import action_response

router = APIRouter(prefix="/api/movies", tags=["Movies"])


# ============================================
# Public reads (cached)
# ============================================

@router.get("/", response_model=List[MovieCard])
def list_home_page_movies(
    db: Session = Depends(get_db),
    store: CacheBackend = Depends(get_cache_store)
):
    """Published movies, newest first"""
    return fetchers.get_home_page_movies(db, store=store)


@router.get("/ranked", response_model=RankedMovies)
def list_movies_by_rating(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Movies per page"),
    genre: Optional[Genre] = Query(None, description="Only movies of this genre"),
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
    store: CacheBackend = Depends(get_cache_store)
):
    """
    Published movies ordered by average user rating

    Signed-in callers also get their own rating for each movie.
    """
    page, limit = validate_pagination(page, limit)
    return fetchers.get_movies_by_rating(
        db, page, limit, genre.value if genre else None, get_user_id(current_user), store=store
    )


@router.get("/search", response_model=List[MovieCard])
def search_movies(
    q: str = Query(..., min_length=1, max_length=200, description="Part of the title"),
    db: Session = Depends(get_db),
    store: CacheBackend = Depends(get_cache_store)
):
    return fetchers.search_movies_by_title(db, q, store=store)


@router.get("/mine", response_model=List[MovieResponse])
def list_my_movies(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Dashboard listing of the caller's movies, drafts included"""
    return MovieService.list_user_movies(db, get_user_id(current_user))


# ============================================
# Owner mutations
# ============================================

@router.post("/", response_model=MovieResponse, status_code=status.HTTP_201_CREATED)
def create_movie(
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
    dispatcher: InvalidationDispatcher = Depends(get_invalidation_dispatcher)
):
    """Create an empty draft movie owned by the caller"""
    return action_response(MovieService.create_movie(db, current_user, dispatcher))


@router.put("/{movie_id}", response_model=MovieResponse)
def update_movie(
    data: MovieUpdate,
    movie_id: int = Path(..., gt=0),
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
    dispatcher: InvalidationDispatcher = Depends(get_invalidation_dispatcher)
):
    """Save title, description and content from the editor"""
    return action_response(MovieService.update_movie(db, current_user, movie_id, data, dispatcher))


@router.patch("/{movie_id}", response_model=MovieResponse)
def update_movie_metadata(
    update: MovieFieldUpdateBody,
    movie_id: int = Path(..., gt=0),
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
    dispatcher: InvalidationDispatcher = Depends(get_invalidation_dispatcher)
):
    """
    Change one field: title, description, content, slug, image, genre or published

    Body: {"field": "<name>", "value": ...}
    """
    return action_response(
        MovieService.update_movie_metadata(db, current_user, movie_id, update, dispatcher=dispatcher)
    )


@router.delete("/{movie_id}", response_model=DeletedMovie)
def delete_movie(
    movie_id: int = Path(..., gt=0),
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
    dispatcher: InvalidationDispatcher = Depends(get_invalidation_dispatcher)
):
    return action_response(MovieService.delete_movie(db, current_user, movie_id, dispatcher=dispatcher))


# ============================================
# Credits
# ============================================

@router.get("/{movie_id}/actors", response_model=List[PersonResponse])
def list_movie_actors(
    movie_id: int = Path(..., gt=0),
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
    store: CacheBackend = Depends(get_cache_store)
):
    return action_response(fetchers.get_movie_actors(db, current_user, movie_id, store=store))


@router.post("/{movie_id}/actors", response_model=ActorCreditResponse, status_code=status.HTTP_201_CREATED)
def add_actor_to_movie(
    data: ActorCreditRequest,
    movie_id: int = Path(..., gt=0),
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
    dispatcher: InvalidationDispatcher = Depends(get_invalidation_dispatcher)
):
    return action_response(
        MovieService.add_actor_to_movie(db, current_user, movie_id, data.actor_id, dispatcher=dispatcher)
    )


@router.delete("/{movie_id}/actors/{actor_id}", response_model=ActorCreditResponse)
def remove_actor_from_movie(
    movie_id: int = Path(..., gt=0),
    actor_id: int = Path(..., gt=0),
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
    dispatcher: InvalidationDispatcher = Depends(get_invalidation_dispatcher)
):
    return action_response(
        MovieService.remove_actor_from_movie(db, current_user, movie_id, actor_id, dispatcher=dispatcher)
    )


@router.get("/{movie_id}/directors", response_model=List[PersonResponse])
def list_movie_directors(
    movie_id: int = Path(..., gt=0),
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
    store: CacheBackend = Depends(get_cache_store)
):
    return action_response(fetchers.get_movie_directors(db, current_user, movie_id, store=store))


@router.post("/{movie_id}/directors", response_model=DirectorCreditResponse, status_code=status.HTTP_201_CREATED)
def add_director_to_movie(
    data: DirectorCreditRequest,
    movie_id: int = Path(..., gt=0),
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
    dispatcher: InvalidationDispatcher = Depends(get_invalidation_dispatcher)
):
    return action_response(
        MovieService.add_director_to_movie(db, current_user, movie_id, data.director_id, dispatcher=dispatcher)
    )


@router.delete("/{movie_id}/directors/{director_id}", response_model=DirectorCreditResponse)
def remove_director_from_movie(
    movie_id: int = Path(..., gt=0),
    director_id: int = Path(..., gt=0),
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
    dispatcher: InvalidationDispatcher = Depends(get_invalidation_dispatcher)
):
    return action_response(
        MovieService.remove_director_from_movie(db, current_user, movie_id, director_id, dispatcher=dispatcher)
    )


# ============================================
# Detail (declared last: the slug matches any single segment)
# ============================================

@router.get("/{slug}", response_model=MovieDetail)
def get_movie(
    slug: str,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
    store: CacheBackend = Depends(get_cache_store)
):
    """Movie with owner, rating summary, the 10 latest reviews and the published movies"""
    movie_id = fetchers.resolve_movie_slug(db, slug, store=store)
    movie = fetchers.get_movie_data(db, movie_id, get_user_id(current_user), store=store) if movie_id else None
    if movie is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Movie not found")
    return movie
