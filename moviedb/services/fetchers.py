"""
Public read operations, each served through the tag cache.

Every fetcher takes the request's Session first; its remaining arguments form
the cache key. Values are stored as pydantic models, never as ORM instances,
since they outlive the session that loaded them.

Tags are declared through the tag registry so that the mutations in the
service layer invalidate them; see moviedb.utils.cache_tags.
"""
from datetime import datetime, timezone
from typing import List, Optional, Set
import logging
import math
import os

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from moviedb.models.movie import Genre, Movie
from moviedb.models.person import Actor, Director, MovieActor, MovieDirector
from moviedb.models.rating import Rating
from moviedb.models.review import Review
from moviedb.models.user import User
from moviedb.schemas.common import ActionError, ActionResult, Pagination
from moviedb.schemas.movie import (
    MovieCard,
    MovieDetail,
    MovieResponse,
    OwnerSummary,
    RankedMovie,
    RankedMovies,
    RatingSummary,
    ReviewEntry,
)
from moviedb.schemas.person import Filmography, FilmographyEntry, PersonDetail, PersonResponse
from moviedb.utils.cache import CacheBackend, cache
from moviedb.utils.cache_tags import EntityType, ReadScope, relation_tag, tags_for_read

logger = logging.getLogger(__name__)

ROOT_DOMAIN = os.getenv("ROOT_DOMAIN", "localhost:8000")
KNOWN_FOR_COUNT = 4
LATEST_REVIEWS = 10


def _round_average(value) -> Optional[float]:
    return round(float(value), 1) if value is not None else None


def _owner(user: Optional[User]) -> Optional[OwnerSummary]:
    return OwnerSummary.model_validate(user) if user is not None else None


# ==================== HOME PAGE ====================

@cache("movies-for-site", tags=tags_for_read(EntityType.MOVIE, ReadScope.LIST, embeds=[EntityType.USER]))
def get_home_page_movies(db: Session) -> List[MovieCard]:
    """Published movies with their owner, newest first"""
    return _published_movie_cards(db)


def _published_movie_cards(db: Session) -> List[MovieCard]:
    movies = db.query(Movie).options(
        joinedload(Movie.user)
    ).filter(
        Movie.published.is_(True)
    ).order_by(
        Movie.created_at.desc(), Movie.id.desc()
    ).all()

    return [MovieCard.model_validate(movie) for movie in movies]


@cache("actors-for-site", tags=tags_for_read(EntityType.ACTOR, ReadScope.LIST))
def get_home_page_actors(db: Session) -> List[PersonResponse]:
    return [PersonResponse.model_validate(actor) for actor in db.query(Actor).all()]


@cache("directors-for-site", tags=tags_for_read(EntityType.DIRECTOR, ReadScope.LIST))
def get_home_page_directors(db: Session) -> List[PersonResponse]:
    return [PersonResponse.model_validate(director) for director in db.query(Director).all()]


# ==================== RANKING ====================

@cache(
    "movies-by-rating",
    tags=tags_for_read(
        EntityType.MOVIE, ReadScope.LIST, embeds=[EntityType.RATING, EntityType.USER]
    ),
)
def get_movies_by_rating(
    db: Session,
    page: int = 1,
    limit: int = 10,
    genre: Optional[str] = None,
    user_id: Optional[int] = None,
) -> RankedMovies:
    """
    Published movies ordered by average rating, unrated last.

    Args:
        page, limit: 1-based pagination
        genre: Genre value to filter on, or None for all
        user_id: When given, each movie carries this user's own rating
    """
    average = func.avg(Rating.rating)
    filters = [Movie.published.is_(True)]
    if genre:
        filters.append(Movie.genre == Genre(genre))

    rows = db.query(
        Movie,
        average.label("average_rating"),
        func.count(Rating.id).label("rating_count"),
    ).outerjoin(
        Rating, Rating.movie_id == Movie.id
    ).filter(
        *filters
    ).group_by(
        Movie.id
    ).order_by(
        average.desc().nulls_last(), Movie.id
    ).offset((page - 1) * limit).limit(limit).all()

    total_items = db.query(func.count(Movie.id)).filter(*filters).scalar() or 0

    user_ratings = {}
    if user_id is not None and rows:
        movie_ids = [movie.id for movie, _, _ in rows]
        user_ratings = dict(
            db.query(Rating.movie_id, Rating.rating).filter(
                Rating.user_id == user_id,
                Rating.movie_id.in_(movie_ids)
            ).all()
        )

    movies = [
        RankedMovie(
            id=movie.id,
            slug=movie.slug,
            title=movie.title,
            description=movie.description,
            image=movie.image,
            genre=movie.genre,
            created_at=movie.created_at,
            average_rating=_round_average(avg),
            rating_count=count,
            user_rating=user_ratings.get(movie.id),
            user=_owner(movie.user),
        )
        for movie, avg, count in rows
    ]

    return RankedMovies(
        movies=movies,
        pagination=Pagination(
            page=page,
            limit=limit,
            total_items=total_items,
            total_pages=math.ceil(total_items / limit) if limit else 0,
        ),
    )


# ==================== MOVIE DETAIL ====================

@cache("movie-slug", tags=tags_for_read(EntityType.MOVIE, ReadScope.LIST))
def resolve_movie_slug(db: Session, slug: str) -> Optional[int]:
    """Movie id for a slug, or None"""
    row = db.query(Movie.id).filter(Movie.slug == slug).first()
    return row[0] if row else None


def _movie_data_tags(movie_id: int, user_id: Optional[int] = None) -> Set[str]:
    return tags_for_read(
        EntityType.MOVIE, ReadScope.DETAIL, movie_id, embeds=[EntityType.USER]
    ) | {
        relation_tag(EntityType.MOVIE, movie_id, EntityType.RATING),
        relation_tag(EntityType.MOVIE, movie_id, EntityType.REVIEW),
    } | tags_for_read(EntityType.MOVIE, ReadScope.LIST)


@cache("movie-data", tags=_movie_data_tags)
def get_movie_data(db: Session, movie_id: int, user_id: Optional[int] = None) -> Optional[MovieDetail]:
    """
    Movie with owner, rating stats, the viewer's rating, latest reviews and
    every published movie for navigation.

    Keyed per viewer because of the viewer's rating and the is_author flags.
    """
    movie = db.query(Movie).options(
        joinedload(Movie.user)
    ).filter(
        Movie.id == movie_id
    ).first()
    if not movie:
        return None

    average, count = db.query(
        func.avg(Rating.rating), func.count(Rating.id)
    ).filter(
        Rating.movie_id == movie_id
    ).one()

    own_rating = None
    if user_id is not None:
        own_rating = db.query(Rating).filter(
            Rating.movie_id == movie_id,
            Rating.user_id == user_id
        ).first()

    reviews = db.query(Review).options(
        joinedload(Review.user)
    ).filter(
        Review.movie_id == movie_id
    ).order_by(
        Review.created_at.desc(), Review.id.desc()
    ).limit(LATEST_REVIEWS).all()

    return MovieDetail(
        **MovieResponse.model_validate(movie).model_dump(),
        user=_owner(movie.user),
        ratings=RatingSummary(
            average=_round_average(average),
            count=count or 0,
            user_rating=own_rating.rating if own_rating else None,
            user_rating_id=own_rating.id if own_rating else None,
        ),
        reviews=[
            ReviewEntry(
                id=review.id,
                content=review.content,
                rating=review.rating,
                created_at=review.created_at,
                updated_at=review.updated_at,
                user=_owner(review.user),
                is_author=user_id is not None and review.user_id == user_id,
            )
            for review in reviews
        ],
        adjacent_movies=_published_movie_cards(db),
    )


# ==================== CREDITS ====================

@cache(
    "movie-actors",
    tags=lambda movie_id: tags_for_read(EntityType.MOVIE, ReadScope.DETAIL, movie_id)
    | tags_for_read(EntityType.MOVIE, ReadScope.RELATION, movie_id, EntityType.ACTOR),
)
def _movie_actors(db: Session, movie_id: int) -> Optional[List[PersonResponse]]:
    movie = db.query(Movie).filter(Movie.id == movie_id).first()
    if not movie:
        return None
    return [PersonResponse.model_validate(link.actor) for link in movie.movie_actors]


@cache(
    "movie-directors",
    tags=lambda movie_id: tags_for_read(EntityType.MOVIE, ReadScope.DETAIL, movie_id)
    | tags_for_read(EntityType.MOVIE, ReadScope.RELATION, movie_id, EntityType.DIRECTOR),
)
def _movie_directors(db: Session, movie_id: int) -> Optional[List[PersonResponse]]:
    movie = db.query(Movie).filter(Movie.id == movie_id).first()
    if not movie:
        return None
    return [PersonResponse.model_validate(link.director) for link in movie.movie_directors]


def get_movie_actors(
    db: Session, user: Optional[User], movie_id: int, store: Optional[CacheBackend] = None
) -> ActionResult[List[PersonResponse]]:
    """Cast of a movie; signed-in users only"""
    if user is None:
        return ActionError.not_authenticated()
    actors = _movie_actors(db, movie_id, store=store)
    if actors is None:
        return ActionError.not_found("Movie not found")
    return actors


def get_movie_directors(
    db: Session, user: Optional[User], movie_id: int, store: Optional[CacheBackend] = None
) -> ActionResult[List[PersonResponse]]:
    if user is None:
        return ActionError.not_authenticated()
    directors = _movie_directors(db, movie_id, store=store)
    if directors is None:
        return ActionError.not_found("Movie not found")
    return directors


# ==================== PEOPLE ====================

@cache("actor-by-name", tags=tags_for_read(EntityType.ACTOR, ReadScope.LIST))
def get_actor_data_by_name(db: Session, name: str) -> Optional[PersonResponse]:
    actor = db.query(Actor).filter(Actor.name == name).first()
    return PersonResponse.model_validate(actor) if actor else None


@cache("director-by-name", tags=tags_for_read(EntityType.DIRECTOR, ReadScope.LIST))
def get_director_data_by_name(db: Session, name: str) -> Optional[PersonResponse]:
    director = db.query(Director).filter(Director.name == name).first()
    return PersonResponse.model_validate(director) if director else None


def _person_detail_tags(entity_type: EntityType):
    def tags(person_id: int, page: int = 1, limit: int = 5) -> Set[str]:
        return tags_for_read(
            entity_type, ReadScope.DETAIL, person_id, embeds=[EntityType.RATING, EntityType.USER]
        ) | tags_for_read(entity_type, ReadScope.RELATION, person_id, EntityType.MOVIE)

    return tags


def _person_detail(db: Session, model, link_model, link_column, person_id: int, page: int, limit: int):
    person = db.query(model).filter(model.id == person_id).first()
    if not person:
        return None

    average = func.avg(Rating.rating)
    rows = db.query(
        Movie,
        average.label("average_rating"),
        func.count(Rating.id).label("rating_count"),
    ).join(
        link_model, link_model.movie_id == Movie.id
    ).outerjoin(
        Rating, Rating.movie_id == Movie.id
    ).filter(
        link_column == person_id,
        Movie.published.is_(True)
    ).group_by(
        Movie.id
    ).order_by(
        average.desc().nulls_last(), Movie.id
    ).all()

    movies = [
        FilmographyEntry(
            id=movie.id,
            slug=movie.slug,
            title=movie.title,
            description=movie.description,
            image=movie.image,
            genre=movie.genre,
            created_at=movie.created_at,
            average_rating=_round_average(avg),
            rating_count=count,
            user=_owner(movie.user),
        )
        for movie, avg, count in rows
    ]

    offset = (page - 1) * limit
    total = len(movies)
    return PersonDetail(
        person=PersonResponse.model_validate(person),
        top_movies=movies[:KNOWN_FOR_COUNT],
        all_movies=Filmography(
            movies=movies[offset:offset + limit],
            pagination=Pagination(
                page=page,
                limit=limit,
                total_items=total,
                total_pages=math.ceil(total / limit) if limit else 0,
            ),
        ),
    )


@cache("actor-detail", tags=_person_detail_tags(EntityType.ACTOR))
def get_actor_detail(db: Session, actor_id: int, page: int = 1, limit: int = 5) -> Optional[PersonDetail]:
    """Actor with "known for" (top 4 by rating) and a paginated filmography"""
    return _person_detail(db, Actor, MovieActor, MovieActor.actor_id, actor_id, page, limit)


@cache("director-detail", tags=_person_detail_tags(EntityType.DIRECTOR))
def get_director_detail(db: Session, director_id: int, page: int = 1, limit: int = 5) -> Optional[PersonDetail]:
    return _person_detail(db, Director, MovieDirector, MovieDirector.director_id, director_id, page, limit)


# ==================== SEARCH ====================

@cache("search-actors", tags=tags_for_read(EntityType.ACTOR, ReadScope.LIST))
def search_actors_by_name(db: Session, name: str) -> List[PersonResponse]:
    actors = db.query(Actor).filter(Actor.name.ilike(f"%{name}%")).all()
    return [PersonResponse.model_validate(actor) for actor in actors]


@cache("search-directors", tags=tags_for_read(EntityType.DIRECTOR, ReadScope.LIST))
def search_directors_by_name(db: Session, name: str) -> List[PersonResponse]:
    directors = db.query(Director).filter(Director.name.ilike(f"%{name}%")).all()
    return [PersonResponse.model_validate(director) for director in directors]


@cache("search-movies", tags=tags_for_read(EntityType.MOVIE, ReadScope.LIST, embeds=[EntityType.USER]))
def search_movies_by_title(db: Session, title: str) -> List[MovieCard]:
    movies = db.query(Movie).options(
        joinedload(Movie.user)
    ).filter(
        Movie.published.is_(True),
        Movie.title.ilike(f"%{title}%")
    ).all()
    return [MovieCard.model_validate(movie) for movie in movies]


# ==================== SITEMAP ====================

def get_sitemap_entries(db: Session, domain: str = ROOT_DOMAIN, store: Optional[CacheBackend] = None) -> List[dict]:
    """Home page plus one URL per published movie"""
    now = datetime.now(timezone.utc)
    entries = [{"url": f"https://{domain}", "last_modified": now}]
    entries += [
        {"url": f"https://{domain}/movies/{movie.slug}", "last_modified": now}
        for movie in get_home_page_movies(db, store=store)
    ]
    return entries
