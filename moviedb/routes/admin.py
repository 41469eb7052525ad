"""
Admin Routes for the read cache and its maintenance job

Features:
- Cache statistics
- Manual tag revalidation
- Purge of dead entries and full clear
- Job status monitoring, pause/resume

All endpoints require authentication via get_current_user dependency
"""

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from typing import List
from moviedb.utils.dependencies import get_current_user
from moviedb.models.user import User
from moviedb.services.background_jobs import background_jobs
from moviedb.services.invalidation import InvalidationDispatcher, get_invalidation_dispatcher
from moviedb.utils.cache import CacheBackend, get_cache_store
from datetime import datetime, timezone

router = APIRouter(prefix="/api/admin", tags=["Admin - Cache"])


class RevalidateRequest(BaseModel):
    tags: List[str] = Field(..., min_length=1)


@router.get("/cache/stats", status_code=status.HTTP_200_OK)
def get_cache_statistics(
    store: CacheBackend = Depends(get_cache_store),
    current_user: User = Depends(get_current_user)
):
    """
    Get read cache statistics

    Returns:
    - Entry count and capacity
    - Hits, misses and hit rate
    - Tracked tags and total invalidations

    **Requires authentication**
    """
    return {
        **store.get_stats(),
        "checked_at": datetime.now(timezone.utc).isoformat()
    }


@router.post("/cache/revalidate", status_code=status.HTTP_200_OK)
def revalidate_tags(
    payload: RevalidateRequest,
    dispatcher: InvalidationDispatcher = Depends(get_invalidation_dispatcher),
    current_user: User = Depends(get_current_user)
):
    """
    Invalidate the given tags, e.g. ["movies-list", "movie-5"]

    **Requires authentication**
    """
    invalidated = dispatcher.revalidate_tags(payload.tags)
    return {
        "message": "Tags revalidated",
        "tags": sorted(invalidated),
        "revalidated_at": datetime.now(timezone.utc).isoformat(),
        "revalidated_by": current_user.email
    }


@router.post("/cache/purge", status_code=status.HTTP_200_OK)
def purge_cache(
    store: CacheBackend = Depends(get_cache_store),
    current_user: User = Depends(get_current_user)
):
    """
    Remove expired and invalidated entries now instead of waiting for the job

    **Requires authentication**
    """
    return {
        "message": "Cache purged",
        "purged_count": store.purge_expired(),
        "purged_at": datetime.now(timezone.utc).isoformat()
    }


@router.delete("/cache/clear", status_code=status.HTTP_200_OK)
def clear_all_cache(
    confirm: bool = False,
    store: CacheBackend = Depends(get_cache_store),
    current_user: User = Depends(get_current_user)
):
    """
    Drop every cache entry

    Query Parameters:
    - confirm: Must be true to execute

    **Requires authentication**
    """
    if not confirm:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Must set confirm=true to clear cache"
        )

    count = store.get_stats()["size"]
    store.clear()
    return {
        "message": "Cache cleared successfully",
        "deleted_count": count,
        "cleared_at": datetime.now(timezone.utc).isoformat(),
        "cleared_by": current_user.email
    }


@router.get("/jobs/status", status_code=status.HTTP_200_OK)
def get_jobs_status(
    current_user: User = Depends(get_current_user)
):
    """
    Get status of scheduled background jobs

    **Requires authentication**
    """
    stats = background_jobs.get_job_stats()
    return {
        **stats,
        "checked_at": datetime.now(timezone.utc).isoformat()
    }


def _check_job_id(job_id: str):
    if job_id not in background_jobs.job_ids:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid job_id. Must be one of: {', '.join(background_jobs.job_ids)}"
        )


@router.post("/jobs/pause/{job_id}", status_code=status.HTTP_200_OK)
def pause_job(
    job_id: str,
    current_user: User = Depends(get_current_user)
):
    """**Requires authentication**"""
    _check_job_id(job_id)
    try:
        background_jobs.pause_job(job_id)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to pause job: {str(e)}"
        )
    return {
        "message": f"Job '{job_id}' paused successfully",
        "job_id": job_id,
        "paused_at": datetime.now(timezone.utc).isoformat(),
        "paused_by": current_user.email
    }


@router.post("/jobs/resume/{job_id}", status_code=status.HTTP_200_OK)
def resume_job(
    job_id: str,
    current_user: User = Depends(get_current_user)
):
    """**Requires authentication**"""
    _check_job_id(job_id)
    try:
        background_jobs.resume_job(job_id)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to resume job: {str(e)}"
        )
    return {
        "message": f"Job '{job_id}' resumed successfully",
        "job_id": job_id,
        "resumed_at": datetime.now(timezone.utc).isoformat(),
        "resumed_by": current_user.email
    }
