"""
Admin cache endpoints, the purge job, the sitemap and table creation.
"""
from sqlalchemy import create_engine, inspect
from sqlalchemy.pool import StaticPool

from moviedb.migrations.create_all_tables import create_tables
from moviedb.services import fetchers
from moviedb.services.background_jobs import BackgroundJobService
from moviedb.utils.cache import MISSING, CacheStore, get_cache_store, set_cache_store


def publish(client, headers, title):
    movie = client.post("/api/movies/", headers=headers).json()
    client.patch(f"/api/movies/{movie['id']}", json={"field": "title", "value": title}, headers=headers)
    client.patch(f"/api/movies/{movie['id']}", json={"field": "published", "value": True}, headers=headers)
    return movie


def test_admin_endpoints_require_session(client):
    assert client.get("/api/admin/cache/stats").status_code == 401
    assert client.post("/api/admin/cache/revalidate", json={"tags": ["movies-list"]}).status_code == 401
    assert client.post("/api/admin/cache/purge").status_code == 401
    assert client.delete("/api/admin/cache/clear", params={"confirm": True}).status_code == 401
    assert client.get("/api/admin/jobs/status").status_code == 401


def test_stats_count_reads(client, owner_headers):
    client.get("/api/movies/")
    client.get("/api/movies/")

    stats = client.get("/api/admin/cache/stats", headers=owner_headers).json()

    assert stats["size"] == 1
    assert stats["hits"] == 1
    assert "checked_at" in stats


def test_revalidate_drops_tagged_entries(client, owner_headers, cache_store):
    client.get("/api/movies/")
    client.get("/api/actors/")

    response = client.post("/api/admin/cache/revalidate", json={"tags": ["movies-list"]}, headers=owner_headers)

    assert response.status_code == 200
    assert response.json()["tags"] == ["movies-list"]
    assert response.json()["revalidated_by"] == "owner@example.com"
    assert cache_store.get("movies-for-site") is MISSING
    assert cache_store.get("actors-for-site") == []


def test_revalidate_needs_tags(client, owner_headers):
    response = client.post("/api/admin/cache/revalidate", json={"tags": []}, headers=owner_headers)

    assert response.status_code == 422


def test_purge_removes_invalidated_entries(client, owner_headers, cache_store):
    client.get("/api/movies/")
    client.get("/api/actors/")
    client.post("/api/actors/", headers=owner_headers)

    response = client.post("/api/admin/cache/purge", headers=owner_headers)

    assert response.json()["purged_count"] == 1
    assert cache_store.get_stats()["size"] == 1


def test_clear_needs_confirmation(client, owner_headers, cache_store):
    client.get("/api/movies/")

    refused = client.delete("/api/admin/cache/clear", headers=owner_headers)
    assert refused.status_code == 400
    assert cache_store.get_stats()["size"] == 1

    cleared = client.delete("/api/admin/cache/clear", params={"confirm": True}, headers=owner_headers)
    assert cleared.status_code == 200
    assert cleared.json()["deleted_count"] == 1
    assert cache_store.get_stats()["size"] == 0


def test_jobs_status_and_unknown_job(client, owner_headers):
    status = client.get("/api/admin/jobs/status", headers=owner_headers).json()
    assert status["scheduler_running"] is False

    response = client.post("/api/admin/jobs/pause/send_emails", headers=owner_headers)
    assert response.status_code == 400


def test_purge_job_sweeps_process_store():
    store = CacheStore()
    store.set("movies-for-site", [], ttl=900, tags={"movies-list"})
    store.set("actors-for-site", [], ttl=900, tags={"actors-list"})
    store.invalidate_tag("movies-list")

    previous = set_cache_store(store)
    try:
        jobs = BackgroundJobService()
        assert jobs.purge_expired_cache() == 1
    finally:
        set_cache_store(previous)

    assert jobs.job_stats["purge_cache"]["status"] == "success"
    assert jobs.job_stats["purge_cache"]["purged"] == 1
    assert store.get_stats()["size"] == 1


def test_disabled_jobs_are_not_scheduled(monkeypatch):
    monkeypatch.setenv("ENABLE_BACKGROUND_JOBS", "false")
    jobs = BackgroundJobService()

    jobs.start()

    assert jobs.scheduler.running is False
    assert jobs.scheduler.get_jobs() == []


# ==================== SITEMAP / TABLES / HEALTH ====================

def test_sitemap_lists_published_movies(client, owner_headers):
    movie = publish(client, owner_headers, "Playtime")
    client.post("/api/movies/", headers=owner_headers)

    response = client.get("/sitemap.xml")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/xml")
    assert response.text.count("<url>") == 2
    assert f"https://{fetchers.ROOT_DOMAIN}/movies/{movie['slug']}" in response.text


def test_create_tables_on_empty_database():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)

    tables = create_tables(bind=engine)

    assert set(tables) == set(inspect(engine).get_table_names())
    assert {"movies", "actor", "director", "movie_actors", "movie_directors", "ratings", "reviews", "users"} <= set(tables)


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


class ForwardingStore:
    """Implements exactly the CacheBackend operations, nothing more."""

    def __init__(self):
        self._inner = CacheStore()

    def get(self, key):
        return self._inner.get(key)

    def set(self, key, value, ttl=None, tags=(), since=None):
        self._inner.set(key, value, ttl=ttl, tags=tags, since=since)

    def sequence(self):
        return self._inner.sequence()

    def invalidate_tags(self, tags):
        self._inner.invalidate_tags(tags)

    def clear(self):
        self._inner.clear()

    def purge_expired(self):
        return self._inner.purge_expired()

    def get_stats(self):
        return self._inner.get_stats()


def test_admin_endpoints_work_with_any_backend(client, owner_headers):
    store = ForwardingStore()
    client.app.dependency_overrides[get_cache_store] = lambda: store

    client.get("/api/movies/")
    client.post("/api/actors/", headers=owner_headers)

    assert client.get("/api/admin/cache/stats", headers=owner_headers).json()["size"] == 1
    assert client.post("/api/admin/cache/revalidate", json={"tags": ["movies-list"]}, headers=owner_headers).status_code == 200
    assert client.post("/api/admin/cache/purge", headers=owner_headers).json()["purged_count"] == 1
    assert client.delete("/api/admin/cache/clear", params={"confirm": True}, headers=owner_headers).status_code == 200
