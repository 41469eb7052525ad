from xml.sax.saxutils import escape

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from moviedb.database import get_db
from moviedb.services import fetchers
from moviedb.utils.cache import CacheBackend, get_cache_store

router = APIRouter(tags=["Sitemap"])


@router.get("/sitemap.xml", response_class=Response)
def sitemap(
    db: Session = Depends(get_db),
    store: CacheBackend = Depends(get_cache_store)
):
    """Home page and every published movie"""
    urls = "".join(
        f"<url><loc>{escape(entry['url'])}</loc>"
        f"<lastmod>{entry['last_modified'].isoformat()}</lastmod></url>"
        for entry in fetchers.get_sitemap_entries(db, fetchers.ROOT_DOMAIN, store=store)
    )
    body = (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{urls}</urlset>'
    )
    return Response(content=body, media_type="application/xml")
