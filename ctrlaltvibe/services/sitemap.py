import logging
from pathlib import Path
from typing import Optional
from xml.sax.saxutils import escape

from sqlalchemy.orm import Session

from ctrlaltvibe.core.cache import TaggedCache
from ctrlaltvibe.core.cache_config import CACHE_KEYS
from ctrlaltvibe.core.config import settings
from ctrlaltvibe.core.decorators import cache_read
from ctrlaltvibe.crud.project import project as crud_project

logger = logging.getLogger(__name__)

STATIC_PAGES = [("/", "daily", "1.0"), ("/projects", "daily", "0.9"), ("/submit", "monthly", "0.5")]


def _url(loc: str, changefreq: str, priority: str, lastmod: Optional[str] = None) -> str:
    parts = [f"    <loc>{escape(loc)}</loc>"]
    if lastmod:
        parts.append(f"    <lastmod>{lastmod}</lastmod>")
    parts.append(f"    <changefreq>{changefreq}</changefreq>")
    parts.append(f"    <priority>{priority}</priority>")
    return "  <url>\n" + "\n".join(parts) + "\n  </url>"


class SitemapService:
    def build_xml(self, db: Session) -> str:
        base = settings.SITE_URL.rstrip("/")
        urls = [_url(f"{base}{path}", freq, prio) for path, freq, prio in STATIC_PAGES]
        for project in crud_project.get_public(db):
            stamp = project.updated_at or project.created_at
            urls.append(_url(
                f"{base}/projects/{project.id}",
                "weekly",
                "0.8",
                stamp.date().isoformat() if stamp else None,
            ))
        return (
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">\n'
            + "\n".join(urls)
            + "\n</urlset>\n"
        )

    @cache_read("sitemap", lambda: CACHE_KEYS["sitemap"])
    def get_xml(self, db: Session) -> str:
        return self.build_xml(db)

    def write(self, db: Session, cache: Optional[TaggedCache] = None, path: Optional[str] = None) -> Path:
        """Regenerate the sitemap file and drop the cached copy."""
        target = Path(path or settings.SITEMAP_PATH)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.build_xml(db), encoding="utf-8")
        if cache is not None:
            cache.delete(CACHE_KEYS["sitemap"])
        logger.info(f"Sitemap written to {target}")
        return target

sitemap_service = SitemapService()
