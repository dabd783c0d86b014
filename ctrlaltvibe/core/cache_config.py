"""Cache TTL settings, key patterns and the invalidation tag taxonomy"""
from typing import Any, List, Optional
from urllib.parse import quote


class CacheTags:
    PROJECTS_LIST = "projects:list"
    PROJECTS_TRENDING = "projects:trending"
    PROJECTS_FEATURED = "projects:featured"
    TAGS = "tags"
    SITEMAP = "sitemap"
    URL_METADATA = "url_metadata"


# Cache TTL (Time To Live) configurations in seconds
CACHE_TTL = {
    "projects_list": 120,     # 2 minutes
    "projects_featured": 300, # 5 minutes
    "projects_trending": 300, # 5 minutes
    "tags_popular": 600,      # 10 minutes
    "tags_all": 600,          # 10 minutes
    "sitemap": 3600,          # 1 hour
    "url_metadata": 86400,    # 24 hours
    "url_metadata_fallback": 3600, # 1 hour, when the page could not be read
}

# Cache key patterns. Every parameter that changes the query result, including
# the viewer (liked/bookmarked flags are per viewer), is part of the key.
CACHE_KEYS = {
    "projects_list": "projects:list:page:{}:limit:{}:tag:{}:search:{}:sort:{}:user:{}:currentUser:{}",
    "projects_featured": "projects:featured:user:{}",
    "projects_trending": "projects:trending:limit:{}:user:{}",
    "tags_popular": "tags:popular:{}",
    "tags_all": "tags:all",
    "sitemap": "sitemap:xml",
    "url_metadata": "url_metadata:{}",
}

# Tags attached to each cached query
CACHE_KEY_TAGS = {
    "projects_list": [CacheTags.PROJECTS_LIST],
    "projects_featured": [CacheTags.PROJECTS_FEATURED],
    "projects_trending": [CacheTags.PROJECTS_TRENDING],
    "tags_popular": [CacheTags.TAGS],
    "tags_all": [CacheTags.TAGS],
    "sitemap": [CacheTags.SITEMAP],
    "url_metadata": [CacheTags.URL_METADATA],
}

# Cache invalidation - which tags to drop when data changes.
# "featured" tags are only dropped when the affected project is (or becomes) featured.
INVALIDATION_TAGS = {
    "project_created": {
        "always": [CacheTags.PROJECTS_LIST, CacheTags.PROJECTS_TRENDING, CacheTags.TAGS, CacheTags.SITEMAP],
        "featured": [CacheTags.PROJECTS_FEATURED],
    },
    "project_updated": {
        "always": [CacheTags.PROJECTS_LIST, CacheTags.PROJECTS_TRENDING, CacheTags.TAGS, CacheTags.SITEMAP],
        "featured": [CacheTags.PROJECTS_FEATURED],
    },
    "project_deleted": {
        "always": [CacheTags.PROJECTS_LIST, CacheTags.PROJECTS_TRENDING, CacheTags.TAGS, CacheTags.SITEMAP],
        "featured": [CacheTags.PROJECTS_FEATURED],
    },
    "project_liked": {
        "always": [CacheTags.PROJECTS_LIST, CacheTags.PROJECTS_TRENDING],
        "featured": [CacheTags.PROJECTS_FEATURED],
    },
    "project_unliked": {
        "always": [CacheTags.PROJECTS_LIST, CacheTags.PROJECTS_TRENDING],
        "featured": [CacheTags.PROJECTS_FEATURED],
    },
    "project_bookmarked": {
        "always": [CacheTags.PROJECTS_LIST, CacheTags.PROJECTS_TRENDING],
        "featured": [CacheTags.PROJECTS_FEATURED],
    },
    "comment_created": {
        "always": [CacheTags.PROJECTS_LIST, CacheTags.PROJECTS_TRENDING],
        "featured": [CacheTags.PROJECTS_FEATURED],
    },
    "comment_deleted": {
        "always": [CacheTags.PROJECTS_LIST, CacheTags.PROJECTS_TRENDING],
        "featured": [CacheTags.PROJECTS_FEATURED],
    },
    "project_shared": {
        "always": [CacheTags.PROJECTS_LIST, CacheTags.PROJECTS_TRENDING],
        "featured": [CacheTags.PROJECTS_FEATURED],
    },
    "project_featured_changed": {
        "always": [CacheTags.PROJECTS_LIST, CacheTags.PROJECTS_TRENDING, CacheTags.PROJECTS_FEATURED],
        "featured": [],
    },
    # Removing a user also removes everything they authored
    "user_deleted": {
        "always": [
            CacheTags.PROJECTS_LIST, CacheTags.PROJECTS_TRENDING, CacheTags.PROJECTS_FEATURED,
            CacheTags.TAGS, CacheTags.SITEMAP,
        ],
        "featured": [],
    },
}


def tags_for_event(event: str, featured: bool = False) -> List[str]:
    rule = INVALIDATION_TAGS.get(event)
    if rule is None:
        return []
    tags = list(rule["always"])
    if featured:
        tags.extend(rule["featured"])
    return tags


def _segment(value: Any) -> str:
    # A missing filter is an empty segment, which no escaped value can be
    if value is None or value == "":
        return ""
    return quote(str(value), safe="")


def project_list_key(page: int, limit: int, tag: Optional[str], search: Optional[str], sort: Optional[str],
                     user: Optional[str], current_user_id: Optional[int]) -> str:
    return CACHE_KEYS["projects_list"].format(
        page, limit, _segment(tag), _segment(search), _segment(sort), _segment(user), _segment(current_user_id)
    )


def project_featured_key(viewer_id: Optional[int]) -> str:
    return CACHE_KEYS["projects_featured"].format(_segment(viewer_id))


def project_trending_key(limit: int, viewer_id: Optional[int]) -> str:
    return CACHE_KEYS["projects_trending"].format(limit, _segment(viewer_id))


def url_metadata_key(url: str) -> str:
    return CACHE_KEYS["url_metadata"].format(url)
