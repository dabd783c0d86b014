from typing import Any, Dict, List

from sqlalchemy.orm import Session

from ctrlaltvibe.core.cache_config import CACHE_KEYS
from ctrlaltvibe.core.decorators import cache_read
from ctrlaltvibe.crud.tag import tag as crud_tag

class TagService:
    @cache_read("tags_popular", lambda limit: CACHE_KEYS["tags_popular"].format(limit))
    def get_popular_tags(self, db: Session, *, limit: int) -> List[Dict[str, Any]]:
        return [
            {"id": tag.id, "name": tag.name, "count": usage}
            for tag, usage in crud_tag.get_popular(db, limit=limit)
        ]

    @cache_read("tags_all", lambda: CACHE_KEYS["tags_all"])
    def get_all_tags(self, db: Session) -> List[Dict[str, Any]]:
        return [{"id": tag.id, "name": tag.name} for tag in crud_tag.get_all(db)]

tag_service = TagService()
