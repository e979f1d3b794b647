"""Product-name to category-tag cache backends."""

import logging
import threading
from typing import Dict, List, Optional, Sequence

from instockr.core import db
from instockr.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


class CategoryCache:
    def get(self, normalized_name: str) -> Optional[List[str]]:
        raise NotImplementedError

    def put(self, product_name: str, normalized_name: str, categories: Sequence[str]) -> None:
        raise NotImplementedError


class InMemoryCategoryCache(CategoryCache):
    """Process-wide cache used when no database is configured."""

    def __init__(self) -> None:
        self._entries: Dict[str, List[str]] = {}
        self._lock = threading.Lock()

    def get(self, normalized_name: str) -> Optional[List[str]]:
        with self._lock:
            cached = self._entries.get(normalized_name)
        return list(cached) if cached else None

    def put(self, product_name: str, normalized_name: str, categories: Sequence[str]) -> None:
        with self._lock:
            self._entries[normalized_name] = list(categories)

    def __len__(self) -> int:
        return len(self._entries)


class PostgresCategoryCache(CategoryCache):
    """Cache backed by the ``product_categories`` table."""

    def get(self, normalized_name: str) -> Optional[List[str]]:
        return db.fetch_product_categories(normalized_name)

    def put(self, product_name: str, normalized_name: str, categories: Sequence[str]) -> None:
        db.upsert_product_categories(product_name, normalized_name, categories)


_default_cache: Optional[CategoryCache] = None
_default_lock = threading.Lock()


def get_category_cache(settings: Optional[Settings] = None) -> CategoryCache:
    global _default_cache
    with _default_lock:
        if _default_cache is None:
            settings = settings or get_settings()
            if settings.database_url:
                _default_cache = PostgresCategoryCache()
            else:
                _default_cache = InMemoryCategoryCache()
            logger.info("Using %s for product categories", type(_default_cache).__name__)
        return _default_cache
