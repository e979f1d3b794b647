"""Product name to OSM category tags: cache, embeddings, keywords, default."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from instockr.core.category_cache import CategoryCache, get_category_cache
from instockr.core.config import Settings, get_settings
from instockr.pipeline.osm_categories import CATEGORY_DESCRIPTIONS, DEFAULT_CATEGORIES, keyword_categories, locale_for
from instockr.vendors import llm

logger = logging.getLogger(__name__)

SOURCE_CACHE = "cache"
SOURCE_AI = "ai"
SOURCE_KEYWORD = "keyword"
SOURCE_DEFAULT = "default"


@dataclass(slots=True)
class CategoryStrategy:
    search_terms: List[str] = field(default_factory=list)
    source: str = SOURCE_DEFAULT

    def to_dict(self) -> dict:
        return {"searchTerms": list(self.search_terms), "source": self.source}


def normalize_product_name(product_name: Optional[str]) -> str:
    return re.sub(r"\s+", " ", (product_name or "").strip().lower())


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    if not norm:
        return 0.0
    return dot / norm


def rank_categories(product_vector: Sequence[float], category_vectors: Sequence[Sequence[float]], top_n: int) -> List[str]:
    names = list(CATEGORY_DESCRIPTIONS)
    scored = sorted(
        zip(names, (cosine_similarity(product_vector, vector) for vector in category_vectors)),
        key=lambda item: item[1],
        reverse=True,
    )
    return [name for name, _ in scored[:top_n]]


class CategoryStrategyGenerator:
    def __init__(self, settings: Optional[Settings] = None, cache: Optional[CategoryCache] = None) -> None:
        self.settings = settings or get_settings()
        self.cache = cache if cache is not None else get_category_cache(self.settings)

    def _ai_categories(self, normalized: str) -> List[str]:
        if not self.settings.openai_api_key:
            return []
        try:
            vectors = llm.embed(
                [normalized, *CATEGORY_DESCRIPTIONS.values()],
                api_key=self.settings.openai_api_key,
                model=self.settings.openai_embedding_model,
            )
        except llm.LlmError as exc:
            logger.warning("Embedding categorization failed for %r: %s", normalized, exc)
            return []
        return rank_categories(vectors[0], vectors[1:], self.settings.category_top_n)

    def _remember(self, product_name: str, normalized: str, categories: List[str]) -> None:
        try:
            self.cache.put(product_name, normalized, categories)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Failed to cache categories for %r: %s", normalized, exc)

    def generate(self, product_name: str, location: Optional[str] = None) -> CategoryStrategy:
        """``location`` only narrows the keyword fallback to its language."""
        normalized = normalize_product_name(product_name)
        if not normalized:
            raise ValueError("productName is required")

        try:
            cached = self.cache.get(normalized)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Category cache lookup failed for %r: %s", normalized, exc)
            cached = None
        if cached:
            logger.info("Category cache hit for %r: %s", normalized, cached)
            return CategoryStrategy(search_terms=list(cached), source=SOURCE_CACHE)

        categories = self._ai_categories(normalized)
        source = SOURCE_AI
        if not categories:
            categories = keyword_categories(normalized, locale_for(location))
            source = SOURCE_KEYWORD
        if not categories:
            categories = list(DEFAULT_CATEGORIES)
            source = SOURCE_DEFAULT

        logger.info("Categories for %r (%s): %s", normalized, source, categories)
        self._remember(product_name.strip(), normalized, categories)
        return CategoryStrategy(search_terms=categories, source=source)
