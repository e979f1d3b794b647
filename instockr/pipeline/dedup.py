"""Deterministic store deduplication.

Two policies live here:

* ``dedupe_by_address`` collapses same-source geographic results whose
  normalized postal addresses are identical. First occurrence wins.
* ``dedupe_by_identity`` collapses cross-source records that share a URL,
  a domain + name pair, or a name, merging the later record into the first
  one and keeping an audit trail in ``original_sources``.
"""

from __future__ import annotations

import dataclasses
import logging
import re
import time
from typing import Dict, List, Optional, Sequence

from instockr.etl.transform import domain_of
from instockr.models import ProductOffer, Store

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESULTS = 50

STREET_SUFFIXES = (
    "street", "st", "avenue", "ave", "road", "rd", "lane", "ln",
    "drive", "dr", "boulevard", "blvd",
)
_SUFFIX_REGEX = re.compile(r"\b(?:" + "|".join(STREET_SUFFIXES) + r")\b")
_PUNCTUATION_REGEX = re.compile(r"[^\w\s]")
_WHITESPACE_REGEX = re.compile(r"\s+")

PLACEHOLDER_VALUES = frozenset(
    {
        "contact store for pricing",
        "contact store for availability",
        "check website for availability",
        "price not available",
        "n/a",
    }
)


def normalize_address(address: str) -> str:
    """Canonical key for an address: case, punctuation and street suffixes ignored."""
    text = _WHITESPACE_REGEX.sub(" ", (address or "").lower())
    text = _PUNCTUATION_REGEX.sub(" ", text)
    text = _SUFFIX_REGEX.sub(" ", text)
    return _WHITESPACE_REGEX.sub(" ", text).strip()


def _distance_sort_key(store: Store):
    return (store.distance_km is None, store.distance_km or 0.0)


def sort_by_distance(stores: Sequence[Store]) -> List[Store]:
    """Nearest first; records without a distance keep their order after the rest."""
    return sorted(stores, key=_distance_sort_key)


def dedupe_by_address(stores: Sequence[Store], max_results: int = DEFAULT_MAX_RESULTS) -> List[Store]:
    seen: set = set()
    kept: List[Store] = []

    for store in stores:
        if len(kept) >= max_results:
            break

        key = normalize_address(store.address) if store.address else ""
        if not key:
            kept.append(store)
            continue

        if key in seen:
            logger.debug("Skipping duplicate address: %s", store.address)
            continue

        seen.add(key)
        kept.append(store)

    logger.info("Address dedup: reduced from %d to %d stores", len(stores), len(kept))
    return sort_by_distance(kept)


# ---------- identity-based merge ----------


def normalize_url(url: Optional[str]) -> str:
    text = (url or "").strip().lower()
    text = re.sub(r"^https?://", "", text)
    return text.rstrip("/")


def normalize_store_name(name: Optional[str]) -> str:
    text = _PUNCTUATION_REGEX.sub("", (name or "").lower())
    return _WHITESPACE_REGEX.sub("", text)


def identity_keys(store: Store, geo_scoped_names: bool = False) -> List[str]:
    """Keys under which two records count as the same store.

    With ``geo_scoped_names`` the bare name key of a located store also
    carries its coordinates rounded to ~100 m, so branches of one chain
    stay separate while online listings still match by name.
    """
    keys: List[str] = []
    url_key = normalize_url(store.url)
    name_key = normalize_store_name(store.name)
    if url_key:
        keys.append(f"url:{url_key}")
    domain = domain_of(store.url)
    if domain and len(domain) > 3 and name_key:
        keys.append(f"domain-name:{domain}|{name_key}")
    if name_key:
        coords = store.coordinates
        if geo_scoped_names and coords is not None:
            keys.append(f"name:{name_key}@{coords.lat:.3f},{coords.lng:.3f}")
        else:
            keys.append(f"name:{name_key}")
    return keys


def _value_rank(value: Optional[str]):
    if not value or not value.strip():
        return (0, 0)
    real = value.strip().lower() not in PLACEHOLDER_VALUES
    return (1 if real else 0, len(value.strip()))


def better_value(current: Optional[str], candidate: Optional[str]) -> Optional[str]:
    """Real values beat placeholders, then longer beats shorter; ties keep ``current``."""
    return candidate if _value_rank(candidate) > _value_rank(current) else current


def _merge_product(base: Optional[ProductOffer], other: Optional[ProductOffer]) -> Optional[ProductOffer]:
    if other is None:
        return base
    if base is None:
        return dataclasses.replace(other)
    return dataclasses.replace(
        base,
        price=better_value(base.price, other.price),
        description=better_value(base.description, other.description),
    )


def merge_stores(existing: Store, incoming: Store, position: int = 0) -> Store:
    """Fold ``incoming`` into ``existing``; the first-seen record stays the base."""
    sources = list(existing.original_sources) or [existing.source_ref()]
    sources.extend(incoming.original_sources or [incoming.source_ref()])
    source_count = existing.source_count + incoming.source_count

    return dataclasses.replace(
        existing,
        id=f"consolidated-{int(time.time() * 1000)}-{position}-{source_count}",
        product=_merge_product(existing.product, incoming.product),
        source_count=source_count,
        is_consolidated=True,
        original_sources=sources,
    )


def dedupe_by_identity(stores: Sequence[Store], geo_scoped_names: bool = False) -> List[Store]:
    merged: List[Store] = []
    key_index: Dict[str, int] = {}

    for store in stores:
        keys = identity_keys(store, geo_scoped_names)
        if not keys:
            merged.append(store)
            continue

        match = next((key_index[key] for key in keys if key in key_index), None)
        if match is None:
            position = len(merged)
            merged.append(store)
        else:
            position = match
            merged[position] = merge_stores(merged[position], store, position)
            logger.debug("Merged %s into %s", store.name, merged[position].name)

        for key in keys:
            key_index.setdefault(key, position)

    logger.info("Identity dedup: reduced from %d to %d stores", len(stores), len(merged))
    return merged
