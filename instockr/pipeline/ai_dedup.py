"""LLM-assisted grouping of store records that describe the same business."""

from __future__ import annotations

import dataclasses
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from pydantic import BaseModel, Field, ValidationError

from instockr.core.config import Settings, get_settings
from instockr.models import SourceRef, Store
from instockr.vendors import llm

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a precise store deduplication system. "
    "Always return valid JSON with the exact structure requested."
)

DEDUP_PROMPT = """You are a store deduplication expert. Analyze the following list of stores and identify which ones refer to the same physical location or business. Group stores that are clearly the same entity together.

Stores to analyze:
{store_lines}

Rules for grouping:
1. Same business name + same city = same store (even if address details differ slightly)
2. Official store websites vs review/article sites about the same store = same store
3. Different products at same location = same store
4. Slight name variations (Apple Store vs Apple Piazza Liberty) at same location = same store

Return a JSON response with this exact structure:
{{
  "groups": [
    {{
      "consolidated_name": "Best representative name for this store",
      "consolidated_address": "Best address representation",
      "store_type": "store type",
      "store_indices": [array of original store indices that belong to this group],
      "primary_url": "most authoritative URL (prefer official store websites)",
      "source_count": number_of_sources
    }}
  ]
}}

Focus on accuracy - only group stores you're confident are the same location."""

NO_URL = "No URL"


class DedupGroup(BaseModel):
    consolidated_name: str = Field(min_length=1)
    consolidated_address: Optional[str] = None
    store_type: Optional[str] = None
    store_indices: List[int]
    primary_url: Optional[str] = None
    source_count: Optional[int] = None


class DedupReply(BaseModel):
    groups: List[DedupGroup]


@dataclass
class AiDedupResult:
    stores: List[Store]
    groups: List[Dict[str, Any]] = field(default_factory=list)
    applied: bool = False


def build_prompt(stores: Sequence[Store]) -> str:
    lines = [
        f'{index}: "{store.name}" at "{store.address}" ({store.store_type}) - {store.url or NO_URL}'
        for index, store in enumerate(stores)
    ]
    return DEDUP_PROMPT.format(store_lines="\n".join(lines))


def parse_reply(text: str) -> DedupReply:
    """Validate the model's reply; raises ``ValueError`` subclasses on bad input."""
    return DedupReply.model_validate_json(llm.extract_json(text))


def _folded_sources(members: Iterable[Store]) -> List[SourceRef]:
    sources: List[SourceRef] = []
    for store in members:
        sources.extend(store.original_sources or [store.source_ref()])
    return sources


def apply_groups(stores: Sequence[Store], reply: DedupReply) -> AiDedupResult:
    consolidated: List[Store] = []
    used: set = set()
    accepted: List[Dict[str, Any]] = []
    stamp = int(time.time() * 1000)

    for group in reply.groups:
        members = []
        for index in group.store_indices:
            if 0 <= index < len(stores) and index not in used and index not in members:
                members.append(index)
        if not members:
            logger.debug("Dropping AI group %r with no usable indices", group.consolidated_name)
            continue

        used.update(members)
        primary = stores[members[0]]
        url = group.primary_url if group.primary_url and group.primary_url != NO_URL else primary.url
        consolidated.append(
            dataclasses.replace(
                primary,
                id=f"consolidated-{stamp}-{len(consolidated)}",
                name=group.consolidated_name,
                address=group.consolidated_address or primary.address,
                store_type=group.store_type or primary.store_type,
                url=url,
                source_count=sum(stores[index].source_count for index in members),
                is_consolidated=True,
                original_sources=_folded_sources(stores[index] for index in members),
            )
        )
        accepted.append(group.model_dump() | {"store_indices": members})

    # Ungrouped records keep whatever an earlier merge recorded.
    consolidated.extend(store for index, store in enumerate(stores) if index not in used)

    return AiDedupResult(stores=consolidated, groups=accepted, applied=True)


class AiDeduplicator:
    """Groups duplicates with one chat completion; any failure returns the input untouched."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()

    def is_configured(self) -> bool:
        return bool(self.settings.openai_api_key)

    def deduplicate(self, stores: Sequence[Store]) -> AiDedupResult:
        stores = list(stores)
        if len(stores) < 2:
            return AiDedupResult(stores=stores)
        if not self.is_configured():
            logger.warning("AI dedup skipped: OPENAI_API_KEY missing")
            return AiDedupResult(stores=stores)

        logger.info("Sending %d stores to the model for deduplication", len(stores))
        try:
            text = llm.chat_completion(
                build_prompt(stores),
                api_key=self.settings.openai_api_key,
                model=self.settings.openai_chat_model,
                system=SYSTEM_PROMPT,
                temperature=0.1,
                max_tokens=2000,
            )
        except llm.LlmError as exc:
            logger.warning("AI dedup request failed, returning stores unchanged: %s", exc)
            return AiDedupResult(stores=stores)

        try:
            reply = parse_reply(text)
        except ValidationError as exc:
            logger.warning("AI dedup reply failed validation, returning stores unchanged: %s", exc)
            return AiDedupResult(stores=stores)

        result = apply_groups(stores, reply)
        logger.info("AI dedup complete: %d -> %d stores", len(stores), len(result.stores))
        return result
