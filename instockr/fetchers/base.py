"""Common contract for store source fetchers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from instockr.models import Coordinates, Store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchParams:
    product_name: str = ""
    origin: Optional[Coordinates] = None
    radius_m: int = 5000
    categories: List[str] = field(default_factory=list)
    location: Optional[str] = None
    limit: Optional[int] = None


class Fetcher:
    """A single external catalog queried for candidate stores.

    ``search`` never raises for provider failures: implementations log and
    return whatever they collected, possibly nothing.
    """

    name = "fetcher"

    def is_configured(self) -> bool:
        return True

    def search(self, params: SearchParams) -> List[Store]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
