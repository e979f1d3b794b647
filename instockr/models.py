"""Core data models shared by the store search pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(slots=True)
class Coordinates:
    lat: float
    lng: float

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(slots=True)
class ProductOffer:
    """What a store listing says about the searched product."""

    name: str
    price: Optional[str] = None
    description: Optional[str] = None
    availability: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "price": self.price,
            "description": self.description,
            "availability": self.availability,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["ProductOffer"]:
        if not isinstance(data, dict):
            return None
        return cls(
            name=str(data.get("name") or ""),
            price=data.get("price"),
            description=data.get("description"),
            availability=data.get("availability"),
        )


@dataclass(slots=True)
class SourceRef:
    """Identity of a record folded into a consolidated store."""

    name: Optional[str]
    url: Optional[str]
    source: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {"name": self.name, "url": self.url, "source": self.source}


@dataclass(slots=True)
class Store:
    """Normalized candidate store returned by any source fetcher."""

    id: str
    name: str
    store_type: str
    address: str
    source: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    distance_km: Optional[float] = None
    phone: Optional[str] = None
    url: Optional[str] = None
    opening_hours: List[str] = field(default_factory=list)
    is_online: bool = False
    product: Optional[ProductOffer] = None
    rating: Optional[float] = None
    user_ratings_total: Optional[int] = None
    place_id: Optional[str] = None
    photo_url: Optional[str] = None
    source_count: int = 1
    is_consolidated: bool = False
    original_sources: List[SourceRef] = field(default_factory=list)

    @property
    def coordinates(self) -> Optional[Coordinates]:
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinates(self.latitude, self.longitude)

    def source_ref(self) -> SourceRef:
        return SourceRef(name=self.name, url=self.url, source=self.source)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the camelCase keys the frontend reads."""
        return {
            "id": self.id,
            "name": self.name,
            "storeType": self.store_type,
            "address": self.address,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "distanceKm": self.distance_km,
            "phone": self.phone,
            "url": self.url,
            "source": self.source,
            "openingHours": list(self.opening_hours),
            "isOnline": self.is_online,
            "product": self.product.to_dict() if self.product else None,
            "rating": self.rating,
            "userRatingsTotal": self.user_ratings_total,
            "placeId": self.place_id,
            "photoUrl": self.photo_url,
            "sourceCount": self.source_count,
            "isConsolidated": self.is_consolidated,
            "originalSources": [ref.to_dict() for ref in self.original_sources],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Store":
        """Parse a store posted back by the client.

        Accepts both the camelCase wire keys and the legacy snake_case
        ``store_type`` / ``distance`` keys older clients still send.
        """
        distance = data.get("distanceKm", data.get("distance"))
        hours = data.get("openingHours") or []
        if isinstance(hours, str):
            hours = [hours]
        sources = [
            SourceRef(name=ref.get("name"), url=ref.get("url"), source=ref.get("source"))
            for ref in data.get("originalSources") or []
            if isinstance(ref, dict)
        ]
        return cls(
            id=str(data.get("id") or ""),
            name=str(data.get("name") or "").strip(),
            store_type=str(data.get("storeType") or data.get("store_type") or "unknown"),
            address=str(data.get("address") or ""),
            source=str(data.get("source") or "unknown"),
            latitude=_optional_float(data.get("latitude")),
            longitude=_optional_float(data.get("longitude")),
            distance_km=_optional_float(distance),
            phone=data.get("phone"),
            url=data.get("url"),
            opening_hours=[str(item) for item in hours],
            is_online=bool(data.get("isOnline", False)),
            product=ProductOffer.from_dict(data.get("product")),
            rating=_optional_float(data.get("rating")),
            user_ratings_total=data.get("userRatingsTotal"),
            place_id=data.get("placeId") or data.get("place_id"),
            photo_url=data.get("photoUrl"),
            source_count=int(data.get("sourceCount") or 1),
            is_consolidated=bool(data.get("isConsolidated", False)),
            original_sources=sources,
        )


@dataclass(slots=True)
class ProductMatch:
    """Product found on a store website by the AI crawler."""

    name: str
    price: str
    description: Optional[str] = None
    availability: Optional[str] = None
    url: Optional[str] = None
    image: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "name": self.name,
            "price": self.price,
            "description": self.description,
            "availability": self.availability,
            "url": self.url,
            "image": self.image,
        }


def _optional_float(value: Any) -> Optional[float]:
    try:
        if value is None:
            return None
        return float(value)
    except (TypeError, ValueError):
        return None
