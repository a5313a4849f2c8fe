from __future__ import annotations

from typing import Any, Dict, List

from django.db.models import QuerySet

from properties.models import Property


def featured_properties(limit: int = 3) -> QuerySet[Property]:
    return Property.objects.filter(featured=True).order_by("id")[:limit]


def search_properties(filters: Dict[str, Any], queryset: QuerySet[Property] | None = None) -> List[Property]:
    """
    Apply the catalogue filters: exact area, inclusive price bounds, minimum
    bedrooms and guest capacity, and every requested amenity present.
    """

    if queryset is None:
        queryset = Property.objects.all()

    area = filters.get("area")
    if area:
        queryset = queryset.filter(area=area)
    if filters.get("min_price") is not None:
        queryset = queryset.filter(price__gte=filters["min_price"])
    if filters.get("max_price") is not None:
        queryset = queryset.filter(price__lte=filters["max_price"])
    if filters.get("bedrooms") is not None:
        queryset = queryset.filter(bedrooms__gte=filters["bedrooms"])
    if filters.get("max_guests") is not None:
        queryset = queryset.filter(max_guests__gte=filters["max_guests"])

    results = list(queryset.order_by("id"))
    amenities = filters.get("amenities") or []
    if amenities:
        # JSON containment lookups are not portable to SQLite
        results = [prop for prop in results if prop.has_amenities(amenities)]
    return results
