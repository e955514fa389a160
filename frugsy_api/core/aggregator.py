"""Grouping, ordering and citation dedup for search results"""

from typing import Dict, Iterable, List, Optional, Sequence
import time
from frugsy_api.models.domain import Citation, DisplayItem, EnrichedRecord, LocationGroup


def make_item_id(record: EnrichedRecord, index: int, token: str) -> str:
    return f"{record.location_name}-{record.item_name}-{record.price}-{index}-{token}"


def aggregate(records: Sequence[EnrichedRecord], freshness_token: Optional[str] = None) -> List[LocationGroup]:
    """
    Group records by location name.

    Each record gets its id here, once. Groups come back ordered by location
    name and items by ascending price; both sorts are stable, so equal
    prices keep their input order. The representative address is the
    longest address seen in the group.
    """
    token = freshness_token if freshness_token is not None else str(int(time.time() * 1000))
    groups: Dict[str, LocationGroup] = {}

    for index, record in enumerate(records):
        item = DisplayItem(**record.model_dump(), id=make_item_id(record, index, token))
        group = groups.get(item.location_name)
        if group is None:
            group = LocationGroup(location_name=item.location_name, representative_address=item.location_address)
            groups[item.location_name] = group
        group.items.append(item)
        address = item.location_address
        if address and len(address) > len(group.representative_address or ""):
            group.representative_address = address

    ordered = sorted(groups.values(), key=lambda g: g.location_name)
    for group in ordered:
        group.items.sort(key=lambda i: i.price)
    return ordered


def dedupe_citations(citations: Iterable[Optional[Citation]]) -> List[Citation]:
    """Drop citations without a uri and keep the first occurrence of each uri"""
    seen = set()
    unique: List[Citation] = []
    for citation in citations:
        if citation is None or not citation.uri:
            continue
        if citation.uri in seen:
            continue
        seen.add(citation.uri)
        unique.append(citation)
    return unique
