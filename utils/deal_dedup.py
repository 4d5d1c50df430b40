"""
Identity-based deduplication for incoming deal batches.
Keeps only the candidates that are not already represented in the collection.
"""

from typing import List
from models.deal import Deal
from utils.field_aliases import identity_selector


def dedupe(existing: List[Deal], candidates: List[Deal], key_field: str = "asin") -> List[Deal]:
    """
    Return the candidates whose identity key is not present in ``existing``.

    Args:
        existing: Deals already in the collection (not modified)
        candidates: Incoming batch, in arrival order
        key_field: Preferred identity field; falls back to asin, url, title

    Returns:
        New list with the unseen candidates, in their original order.
        Candidates without any identity value are dropped, and repeated keys
        inside the batch keep only the first occurrence.
    """
    key_of = identity_selector(key_field)
    seen = {key for key in map(key_of, existing) if key}

    unique = []
    for deal in candidates:
        key = key_of(deal)
        if not key or key in seen:
            continue
        seen.add(key)
        unique.append(deal)

    return unique
