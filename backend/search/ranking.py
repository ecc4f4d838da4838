"""Additive text relevance scoring for search results."""

from __future__ import annotations

from typing import Iterable, Optional

TITLE_POINTS = 10
DESCRIPTION_POINTS = 5
TAG_POINTS = 5
CATEGORY_POINTS = 7


def _contains(haystack: Optional[str], needle: str) -> bool:
    return bool(haystack) and needle in haystack.lower()


def relevance_score(
    query: str,
    *,
    title: Optional[str] = "",
    description: Optional[str] = "",
    tags: Optional[Iterable[str]] = (),
    category_name: Optional[str] = "",
) -> int:
    """
    Score a candidate against a free-text query, case-insensitively.

    +10 title, +5 description, +5 when any tag contains the query, +7 category name.
    An empty query scores 0.
    """
    needle = (query or "").strip().lower()
    if not needle:
        return 0

    score = 0
    if _contains(title, needle):
        score += TITLE_POINTS
    if _contains(description, needle):
        score += DESCRIPTION_POINTS
    if any(_contains(str(tag), needle) for tag in (tags or ())):
        score += TAG_POINTS
    if _contains(category_name, needle):
        score += CATEGORY_POINTS
    return score


def score_listing(query: str, listing) -> int:
    category = getattr(listing, "category", None)
    return relevance_score(
        query,
        title=listing.title,
        description=listing.description,
        tags=listing.tags or (),
        category_name=getattr(category, "name", "") if category is not None else "",
    )
