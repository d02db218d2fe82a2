"""Facet filtering and ranking of feedback lists."""

from feedbase.feedback.filters import (
    ALL_TAB,
    Facet,
    FilterSpec,
    SortMode,
    filter_feedback,
    parse_filter_spec,
)
from feedbase.feedback.ranking import rank_feedback, trending_score

__all__ = [
    "ALL_TAB",
    "Facet",
    "FilterSpec",
    "SortMode",
    "filter_feedback",
    "parse_filter_spec",
    "rank_feedback",
    "trending_score",
]
