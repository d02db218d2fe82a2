"""Deterministic ordering of feedback lists.

Three sort modes:
- default: newest first
- upvotes: most upvoted first
- trending: (upvotes + comments) per day of age, so fresh activity beats
  an old pile of votes

Ties always fall back to newest first, then to id, so the same input
and the same ``now`` give the same order every time.
"""

from datetime import datetime, timezone
from typing import Optional, Sequence

from feedbase.config import settings
from feedbase.domain import Feedback, as_utc
from feedbase.feedback.filters import SortMode

MS_PER_DAY = 86_400_000


def default_floor_days() -> float:
    return settings.trending_floor_hours / 24


def age_in_days(
    created_at: datetime, now: datetime, floor_days: Optional[float] = None
) -> float:
    """Item age in days, never below the floor.

    The floor keeps a post created seconds ago from dividing by ~0 and
    jumping to the top on its first vote.
    """
    if floor_days is None:
        floor_days = default_floor_days()
    age_ms = (as_utc(now) - as_utc(created_at)).total_seconds() * 1000
    return max(floor_days, age_ms / MS_PER_DAY)


def trending_score(
    item: Feedback, now: datetime, floor_days: Optional[float] = None
) -> float:
    age = age_in_days(item.created_at, now, floor_days)
    return item.upvotes / age + item.comment_count / age


def rank_feedback(
    items: Sequence[Feedback],
    mode: SortMode = SortMode.DEFAULT,
    *,
    now: Optional[datetime] = None,
    floor_days: Optional[float] = None,
) -> list[Feedback]:
    """Return a new list ordered by ``mode``.

    ``now`` is sampled once per call so every item is aged against the
    same instant.
    """
    now = as_utc(now) if now is not None else datetime.now(timezone.utc)
    if floor_days is None:
        floor_days = default_floor_days()

    def tiebreak(item: Feedback) -> tuple:
        return (-item.created_at.timestamp(), str(item.id))

    if mode is SortMode.TRENDING:
        key = lambda item: (-trending_score(item, now, floor_days), *tiebreak(item))  # noqa: E731
    elif mode is SortMode.UPVOTES:
        key = lambda item: (-item.upvotes, *tiebreak(item))  # noqa: E731
    else:
        key = tiebreak
    return sorted(items, key=key)
