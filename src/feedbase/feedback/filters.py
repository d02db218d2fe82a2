"""Facet filtering for feedback lists.

A FilterSpec holds one include/exclude pair per set facet (tags,
statuses, boards) plus a free-text search and a created-at range. An
item survives only if it passes every facet; a facet with nothing
selected passes everything.

Within one facet, exclude beats include: an item tagged both "bug" and
"ui" is dropped by ``tags=bug,!ui`` even though it matches "bug".

Filter parameters arrive flat, the way a query string carries them:

    tags=bug,!wontfix   status=planned   board=!Internal
    search=!login       created_after=2024-01-01   sort=trending
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Hashable, Iterable, Mapping, Optional, Sequence

import structlog

from feedbase.domain import Board, Feedback, as_utc
from feedbase.errors import ValidationError

logger = structlog.get_logger()

ALL_TAB = "All"
NEGATION = "!"

_DATE_PARAM_ALIASES = {
    "created_after": ("created_after", "ca"),
    "created_before": ("created_before", "cb"),
}


class SortMode(str, Enum):
    DEFAULT = "default"
    UPVOTES = "upvotes"
    TRENDING = "trending"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SortMode":
        """Unknown or missing values fall back to newest-first."""
        if value:
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.DEFAULT


@dataclass(frozen=True)
class Facet:
    """One filterable dimension with independent include/exclude sets."""

    include: frozenset = frozenset()
    exclude: frozenset = frozenset()

    @property
    def is_empty(self) -> bool:
        return not self.include and not self.exclude

    def admits(self, values: Iterable[Hashable]) -> bool:
        values = set(values)
        if self.include and values.isdisjoint(self.include):
            return False
        if self.exclude and not values.isdisjoint(self.exclude):
            return False
        return True


@dataclass(frozen=True)
class FilterSpec:
    """Everything a user selected in the filter bar.

    Tag and status values are stored lower-cased; board values are ids.
    """

    tags: Facet = field(default_factory=Facet)
    statuses: Facet = field(default_factory=Facet)
    boards: Facet = field(default_factory=Facet)
    search: Optional[str] = None
    created_after: Optional[datetime] = None
    created_before: Optional[datetime] = None

    def __post_init__(self):
        object.__setattr__(self, "created_after", as_utc(self.created_after))
        object.__setattr__(self, "created_before", as_utc(self.created_before))


# ─── Evaluation ──────────────────────────────────────────


def _matches_tab(item: Feedback, tab: Optional[str]) -> bool:
    if not tab or tab == ALL_TAB:
        return True
    return (item.status or "").lower() == tab.lower()


def _matches_search(item: Feedback, search: Optional[str]) -> bool:
    if not search:
        return True
    title = item.title.lower()
    if search.startswith(NEGATION):
        needle = search[len(NEGATION):].lower()
        # A bare "!" excludes nothing.
        return not needle or needle not in title
    return search.lower() in title


def _matches_dates(item: Feedback, spec: FilterSpec) -> bool:
    if spec.created_before is not None and item.created_at > spec.created_before:
        return False
    if spec.created_after is not None and item.created_at < spec.created_after:
        return False
    return True


def matches(item: Feedback, spec: FilterSpec, tab: Optional[str] = None) -> bool:
    """True if a single item passes every facet of the spec."""
    status = (item.status or "").lower()
    return (
        _matches_tab(item, tab)
        and _matches_search(item, spec.search)
        and spec.tags.admits(item.tag_names)
        and spec.statuses.admits([status] if status else [])
        and spec.boards.admits([item.board_id])
        and _matches_dates(item, spec)
    )


def filter_feedback(
    items: Sequence[Feedback],
    spec: FilterSpec,
    tab: Optional[str] = None,
) -> list[Feedback]:
    """Keep the items satisfying all facets, preserving input order."""
    return [item for item in items if matches(item, spec, tab)]


# ─── Parsing ─────────────────────────────────────────────


def split_facet(raw: Optional[str]) -> tuple[list[str], list[str]]:
    """Split "a,!b,c" into (["a", "c"], ["b"]). Blank entries are dropped."""
    include: list[str] = []
    exclude: list[str] = []
    for entry in (raw or "").split(","):
        entry = entry.strip()
        if entry.startswith(NEGATION):
            entry = entry[len(NEGATION):].strip()
            if entry:
                exclude.append(entry)
        elif entry:
            include.append(entry)
    return include, exclude


def _name_facet(raw: Optional[str]) -> Facet:
    include, exclude = split_facet(raw)
    return Facet(
        include=frozenset(v.lower() for v in include),
        exclude=frozenset(v.lower() for v in exclude),
    )


def _resolve_board(value: str, boards: Sequence[Board]) -> uuid.UUID:
    lowered = value.lower()
    for board in boards:
        if board.name.lower() == lowered or str(board.id) == lowered:
            return board.id
    raise ValidationError(f"unknown board: {value}.")


def _board_facet(raw: Optional[str], boards: Sequence[Board]) -> Facet:
    include, exclude = split_facet(raw)
    return Facet(
        include=frozenset(_resolve_board(v, boards) for v in include),
        exclude=frozenset(_resolve_board(v, boards) for v in exclude),
    )


def parse_date(raw: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 date/datetime. Malformed input means "no bound"."""
    if not raw:
        return None
    try:
        value = datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
    except ValueError:
        logger.info("filters.bad_date", value=raw)
        return None
    return as_utc(value)


def _date_param(params: Mapping[str, str], name: str) -> Optional[datetime]:
    for key in _DATE_PARAM_ALIASES[name]:
        if params.get(key):
            return parse_date(params[key])
    return None


def parse_filter_spec(
    params: Mapping[str, str],
    boards: Sequence[Board] = (),
) -> FilterSpec:
    """Build a FilterSpec from flat query parameters.

    ``boards`` are the workspace's boards, used to resolve board names or
    ids. Raises ValidationError for a board that doesn't exist.
    """
    search = (params.get("search") or "").strip() or None
    return FilterSpec(
        tags=_name_facet(params.get("tags")),
        statuses=_name_facet(params.get("status")),
        boards=_board_facet(params.get("board"), boards),
        search=search,
        created_after=_date_param(params, "created_after"),
        created_before=_date_param(params, "created_before"),
    )
