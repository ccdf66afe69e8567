from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple, TypeVar, Union

from tracker.dates import coerce_date
from tracker.exceptions import ParseError
from tracker.models import DocumentRecord, DocumentStatus, MeetingMetadata
from tracker.normalize import as_text, is_defined, parse_status


T = TypeVar("T")


def _contains(haystack: str, needle: str) -> bool:
    return needle.lower() in (haystack or "").lower()


@dataclass(frozen=True)
class DocumentFilters:
    search_query: str = ""
    statuses: FrozenSet[DocumentStatus] = field(default_factory=frozenset)
    # Requested labels outside the status vocabulary; they match no record.
    unknown_statuses: FrozenSet[str] = field(default_factory=frozenset)
    areas: FrozenSet[str] = field(default_factory=frozenset)
    owners: FrozenSet[str] = field(default_factory=frozenset)
    date_start: Optional[dt.date] = None
    date_end: Optional[dt.date] = None
    include_cleared: bool = False
    complete_only: bool = False

    def matches(self, doc: DocumentRecord) -> bool:
        if self.search_query and not (
            _contains(doc.title, self.search_query) or _contains(doc.detail, self.search_query)
        ):
            return False
        if self.complete_only and not doc.is_complete:
            return False
        if (self.statuses or self.unknown_statuses) and doc.status not in self.statuses:
            return False
        if self.areas and doc.area not in self.areas:
            return False
        if self.owners and doc.owner not in self.owners:
            return False
        # Inclusive range: the start bound applies to start_date, the end bound to end_date.
        if self.date_start is not None and (doc.start_date is None or doc.start_date < self.date_start):
            return False
        if self.date_end is not None and (doc.end_date is None or doc.end_date > self.date_end):
            return False
        return True


@dataclass(frozen=True)
class MeetingFilters:
    date: Optional[dt.date] = None
    minute_number: str = ""
    participant: str = ""
    supplier: str = ""
    discipline: str = ""

    def matches(self, meeting: MeetingMetadata) -> bool:
        if self.date is not None and meeting.date != self.date:
            return False
        if self.minute_number and not _contains(meeting.minute_number, self.minute_number):
            return False
        if self.participant and not any(_contains(p, self.participant) for p in meeting.participants):
            return False
        if self.supplier and not _contains(meeting.supplier, self.supplier):
            return False
        if self.discipline and not _contains(meeting.discipline, self.discipline):
            return False
        return True


Criteria = Union[DocumentFilters, MeetingFilters, Mapping[str, Any]]


def _as_str_set(values: Optional[Iterable[object]]) -> FrozenSet[str]:
    if not values:
        return frozenset()
    if isinstance(values, str):
        values = [values]
    return frozenset(as_text(v) for v in values if is_defined(v) and as_text(v))


def _split_statuses(values: Optional[Iterable[object]]) -> Tuple[FrozenSet[DocumentStatus], FrozenSet[str]]:
    """Split requested labels into known statuses and unrecognized text."""
    if not values:
        return frozenset(), frozenset()
    if isinstance(values, str):
        values = [values]
    known = set()
    unknown = set()
    for value in values:
        if not as_text(value):
            continue
        try:
            known.add(parse_status(value))
        except ParseError:
            unknown.add(as_text(value))
    return frozenset(known), frozenset(unknown)


def normalize_filters(raw: Mapping[str, Any]) -> DocumentFilters:
    date_range = raw.get("date_range") or {}
    statuses, unknown_statuses = _split_statuses(raw.get("statuses"))
    return DocumentFilters(
        search_query=as_text(raw.get("search_query")),
        statuses=statuses,
        unknown_statuses=unknown_statuses | _as_str_set(raw.get("unknown_statuses")),
        areas=_as_str_set(raw.get("areas")),
        owners=_as_str_set(raw.get("owners")),
        # A date_range entry overrides the flat bounds.
        date_start=coerce_date(date_range["start"] if "start" in date_range else raw.get("date_start")),
        date_end=coerce_date(date_range["end"] if "end" in date_range else raw.get("date_end")),
        include_cleared=bool(raw.get("include_cleared", False)),
        complete_only=bool(raw.get("complete_only", False)),
    )


def normalize_meeting_filters(raw: Mapping[str, Any]) -> MeetingFilters:
    return MeetingFilters(
        date=coerce_date(raw.get("date")),
        minute_number=as_text(raw.get("minute_number")),
        participant=as_text(raw.get("participant")),
        supplier=as_text(raw.get("supplier")),
        discipline=as_text(raw.get("discipline")),
    )


def apply_filters(records: Sequence[T], criteria: Optional[Criteria]) -> List[T]:
    """Keep the records matching every set criterion, preserving input order.

    A mapping is normalized according to the record type; an empty mapping
    (or None) imposes no constraint.
    """
    records = list(records)
    if not criteria or not records:
        return records
    if isinstance(criteria, Mapping):
        if isinstance(records[0], MeetingMetadata):
            criteria = normalize_meeting_filters(criteria)
        else:
            criteria = normalize_filters(criteria)
    return [r for r in records if criteria.matches(r)]


# ---------------- Filter state (reducer) ----------------
@dataclass(frozen=True)
class SetFilters:
    changes: Mapping[str, Any]


@dataclass(frozen=True)
class ResetFilters:
    pass


def filters_reducer(state: T, action: Union[SetFilters, ResetFilters]) -> T:
    """Return the next filter state; ``state`` is a DocumentFilters or MeetingFilters."""
    if isinstance(action, ResetFilters):
        return type(state)()
    if isinstance(action, SetFilters):
        merged = {**state.__dict__, **action.changes}
        if "statuses" in action.changes:
            merged.pop("unknown_statuses", None)
        if isinstance(state, MeetingFilters):
            return normalize_meeting_filters(merged)
        return normalize_filters(merged)
    raise TypeError(f"Unknown filter action: {action!r}")
