"""Per-project document store.

The store is an explicit state object owned by the caller (see
``tracker.projects.ProjectRegistry``). Records are immutable; every change
replaces the stored record with an updated copy.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import fields as dataclass_fields
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Protocol

from tracker.dates import coerce_date
from tracker.exceptions import NotFoundError
from tracker.filters import DocumentFilters, apply_filters
from tracker.metrics import compute_kpis, compute_status_distribution, compute_timeline
from tracker.models import (
    DEFAULT_STATUS,
    STORE_MANAGED_FIELDS,
    DocumentRecord,
    DocumentStatus,
    KpiData,
    StatusDistributionEntry,
    TimelinePoint,
)
from tracker.normalize import as_text, coerce_status, split_participants


logger = logging.getLogger(__name__)

RECORD_FIELDS = frozenset(f.name for f in dataclass_fields(DocumentRecord))
EDITABLE_FIELDS = RECORD_FIELDS - STORE_MANAGED_FIELDS
DATE_FIELDS = frozenset({"start_date", "end_date", "baseline_date", "projected_date", "advanced_date"})


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any) -> None: ...


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def coerce_fields(values: Mapping[str, Any]) -> Dict[str, Any]:
    """Keep editable fields only and coerce them to their canonical types."""
    out: Dict[str, Any] = {}
    for name, value in values.items():
        if name not in EDITABLE_FIELDS:
            if name in STORE_MANAGED_FIELDS:
                logger.debug("Ignoring store-managed field %r", name)
            continue
        if name == "status":
            out[name] = coerce_status(value)
        elif name == "participants":
            out[name] = split_participants(value)
        elif name in DATE_FIELDS:
            out[name] = coerce_date(value)
        else:
            out[name] = as_text(value)
    return out


def apply_status_rules(changes: Mapping[str, Any], current_end: Optional[date], today: date) -> Dict[str, Any]:
    """Couple status and end date the way manual entry does.

    A supplied end date finishes the document. Finishing without an end date
    stamps ``today``; moving to any other status clears the end date.
    """
    out = dict(changes)
    if out.get("end_date") is not None:
        out["status"] = DocumentStatus.FINISHED
    elif "status" in out:
        if out["status"] is DocumentStatus.FINISHED:
            if out.get("end_date", current_end) is None:
                out["end_date"] = today
        else:
            out["end_date"] = None
    return out


class DocumentStore:
    def __init__(
        self,
        project_id: str,
        *,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
        status_rules: bool = False,
    ):
        self.project_id = project_id
        self.status_rules = status_rules
        self._clock = clock
        self._id_factory = id_factory
        self._records: Dict[str, DocumentRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def _rules_on(self, apply_rules: Optional[bool]) -> bool:
        return self.status_rules if apply_rules is None else apply_rules

    def add(self, fields: Mapping[str, Any], *, apply_rules: Optional[bool] = None) -> DocumentRecord:
        now = self._clock()
        values = coerce_fields(fields)
        if self._rules_on(apply_rules):
            values = apply_status_rules(values, None, now.date())
        record = DocumentRecord(
            id=self._id_factory(),
            project_id=self.project_id,
            created_at=now,
            updated_at=now,
            **values,
        )
        self._records[record.id] = record
        return record

    def get(self, document_id: str) -> DocumentRecord:
        try:
            return self._records[document_id]
        except KeyError:
            raise NotFoundError("Document", document_id) from None

    def update(self, document_id: str, patch: Mapping[str, Any], *, apply_rules: Optional[bool] = None) -> DocumentRecord:
        record = self.get(document_id)
        now = self._clock()
        changes = coerce_fields(patch)
        if self._rules_on(apply_rules):
            changes = apply_status_rules(changes, record.end_date, now.date())
        # The sheet's status text no longer describes a status changed here.
        if "status" in changes and changes["status"] is not record.status and "source_status" not in patch:
            changes["source_status"] = changes["status"].value
        updated = replace(record, **changes, updated_at=now)
        self._records[document_id] = updated
        return updated

    def bulk_update(self, document_ids: Iterable[str], patch: Mapping[str, Any]) -> List[DocumentRecord]:
        ids = list(document_ids)
        for document_id in ids:
            self.get(document_id)
        return [self.update(document_id, patch) for document_id in ids]

    def clear(self, document_id: str) -> DocumentRecord:
        record = self.get(document_id)
        if record.is_cleared:
            return record
        cleared = replace(record, is_cleared=True, updated_at=self._clock())
        self._records[document_id] = cleared
        return cleared

    def restore(self, document_id: str) -> DocumentRecord:
        record = self.get(document_id)
        if not record.is_cleared:
            return record
        restored = replace(record, is_cleared=False, updated_at=self._clock())
        self._records[document_id] = restored
        return restored

    def duplicate(self, document_id: str) -> DocumentRecord:
        """Copy start date, title, owner and participants into a fresh record."""
        source = self.get(document_id)
        return self.add(
            {
                "start_date": source.start_date,
                "title": source.title,
                "owner": source.owner,
                "participants": source.participants,
                "status": DEFAULT_STATUS,
            }
        )

    def list(self, include_cleared: bool = False) -> List[DocumentRecord]:
        return [r for r in self._records.values() if include_cleared or not r.is_cleared]

    def filtered(self, criteria: DocumentFilters | Mapping[str, Any] | None = None) -> List[DocumentRecord]:
        include_cleared = bool(getattr(criteria, "include_cleared", False))
        if isinstance(criteria, Mapping):
            include_cleared = bool(criteria.get("include_cleared", False))
        return apply_filters(self.list(include_cleared=include_cleared), criteria or {})

    # ---------------- Aggregates ----------------
    def get_status_distribution(self, criteria=None) -> List[StatusDistributionEntry]:
        return compute_status_distribution(self.filtered(criteria))

    def get_timeline_data(self, criteria=None) -> List[TimelinePoint]:
        return compute_timeline(self.filtered(criteria))

    def get_kpi_data(self, criteria=None) -> KpiData:
        return compute_kpis(self.filtered(criteria))

    def unique_areas(self) -> List[str]:
        return list(dict.fromkeys(r.area for r in self.list() if r.area))

    def unique_owners(self) -> List[str]:
        return list(dict.fromkeys(r.owner for r in self.list() if r.owner))

    # ---------------- Persistence shape ----------------
    def snapshot(self) -> List[Dict[str, Any]]:
        rows = []
        for r in self._records.values():
            row: Dict[str, Any] = {}
            for name in RECORD_FIELDS:
                value = getattr(r, name)
                if isinstance(value, (datetime, date)):
                    value = value.isoformat()
                elif name == "status":
                    value = value.value
                elif name == "participants":
                    value = list(value)
                row[name] = value
            rows.append(row)
        return rows

    @classmethod
    def from_snapshot(cls, project_id: str, rows: Iterable[Mapping[str, Any]], **kwargs: Any) -> "DocumentStore":
        store = cls(project_id, **kwargs)
        for row in rows:
            record = DocumentRecord(
                id=str(row["id"]),
                project_id=project_id,
                created_at=datetime.fromisoformat(row["created_at"]),
                updated_at=datetime.fromisoformat(row["updated_at"]),
                is_cleared=bool(row.get("is_cleared", False)),
                **coerce_fields(row),
            )
            store._records[record.id] = record
        return store

    def storage_key(self) -> str:
        return f"documents:{self.project_id}"

    def save(self, kv: KeyValueStore, key: Optional[str] = None) -> None:
        kv.set(key or self.storage_key(), self.snapshot())

    @classmethod
    def load(cls, kv: KeyValueStore, project_id: str, key: Optional[str] = None, **kwargs: Any) -> "DocumentStore":
        rows = kv.get(key or f"documents:{project_id}") or []
        logger.debug("Loaded %d documents for project %s", len(rows), project_id)
        return cls.from_snapshot(project_id, rows, **kwargs)
