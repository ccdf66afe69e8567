from __future__ import annotations

from dataclasses import dataclass, field
import datetime as dt
from enum import Enum
from typing import Optional, Tuple


class DocumentStatus(str, Enum):
    TO_START = "A iniciar"
    IN_PROGRESS = "Em andamento"
    FINISHED = "Finalizado"


# Canonical display/aggregation order.
STATUS_ORDER: Tuple[DocumentStatus, ...] = (
    DocumentStatus.TO_START,
    DocumentStatus.IN_PROGRESS,
    DocumentStatus.FINISHED,
)

DEFAULT_STATUS = DocumentStatus.TO_START

# Fields owned by the store; callers never set them.
STORE_MANAGED_FIELDS = frozenset({"id", "project_id", "created_at", "updated_at", "is_cleared"})


@dataclass(frozen=True)
class DocumentRecord:
    id: str
    project_id: str
    created_at: dt.datetime
    updated_at: dt.datetime
    title: str = ""
    detail: str = ""
    revision: str = ""
    owner: str = ""
    status: DocumentStatus = DEFAULT_STATUS
    area: str = ""
    participants: Tuple[str, ...] = ()
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    source_status: str = ""
    baseline_date: Optional[dt.date] = None
    projected_date: Optional[dt.date] = None
    advanced_date: Optional[dt.date] = None
    is_cleared: bool = False

    @property
    def has_valid_date_order(self) -> bool:
        """False only when both dates are present and end precedes start."""
        if self.start_date is None or self.end_date is None:
            return True
        return self.end_date >= self.start_date

    @property
    def is_complete(self) -> bool:
        return bool(self.start_date and self.title and self.owner)


@dataclass(frozen=True)
class MeetingMetadata:
    id: str = ""
    date: Optional[dt.date] = None
    minute_number: str = ""
    participants: Tuple[str, ...] = ()
    supplier: str = ""
    discipline: str = ""
    details: str = ""


@dataclass(frozen=True)
class Project:
    id: str
    name: str
    created_at: dt.datetime
    updated_at: dt.datetime
    description: str = ""


@dataclass(frozen=True)
class StatusDistributionEntry:
    status: DocumentStatus
    count: int
    percentage: int


@dataclass(frozen=True)
class TimelinePoint:
    month: str
    created: int = 0
    finished: int = 0


@dataclass(frozen=True)
class KpiData:
    to_start: int = 0
    in_progress: int = 0
    finished: int = 0


@dataclass(frozen=True)
class IssueKpis:
    issued_percentage: int = 0
    approved_percentage: int = 0


@dataclass(frozen=True)
class SCurvePoint:
    month: str
    baseline: int = 0
    projected: int = 0
    advanced: int = 0


@dataclass(frozen=True)
class StatusTableRow:
    status: str
    count: int
    started: Optional[int] = None
    finished: Optional[int] = None


@dataclass(frozen=True)
class IngestReport:
    added: Tuple[str, ...] = ()
    skipped: Tuple[int, ...] = ()
    errors: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def added_count(self) -> int:
        return len(self.added)
