from __future__ import annotations

from dataclasses import asdict
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from tracker.dates import month_key
from tracker.models import (
    STATUS_ORDER,
    DocumentRecord,
    DocumentStatus,
    IssueKpis,
    KpiData,
    SCurvePoint,
    StatusDistributionEntry,
    StatusTableRow,
    TimelinePoint,
)
from tracker.normalize import fold_text


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def _percent(part: int, whole: int) -> int:
    if not whole:
        return 0
    return int(round_half_up(part / whole * 100))


def active_records(records: Iterable[DocumentRecord]) -> List[DocumentRecord]:
    return [r for r in records if not r.is_cleared]


def compute_status_distribution(records: Iterable[DocumentRecord]) -> List[StatusDistributionEntry]:
    active = active_records(records)
    total = len(active)
    if total == 0:
        return []
    counts = pd.Series([r.status for r in active], dtype=object).value_counts()
    out: List[StatusDistributionEntry] = []
    for status in STATUS_ORDER:
        count = int(counts.get(status, 0))
        if count:
            out.append(StatusDistributionEntry(status=status, count=count, percentage=_percent(count, total)))
    return out


def compute_timeline(records: Iterable[DocumentRecord]) -> List[TimelinePoint]:
    rows: List[Dict[str, Any]] = []
    for r in active_records(records):
        rows.append({"month": month_key(r.created_at), "created": 1, "finished": 0})
        if r.status is DocumentStatus.FINISHED and r.end_date is not None:
            rows.append({"month": month_key(r.end_date), "created": 0, "finished": 1})
    if not rows:
        return []
    monthly = pd.DataFrame(rows).groupby("month")[["created", "finished"]].sum().sort_index()
    return [
        TimelinePoint(month=str(month), created=int(row["created"]), finished=int(row["finished"]))
        for month, row in monthly.iterrows()
    ]


def compute_kpis(records: Iterable[DocumentRecord]) -> KpiData:
    counts = pd.Series([r.status for r in active_records(records)], dtype=object).value_counts()
    return KpiData(
        to_start=int(counts.get(DocumentStatus.TO_START, 0)),
        in_progress=int(counts.get(DocumentStatus.IN_PROGRESS, 0)),
        finished=int(counts.get(DocumentStatus.FINISHED, 0)),
    )


def compute_issue_kpis(records: Iterable[DocumentRecord]) -> IssueKpis:
    """Issued and approved shares, from the raw status text of monitor sheets.

    issued = (approved + issued) / (approved + issued + to issue)
    approved = approved / (approved + issued)
    """
    tokens = pd.Series([fold_text(r.source_status) for r in active_records(records)], dtype=object)
    approved = int((tokens == "aprovado").sum())
    issued = int((tokens == "emitido").sum())
    to_issue = int((tokens == "para emissao").sum())
    return IssueKpis(
        issued_percentage=_percent(approved + issued, approved + issued + to_issue),
        approved_percentage=_percent(approved, approved + issued),
    )


def compute_status_table(records: Iterable[DocumentRecord]) -> List[StatusTableRow]:
    active = active_records(records)
    if not active:
        return []
    df = pd.DataFrame(
        {
            "status": [r.source_status or "Unknown" for r in active],
            "started": [r.projected_date is not None for r in active],
            "finished": [r.advanced_date is not None for r in active],
        }
    )
    grouped = df.groupby("status", sort=False).agg(
        count=("started", "size"), started=("started", "sum"), finished=("finished", "sum")
    )
    return [
        StatusTableRow(
            status=str(status),
            count=int(row["count"]),
            started=int(row["started"]) or None,
            finished=int(row["finished"]) or None,
        )
        for status, row in grouped.iterrows()
    ]


def compute_s_curve(records: Iterable[DocumentRecord]) -> List[SCurvePoint]:
    """Cumulative baseline/projected/advanced counts per month.

    Unlike the timeline, every month between the first and last date is
    present because the curve is cumulative.
    """
    active = active_records(records)
    series = {
        name: pd.Series([month_key(d) for d in (getattr(r, f"{name}_date") for r in active) if d is not None], dtype=object)
        for name in ("baseline", "projected", "advanced")
    }
    all_months = pd.concat(list(series.values()))
    if all_months.empty:
        return []
    months = pd.period_range(start=all_months.min(), end=all_months.max(), freq="M").strftime("%Y-%m")
    cumulative = {
        name: s.value_counts().reindex(months, fill_value=0).cumsum()
        for name, s in series.items()
    }
    return [
        SCurvePoint(
            month=str(month),
            baseline=int(cumulative["baseline"][month]),
            projected=int(cumulative["projected"][month]),
            advanced=int(cumulative["advanced"][month]),
        )
        for month in months
    ]


def compute_dashboard(filters: Any, records: Iterable[DocumentRecord]) -> Dict[str, Any]:
    records = list(records)
    return {
        "filters": asdict(filters),
        "kpis": asdict(compute_kpis(records)),
        "status_distribution": [asdict(e) for e in compute_status_distribution(records)],
        "timeline": [asdict(p) for p in compute_timeline(records)],
    }


def compute_monitor(records: Iterable[DocumentRecord]) -> Dict[str, Any]:
    records = list(records)
    return {
        "kpis": asdict(compute_issue_kpis(records)),
        "status_table": [asdict(r) for r in compute_status_table(records)],
        "s_curve": [asdict(p) for p in compute_s_curve(records)],
    }
