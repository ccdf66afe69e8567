from __future__ import annotations

import io
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import pandas as pd

from tracker.exceptions import IngestionError
from tracker.models import IngestReport
from tracker.normalize import is_defined, normalize_row
from tracker.store import DocumentStore


logger = logging.getLogger(__name__)

PREFERRED_SHEET = "doc"


def select_sheet(sheet_names: Sequence[str], preferred: str = PREFERRED_SHEET) -> Optional[str]:
    """Pick the sheet named ``preferred`` (any case), else the first sheet."""
    if not sheet_names:
        return None
    for name in sheet_names:
        if str(name).strip().lower() == preferred.lower():
            return name
    return sheet_names[0]


def frame_to_rows(df: pd.DataFrame) -> List[Dict[str, Any]]:
    if df.empty:
        return []
    df = df.dropna(how="all")
    df.columns = [str(c).strip() for c in df.columns]
    rows = df.to_dict(orient="records")
    # Empty cells are dropped so that alias lookup falls through to the next column.
    return [{k: v for k, v in row.items() if is_defined(v)} for row in rows]


def read_workbook_rows(content: bytes, preferred: str = PREFERRED_SHEET) -> List[Dict[str, Any]]:
    if not content:
        raise IngestionError("Workbook is empty")
    try:
        with pd.ExcelFile(io.BytesIO(content)) as book:
            sheet = select_sheet(book.sheet_names, preferred)
            if sheet is None:
                raise IngestionError("Workbook has no sheets")
            df = book.parse(sheet_name=sheet)
    except IngestionError:
        raise
    except Exception as exc:
        raise IngestionError(f"Could not read workbook: {exc}", original_error=exc) from exc
    logger.info("Read %d rows from sheet %r", len(df), sheet)
    return frame_to_rows(df)


def _is_blank(fields: Mapping[str, Any]) -> bool:
    return not any(v for k, v in fields.items() if k != "status")


def ingest_rows(store: DocumentStore, rows: Iterable[Mapping[str, Any]]) -> IngestReport:
    """Normalize and add each row; a failing row is skipped, not fatal."""
    added: List[str] = []
    skipped: List[int] = []
    errors: List[str] = []
    for idx, row in enumerate(rows):
        try:
            fields = normalize_row(row)
            if _is_blank(fields):
                skipped.append(idx)
                continue
            added.append(store.add(fields, apply_rules=False).id)
        except Exception as exc:
            logger.warning("Skipping row %d: %s", idx, exc)
            skipped.append(idx)
            errors.append(f"row {idx}: {exc}")
    logger.info("Ingested %d rows into project %s (%d skipped)", len(added), store.project_id, len(skipped))
    return IngestReport(added=tuple(added), skipped=tuple(skipped), errors=tuple(errors))


def ingest_workbook(store: DocumentStore, content: bytes, preferred: str = PREFERRED_SHEET) -> IngestReport:
    return ingest_rows(store, read_workbook_rows(content, preferred))
