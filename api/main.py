from __future__ import annotations

from dataclasses import asdict
import logging
import math
from typing import Optional

import numpy as np
import pandas as pd
from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.responses import Response
from fastapi.encoders import jsonable_encoder

from api.schemas import (
    BulkUpdateModel,
    DocumentFiltersModel,
    DocumentPatchModel,
    MeetingFiltersModel,
    MeetingModel,
    ProjectModel,
    ProjectPatchModel,
    ReportProgressModel,
)
from tracker.config import Settings, configure_logging, get_settings
from tracker.exceptions import IngestionError, NotFoundError, ValidationError
from tracker.filters import normalize_filters, normalize_meeting_filters
from tracker.ingest import ingest_workbook
from tracker.metrics import compute_dashboard, compute_monitor
from tracker.models import STATUS_ORDER
from tracker.progress import ReportProgressTracker
from tracker.projects import ProjectRegistry


logger = logging.getLogger(__name__)


def _json(data: object, status_code: int = 200) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        ),
    )


def _error(name: str, exc: Exception) -> JSONResponse:
    if isinstance(exc, NotFoundError):
        status_code = 404
    elif isinstance(exc, ValidationError):
        status_code = 400
    elif isinstance(exc, IngestionError):
        status_code = 422
    else:
        logger.exception("%s failed", name)
        status_code = 500
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def create_app(
    registry: Optional[ProjectRegistry] = None,
    report_tracker: Optional[ReportProgressTracker] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    settings = settings or get_settings()
    registry = registry or ProjectRegistry(status_rules=settings.status_rules)
    registry.ensure_default_project(settings.default_project_name, settings.default_project_description)
    report_tracker = report_tracker or ReportProgressTracker()

    app = FastAPI(title="Document Tracker API", version="0.1.0")
    app.state.registry = registry
    app.state.report_tracker = report_tracker

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ---------------- Projects ----------------
    @app.get("/projects")
    def list_projects():
        return _json({"projects": registry.projects(), "selected_project_id": registry.selected_project_id})

    @app.post("/projects")
    def create_project(body: ProjectModel):
        try:
            return _json(registry.add_project(body.name, body.description), status_code=201)
        except Exception as exc:
            return _error("create_project", exc)

    @app.put("/projects/{project_id}")
    def update_project(project_id: str, body: ProjectPatchModel):
        try:
            return _json(registry.update_project(project_id, body.model_dump(exclude_unset=True)))
        except Exception as exc:
            return _error("update_project", exc)

    @app.delete("/projects/{project_id}")
    def delete_project(project_id: str):
        try:
            registry.delete_project(project_id)
            return _json({"deleted": project_id, "selected_project_id": registry.selected_project_id})
        except Exception as exc:
            return _error("delete_project", exc)

    @app.post("/projects/{project_id}/select")
    def select_project(project_id: str):
        try:
            return _json(registry.select(project_id))
        except Exception as exc:
            return _error("select_project", exc)

    # ---------------- Meta ----------------
    @app.get("/meta/statuses")
    def meta_statuses():
        return _json({"statuses": [s.value for s in STATUS_ORDER]})

    @app.get("/meta/areas")
    def meta_areas(project_id: Optional[str] = Query(default=None)):
        try:
            return _json({"areas": registry.store(project_id).unique_areas()})
        except Exception as exc:
            return _error("meta_areas", exc)

    @app.get("/meta/owners")
    def meta_owners(project_id: Optional[str] = Query(default=None)):
        try:
            return _json({"owners": registry.store(project_id).unique_owners()})
        except Exception as exc:
            return _error("meta_owners", exc)

    # ---------------- Documents ----------------
    @app.get("/documents")
    def list_documents(project_id: Optional[str] = Query(default=None), include_cleared: bool = Query(default=False)):
        try:
            return _json({"documents": registry.store(project_id).list(include_cleared=include_cleared)})
        except Exception as exc:
            return _error("list_documents", exc)

    @app.post("/documents")
    def create_document(body: DocumentPatchModel, project_id: Optional[str] = Query(default=None)):
        try:
            record = registry.store(project_id).add(body.model_dump(exclude_none=True))
            return _json(record, status_code=201)
        except Exception as exc:
            return _error("create_document", exc)

    @app.put("/documents/{document_id}")
    def update_document(document_id: str, body: DocumentPatchModel, project_id: Optional[str] = Query(default=None)):
        try:
            return _json(registry.store(project_id).update(document_id, body.model_dump(exclude_unset=True)))
        except Exception as exc:
            return _error("update_document", exc)

    @app.post("/documents/bulk-update")
    def bulk_update_documents(body: BulkUpdateModel, project_id: Optional[str] = Query(default=None)):
        try:
            patch = body.patch.model_dump(exclude_unset=True)
            return _json({"documents": registry.store(project_id).bulk_update(body.ids, patch)})
        except Exception as exc:
            return _error("bulk_update_documents", exc)

    @app.post("/documents/{document_id}/clear")
    def clear_document(document_id: str, project_id: Optional[str] = Query(default=None)):
        try:
            return _json(registry.store(project_id).clear(document_id))
        except Exception as exc:
            return _error("clear_document", exc)

    @app.post("/documents/{document_id}/restore")
    def restore_document(document_id: str, project_id: Optional[str] = Query(default=None)):
        try:
            return _json(registry.store(project_id).restore(document_id))
        except Exception as exc:
            return _error("restore_document", exc)

    @app.post("/documents/{document_id}/duplicate")
    def duplicate_document(document_id: str, project_id: Optional[str] = Query(default=None)):
        try:
            return _json(registry.store(project_id).duplicate(document_id), status_code=201)
        except Exception as exc:
            return _error("duplicate_document", exc)

    @app.post("/documents/filter")
    def filter_documents(filters: DocumentFiltersModel, project_id: Optional[str] = Query(default=None)):
        try:
            f = normalize_filters(filters.model_dump())
            return _json({"documents": registry.store(project_id).filtered(f)})
        except Exception as exc:
            return _error("filter_documents", exc)

    # ---------------- Dashboards ----------------
    @app.post("/dashboard")
    def dashboard(filters: DocumentFiltersModel, project_id: Optional[str] = Query(default=None)):
        try:
            f = normalize_filters(filters.model_dump())
            return _json(compute_dashboard(f, registry.store(project_id).filtered(f)))
        except Exception as exc:
            return _error("dashboard", exc)

    @app.post("/monitor")
    def monitor(filters: DocumentFiltersModel, project_id: Optional[str] = Query(default=None)):
        try:
            f = normalize_filters(filters.model_dump())
            return _json(compute_monitor(registry.store(project_id).filtered(f)))
        except Exception as exc:
            return _error("monitor", exc)

    # ---------------- Ingestion ----------------
    @app.post("/ingest")
    async def ingest(request: Request, project_id: Optional[str] = Query(default=None)):
        try:
            content = await request.body()
            if len(content) > settings.max_upload_bytes:
                return JSONResponse(status_code=413, content={"error": "Workbook too large", "type": "IngestionError"})
            report = ingest_workbook(registry.store(project_id), content, preferred=settings.preferred_sheet)
            return _json(asdict(report) | {"added_count": report.added_count})
        except Exception as exc:
            return _error("ingest", exc)

    # ---------------- Meetings ----------------
    @app.get("/meetings")
    def list_meetings(project_id: Optional[str] = Query(default=None)):
        try:
            return _json({"meetings": registry.meetings(project_id)})
        except Exception as exc:
            return _error("list_meetings", exc)

    @app.post("/meetings")
    def create_meeting(body: MeetingModel, project_id: Optional[str] = Query(default=None)):
        try:
            return _json(registry.add_meeting(body.model_dump(), project_id), status_code=201)
        except Exception as exc:
            return _error("create_meeting", exc)

    @app.post("/meetings/filter")
    def filter_meetings(filters: MeetingFiltersModel, project_id: Optional[str] = Query(default=None)):
        try:
            f = normalize_meeting_filters(filters.model_dump())
            return _json({"meetings": registry.meetings(project_id, f)})
        except Exception as exc:
            return _error("filter_meetings", exc)

    # ---------------- Report progress ----------------
    @app.get("/report")
    def report_state():
        return _json(report_tracker.state)

    @app.post("/report/open/{meeting_id}")
    def report_open(meeting_id: str, project_id: Optional[str] = Query(default=None)):
        try:
            meeting = registry.get_meeting(meeting_id, project_id)
            return _json(report_tracker.open_meeting_dialog(meeting))
        except Exception as exc:
            return _error("report_open", exc)

    @app.post("/report/progress")
    def report_progress(body: ReportProgressModel):
        if body.is_generating is not None:
            report_tracker.set_is_generating(body.is_generating)
        if body.progress is not None:
            report_tracker.set_progress(body.progress)
        if body.current_step is not None:
            report_tracker.set_current_step(body.current_step)
        if body.error is not None:
            report_tracker.fail(body.error)
        return _json(report_tracker.state)

    @app.post("/report/close")
    def report_close():
        return _json(report_tracker.close_dialog())

    # ---------------- Export ----------------
    @app.post("/export/documents")
    def export_documents(filters: DocumentFiltersModel, project_id: Optional[str] = Query(default=None)):
        try:
            f = normalize_filters(filters.model_dump())
            records = registry.store(project_id).filtered(f)
            export_df = pd.DataFrame([asdict(r) for r in records])
            if not export_df.empty:
                export_df["status"] = export_df["status"].map(lambda s: s.value)
                export_df["participants"] = export_df["participants"].map("; ".join)
            csv_bytes = export_df.to_csv(index=False).encode("utf-8")
            return Response(
                content=csv_bytes,
                media_type="text/csv",
                headers={"Content-Disposition": "attachment; filename=documents.csv"},
            )
        except Exception as exc:
            return _error("export_documents", exc)

    return app


configure_logging()
app = create_app()
