from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, Field


class DocumentFiltersModel(BaseModel):
    search_query: str = ""
    statuses: List[str] = Field(default_factory=list)
    areas: List[str] = Field(default_factory=list)
    owners: List[str] = Field(default_factory=list)
    date_start: Optional[str] = None
    date_end: Optional[str] = None
    include_cleared: bool = False
    complete_only: bool = False


class MeetingFiltersModel(BaseModel):
    date: Optional[str] = None
    minute_number: str = ""
    participant: str = ""
    supplier: str = ""
    discipline: str = ""


class DocumentPatchModel(BaseModel):
    title: Optional[str] = None
    detail: Optional[str] = None
    revision: Optional[str] = None
    owner: Optional[str] = None
    status: Optional[str] = None
    area: Optional[str] = None
    participants: Optional[Union[List[str], str]] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    baseline_date: Optional[str] = None
    projected_date: Optional[str] = None
    advanced_date: Optional[str] = None


class BulkUpdateModel(BaseModel):
    ids: List[str]
    patch: DocumentPatchModel


class ProjectModel(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""


class ProjectPatchModel(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class MeetingModel(BaseModel):
    date: Optional[str] = None
    minute_number: str = ""
    participants: List[str] = Field(default_factory=list)
    supplier: str = ""
    discipline: str = ""
    details: str = ""


class ReportProgressModel(BaseModel):
    is_generating: Optional[bool] = None
    progress: Optional[float] = None
    current_step: Optional[str] = None
    error: Optional[str] = None
