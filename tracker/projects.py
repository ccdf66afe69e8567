from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from tracker.exceptions import NotFoundError, ValidationError
from tracker.filters import MeetingFilters, apply_filters
from tracker.models import MeetingMetadata, Project
from tracker.normalize import normalize_meeting
from tracker.store import DocumentStore, utcnow


logger = logging.getLogger(__name__)


class ProjectRegistry:
    """Owns the projects of one session with their document stores and meetings."""

    def __init__(self, *, clock: Callable[[], datetime] = utcnow, status_rules: bool = False):
        self._clock = clock
        self._status_rules = status_rules
        self._projects: Dict[str, Project] = {}
        self._stores: Dict[str, DocumentStore] = {}
        self._meetings: Dict[str, List[MeetingMetadata]] = {}
        self.selected_project_id: Optional[str] = None

    def add_project(self, name: str, description: str = "") -> Project:
        now = self._clock()
        project = Project(id=str(uuid.uuid4()), name=name.strip(), description=description, created_at=now, updated_at=now)
        self._projects[project.id] = project
        self._stores[project.id] = DocumentStore(project.id, clock=self._clock, status_rules=self._status_rules)
        self._meetings[project.id] = []
        if self.selected_project_id is None:
            self.selected_project_id = project.id
        logger.info("Created project %s (%s)", project.name, project.id)
        return project

    def ensure_default_project(self, name: str, description: str = "") -> Project:
        if self._projects:
            return self.get_project(self.selected_project_id or next(iter(self._projects)))
        return self.add_project(name, description)

    def get_project(self, project_id: str) -> Project:
        try:
            return self._projects[project_id]
        except KeyError:
            raise NotFoundError("Project", project_id) from None

    def projects(self) -> List[Project]:
        return list(self._projects.values())

    def update_project(self, project_id: str, changes: Mapping[str, Any]) -> Project:
        project = self.get_project(project_id)
        allowed = {k: v for k, v in changes.items() if k in ("name", "description") and v is not None}
        updated = replace(project, **allowed, updated_at=self._clock())
        self._projects[project_id] = updated
        return updated

    def delete_project(self, project_id: str) -> None:
        self.get_project(project_id)
        if len(self._projects) <= 1:
            raise ValidationError("At least one project must exist; create another before deleting this one")
        del self._projects[project_id]
        del self._stores[project_id]
        del self._meetings[project_id]
        if self.selected_project_id == project_id:
            self.selected_project_id = next(iter(self._projects))

    def select(self, project_id: str) -> Project:
        project = self.get_project(project_id)
        self.selected_project_id = project_id
        return project

    def _resolve(self, project_id: Optional[str]) -> str:
        pid = project_id or self.selected_project_id
        if pid is None:
            raise NotFoundError("Project", "<none selected>")
        self.get_project(pid)
        return pid

    def store(self, project_id: Optional[str] = None) -> DocumentStore:
        return self._stores[self._resolve(project_id)]

    # ---------------- Meetings ----------------
    def add_meeting(self, meeting: Union[MeetingMetadata, Mapping[str, Any]], project_id: Optional[str] = None) -> MeetingMetadata:
        pid = self._resolve(project_id)
        if not isinstance(meeting, MeetingMetadata):
            meeting = normalize_meeting(meeting)
        if not meeting.id:
            meeting = replace(meeting, id=str(uuid.uuid4()))
        self._meetings[pid].append(meeting)
        return meeting

    def get_meeting(self, meeting_id: str, project_id: Optional[str] = None) -> MeetingMetadata:
        for meeting in self._meetings[self._resolve(project_id)]:
            if meeting.id == meeting_id:
                return meeting
        raise NotFoundError("Meeting", meeting_id)

    def meetings(self, project_id: Optional[str] = None, criteria: Union[MeetingFilters, Mapping[str, Any], None] = None) -> List[MeetingMetadata]:
        return apply_filters(self._meetings[self._resolve(project_id)], criteria)
