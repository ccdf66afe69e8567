"""Report generation progress state.

The report job runs elsewhere and pushes its progress here; this module only
records it for the UI. Transitions are a pure reducer so they can be tested
without a tracker instance.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Union

from tracker.models import MeetingMetadata


logger = logging.getLogger(__name__)


class ReportPhase(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class ReportState:
    is_dialog_open: bool = False
    dialog_meeting: Optional[MeetingMetadata] = None
    is_generating: bool = False
    progress: int = 0
    current_step: str = ""
    phase: ReportPhase = ReportPhase.IDLE
    error: str = ""


@dataclass(frozen=True)
class OpenMeetingDialog:
    meeting: MeetingMetadata


@dataclass(frozen=True)
class CloseDialog:
    pass


@dataclass(frozen=True)
class SetIsGenerating:
    value: bool


@dataclass(frozen=True)
class SetProgress:
    value: float


@dataclass(frozen=True)
class SetCurrentStep:
    label: str


@dataclass(frozen=True)
class MarkFailed:
    error: str


ReportAction = Union[OpenMeetingDialog, CloseDialog, SetIsGenerating, SetProgress, SetCurrentStep, MarkFailed]


def report_reducer(state: ReportState, action: ReportAction) -> ReportState:
    if isinstance(action, OpenMeetingDialog):
        return replace(
            state,
            is_dialog_open=True,
            dialog_meeting=action.meeting,
            progress=0,
            current_step="",
            phase=ReportPhase.GENERATING if state.is_generating else ReportPhase.IDLE,
            error="",
        )

    if isinstance(action, CloseDialog):
        if state.is_generating:
            return state
        return ReportState()

    if isinstance(action, SetIsGenerating):
        if action.value:
            if not state.is_dialog_open:
                logger.warning("Ignoring report generation start: no dialog is open")
                return state
            return replace(state, is_generating=True, phase=ReportPhase.GENERATING, error="")
        if not state.is_generating:
            return state
        phase = ReportPhase.FAILED if state.phase is ReportPhase.FAILED else ReportPhase.DONE
        return replace(state, is_generating=False, phase=phase)

    if isinstance(action, SetProgress):
        return replace(state, progress=int(max(0, min(100, action.value))))

    if isinstance(action, SetCurrentStep):
        return replace(state, current_step=action.label)

    if isinstance(action, MarkFailed):
        return replace(state, is_generating=False, phase=ReportPhase.FAILED, error=action.error)

    raise TypeError(f"Unknown report action: {action!r}")


class ReportProgressTracker:
    def __init__(self, state: Optional[ReportState] = None):
        self.state = state or ReportState()

    def dispatch(self, action: ReportAction) -> ReportState:
        self.state = report_reducer(self.state, action)
        return self.state

    def open_meeting_dialog(self, meeting: MeetingMetadata) -> ReportState:
        return self.dispatch(OpenMeetingDialog(meeting))

    def close_dialog(self) -> ReportState:
        return self.dispatch(CloseDialog())

    def set_is_generating(self, value: bool) -> ReportState:
        return self.dispatch(SetIsGenerating(value))

    def set_progress(self, value: float) -> ReportState:
        return self.dispatch(SetProgress(value))

    def set_current_step(self, label: str) -> ReportState:
        return self.dispatch(SetCurrentStep(label))

    def fail(self, error: str) -> ReportState:
        return self.dispatch(MarkFailed(error))

    @property
    def phase(self) -> ReportPhase:
        return self.state.phase
