"""Tests for the report progress state machine."""

import pytest

from tracker.models import MeetingMetadata
from tracker.progress import (
    CloseDialog,
    OpenMeetingDialog,
    ReportPhase,
    ReportState,
    SetIsGenerating,
    SetProgress,
    report_reducer,
)


MEETING = MeetingMetadata(id="m1", minute_number="ATA-001")
OTHER = MeetingMetadata(id="m2", minute_number="ATA-002")


def test_initial_state(report_tracker):
    assert report_tracker.state == ReportState()
    assert report_tracker.phase is ReportPhase.IDLE


def test_open_always_starts_fresh(report_tracker):
    report_tracker.open_meeting_dialog(MEETING)
    report_tracker.set_progress(40)
    report_tracker.set_current_step("Gerando PDF")
    state = report_tracker.open_meeting_dialog(OTHER)
    assert state.dialog_meeting == OTHER
    assert state.is_dialog_open
    assert state.progress == 0
    assert state.current_step == ""


def test_generation_requires_open_dialog(report_tracker):
    state = report_tracker.set_is_generating(True)
    assert state.is_generating is False
    assert state.phase is ReportPhase.IDLE


def test_close_is_ignored_while_generating(report_tracker):
    report_tracker.open_meeting_dialog(MEETING)
    report_tracker.set_is_generating(True)
    report_tracker.set_progress(55)
    report_tracker.set_current_step("Compactando anexos")

    state = report_tracker.close_dialog()
    assert state.dialog_meeting == MEETING
    assert state.progress == 55
    assert state.current_step == "Compactando anexos"
    assert state.phase is ReportPhase.GENERATING

    report_tracker.set_is_generating(False)
    assert report_tracker.phase is ReportPhase.DONE
    state = report_tracker.close_dialog()
    assert state.dialog_meeting is None
    assert state.progress == 0
    assert state.current_step == ""
    assert state.is_dialog_open is False
    assert state.phase is ReportPhase.IDLE


def test_failure(report_tracker):
    report_tracker.open_meeting_dialog(MEETING)
    report_tracker.set_is_generating(True)
    state = report_tracker.fail("PDF engine crashed")
    assert state.phase is ReportPhase.FAILED
    assert state.is_generating is False
    assert state.error == "PDF engine crashed"
    assert report_tracker.set_is_generating(False).phase is ReportPhase.FAILED
    assert report_tracker.close_dialog() == ReportState()


@pytest.mark.parametrize("value, expected", [(-5, 0), (42.7, 42), (250, 100)])
def test_progress_is_clamped(value, expected):
    assert report_reducer(ReportState(), SetProgress(value)).progress == expected


def test_reducer_is_pure():
    state = ReportState()
    opened = report_reducer(state, OpenMeetingDialog(MEETING))
    generating = report_reducer(opened, SetIsGenerating(True))
    assert state == ReportState()
    assert opened.is_generating is False
    assert report_reducer(generating, CloseDialog()) is generating


def test_unknown_action():
    with pytest.raises(TypeError):
        report_reducer(ReportState(), "close")
