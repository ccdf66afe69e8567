"""Tests for spreadsheet row normalization."""

from datetime import date, datetime

import pytest

from tracker.exceptions import ParseError
from tracker.models import DocumentStatus, MeetingMetadata
from tracker.normalize import (
    FIELD_ALIASES,
    STATUS_TOKENS,
    coerce_status,
    normalize_meeting,
    normalize_row,
    parse_status,
    resolve_field,
    split_participants,
)


class TestResolveField:
    def test_first_alias_in_order_wins(self):
        row = {"status": "Em andamento", "Status": "Finalizado"}
        assert resolve_field(row, FIELD_ALIASES["status"]) == "Finalizado"

    def test_undefined_values_fall_through(self):
        row = {"Status": None, "status": float("nan"), "Situação": "Finalizado"}
        assert resolve_field(row, FIELD_ALIASES["status"]) == "Finalizado"

    def test_case_insensitive_fallback(self):
        assert resolve_field({"  DISCIPLINA ": "Elétrica"}, FIELD_ALIASES["area"]) == "Elétrica"

    def test_exact_match_beats_case_insensitive(self):
        row = {"STATUS": "Finalizado", "situacao": "A iniciar"}
        assert resolve_field(row, FIELD_ALIASES["status"]) == "A iniciar"

    def test_missing(self):
        assert resolve_field({"other": 1}, FIELD_ALIASES["status"]) is None

    def test_baseline_aliases(self):
        for key in ("Data_baseline", "Data Baseline", "data_baseline", "Baseline"):
            assert resolve_field({key: "01/02/2024"}, FIELD_ALIASES["baseline_date"]) == "01/02/2024"


class TestStatus:
    def test_alias_and_case_equivalence(self):
        assert normalize_row({"Situação": "Finalizado"})["status"] == normalize_row({"status": "finalizado"})["status"]
        assert normalize_row({"status": "finalizado"})["status"] is DocumentStatus.FINISHED

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("A iniciar", DocumentStatus.TO_START),
            ("  EM   ANDAMENTO ", DocumentStatus.IN_PROGRESS),
            ("Concluído", DocumentStatus.FINISHED),
            ("Aprovado", DocumentStatus.FINISHED),
            ("in progress", DocumentStatus.IN_PROGRESS),
        ],
    )
    def test_parse_status(self, text, expected):
        assert parse_status(text) is expected

    def test_parse_status_rejects_unknown(self):
        with pytest.raises(ParseError):
            parse_status("cancelado")

    def test_coerce_status_defaults_to_start(self):
        assert coerce_status("cancelado") is DocumentStatus.TO_START
        assert coerce_status(None) is DocumentStatus.TO_START
        assert coerce_status("") is DocumentStatus.TO_START

    def test_every_status_has_a_token(self):
        assert set(STATUS_TOKENS.values()) == set(DocumentStatus)


def test_split_participants():
    assert split_participants("João; Maria ;;João\nPedro") == ("João", "Maria", "Pedro")
    assert split_participants(["Ana", " ", "Ana", "Rui"]) == ("Ana", "Rui")
    assert split_participants(None) == ()


class TestNormalizeRow:
    def test_full_row(self):
        fields = normalize_row(
            {
                "Documento": "Memorial",
                "Detalhe": "Ponte",
                "Revisão": 2.0,
                "Responsável": "Ana",
                "Status": "Finalizado",
                "Disciplina": "Estrutural",
                "Participantes": "Ana; João",
                "Data Início": "20/03/2024",
                "Data Fim": datetime(2024, 5, 15),
                "Data_baseline": 45292,
            }
        )
        assert fields["title"] == "Memorial"
        assert fields["revision"] == "2"
        assert fields["status"] is DocumentStatus.FINISHED
        assert fields["source_status"] == "Finalizado"
        assert fields["participants"] == ("Ana", "João")
        assert fields["start_date"] == date(2024, 3, 20)
        assert fields["end_date"] == date(2024, 5, 15)
        assert fields["baseline_date"] == date(2024, 1, 1)

    def test_empty_row_uses_defaults(self):
        fields = normalize_row({})
        assert fields["title"] == ""
        assert fields["owner"] == ""
        assert fields["participants"] == ()
        assert fields["start_date"] is None
        assert fields["end_date"] is None
        assert fields["status"] is DocumentStatus.TO_START

    def test_bad_dates_become_none(self):
        fields = normalize_row({"Data Início": "sometime", "Data Fim": "32/13"})
        assert fields["start_date"] is None
        assert fields["end_date"] is None

    def test_ymd_text_date(self):
        assert normalize_row({"data_inicio": "2024-02-03"})["start_date"] == date(2024, 2, 3)


def test_normalize_meeting():
    meeting = normalize_meeting(
        {"Data": "05/06/2024", "Numero Ata": "ATA-12", "Participantes": "Ana; Rui", "Fornecedor": "ACME", "disciplina": "Elétrica"}
    )
    assert isinstance(meeting, MeetingMetadata)
    assert meeting.date == date(2024, 6, 5)
    assert meeting.minute_number == "ATA-12"
    assert meeting.participants == ("Ana", "Rui")
    assert meeting.supplier == "ACME"
    assert meeting.discipline == "Elétrica"
    assert meeting.details == ""
