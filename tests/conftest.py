"""Shared pytest fixtures for tracker tests."""

from datetime import datetime, timedelta, timezone

import pytest

from tracker.progress import ReportProgressTracker
from tracker.projects import ProjectRegistry
from tracker.store import DocumentStore


class FakeClock:
    """Deterministic clock; call ``set`` or ``advance`` to move it."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def set(self, year: int, month: int, day: int = 1) -> None:
        self.now = datetime(year, month, day, 12, 0, tzinfo=timezone.utc)

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class InMemoryKV:
    def __init__(self):
        self.data = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def store(clock):
    return DocumentStore("project-1", clock=clock)


@pytest.fixture
def kv():
    return InMemoryKV()


@pytest.fixture
def registry(clock):
    reg = ProjectRegistry(clock=clock)
    reg.add_project("RUMO 12", "Projeto de infraestrutura ferroviária")
    return reg


@pytest.fixture
def report_tracker():
    return ReportProgressTracker()


@pytest.fixture
def sample_rows():
    """Rows shaped like a parsed tracking sheet, with mixed column variants."""
    return [
        {
            "Documento": "Projeto Estrutural Edifício Alpha",
            "Detalhe": "Cálculo estrutural completo",
            "Revisão": "R2",
            "Responsável": "João Silva",
            "Status": "Finalizado",
            "Disciplina": "Estrutural",
            "Participantes": "João Silva; Maria Santos; Pedro Costa",
            "Data Início": "15/01/2024",
            "Data Fim": "28/02/2024",
        },
        {
            "documento": "Instalações Hidráulicas Residencial Beta",
            "responsavel": "Maria Santos",
            "situacao": "Em andamento",
            "disciplina": "Hidráulica",
            "participantes": "Maria Santos;Ana Oliveira",
            "data_inicio": "2024-02-03",
        },
        {
            "DOCUMENTO": "Análise Geotécnica Terreno Gamma",
            "RESPONSÁVEL": "Pedro Costa",
            "STATUS": "???",
            "DISCIPLINA": "Geotécnica",
            "DATA INÍCIO": "10/03/2024",
        },
    ]
