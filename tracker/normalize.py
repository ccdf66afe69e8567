from __future__ import annotations

import logging
import re
import unicodedata
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Tuple

import pandas as pd

from tracker.dates import coerce_date
from tracker.exceptions import ParseError
from tracker.models import DEFAULT_STATUS, DocumentStatus, MeetingMetadata


logger = logging.getLogger(__name__)

# Canonical field -> accepted source columns, in priority order.
FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "title": ("Documento", "documento", "Document", "Tópico", "Topico", "Title"),
    "detail": ("Detalhe", "detalhe", "Detalhes", "Detail"),
    "revision": ("Revisão", "Revisao", "revisao", "Rev", "Revision"),
    "owner": ("Responsável", "Responsavel", "responsavel", "Owner"),
    "status": ("Status", "status", "Situação", "situacao"),
    "area": ("Disciplina", "disciplina", "Área", "Area", "area"),
    "participants": ("Participantes", "participantes", "Participants"),
    "start_date": ("Data Início", "Data Inicio", "Data_inicio", "data_inicio", "dataInicio", "Start Date", "start_date"),
    "end_date": ("Data Fim", "Data_fim", "data_fim", "dataFim", "End Date", "end_date"),
    "baseline_date": ("Data_baseline", "Data Baseline", "data_baseline", "Baseline", "baseline_date"),
    "projected_date": ("Data_projetado", "Data Projetado", "data_projetado", "Projetado", "projected_date"),
    "advanced_date": ("Data_avancado", "Data Avancado", "data_avancado", "Avancado", "Avançado", "advanced_date"),
}

MEETING_ALIASES: Dict[str, Tuple[str, ...]] = {
    "id": ("id", "ID"),
    "date": ("Data", "data", "Date"),
    "minute_number": ("Número Ata", "Numero Ata", "numeroAta", "Ata", "Minute", "minute_number"),
    "participants": ("Participantes", "participantes", "participants", "Participants"),
    "supplier": ("Fornecedor", "fornecedor", "Supplier"),
    "discipline": ("Disciplina", "disciplina", "Discipline"),
    "details": ("Detalhes", "detalhes", "Details"),
}

DATE_FIELDS = frozenset({"start_date", "end_date", "baseline_date", "projected_date", "advanced_date", "date"})
LIST_FIELDS = frozenset({"participants"})

PARTICIPANT_SEPARATORS = re.compile(r"[;\n]")

# Accent-free, lower-case tokens. Anything else falls back to DEFAULT_STATUS.
STATUS_TOKENS: Dict[str, DocumentStatus] = {
    "a iniciar": DocumentStatus.TO_START,
    "iniciar": DocumentStatus.TO_START,
    "nao iniciado": DocumentStatus.TO_START,
    "pendente": DocumentStatus.TO_START,
    "para emissao": DocumentStatus.TO_START,
    "to start": DocumentStatus.TO_START,
    "to_start": DocumentStatus.TO_START,
    "tostart": DocumentStatus.TO_START,
    "not started": DocumentStatus.TO_START,
    "em andamento": DocumentStatus.IN_PROGRESS,
    "andamento": DocumentStatus.IN_PROGRESS,
    "em progresso": DocumentStatus.IN_PROGRESS,
    "em execucao": DocumentStatus.IN_PROGRESS,
    "em revisao": DocumentStatus.IN_PROGRESS,
    "in progress": DocumentStatus.IN_PROGRESS,
    "in_progress": DocumentStatus.IN_PROGRESS,
    "inprogress": DocumentStatus.IN_PROGRESS,
    "finalizado": DocumentStatus.FINISHED,
    "concluido": DocumentStatus.FINISHED,
    "emitido": DocumentStatus.FINISHED,
    "aprovado": DocumentStatus.FINISHED,
    "finished": DocumentStatus.FINISHED,
    "done": DocumentStatus.FINISHED,
    "complete": DocumentStatus.FINISHED,
    "completed": DocumentStatus.FINISHED,
    "issued": DocumentStatus.FINISHED,
    "approved": DocumentStatus.FINISHED,
}


def fold_text(value: str) -> str:
    """Lower-case, strip accents and collapse whitespace."""
    decomposed = unicodedata.normalize("NFKD", value)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return re.sub(r"\s+", " ", stripped).strip().lower()


def is_defined(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, (list, tuple, set, frozenset, dict)):
        return True
    try:
        return not bool(pd.isna(value))
    except (TypeError, ValueError):
        # array-likes
        return True


def as_text(value: object) -> str:
    if not is_defined(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def resolve_field(raw: Mapping[str, Any], aliases: Sequence[str]) -> Optional[Any]:
    """Return the first defined value among ``aliases``.

    Exact key matches are tried first, in alias order; then each alias is
    matched case-insensitively against the row's keys.
    """
    for alias in aliases:
        if alias in raw and is_defined(raw[alias]):
            return raw[alias]

    folded_keys: Dict[str, str] = {}
    for key in raw.keys():
        folded_keys.setdefault(str(key).strip().lower(), key)
    for alias in aliases:
        key = folded_keys.get(alias.lower())
        if key is not None and is_defined(raw[key]):
            return raw[key]
    return None


def parse_status(value: object) -> DocumentStatus:
    if isinstance(value, DocumentStatus):
        return value
    token = fold_text(as_text(value))
    try:
        return STATUS_TOKENS[token]
    except KeyError:
        raise ParseError(f"Unrecognized status '{value}'", value=value) from None


def coerce_status(value: object) -> DocumentStatus:
    if not as_text(value):
        return DEFAULT_STATUS
    try:
        return parse_status(value)
    except ParseError:
        logger.debug("Unrecognized status %r, using %s", value, DEFAULT_STATUS.name)
        return DEFAULT_STATUS


def split_participants(value: object) -> Tuple[str, ...]:
    if isinstance(value, (list, tuple, set)):
        items: Iterable[object] = value
    else:
        items = PARTICIPANT_SEPARATORS.split(as_text(value))
    out = []
    for item in items:
        name = as_text(item)
        if name and name not in out:
            out.append(name)
    return tuple(out)


def _convert(field_name: str, value: object) -> Any:
    if field_name in DATE_FIELDS:
        return coerce_date(value)
    if field_name in LIST_FIELDS:
        return split_participants(value)
    return as_text(value)


def _normalize(raw: Mapping[str, Any], aliases: Mapping[str, Sequence[str]]) -> Dict[str, Any]:
    return {name: _convert(name, resolve_field(raw, names)) for name, names in aliases.items()}


def normalize_row(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """Map one spreadsheet row onto canonical document fields.

    Missing text fields become "" and missing or unparseable dates None.
    """
    fields = _normalize(raw, FIELD_ALIASES)
    fields["source_status"] = fields["status"]
    fields["status"] = coerce_status(fields["status"])
    return fields


def normalize_meeting(raw: Mapping[str, Any]) -> MeetingMetadata:
    return MeetingMetadata(**_normalize(raw, MEETING_ALIASES))
