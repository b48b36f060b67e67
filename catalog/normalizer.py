"""
catalog/normalizer.py

Turns raw, untrusted catalog records into sanitized `Course` entities.

The catalog is read once at startup. Records are loosely typed: fields may be
missing, hold the wrong type, or carry markup and control characters copied
from spreadsheets and web forms. Normalization is field by field, so one bad
value never costs the whole record, and one bad record never costs the whole
catalog. Only a root that is not a sequence is fatal for the load, and even
then the caller degrades to an empty catalog instead of crashing.
"""

import dataclasses
import datetime
import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Tuple, Union

from core.matcher import normalize_text
from shared.errors import LoadError
from shared.models import Course, CourseStatus, Materials, Requirements

logger = logging.getLogger(__name__)

# List caps (excess entries are dropped, order preserved)
MAX_LOCALIDADES = 12
MAX_DIRECCIONES = 8
MAX_HORARIOS = 8
MAX_REQUISITOS_OTROS = 6
MAX_MATERIALES = 12

DEFAULT_FRECUENCIA = "otro"

MESES = (
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
)

_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f-\x9f\u200b-\u200f\u2028\u2029]")
_MARKUP_RE = re.compile(r"[<>{}`]")
_WHITESPACE_RE = re.compile(r"\s+")

_TRUE_WORDS = {"true", "si", "yes", "1", "x", "requerido", "obligatorio"}

# Status spellings seen in catalogs, compared after normalize_text with spaces as underscores
_STATUS_ALIASES = {
    CourseStatus.OPEN: (
        "open", "abierto", "abierta", "inscripcion_abierta", "inscripciones_abiertas",
    ),
    CourseStatus.IN_PROGRESS: (
        "in_progress", "en_curso", "en_progreso", "iniciado", "cursando",
    ),
    CourseStatus.UPCOMING: (
        "upcoming", "proximo", "proxima", "proximamente", "proxima_apertura",
    ),
    CourseStatus.FINISHED: (
        "finished", "finalizado", "finalizada", "terminado", "terminada",
    ),
}
_STATUS_LOOKUP = {
    alias: status for status, aliases in _STATUS_ALIASES.items() for alias in aliases
}


def sanitize_text(value: Any) -> str:
    """
    Neutralize control and markup characters, collapse whitespace and trim.

    Numbers are stringified; None, mappings and sequences become an empty string.
    """
    if value is None or isinstance(value, (dict, list, tuple, set)):
        return ""
    if not isinstance(value, str):
        value = str(value)
    text = _CONTROL_RE.sub(" ", value)
    text = _MARKUP_RE.sub("", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def sanitize_list(value: Any, cap: int) -> Tuple[str, ...]:
    """
    Sanitize every entry of a list field and keep at most `cap` non-empty entries.

    A bare scalar is treated as a one-element list.
    """
    if value is None:
        return ()
    if isinstance(value, (str, int, float)):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return ()
    cleaned = [sanitize_text(item) for item in value]
    return tuple(item for item in cleaned if item)[:cap]


def parse_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return normalize_text(value) in _TRUE_WORDS
    return False


def parse_date(value: Any) -> Tuple[str, str]:
    """
    Parse an ISO date and build its Spanish human-readable form.

    Returns:
        Tuple[str, str]: (iso_date, readable), e.g. ("2025-09-05", "5 de septiembre de 2025").
        Both are empty strings when the value is missing or unparseable.
    """
    text = sanitize_text(value)
    if not text:
        return "", ""
    try:
        date = datetime.date.fromisoformat(text[:10])
    except ValueError:
        return "", ""
    return date.isoformat(), f"{date.day} de {MESES[date.month - 1]} de {date.year}"


def parse_status(value: Any) -> CourseStatus:
    key = normalize_text(sanitize_text(value)).replace(" ", "_")
    return _STATUS_LOOKUP.get(key, CourseStatus.UPCOMING)


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def normalize_record(raw: Any, position: int) -> Course:
    """
    Normalize one raw record. Never raises: missing or mistyped fields get defaults.

    Args:
        raw (Any): The raw record; anything that is not a mapping is treated as an empty one.
        position (int): 1-based position in the catalog, used as id when the record has none.
    """
    if not isinstance(raw, Mapping):
        logger.debug("Catalog record %d is not an object; applying defaults", position)
        raw = {}

    requisitos = _mapping(raw.get("requisitos"))
    materiales = _mapping(raw.get("materiales"))
    fecha_inicio, fecha_inicio_legible = parse_date(raw.get("fecha_inicio"))
    fecha_fin, fecha_fin_legible = parse_date(raw.get("fecha_fin"))

    return Course(
        id=sanitize_text(raw.get("id")) or str(position),
        titulo=sanitize_text(raw.get("titulo")),
        descripcion_breve=sanitize_text(raw.get("descripcion_breve")),
        descripcion_completa=sanitize_text(raw.get("descripcion_completa")),
        actividades=sanitize_text(raw.get("actividades")),
        duracion_total=sanitize_text(raw.get("duracion_total")),
        fecha_inicio=fecha_inicio,
        fecha_inicio_legible=fecha_inicio_legible,
        fecha_fin=fecha_fin,
        fecha_fin_legible=fecha_fin_legible,
        frecuencia_semanal=sanitize_text(raw.get("frecuencia_semanal")) or DEFAULT_FRECUENCIA,
        localidades=sanitize_list(raw.get("localidades"), MAX_LOCALIDADES),
        direcciones=sanitize_list(raw.get("direcciones"), MAX_DIRECCIONES),
        horarios=sanitize_list(raw.get("horarios"), MAX_HORARIOS),
        requisitos=Requirements(
            mayor_de_18=parse_flag(requisitos.get("mayor_de_18")),
            carnet_conducir=parse_flag(requisitos.get("carnet_conducir")),
            primaria_completa=parse_flag(requisitos.get("primaria_completa")),
            secundaria_completa=parse_flag(requisitos.get("secundaria_completa")),
            otros=sanitize_list(requisitos.get("otros"), MAX_REQUISITOS_OTROS),
        ),
        materiales=Materials(
            a_cargo_del_participante=sanitize_list(
                materiales.get("a_cargo_del_participante"), MAX_MATERIALES
            ),
            provistos=sanitize_list(materiales.get("provistos"), MAX_MATERIALES),
        ),
        formulario_inscripcion=sanitize_text(raw.get("formulario_inscripcion")),
        imagen=sanitize_text(raw.get("imagen")),
        estado=parse_status(raw.get("estado")),
    )


def normalize(raw_records: Any) -> List[Course]:
    """
    Normalize a whole catalog.

    Args:
        raw_records (Any): The decoded catalog root; must be a list (or tuple) of records.

    Returns:
        List[Course]: One course per raw record, in catalog order. Ids are unique: a repeated
            id gets its position appended.

    Raises:
        LoadError: If the root is not a sequence of records.
    """
    if not isinstance(raw_records, (list, tuple)):
        raise LoadError(
            f"Catalog root must be a list of records, got {type(raw_records).__name__}"
        )
    courses = []
    seen_ids = set()
    for position, raw in enumerate(raw_records, start=1):
        course = normalize_record(raw, position)
        if course.id in seen_ids:
            unique_id = f"{course.id}-{position}"
            suffix = 2
            while unique_id in seen_ids:
                unique_id = f"{course.id}-{position}-{suffix}"
                suffix += 1
            logger.debug("Duplicate catalog id %s at position %d renamed to %s", course.id, position, unique_id)
            course = dataclasses.replace(course, id=unique_id)
        seen_ids.add(course.id)
        courses.append(course)
    return courses


def load_catalog(path: Union[str, Path]) -> List[Course]:
    """
    Read and normalize the catalog file, degrading to an empty catalog on any load error.

    The file may hold either a bare list of records or an object with a "cursos" list.

    Args:
        path (Union[str, Path]): Location of the JSON catalog.

    Returns:
        List[Course]: The normalized catalog, or [] when the file is missing or malformed.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, Mapping) and "cursos" in data:
            data = data["cursos"]
        courses = normalize(data)
    except (OSError, ValueError, RecursionError, LoadError) as e:
        logger.error(
            "Catalog could not be loaded; continuing with an empty catalog",
            extra={'extra_fields': {'catalog_path': str(path), 'error_type': type(e).__name__, 'error_message': str(e)}},
        )
        return []

    logger.info("Catalog loaded: %d courses from %s", len(courses), path)
    return courses


def serialize_course(course: Course) -> Dict[str, Any]:
    """
    Render a course as the JSON-ready mapping shown to the model.

    Empty strings and empty lists are left out to keep the prompt compact; boolean
    requirement flags are always kept.
    """
    data = dataclasses.asdict(course)
    data["estado"] = course.estado.value
    return {
        key: value
        for key, value in data.items()
        if value not in ("", ())
    }
