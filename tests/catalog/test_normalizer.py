"""
Unit tests for `catalog/normalizer.py`.

Covers:
- Date parsing and the Spanish readable form (missing dates stay empty)
- List caps applied in catalog order
- Sanitization of control and markup characters
- Raw status spellings mapped onto the four lifecycle states
- Malformed records degrading to defaults instead of failing the load
- Repeated or colliding ids made unique
- `load_catalog` returning [] on a missing file or a non-list root
"""

import json

import pytest

from catalog.normalizer import (
    MAX_LOCALIDADES,
    load_catalog,
    normalize,
    normalize_record,
    parse_date,
    parse_status,
    sanitize_text,
    serialize_course,
)
from shared.errors import LoadError
from shared.models import CourseStatus


def test_parse_date_builds_spanish_readable_form():
    assert parse_date("2025-09-05") == ("2025-09-05", "5 de septiembre de 2025")
    assert parse_date("2026-01-20T09:00:00") == ("2026-01-20", "20 de enero de 2026")


@pytest.mark.parametrize("value", [None, "", "  ", "pronto", "2025-13-40", 12345])
def test_parse_date_unparseable_is_empty(value):
    assert parse_date(value) == ("", "")


def test_missing_start_date_yields_empty_fields():
    course = normalize_record({"id": "x", "titulo": "Soldadura"}, 1)
    assert course.fecha_inicio == ""
    assert course.fecha_inicio_legible == ""


def test_localidades_are_capped_in_order():
    localidades = [f"Localidad {i}" for i in range(20)]
    course = normalize_record({"id": "x", "localidades": localidades}, 1)
    assert len(course.localidades) == MAX_LOCALIDADES
    assert list(course.localidades) == localidades[:MAX_LOCALIDADES]


def test_scalar_list_field_becomes_single_entry():
    course = normalize_record({"id": "x", "horarios": "Lunes 18 a 21 hs"}, 1)
    assert course.horarios == ("Lunes 18 a 21 hs",)


def test_sanitize_text_removes_control_and_markup():
    assert sanitize_text("Curso\x00 de <b>cocina</b>\u200b {básica}\n") == "Curso de bcocina/b básica"
    assert sanitize_text(None) == ""
    assert sanitize_text({"a": 1}) == ""
    assert sanitize_text(40) == "40"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("inscripcion_abierta", CourseStatus.OPEN),
        ("Inscripción abierta", CourseStatus.OPEN),
        ("open", CourseStatus.OPEN),
        ("en_curso", CourseStatus.IN_PROGRESS),
        ("En curso", CourseStatus.IN_PROGRESS),
        ("proximo", CourseStatus.UPCOMING),
        ("Próximamente", CourseStatus.UPCOMING),
        ("finalizado", CourseStatus.FINISHED),
        ("FINISHED", CourseStatus.FINISHED),
        ("desconocido", CourseStatus.UPCOMING),
        (None, CourseStatus.UPCOMING),
    ],
)
def test_parse_status(raw, expected):
    assert parse_status(raw) == expected


def test_malformed_record_gets_defaults():
    course = normalize_record("not a record", 7)
    assert course.id == "7"
    assert course.titulo == ""
    assert course.frecuencia_semanal == "otro"
    assert course.localidades == ()
    assert course.requisitos.mayor_de_18 is False
    assert course.estado == CourseStatus.UPCOMING


def test_mistyped_fields_get_defaults():
    course = normalize_record(
        {
            "id": "c-9",
            "titulo": ["no", "es", "texto"],
            "requisitos": "mayor de 18",
            "materiales": {"provistos": ["Guantes", "", None, "Casco"]},
            "localidades": 42,
        },
        1,
    )
    assert course.titulo == ""
    assert course.requisitos.otros == ()
    assert course.materiales.provistos == ("Guantes", "Casco")
    assert course.localidades == ("42",)


def test_requirement_flags_accept_common_spellings():
    course = normalize_record(
        {"id": "x", "requisitos": {"mayor_de_18": "Sí", "carnet_conducir": 1, "primaria_completa": "no"}},
        1,
    )
    assert course.requisitos.mayor_de_18 is True
    assert course.requisitos.carnet_conducir is True
    assert course.requisitos.primaria_completa is False


def test_normalize_rejects_non_list_root():
    with pytest.raises(LoadError):
        normalize({"titulo": "Electricidad"})


def test_normalize_keeps_catalog_order():
    courses = normalize([{"id": "b"}, {"id": "a"}, {}])
    assert [c.id for c in courses] == ["b", "a", "3"]


def test_load_catalog_accepts_wrapped_and_bare_lists(tmp_path):
    wrapped = tmp_path / "wrapped.json"
    wrapped.write_text(json.dumps({"cursos": [{"id": "c-1", "titulo": "Electricidad"}]}), encoding="utf-8")
    bare = tmp_path / "bare.json"
    bare.write_text(json.dumps([{"id": "c-2", "titulo": "Panadería"}]), encoding="utf-8")

    assert [c.id for c in load_catalog(wrapped)] == ["c-1"]
    assert [c.titulo for c in load_catalog(bare)] == ["Panadería"]


def test_load_catalog_degrades_to_empty(tmp_path):
    not_a_list = tmp_path / "object.json"
    not_a_list.write_text(json.dumps({"titulo": "Electricidad"}), encoding="utf-8")
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    not_utf8 = tmp_path / "latin1.json"
    not_utf8.write_bytes(b'[{"titulo": "Panader\xeda"}]')
    too_deep = tmp_path / "deep.json"
    too_deep.write_text("[" * 100000 + "]" * 100000, encoding="utf-8")

    assert load_catalog(not_a_list) == []
    assert load_catalog(broken) == []
    assert load_catalog(tmp_path / "missing.json") == []
    assert load_catalog(not_utf8) == []
    assert load_catalog(too_deep) == []


def test_bundled_catalog_loads():
    from config import CONFIG

    courses = load_catalog(CONFIG["paths"]["catalog_full_path"])
    assert len(courses) == 4
    assert {c.estado for c in courses} == set(CourseStatus)


def test_serialize_course_drops_empty_fields():
    course = normalize_record({"id": "c-1", "titulo": "Electricidad", "estado": "abierto"}, 1)
    data = serialize_course(course)
    assert data["id"] == "c-1"
    assert data["estado"] == "open"
    assert "fecha_inicio" not in data
    assert "localidades" not in data
    assert data["requisitos"]["mayor_de_18"] is False
    json.dumps(data)


def test_normalize_makes_ids_unique():
    courses = normalize([
        {"titulo": "Sin id"},
        {"id": "1", "titulo": "Id explícito repetido"},
        {"id": "c-7", "titulo": "Electricidad"},
        {"id": "c-7", "titulo": "Panadería"},
    ])

    ids = [c.id for c in courses]
    assert ids == ["1", "1-2", "c-7", "c-7-4"]
    assert len(set(ids)) == len(ids)
