"""
Unit tests for `core/postprocess.py` – channel rewriting and suggested-course extraction.
"""

import pytest

from core.postprocess import extract_suggestion, postprocess, rewrite_for_channel


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Empieza el **15 de septiembre de 2025**.", "Empieza el 15 de septiembre de 2025."),
        ("Inicio: *lunes 15/09*", "Inicio: lunes 15/09"),
        ("Arranca el _2025-09-15_ a la tarde", "Arranca el 2025-09-15 a la tarde"),
    ],
)
def test_emphasis_around_dates_is_removed(raw, expected):
    assert rewrite_for_channel(raw) == expected


def test_double_markers_become_single():
    assert rewrite_for_channel("Te recomiendo **Electricidad** y __Panadería__") == (
        "Te recomiendo *Electricidad* y _Panadería_"
    )


def test_markdown_links_become_plain_text():
    assert rewrite_for_channel("[Inscribite acá](https://forms.example/x)") == "Inscribite acá: https://forms.example/x"
    assert rewrite_for_channel("[https://forms.example/x](https://forms.example/x)") == "https://forms.example/x"


def test_html_anchors_and_tags_are_removed():
    raw = '<p>Completá el <a href="https://forms.example/x">formulario</a><br></p>'
    assert rewrite_for_channel(raw) == "Completá el formulario: https://forms.example/x"
    assert rewrite_for_channel('<a href="https://forms.example/x">https://forms.example/x</a>') == (
        "https://forms.example/x"
    )


def test_blank_lines_are_collapsed():
    assert rewrite_for_channel("Hola\n\n\n\n¿Cómo estás?\n") == "Hola\n\n¿Cómo estás?"


def test_comparison_signs_are_kept():
    assert rewrite_for_channel("Cupos: < 20 personas") == "Cupos: < 20 personas"


def test_postprocess_extracts_title_and_link():
    text, suggestion = postprocess("**Electricidad**\nFormulario de inscripción: https://forms.example/x")

    assert text == "*Electricidad*\nFormulario de inscripción: https://forms.example/x"
    assert suggestion is not None
    assert suggestion.title == "Electricidad"
    assert suggestion.link == "https://forms.example/x"


def test_extract_suggestion_strips_trailing_punctuation():
    suggestion = extract_suggestion("*Panadería*. Formulario de inscripción: https://forms.example/pan.")
    assert suggestion.link == "https://forms.example/pan"


def test_extract_suggestion_uses_first_link_and_nearest_title():
    text = (
        "*Electricidad*\nFormulario de inscripción: https://forms.example/a\n\n"
        "*Panadería*\nFormulario de inscripción: https://forms.example/b"
    )
    suggestion = extract_suggestion(text)
    assert (suggestion.title, suggestion.link) == ("Electricidad", "https://forms.example/a")


def test_extract_suggestion_after_list_bullet():
    text, suggestion = postprocess("* **Electricidad domiciliaria**\nFormulario de inscripción: https://forms.example/x")

    assert text.startswith("* *Electricidad domiciliaria*")
    assert suggestion.title == "Electricidad domiciliaria"
    assert suggestion.link == "https://forms.example/x"


def test_extract_suggestion_without_title():
    suggestion = extract_suggestion("Formulario de inscripcion: https://forms.example/a")
    assert (suggestion.title, suggestion.link) == ("", "https://forms.example/a")


def test_extract_suggestion_without_link():
    assert extract_suggestion("*Electricidad* abre inscripción pronto.") is None
    assert postprocess("")[1] is None
