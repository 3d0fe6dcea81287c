import json

import pytest

from voice_audit.catalogue import DEFAULT_CATALOGUE, Catalogue, QuestionKind, QuestionSchema, load_catalogue


def test_default_catalogue_shape():
    assert len(DEFAULT_CATALOGUE) == 21
    assert DEFAULT_CATALOGUE.source_tag == "Form-AMAI-GAIS-251017"
    assert DEFAULT_CATALOGUE[0].id == "q01"
    assert DEFAULT_CATALOGUE.index_of("Q17") == 16
    assert DEFAULT_CATALOGUE.index_of("q99") == -1

    maturity = [DEFAULT_CATALOGUE[i] for i in range(5)]
    assert all(q.kind == QuestionKind.SELECT and not q.has_escape for q in maturity)
    assert DEFAULT_CATALOGUE[17].max_items == 3
    assert DEFAULT_CATALOGUE[20].kind == QuestionKind.BOOL


def test_stage_for_progress():
    assert DEFAULT_CATALOGUE.stage_for(0) == (1, "Maturité IA, Stratégie...")
    assert DEFAULT_CATALOGUE.stage_for(5)[0] == 2
    assert DEFAULT_CATALOGUE.stage_for(16)[0] == 4
    assert DEFAULT_CATALOGUE.stage_for(3, finished=True)[0] == 5


def test_catalogue_rejects_duplicate_options():
    with pytest.raises(ValueError):
        Catalogue(
            questions=(
                QuestionSchema(id="a", label="A", kind=QuestionKind.SELECT, key="A", options=("x", "x")),
            ),
            source_tag="t",
        )


def test_catalogue_rejects_escape_outside_options():
    with pytest.raises(ValueError):
        Catalogue(
            questions=(
                QuestionSchema(
                    id="a",
                    label="A",
                    kind=QuestionKind.SELECT,
                    key="A",
                    options=("x", "y"),
                    other_label="Autre",
                    other_key="A-Autre",
                ),
            ),
            source_tag="t",
        )


def test_catalogue_rejects_duplicate_keys():
    with pytest.raises(ValueError):
        Catalogue(
            questions=(
                QuestionSchema(id="a", label="A", kind=QuestionKind.STRING, key="same"),
                QuestionSchema(id="b", label="B", kind=QuestionKind.STRING, key="same"),
            ),
            source_tag="t",
        )


def test_load_catalogue_from_json(tmp_path):
    path = tmp_path / "catalogue.json"
    path.write_text(
        json.dumps(
            {
                "source": "custom",
                "emailKey": "mail",
                "stages": [{"label": "Tout", "maxIndex": 1}],
                "questions": [
                    {
                        "id": "q01",
                        "label": "Rôle ?",
                        "type": "select",
                        "notionKey": "Role",
                        "options": ["Dirigeant", "Autre"],
                        "triggerAutre": "Autre",
                        "autreKey": "Role-Autre",
                    },
                    {"id": "q02", "label": "E-mail ?", "type": "string", "notionKey": "mail"},
                ],
            }
        ),
        encoding="utf-8",
    )

    loaded = load_catalogue(path)
    assert loaded.source_tag == "custom"
    assert loaded.email_key == "mail"
    assert loaded[0].has_escape
    assert loaded[0].context()["autreKey"] == "Role-Autre"
    assert loaded.stage_for(0) == (1, "Tout")
