from calibration.evaluations.aggregation import extract_competencies, get_employee_detail
from calibration.evaluations.models import Evaluation
from calibration.evaluations.store import EvaluationStoreError


def test_extract_competencies_order_and_null_as_zero():
    evaluation = Evaluation(
        id="ev",
        employee_id="e",
        evaluation_year=2024,
        one_team_score=3.25,
        one_team_label="Cumple Satisfactorio",
        agility_score=None,
        customer_passion_score=3.19,
        future_care_score=2.94,
        future_care_label="Cumple Parcial",
    )
    competencies = extract_competencies(evaluation)

    assert [c.name for c in competencies] == ["Un Solo Equipo", "Agilmente", "Pasión Cliente", "Futuro"]
    assert [c.score for c in competencies] == [3.25, 0, 3.19, 2.94]
    assert competencies[0].label == "Cumple Satisfactorio"
    assert competencies[1].label is None


def test_extract_competencies_without_evaluation():
    assert extract_competencies(None) == []


def test_employee_detail_with_comments(seeded_store):
    detail = get_employee_detail(seeded_store, "emp-paula", 2024)

    assert detail.full_name == "Paula Roa"
    assert detail.evaluation.competencies_avg_score == 3.75
    assert [c.comment_text for c in detail.comments] == ["Lidera el proyecto de clientes"]
    assert len(detail.competencies) == 4
    # customer passion is null in the fixture
    assert detail.competencies[2].score == 0


def test_employee_detail_year_without_evaluation(seeded_store):
    detail = get_employee_detail(seeded_store, "emp-nuevo", 2024)

    assert detail is not None
    assert detail.evaluation is None
    assert detail.comments == []
    assert detail.competencies == []


def test_employee_detail_unknown_employee(seeded_store):
    assert get_employee_detail(seeded_store, "missing", 2024) is None


def test_employee_detail_store_failure():
    class BrokenStore:
        def get_employee(self, employee_id):
            raise EvaluationStoreError("no such table: employees")

    assert get_employee_detail(BrokenStore(), "emp-paula", 2024) is None


def test_employee_detail_when_evaluation_lookup_fails(seeded_store, monkeypatch):
    def broken(employee_id, year):
        raise EvaluationStoreError("database is locked")

    monkeypatch.setattr(seeded_store, "get_evaluation", broken)
    detail = get_employee_detail(seeded_store, "emp-paula", 2024)

    assert detail is not None
    assert detail.full_name == "Paula Roa"
    assert detail.evaluation is None
    assert detail.comments == []
    assert detail.competencies == []


def test_employee_detail_to_dict_is_json_ready(seeded_store):
    payload = get_employee_detail(seeded_store, "emp-paula", 2024).to_dict()
    assert payload["employee"]["employee_code"] == 101
    assert payload["competencies"][0] == {"name": "Un Solo Equipo", "score": 3.0, "label": "Cumple Satisfactorio"}
