import math

from calibration.evaluations.aggregation import (
    calculate_team_summary,
    get_available_years,
    get_current_manager,
    get_manager_and_team,
    get_team_members,
)
from calibration.evaluations.models import Employee, Evaluation, TeamMember
from calibration.evaluations.store import EvaluationStoreError

from conftest import MANAGER_ID


def _member(idx: int, potential=None, competencies=None, evaluated=True) -> TeamMember:
    employee = Employee(id=f"e{idx}", employee_code=idx, first_name="N", last_name=str(idx))
    evaluation = None
    if evaluated:
        evaluation = Evaluation(
            id=f"ev{idx}",
            employee_id=employee.id,
            evaluation_year=2024,
            general_potential=potential,
            competencies_avg_score=competencies,
        )
    return TeamMember(employee=employee, evaluation=evaluation, full_name=employee.full_name)


class BrokenStore:
    def get_employee(self, employee_id):
        raise EvaluationStoreError("database is locked")

    def list_direct_reports(self, manager_id):
        raise EvaluationStoreError("database is locked")

    def list_evaluation_years(self):
        raise EvaluationStoreError("database is locked")


# ---------------------------------------------------------------------------
# calculate_team_summary
# ---------------------------------------------------------------------------


def test_four_member_team_summary():
    members = [
        _member(1, 2.5, 3.75),
        _member(2, 2.4, 3.38),
        _member(3, 2.5, 2.88),
        _member(4, 3.0, 3.14),
    ]
    summary = calculate_team_summary(members)

    assert summary.total_direct_reports == 4
    assert math.isclose(summary.average_potential, 2.6)
    assert math.isclose(summary.average_competencies, 3.2875)
    assert summary.high_performers == 1


def test_empty_team_averages_are_zero():
    summary = calculate_team_summary([])
    assert summary.total_direct_reports == 0
    assert summary.average_potential == 0
    assert summary.average_competencies == 0
    assert summary.high_performers == 0


def test_total_counts_members_without_evaluation():
    members = [_member(1, evaluated=False), _member(2, evaluated=False), _member(3, 3.2, None)]
    summary = calculate_team_summary(members)

    assert summary.total_direct_reports == 3
    assert math.isclose(summary.average_potential, 3.2)
    assert summary.average_competencies == 0
    assert summary.high_performers == 1


def test_high_performer_threshold_is_inclusive():
    members = [_member(1, 3.0), _member(2, 2.999), _member(3, None, 4.0)]
    assert calculate_team_summary(members).high_performers == 1


# ---------------------------------------------------------------------------
# Store-backed reads
# ---------------------------------------------------------------------------


def test_team_members_pairs_evaluations_and_sorts_by_last_name(seeded_store):
    members = get_team_members(seeded_store, MANAGER_ID, 2024)

    assert [m.employee.last_name for m in members] == ["Marquez", "Retamal", "Roa", "Vega", "Zuñiga"]
    by_name = {m.full_name: m for m in members}
    assert by_name["Nicolas Vega"].evaluation is None
    assert by_name["Paula Roa"].evaluation.general_potential == 2.5

    summary = calculate_team_summary(members)
    assert summary.total_direct_reports == 5
    assert math.isclose(summary.average_potential, 2.6)


def test_team_members_for_year_without_data(seeded_store):
    members = get_team_members(seeded_store, MANAGER_ID, 2019)
    assert len(members) == 5
    assert all(m.evaluation is None for m in members)


def test_unknown_manager_has_no_team(seeded_store):
    assert get_team_members(seeded_store, "nobody", 2024) == []


def test_store_failure_yields_empty_results():
    broken = BrokenStore()
    assert get_team_members(broken, MANAGER_ID, 2024) == []
    assert get_current_manager(broken, MANAGER_ID) is None
    assert get_manager_and_team(broken, MANAGER_ID) == []
    assert get_available_years(broken) == [2024]


def test_evaluation_fetch_failure_keeps_members(seeded_store, monkeypatch):
    def broken(employee_ids, year):
        raise EvaluationStoreError("database is locked")

    monkeypatch.setattr(seeded_store, "list_evaluations_for_employees", broken)
    members = get_team_members(seeded_store, MANAGER_ID, 2024)

    assert len(members) == 5
    assert all(m.evaluation is None for m in members)


def test_manager_and_team_puts_manager_first(seeded_store):
    people = get_manager_and_team(seeded_store, MANAGER_ID)
    assert people[0].id == MANAGER_ID
    assert len(people) == 6
    assert MANAGER_ID not in [p.id for p in people[1:]]


def test_available_years_newest_first(seeded_store):
    assert get_available_years(seeded_store) == [2024, 2022]


def test_available_years_default_when_empty(store):
    assert get_available_years(store) == [2024]
