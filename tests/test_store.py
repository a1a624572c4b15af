import sqlite3

import pytest

from calibration.evaluations.store import EvaluationStore, EvaluationStoreError

from conftest import MANAGER_ID


def test_schema_created_on_open(tmp_path):
    db = tmp_path / "nested" / "calibration.db"
    EvaluationStore(db)
    con = sqlite3.connect(db)
    tables = {r[0] for r in con.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    con.close()
    assert {"employees", "performance_evaluations", "evaluation_comments"} <= tables


def test_reads_round_trip(seeded_store):
    employee = seeded_store.get_employee("emp-angeles")
    assert employee.full_name == "Angeles Zuñiga"
    assert employee.manager_id == MANAGER_ID
    assert employee.created_at and employee.updated_at

    evaluation = seeded_store.get_evaluation("emp-angeles", 2024)
    assert evaluation.general_potential == 3.0
    assert evaluation.customer_passion_score is None

    assert seeded_store.get_evaluation("emp-angeles", 2022) is None
    assert [e.evaluation_year for e in seeded_store.list_evaluations_for_employee("emp-paula")] == [2022, 2024]
    assert seeded_store.list_evaluations_for_employees([], 2024) == []


def test_counts(seeded_store):
    assert seeded_store.count_employees() == 7
    assert seeded_store.count_evaluations() == 5
    assert seeded_store.count_evaluations(2024) == 4
    assert seeded_store.count_managers() == 1


def test_upsert_updates_in_place(seeded_store):
    before = seeded_store.get_employee("emp-paula")
    seeded_store.upsert_employees(
        [{"id": "ignored-new-id", "employee_code": 101, "first_name": "Paula", "last_name": "Roa Diaz",
          "manager_id": MANAGER_ID, "rut": "101-K", "email": "paula@example.com"}]
    )
    after = seeded_store.get_employee("emp-paula")

    assert seeded_store.get_employee("ignored-new-id") is None
    assert after.last_name == "Roa Diaz"
    assert after.created_at == before.created_at
    assert seeded_store.count_employees() == 7


def test_evaluation_upsert_keyed_on_employee_and_year(seeded_store):
    seeded_store.upsert_evaluations(
        [{"id": "other-id", "employee_id": "emp-paula", "evaluation_year": 2024, "general_potential": 3.4}]
    )
    evaluation = seeded_store.get_evaluation("emp-paula", 2024)
    assert evaluation.id == "ev-emp-paula-2024"
    assert evaluation.general_potential == 3.4
    assert seeded_store.count_evaluations(2024) == 4


def test_lookup_maps(seeded_store):
    assert seeded_store.employee_ids_by_code()[104] == "emp-angeles"
    assert seeded_store.evaluation_ids_by_key(2022) == {"emp-paula": "ev-emp-paula-2022"}


def test_sqlite_errors_are_wrapped(store):
    with pytest.raises(EvaluationStoreError):
        # unknown employee violates the foreign key
        store.upsert_evaluations([{"id": "x", "employee_id": "ghost", "evaluation_year": 2024}])
