import pytest

from calibration.evaluations.store import EvaluationStore

MANAGER_ID = "emp-manager"

# (id, code, first, last, potential, competencies, direct manager)
TEAM_2024 = [
    ("emp-paula", 101, "Paula", "Roa", 2.5, 3.75, 3.75),
    ("emp-alvaro", 102, "Alvaro", "Marquez", 2.4, 3.38, 3.13),
    ("emp-anibal", 103, "Anibal", "Retamal", 2.5, 2.88, 2.88),
    ("emp-angeles", 104, "Angeles", "Zuñiga", 3.0, 3.14, 3.38),
]


@pytest.fixture
def store(tmp_path):
    return EvaluationStore(tmp_path / "calibration.db")


@pytest.fixture
def seeded_store(store):
    """Manager with four evaluated reports in 2024, one unevaluated report and an outsider."""
    employees = [
        {"id": MANAGER_ID, "employee_code": 100, "first_name": "Carla", "last_name": "Soto",
         "rut": "11.111.111-1", "email": "carla@example.com"},
        {"id": "emp-nuevo", "employee_code": 105, "first_name": "Nicolas", "last_name": "Vega",
         "manager_id": MANAGER_ID, "rut": "15.555.555-5", "email": "nicolas@example.com"},
        {"id": "emp-outsider", "employee_code": 200, "first_name": "Olga", "last_name": "Perez",
         "rut": "20.000.000-0", "email": "olga@example.com"},
    ]
    evaluations = []
    for emp_id, code, first, last, potential, competencies, manager_score in TEAM_2024:
        employees.append(
            {"id": emp_id, "employee_code": code, "first_name": first, "last_name": last,
             "manager_id": MANAGER_ID, "rut": f"{code}-K", "email": f"{first.lower()}@example.com"}
        )
        evaluations.append(
            {"id": f"ev-{emp_id}-2024", "employee_id": emp_id, "evaluation_year": 2024,
             "general_potential": potential, "general_potential_label": "Medio",
             "competencies_avg_score": competencies, "competencies_avg_label": "Cumple",
             "direct_manager_score": manager_score, "direct_manager_label": "Cumple",
             "one_team_score": 3.0, "one_team_label": "Cumple Satisfactorio",
             "agility_score": 3.5, "agility_label": "Sobresaliente",
             "customer_passion_score": None, "customer_passion_label": None,
             "future_care_score": 2.5, "future_care_label": "Bajo lo esperado"}
        )
    evaluations.append(
        {"id": "ev-emp-paula-2022", "employee_id": "emp-paula", "evaluation_year": 2022,
         "general_potential": 4.0, "general_potential_label": "Alto", "ipe": 90.0}
    )
    store.upsert_employees(employees)
    store.upsert_evaluations(evaluations)
    store.upsert_comments(
        [{"id": "c-1", "evaluation_id": "ev-emp-paula-2024", "category": "jefe",
          "comment_text": "Lidera el proyecto de clientes"}]
    )
    return store
