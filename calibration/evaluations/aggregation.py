from __future__ import annotations

"""Team and employee views over the evaluation store.

Every function here only reads. Data-access failures are logged and turned
into the same empty/None result the caller would get for missing data, so a
view never breaks because the store is unavailable.
"""

import logging
from typing import Dict, List, Optional

from calibration import config
from calibration.evaluations.models import (
    CompetencyData,
    Employee,
    EmployeeDetail,
    Evaluation,
    EvaluationComment,
    TeamMember,
    TeamSummary,
)
from calibration.evaluations.store import EvaluationStore, EvaluationStoreError

logger = logging.getLogger(__name__)

HIGH_PERFORMER_MIN_POTENTIAL = 3.0

# Radar axes, in display order
COMPETENCY_AXES = (
    ("Un Solo Equipo", lambda e: e.one_team_score, lambda e: e.one_team_label),
    ("Agilmente", lambda e: e.agility_score, lambda e: e.agility_label),
    ("Pasión Cliente", lambda e: e.customer_passion_score, lambda e: e.customer_passion_label),
    ("Futuro", lambda e: e.future_care_score, lambda e: e.future_care_label),
)


# ---------------------------------------------------------------------------
# Manager / team
# ---------------------------------------------------------------------------


def get_current_manager(store: EvaluationStore, manager_id: str) -> Optional[Employee]:
    try:
        return store.get_employee(manager_id)
    except EvaluationStoreError as exc:
        logger.error("Error fetching manager %s: %s", manager_id, exc)
        return None


def get_team_members(store: EvaluationStore, manager_id: str, year: int) -> List[TeamMember]:
    """Direct reports of ``manager_id`` paired with their evaluation for ``year``.

    Members without an evaluation row get ``evaluation=None``. An empty list
    means either no reports or an unreachable store.
    """
    try:
        employees = store.list_direct_reports(manager_id)
    except EvaluationStoreError as exc:
        logger.error("Error fetching employees for manager %s: %s", manager_id, exc)
        return []

    if not employees:
        return []

    evaluations: List[Evaluation] = []
    try:
        evaluations = store.list_evaluations_for_employees([e.id for e in employees], year)
    except EvaluationStoreError as exc:
        logger.error("Error fetching evaluations for %s: %s", year, exc)

    by_employee: Dict[str, Evaluation] = {}
    for evaluation in evaluations:
        by_employee.setdefault(evaluation.employee_id, evaluation)

    return [
        TeamMember(employee=employee, evaluation=by_employee.get(employee.id), full_name=employee.full_name)
        for employee in employees
    ]


def get_manager_and_team(store: EvaluationStore, manager_id: str) -> List[Employee]:
    """Manager first, then direct reports (manager excluded), for the employee selector."""
    try:
        manager = store.get_employee(manager_id)
    except EvaluationStoreError as exc:
        logger.error("Error fetching manager %s: %s", manager_id, exc)
        return []
    if manager is None:
        return []

    try:
        reports = store.list_direct_reports(manager_id)
    except EvaluationStoreError as exc:
        logger.error("Error fetching direct reports for %s: %s", manager_id, exc)
        return [manager]

    return [manager] + [r for r in reports if r.id != manager.id]


def get_available_years(store: EvaluationStore) -> List[int]:
    """Distinct evaluation years, newest first, with a default when there is nothing to show."""
    try:
        years = store.list_evaluation_years()
    except EvaluationStoreError as exc:
        logger.error("Error fetching years: %s", exc)
        return [config.DEFAULT_EVALUATION_YEAR]
    return years or [config.DEFAULT_EVALUATION_YEAR]


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------


def calculate_team_summary(team_members: List[TeamMember]) -> TeamSummary:
    total_potential = 0.0
    total_competencies = 0.0
    potential_count = 0
    competencies_count = 0
    high_performers = 0

    for member in team_members:
        evaluation = member.evaluation
        if evaluation is None:
            continue

        if evaluation.general_potential is not None:
            total_potential += evaluation.general_potential
            potential_count += 1
            if evaluation.general_potential >= HIGH_PERFORMER_MIN_POTENTIAL:
                high_performers += 1

        if evaluation.competencies_avg_score is not None:
            total_competencies += evaluation.competencies_avg_score
            competencies_count += 1

    # An empty average is 0, not None (see DESIGN.md)
    return TeamSummary(
        total_direct_reports=len(team_members),
        average_potential=total_potential / potential_count if potential_count else 0.0,
        average_competencies=total_competencies / competencies_count if competencies_count else 0.0,
        high_performers=high_performers,
    )


# ---------------------------------------------------------------------------
# Employee detail
# ---------------------------------------------------------------------------


def extract_competencies(evaluation: Optional[Evaluation]) -> List[CompetencyData]:
    """Radar-chart axes for one evaluation; a null score is drawn as 0."""
    if evaluation is None:
        return []
    return [
        CompetencyData(
            name=name,
            score=score_of(evaluation) or 0,
            label=label_of(evaluation),
        )
        for name, score_of, label_of in COMPETENCY_AXES
    ]


def get_employee_detail(store: EvaluationStore, employee_id: str, year: int) -> Optional[EmployeeDetail]:
    try:
        employee = store.get_employee(employee_id)
    except EvaluationStoreError as exc:
        logger.error("Error fetching employee %s: %s", employee_id, exc)
        return None
    if employee is None:
        logger.info("Employee %s not found", employee_id)
        return None

    evaluation: Optional[Evaluation] = None
    try:
        evaluation = store.get_evaluation(employee_id, year)
    except EvaluationStoreError as exc:
        logger.error("Error fetching evaluation for %s/%s: %s", employee_id, year, exc)

    comments: List[EvaluationComment] = []
    if evaluation is not None:
        try:
            comments = store.list_comments(evaluation.id)
        except EvaluationStoreError as exc:
            logger.error("Error fetching comments for evaluation %s: %s", evaluation.id, exc)

    return EmployeeDetail(
        employee=employee,
        evaluation=evaluation,
        comments=comments,
        competencies=extract_competencies(evaluation),
        full_name=employee.full_name,
    )


__all__ = [
    "COMPETENCY_AXES",
    "HIGH_PERFORMER_MIN_POTENTIAL",
    "calculate_team_summary",
    "extract_competencies",
    "get_available_years",
    "get_current_manager",
    "get_employee_detail",
    "get_manager_and_team",
    "get_team_members",
]
