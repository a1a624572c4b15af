from __future__ import annotations

from dataclasses import dataclass, field, asdict, fields
from typing import Any, Dict, List, Optional


@dataclass
class Employee:
    """Identity record for one person in the reporting tree."""

    id: str
    employee_code: int
    first_name: str
    last_name: str
    rut: Optional[str] = None
    email: Optional[str] = None
    manager_id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Evaluation:
    """One yearly evaluation row for an employee.

    Every score is on the 1-5 scale or ``None`` when the rater category was
    not evaluated that year. ``ipe`` is the only score without a label.
    """

    id: str
    employee_id: str
    evaluation_year: int

    general_potential: Optional[float] = None
    general_potential_label: Optional[str] = None

    peer_client_score: Optional[float] = None
    peer_client_label: Optional[str] = None
    direct_manager_score: Optional[float] = None
    direct_manager_label: Optional[str] = None
    collaborator_score: Optional[float] = None
    collaborator_label: Optional[str] = None
    competencies_avg_score: Optional[float] = None
    competencies_avg_label: Optional[str] = None

    one_team_score: Optional[float] = None
    one_team_label: Optional[str] = None
    agility_score: Optional[float] = None
    agility_label: Optional[str] = None
    customer_passion_score: Optional[float] = None
    customer_passion_label: Optional[str] = None
    future_care_score: Optional[float] = None
    future_care_label: Optional[str] = None

    ipe: Optional[float] = None

    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class EvaluationComment:
    id: str
    evaluation_id: str
    category: str
    comment_text: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


EMPLOYEE_COLUMNS = [f.name for f in fields(Employee)]
EVALUATION_COLUMNS = [f.name for f in fields(Evaluation)]
COMMENT_COLUMNS = [f.name for f in fields(EvaluationComment)]


# ---------------------------------------------------------------------------
# Derived shapes
# ---------------------------------------------------------------------------


@dataclass
class TeamMember:
    employee: Employee
    evaluation: Optional[Evaluation]
    full_name: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "employee": self.employee.to_dict(),
            "evaluation": self.evaluation.to_dict() if self.evaluation else None,
            "full_name": self.full_name,
        }


@dataclass
class TeamSummary:
    total_direct_reports: int = 0
    average_potential: float = 0.0
    average_competencies: float = 0.0
    high_performers: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CompetencyData:
    name: str
    score: float
    label: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class EmployeeDetail:
    employee: Employee
    evaluation: Optional[Evaluation]
    comments: List[EvaluationComment] = field(default_factory=list)
    competencies: List[CompetencyData] = field(default_factory=list)
    full_name: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "employee": self.employee.to_dict(),
            "evaluation": self.evaluation.to_dict() if self.evaluation else None,
            "comments": [c.to_dict() for c in self.comments],
            "competencies": [c.to_dict() for c in self.competencies],
            "full_name": self.full_name,
        }


@dataclass
class YearData:
    score: Optional[float] = None
    label: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class MetricRow:
    metric_name: str
    year_data: Dict[int, YearData] = field(default_factory=dict)
    average: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metric_name": self.metric_name,
            "year_data": {year: cell.to_dict() for year, cell in self.year_data.items()},
            "average": self.average,
        }


@dataclass
class HistoricEvaluationData:
    employee: Employee
    evaluations_by_year: Dict[int, Evaluation] = field(default_factory=dict)
    available_years: List[int] = field(default_factory=list)
    metrics: List[MetricRow] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "employee": self.employee.to_dict(),
            "evaluations_by_year": {
                year: evaluation.to_dict() for year, evaluation in self.evaluations_by_year.items()
            },
            "available_years": list(self.available_years),
            "metrics": [row.to_dict() for row in self.metrics],
        }
