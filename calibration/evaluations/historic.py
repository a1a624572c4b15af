from __future__ import annotations

"""Multi-year metric matrix for a single employee.

One row per named metric, one column per evaluated year, plus a row average
over the non-null years. Unlike the team summary, an empty average here is
``None``.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill

from calibration import EXPORT_DIR
from calibration.evaluations.colors import performance_color
from calibration.evaluations.models import (
    Evaluation,
    HistoricEvaluationData,
    MetricRow,
    YearData,
)
from calibration.evaluations.store import EvaluationStore, EvaluationStoreError

logger = logging.getLogger(__name__)

ScoreAccessor = Callable[[Evaluation], Optional[float]]
LabelAccessor = Optional[Callable[[Evaluation], Optional[str]]]
SortColumn = Union[int, str, None]


@dataclass(frozen=True)
class MetricDefinition:
    name: str
    score: ScoreAccessor
    label: LabelAccessor = None


METRIC_DEFINITIONS: Tuple[MetricDefinition, ...] = (
    MetricDefinition("Potencial General", lambda e: e.general_potential, lambda e: e.general_potential_label),
    MetricDefinition("Evaluación Par", lambda e: e.peer_client_score, lambda e: e.peer_client_label),
    MetricDefinition("Evaluación Jefe", lambda e: e.direct_manager_score, lambda e: e.direct_manager_label),
    MetricDefinition("Evaluación Colaborador", lambda e: e.collaborator_score, lambda e: e.collaborator_label),
    MetricDefinition("Promedio Competencias", lambda e: e.competencies_avg_score, lambda e: e.competencies_avg_label),
    MetricDefinition("IPE", lambda e: e.ipe),
    MetricDefinition("Somos un Solo Equipo", lambda e: e.one_team_score, lambda e: e.one_team_label),
    MetricDefinition("Nos Movemos Agilmente", lambda e: e.agility_score, lambda e: e.agility_label),
    MetricDefinition(
        "Nos Apasionamos por el Cliente",
        lambda e: e.customer_passion_score,
        lambda e: e.customer_passion_label,
    ),
    MetricDefinition("Cuidamos el Futuro", lambda e: e.future_care_score, lambda e: e.future_care_label),
)


# ---------------------------------------------------------------------------
# Matrix construction
# ---------------------------------------------------------------------------


def _mean(values: Sequence[float]) -> Optional[float]:
    if not values:
        return None
    return sum(values) / len(values)


def build_metric_rows(
    evaluations_by_year: Dict[int, Evaluation],
    years: Sequence[int],
    definitions: Sequence[MetricDefinition] = METRIC_DEFINITIONS,
) -> List[MetricRow]:
    rows: List[MetricRow] = []
    for definition in definitions:
        year_data: Dict[int, YearData] = {}
        scores: List[float] = []
        for year in years:
            evaluation = evaluations_by_year.get(year)
            if evaluation is None:
                year_data[year] = YearData()
                continue
            score = definition.score(evaluation)
            label = definition.label(evaluation) if definition.label else None
            year_data[year] = YearData(score=score, label=label)
            if score is not None:
                scores.append(score)
        rows.append(MetricRow(metric_name=definition.name, year_data=year_data, average=_mean(scores)))
    return rows


def get_employee_historic_data(store: EvaluationStore, employee_id: str) -> Optional[HistoricEvaluationData]:
    try:
        employee = store.get_employee(employee_id)
    except EvaluationStoreError as exc:
        logger.error("Error fetching employee %s: %s", employee_id, exc)
        return None
    if employee is None:
        logger.info("Employee %s not found", employee_id)
        return None

    try:
        evaluations = store.list_evaluations_for_employee(employee_id)
    except EvaluationStoreError as exc:
        logger.error("Error fetching evaluations for %s: %s", employee_id, exc)
        return None

    evaluations_by_year: Dict[int, Evaluation] = {}
    for evaluation in evaluations:
        evaluations_by_year[int(evaluation.evaluation_year)] = evaluation
    available_years = sorted(evaluations_by_year)

    return HistoricEvaluationData(
        employee=employee,
        evaluations_by_year=evaluations_by_year,
        available_years=available_years,
        metrics=build_metric_rows(evaluations_by_year, available_years),
    )


# ---------------------------------------------------------------------------
# Sorting
# ---------------------------------------------------------------------------


def _sort_value(row: MetricRow, column: SortColumn) -> Optional[float]:
    if column == "average":
        return row.average
    cell = row.year_data.get(int(column))  # type: ignore[arg-type]
    return cell.score if cell else None


def sort_metric_rows(rows: Sequence[MetricRow], column: SortColumn, direction: Optional[str]) -> List[MetricRow]:
    """Order rows by one year's score or by the average.

    Rows with no value for the column always go last, whichever the
    direction. ``column=None`` or ``direction=None`` keeps the given order.
    """
    if column is None or direction is None:
        return list(rows)
    if direction not in ("asc", "desc"):
        raise ValueError(f"Unknown sort direction: {direction!r}")

    present = [r for r in rows if _sort_value(r, column) is not None]
    missing = [r for r in rows if _sort_value(r, column) is None]
    present.sort(key=lambda r: _sort_value(r, column), reverse=(direction == "desc"))
    return present + missing


def next_sort_state(
    current_column: SortColumn, current_direction: Optional[str], clicked: SortColumn
) -> Tuple[SortColumn, Optional[str]]:
    """Header click cycle: a new column starts ascending, then descending, then unsorted."""
    if clicked != current_column:
        return clicked, "asc"
    if current_direction == "asc":
        return clicked, "desc"
    return None, None


def parse_sort_column(raw: Optional[str]) -> SortColumn:
    if raw is None or raw == "":
        return None
    if raw == "average":
        return "average"
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Unknown sort column: {raw!r}") from None


# ---------------------------------------------------------------------------
# Excel export
# ---------------------------------------------------------------------------


def _fill(score: Optional[float]) -> PatternFill:
    colour = performance_color(score).background.lstrip("#")
    return PatternFill(start_color=colour, end_color=colour, fill_type="solid")


def export_historic_workbook(data: HistoricEvaluationData, output_path: Optional[Path] = None) -> Path:
    """Write the historic matrix to an .xlsx file, cells colored by score band."""
    if output_path is None:
        EXPORT_DIR.mkdir(parents=True, exist_ok=True)
        output_path = EXPORT_DIR / f"historic_{data.employee.employee_code}.xlsx"
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    wb = Workbook()
    ws = wb.active
    ws.title = "Historial"
    ws.append([f"Historial de Evaluaciones - {data.employee.full_name}"])
    ws["A1"].font = Font(bold=True, size=13)

    header = ["Métrica"] + [str(year) for year in data.available_years] + ["Promedio"]
    ws.append(header)
    for cell in ws[2]:
        cell.font = Font(bold=True)
        cell.alignment = Alignment(horizontal="center")

    for row in data.metrics:
        values: List[object] = [row.metric_name]
        for year in data.available_years:
            cell = row.year_data.get(year) or YearData()
            values.append(round(cell.score, 2) if cell.score is not None else "-")
        values.append(round(row.average, 2) if row.average is not None else "N/A")
        ws.append(values)

        excel_row = ws.max_row
        for offset, year in enumerate(data.available_years, start=2):
            score = row.year_data[year].score
            if score is not None:
                ws.cell(row=excel_row, column=offset).fill = _fill(score)
        if row.average is not None:
            ws.cell(row=excel_row, column=len(header)).fill = _fill(row.average)

    ws.column_dimensions["A"].width = 34
    wb.save(output_path)
    return output_path


__all__ = [
    "METRIC_DEFINITIONS",
    "MetricDefinition",
    "build_metric_rows",
    "export_historic_workbook",
    "get_employee_historic_data",
    "next_sort_state",
    "parse_sort_column",
    "sort_metric_rows",
]
