from __future__ import annotations

"""
Batch importer for the yearly HR evaluation exports.

Two inputs:
- hierarchy table: ID, Nombre, Apellido, Identifier (the manager's ID)
- performance table: ID, Rut, Email and one column per score, each score
  optionally followed by an "Etiqueta" label column; any "Comentario ..."
  column becomes an evaluation comment

Usage:

    from calibration.importer import run_import
    report = run_import("jerarquia.csv", "desempeno.csv", year=2024)

Every row is validated before the first write. Writes are upserts keyed on
employee_code and (employee_id, evaluation_year), so re-running the same
files converges to the same state.
"""

import logging
import uuid
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from calibration import config
from calibration.evaluations.store import EvaluationStore
from calibration.importer.readers import (
    ImportValidationError,
    PathLike,
    Table,
    cell,
    clean_string,
    normalize_header,
    read_table,
    to_code,
    to_decimal,
)

logger = logging.getLogger(__name__)

HIERARCHY_COLUMNS = ("ID", "Nombre", "Apellido", "Identifier")
PERFORMANCE_REQUIRED = ("ID", "Rut", "Email")
COMMENT_PREFIX = "comentario"

# evaluation field prefix -> source header; ``general_potential`` has no _score suffix
SCORE_COLUMNS: Tuple[Tuple[str, str, str], ...] = (
    ("general_potential", "general_potential_label", "General - Potencial"),
    ("peer_client_score", "peer_client_label", "Par/Cliente (Desempeño)"),
    ("direct_manager_score", "direct_manager_label", "Jefe Directo (Desempeño)"),
    ("collaborator_score", "collaborator_label", "Evaluación Colaborador"),
    ("competencies_avg_score", "competencies_avg_label", "Promedio de Competencias Desempeño"),
    ("one_team_score", "one_team_label", "SOMOS UN SOLO EQUIPO"),
    ("agility_score", "agility_label", "NOS MOVEMOS ÁGILMENTE"),
    ("customer_passion_score", "customer_passion_label", "NOS APASIONAMOS POR EL CLIENTE"),
    ("future_care_score", "future_care_label", "CUIDAMOS EL FUTURO"),
)
IPE_COLUMN = "IPE"


@dataclass
class ImportBatch:
    """Everything the importer will write, built and validated before any write."""

    employees: List[Dict[str, Any]] = field(default_factory=list)
    evaluations: List[Dict[str, Any]] = field(default_factory=list)
    comments: List[Dict[str, Any]] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class ImportReport:
    year: int
    employees_written: int = 0
    evaluations_written: int = 0
    comments_written: int = 0
    skipped_rows: int = 0
    warnings: List[str] = field(default_factory=list)
    total_employees: int = 0
    total_evaluations: int = 0
    total_managers: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _new_id() -> str:
    return str(uuid.uuid4())


def _require_columns(table: Table, names: Sequence[str]) -> None:
    missing = [n for n in names if table.index_of(n) is None]
    if missing:
        raise ImportValidationError(f"{table.source or 'table'} is missing columns: {', '.join(missing)}")


def _warn(batch: ImportBatch, message: str) -> None:
    logger.warning(message)
    batch.warnings.append(message)


# ---------------------------------------------------------------------------
# Processing
# ---------------------------------------------------------------------------


def process_hierarchy(
    table: Table,
    existing_ids: Optional[Dict[int, str]] = None,
    batch: Optional[ImportBatch] = None,
) -> ImportBatch:
    """Build employee rows with manager links resolved to internal ids.

    Codes already known to the store keep their id. A manager code that is
    not in the hierarchy leaves the employee top-level.
    """
    batch = batch or ImportBatch()
    existing_ids = existing_ids or {}
    _require_columns(table, HIERARCHY_COLUMNS)
    idx = {name: table.index_of(name) for name in HIERARCHY_COLUMNS}

    # first pass: code -> id
    parsed: List[Tuple[int, List[Any]]] = []
    id_by_code: Dict[int, str] = {}
    for line_no, row in enumerate(table.rows, start=2):
        code = to_code(cell(row, idx["ID"]))
        if code is None:
            raise ImportValidationError(f"Hierarchy row {line_no}: invalid employee ID {cell(row, idx['ID'])!r}")
        if code in id_by_code:
            raise ImportValidationError(f"Hierarchy row {line_no}: duplicate employee ID {code}")
        id_by_code[code] = existing_ids.get(code) or _new_id()
        parsed.append((code, row))

    # second pass: manager links
    for code, row in parsed:
        manager_code = to_code(cell(row, idx["Identifier"]))
        manager_id = id_by_code.get(manager_code) if manager_code is not None else None
        if manager_code is not None and manager_id is None:
            _warn(batch, f"Manager code {manager_code} not found for employee {code}; imported as top-level")
        batch.employees.append(
            {
                "id": id_by_code[code],
                "employee_code": code,
                "first_name": clean_string(cell(row, idx["Nombre"])) or "",
                "last_name": clean_string(cell(row, idx["Apellido"])) or "",
                "manager_id": manager_id,
                "rut": None,
                "email": None,
            }
        )

    logger.info("Processed %s employees from hierarchy data", len(batch.employees))
    return batch


def _comment_columns(table: Table) -> List[Tuple[str, int]]:
    out: List[Tuple[str, int]] = []
    for i, header in enumerate(table.headers):
        key = normalize_header(header)
        if key.startswith(COMMENT_PREFIX):
            category = header.strip()[len(COMMENT_PREFIX):].strip(" -:_") or "general"
            out.append((category.lower(), i))
    return out


def process_performance(
    table: Table,
    batch: ImportBatch,
    year: int,
    existing_evaluation_ids: Optional[Dict[str, str]] = None,
) -> ImportBatch:
    """Fill RUT/email on known employees and build one evaluation per row."""
    _require_columns(table, PERFORMANCE_REQUIRED)
    existing_evaluation_ids = existing_evaluation_ids or {}
    columns = table.labelled_columns()
    idx_code = table.index_of("ID")
    idx_rut = table.index_of("Rut")
    idx_email = table.index_of("Email")
    idx_ipe = table.index_of(IPE_COLUMN)
    comment_columns = _comment_columns(table)

    employees_by_code = {e["employee_code"]: e for e in batch.employees}
    seen: Dict[int, int] = {}

    for line_no, row in enumerate(table.rows, start=2):
        code = to_code(cell(row, idx_code))
        employee = employees_by_code.get(code) if code is not None else None
        if employee is None:
            _warn(batch, f"Employee {cell(row, idx_code)!r} found in performance data but not in hierarchy")
            continue
        if code in seen:
            raise ImportValidationError(
                f"Performance row {line_no}: employee {code} already evaluated on row {seen[code]}"
            )
        seen[code] = line_no

        employee["rut"] = clean_string(cell(row, idx_rut))
        employee["email"] = clean_string(cell(row, idx_email))

        evaluation_id = existing_evaluation_ids.get(employee["id"]) or _new_id()
        evaluation: Dict[str, Any] = {
            "id": evaluation_id,
            "employee_id": employee["id"],
            "evaluation_year": int(year),
            "ipe": to_decimal(cell(row, idx_ipe)),
        }
        for score_field, label_field, header in SCORE_COLUMNS:
            position = columns.get(normalize_header(header))
            if position is None:
                evaluation[score_field] = None
                evaluation[label_field] = None
                continue
            evaluation[score_field] = to_decimal(cell(row, position["value"]))
            evaluation[label_field] = clean_string(cell(row, position["label"]))
        batch.evaluations.append(evaluation)

        for category, i in comment_columns:
            text = clean_string(cell(row, i))
            if text is None:
                continue
            batch.comments.append(
                {
                    "id": _new_id(),
                    "evaluation_id": evaluation_id,
                    "category": category,
                    "comment_text": text,
                }
            )

    logger.info("Processed %s evaluations for %s", len(batch.evaluations), year)
    return batch


def validate_employees(employees: Iterable[Dict[str, Any]]) -> None:
    """Every employee needs an email and a RUT. One gap fails the whole import."""
    problems = []
    for emp in employees:
        missing = [name for name in ("email", "rut") if not emp.get(name)]
        if missing:
            problems.append(f"employee {emp.get('employee_code')} missing {', '.join(missing)}")
    if problems:
        for problem in problems:
            logger.error("Validation failed: %s", problem)
        raise ImportValidationError(
            f"{len(problems)} employee(s) lack required fields: " + "; ".join(problems[:10])
        )


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------


def _write_in_batches(
    label: str,
    rows: Sequence[Dict[str, Any]],
    write: Callable[[Sequence[Dict[str, Any]]], int],
    batch_size: int,
) -> int:
    if not rows:
        logger.info("No %s to import", label)
        return 0
    written = 0
    for start in range(0, len(rows), batch_size):
        chunk = rows[start:start + batch_size]
        written += write(chunk)
        logger.info("Imported %s/%s %s", written, len(rows), label)
    return written


def run_import(
    hierarchy_path: PathLike,
    performance_path: PathLike,
    year: Optional[int] = None,
    store: Optional[EvaluationStore] = None,
    batch_size: Optional[int] = None,
) -> ImportReport:
    """Read, validate and upsert one year of evaluations, then verify counts.

    Raises ImportValidationError before touching the store when the input is
    invalid. Store failures propagate as EvaluationStoreError.
    """
    year = int(year or config.DEFAULT_EVALUATION_YEAR)
    batch_size = int(batch_size or config.IMPORT_BATCH_SIZE)
    if batch_size < 1:
        raise ImportValidationError("batch size must be positive")
    store = store or EvaluationStore()

    hierarchy = read_table(hierarchy_path)
    performance = read_table(performance_path)
    logger.info("Hierarchy records: %s | Performance records: %s", len(hierarchy.rows), len(performance.rows))

    batch = process_hierarchy(hierarchy, existing_ids=store.employee_ids_by_code())
    process_performance(performance, batch, year, existing_evaluation_ids=store.evaluation_ids_by_key(year))
    validate_employees(batch.employees)

    report = ImportReport(
        year=year,
        skipped_rows=len(performance.rows) - len(batch.evaluations),
        warnings=list(batch.warnings),
    )
    report.employees_written = _write_in_batches("employees", batch.employees, store.upsert_employees, batch_size)
    report.evaluations_written = _write_in_batches(
        "evaluations", batch.evaluations, store.upsert_evaluations, batch_size
    )
    report.comments_written = _write_in_batches("comments", batch.comments, store.upsert_comments, batch_size)

    report.total_employees = store.count_employees()
    report.total_evaluations = store.count_evaluations(year)
    report.total_managers = store.count_managers()
    logger.info(
        "Verification: %s employees, %s evaluations for %s, %s managers",
        report.total_employees,
        report.total_evaluations,
        year,
        report.total_managers,
    )
    return report


__all__ = [
    "HIERARCHY_COLUMNS",
    "ImportBatch",
    "ImportReport",
    "SCORE_COLUMNS",
    "process_hierarchy",
    "process_performance",
    "run_import",
    "validate_employees",
]
