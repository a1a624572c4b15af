from __future__ import annotations

"""
SQLite-backed evaluation store.

Holds three tables:
- employees (one row per person, self-referencing manager_id)
- performance_evaluations (one row per employee per year)
- evaluation_comments (free-text notes per evaluation, one per category)

The aggregation layer only reads from it; the batch importer is the only
writer. Every sqlite3 failure surfaces as EvaluationStoreError.
"""

import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

from calibration import config
from calibration.evaluations.models import (
    COMMENT_COLUMNS,
    EMPLOYEE_COLUMNS,
    EVALUATION_COLUMNS,
    Employee,
    Evaluation,
    EvaluationComment,
)


class EvaluationStoreError(Exception):
    """The evaluation store could not be reached or the query failed."""


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _row_to_dict(row: sqlite3.Row) -> Dict[str, Any]:
    return {key: row[key] for key in row.keys()}


SCHEMA = """
CREATE TABLE IF NOT EXISTS employees(
    id TEXT PRIMARY KEY,
    employee_code INTEGER NOT NULL UNIQUE,
    first_name TEXT NOT NULL,
    last_name TEXT NOT NULL,
    rut TEXT,
    email TEXT,
    manager_id TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS performance_evaluations(
    id TEXT PRIMARY KEY,
    employee_id TEXT NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
    evaluation_year INTEGER NOT NULL,
    general_potential REAL,
    general_potential_label TEXT,
    peer_client_score REAL,
    peer_client_label TEXT,
    direct_manager_score REAL,
    direct_manager_label TEXT,
    collaborator_score REAL,
    collaborator_label TEXT,
    competencies_avg_score REAL,
    competencies_avg_label TEXT,
    one_team_score REAL,
    one_team_label TEXT,
    agility_score REAL,
    agility_label TEXT,
    customer_passion_score REAL,
    customer_passion_label TEXT,
    future_care_score REAL,
    future_care_label TEXT,
    ipe REAL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    UNIQUE (employee_id, evaluation_year)
);

CREATE TABLE IF NOT EXISTS evaluation_comments(
    id TEXT PRIMARY KEY,
    evaluation_id TEXT NOT NULL REFERENCES performance_evaluations(id) ON DELETE CASCADE,
    category TEXT NOT NULL,
    comment_text TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    UNIQUE (evaluation_id, category)
);

CREATE INDEX IF NOT EXISTS idx_employees_manager ON employees(manager_id);
CREATE INDEX IF NOT EXISTS idx_evaluations_year ON performance_evaluations(evaluation_year);
"""


def _upsert_sql(table: str, columns: Sequence[str], conflict: Sequence[str]) -> str:
    """Build an INSERT .. ON CONFLICT DO UPDATE that never rewrites id/created_at."""
    placeholders = ", ".join(f":{col}" for col in columns)
    keep = set(conflict) | {"id", "created_at"}
    updates = ", ".join(f"{col} = excluded.{col}" for col in columns if col not in keep)
    return (
        f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders}) "
        f"ON CONFLICT({', '.join(conflict)}) DO UPDATE SET {updates}"
    )


class EvaluationStore:
    """Thread-safe, single-file sqlite evaluation store."""

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = Path(db_path or config.DB_PATH)
        self._lock = threading.RLock()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        con = sqlite3.connect(str(self.db_path), check_same_thread=False)
        con.row_factory = sqlite3.Row
        con.execute("PRAGMA foreign_keys=ON;")
        return con

    @contextmanager
    def _session(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                con = self._connect()
            except sqlite3.Error as exc:
                raise EvaluationStoreError(f"Cannot open {self.db_path}: {exc}") from exc
            try:
                yield con
                con.commit()
            except sqlite3.Error as exc:
                con.rollback()
                raise EvaluationStoreError(str(exc)) from exc
            finally:
                con.close()

    def _ensure_schema(self) -> None:
        with self._session() as con:
            con.executescript(SCHEMA)

    # ----------------------------
    # Reads
    # ----------------------------
    def get_employee(self, employee_id: str) -> Optional[Employee]:
        with self._session() as con:
            row = con.execute("SELECT * FROM employees WHERE id = ?", (employee_id,)).fetchone()
        return Employee(**_row_to_dict(row)) if row else None

    def list_direct_reports(self, manager_id: str) -> List[Employee]:
        """Employees whose manager is ``manager_id``, by last name then first name."""
        with self._session() as con:
            rows = con.execute(
                "SELECT * FROM employees WHERE manager_id = ? ORDER BY last_name ASC, first_name ASC",
                (manager_id,),
            ).fetchall()
        return [Employee(**_row_to_dict(r)) for r in rows]

    def list_evaluations_for_employees(self, employee_ids: Sequence[str], year: int) -> List[Evaluation]:
        ids = list(employee_ids)
        if not ids:
            return []
        placeholders = ",".join("?" for _ in ids)
        with self._session() as con:
            rows = con.execute(
                f"SELECT * FROM performance_evaluations "
                f"WHERE employee_id IN ({placeholders}) AND evaluation_year = ?",
                [*ids, int(year)],
            ).fetchall()
        return [Evaluation(**_row_to_dict(r)) for r in rows]

    def get_evaluation(self, employee_id: str, year: int) -> Optional[Evaluation]:
        with self._session() as con:
            row = con.execute(
                "SELECT * FROM performance_evaluations WHERE employee_id = ? AND evaluation_year = ?",
                (employee_id, int(year)),
            ).fetchone()
        return Evaluation(**_row_to_dict(row)) if row else None

    def list_evaluations_for_employee(self, employee_id: str) -> List[Evaluation]:
        """All evaluations of one employee, oldest year first."""
        with self._session() as con:
            rows = con.execute(
                "SELECT * FROM performance_evaluations WHERE employee_id = ? ORDER BY evaluation_year ASC",
                (employee_id,),
            ).fetchall()
        return [Evaluation(**_row_to_dict(r)) for r in rows]

    def list_comments(self, evaluation_id: str) -> List[EvaluationComment]:
        with self._session() as con:
            rows = con.execute(
                "SELECT * FROM evaluation_comments WHERE evaluation_id = ? ORDER BY category ASC",
                (evaluation_id,),
            ).fetchall()
        return [EvaluationComment(**_row_to_dict(r)) for r in rows]

    def list_evaluation_years(self) -> List[int]:
        """Distinct evaluation years, newest first."""
        with self._session() as con:
            rows = con.execute(
                "SELECT DISTINCT evaluation_year FROM performance_evaluations ORDER BY evaluation_year DESC"
            ).fetchall()
        return [int(r["evaluation_year"]) for r in rows]

    def employee_ids_by_code(self) -> Dict[int, str]:
        with self._session() as con:
            rows = con.execute("SELECT id, employee_code FROM employees").fetchall()
        return {int(r["employee_code"]): r["id"] for r in rows}

    def evaluation_ids_by_key(self, year: int) -> Dict[str, str]:
        """employee_id -> evaluation id for one year."""
        with self._session() as con:
            rows = con.execute(
                "SELECT id, employee_id FROM performance_evaluations WHERE evaluation_year = ?",
                (int(year),),
            ).fetchall()
        return {r["employee_id"]: r["id"] for r in rows}

    # ----------------------------
    # Verification counts
    # ----------------------------
    def count_employees(self) -> int:
        with self._session() as con:
            return int(con.execute("SELECT COUNT(*) FROM employees").fetchone()[0])

    def count_evaluations(self, year: Optional[int] = None) -> int:
        with self._session() as con:
            if year is None:
                return int(con.execute("SELECT COUNT(*) FROM performance_evaluations").fetchone()[0])
            return int(
                con.execute(
                    "SELECT COUNT(*) FROM performance_evaluations WHERE evaluation_year = ?", (int(year),)
                ).fetchone()[0]
            )

    def count_managers(self) -> int:
        """Number of employees that at least one other employee reports to."""
        with self._session() as con:
            return int(
                con.execute(
                    "SELECT COUNT(*) FROM employees WHERE id IN "
                    "(SELECT manager_id FROM employees WHERE manager_id IS NOT NULL)"
                ).fetchone()[0]
            )

    # ----------------------------
    # Writes (batch importer only)
    # ----------------------------
    def _upsert(self, table: str, columns: Sequence[str], conflict: Sequence[str],
                rows: Iterable[Dict[str, Any]]) -> int:
        payload = []
        now = _utc_now_iso()
        for row in rows:
            record = {col: row.get(col) for col in columns}
            record["created_at"] = record.get("created_at") or now
            record["updated_at"] = now
            payload.append(record)
        if not payload:
            return 0
        with self._session() as con:
            con.executemany(_upsert_sql(table, columns, conflict), payload)
        return len(payload)

    def upsert_employees(self, rows: Iterable[Dict[str, Any]]) -> int:
        # manager_id carries no foreign key: a report may land before its manager.
        return self._upsert("employees", EMPLOYEE_COLUMNS, ["employee_code"], rows)

    def upsert_evaluations(self, rows: Iterable[Dict[str, Any]]) -> int:
        return self._upsert(
            "performance_evaluations", EVALUATION_COLUMNS, ["employee_id", "evaluation_year"], rows
        )

    def upsert_comments(self, rows: Iterable[Dict[str, Any]]) -> int:
        return self._upsert("evaluation_comments", COMMENT_COLUMNS, ["evaluation_id", "category"], rows)


__all__ = ["EvaluationStore", "EvaluationStoreError"]
