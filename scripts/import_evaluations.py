#!/usr/bin/env python3
"""Import one year of hierarchy + performance exports into the evaluation store.

    python scripts/import_evaluations.py --hierarchy jerarquia.csv --performance desempeno.csv --year 2024
"""
import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from calibration import config  # noqa: E402
from calibration.evaluations.store import EvaluationStore, EvaluationStoreError  # noqa: E402
from calibration.importer import ImportValidationError, run_import  # noqa: E402

logger = logging.getLogger("import_evaluations")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Import employee hierarchy and performance evaluations")
    parser.add_argument("--hierarchy", required=True, help="Hierarchy CSV/XLSX (ID, Nombre, Apellido, Identifier)")
    parser.add_argument("--performance", required=True, help="Performance CSV/XLSX (ID, Rut, Email, scores...)")
    parser.add_argument("--year", type=int, default=config.DEFAULT_EVALUATION_YEAR, help="Evaluation year")
    parser.add_argument("--db", default=None, help="SQLite database path (defaults to CALIBRATION_DB_PATH)")
    parser.add_argument("--batch-size", type=int, default=config.IMPORT_BATCH_SIZE, help="Rows per upsert batch")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if config.DEBUG else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    logger.info("Evaluation year: %s", args.year)
    try:
        store = EvaluationStore(Path(args.db) if args.db else None)
        logger.info("Database: %s", store.db_path)
        report = run_import(
            args.hierarchy,
            args.performance,
            year=args.year,
            store=store,
            batch_size=args.batch_size,
        )
    except ImportValidationError as exc:
        logger.error("Import aborted, nothing was written: %s", exc)
        return 1
    except EvaluationStoreError as exc:
        logger.exception("Import failed: %s", exc)
        return 1

    logger.info(
        "Import complete: %s employees, %s evaluations, %s comments written (%s warnings)",
        report.employees_written,
        report.evaluations_written,
        report.comments_written,
        len(report.warnings),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
