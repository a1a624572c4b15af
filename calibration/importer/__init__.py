"""Batch import of the yearly hierarchy and performance exports."""

from .readers import ImportValidationError, read_table  # noqa: F401
from .evaluation_import import ImportReport, run_import  # noqa: F401
