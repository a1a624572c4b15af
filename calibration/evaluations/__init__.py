"""Evaluation package: records, store, team aggregation and multi-year history."""

from .models import Employee, Evaluation, EvaluationComment, TeamMember, TeamSummary  # noqa: F401
from .store import EvaluationStore, EvaluationStoreError  # noqa: F401
from .colors import performance_color, performance_level  # noqa: F401
