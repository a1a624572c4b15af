from __future__ import annotations

"""Score banding shared by every view that colors an evaluation score.

The bands are a step function over the 1-5 scale. A missing score is shown
in the ``medium`` band.
"""

from dataclasses import dataclass, asdict
from typing import Dict, Optional

EXCELLENT_MIN = 3.3
HIGH_MIN = 3.0
MEDIUM_MIN = 2.71

LEVELS = ("low", "medium", "high", "excellent")


@dataclass(frozen=True)
class PerformanceColor:
    level: str
    background: str
    text: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


PALETTE: Dict[str, PerformanceColor] = {
    "excellent": PerformanceColor(level="excellent", background="#271DED", text="#FFFFFF"),  # azul
    "high": PerformanceColor(level="high", background="#257916", text="#FFFFFF"),  # verde
    "medium": PerformanceColor(level="medium", background="#FFDB3D", text="#000000"),  # amarillo
    "low": PerformanceColor(level="low", background="#FF5D38", text="#FFFFFF"),  # naranja
}


def performance_level(score: Optional[float]) -> str:
    if score is None:
        return "medium"
    if score >= EXCELLENT_MIN:
        return "excellent"
    if score >= HIGH_MIN:
        return "high"
    if score >= MEDIUM_MIN:
        return "medium"
    return "low"


def performance_color(score: Optional[float]) -> PerformanceColor:
    return PALETTE[performance_level(score)]


__all__ = ["PerformanceColor", "PALETTE", "LEVELS", "performance_level", "performance_color"]
