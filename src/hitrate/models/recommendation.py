from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class RecommendationType(StrEnum):
    IMPROVEMENT = "improvement"
    WARNING = "warning"
    SUCCESS = "success"


class Priority(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class Recommendation:
    type: RecommendationType
    title: str
    description: str
    priority: Priority
    metric: str | None = None
    value: float | None = None
