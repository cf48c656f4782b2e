"""Data models for graph diffs: typed changes, impact and recommendations."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from ..graph.models import GraphMetrics


class ChangeType(Enum):
    DEPENDENCY_ADDED = "dependency-added"
    DEPENDENCY_REMOVED = "dependency-removed"
    CIRCULAR_DEPENDENCY_INTRODUCED = "circular-dependency-introduced"
    CIRCULAR_DEPENDENCY_RESOLVED = "circular-dependency-resolved"
    COUPLING_INCREASED = "coupling-increased"
    COUPLING_DECREASED = "coupling-decreased"
    LAYER_VIOLATION_INTRODUCED = "layer-violation-introduced"
    LAYER_VIOLATION_RESOLVED = "layer-violation-resolved"
    EXTERNAL_DEPENDENCY_ADDED = "external-dependency-added"
    EXTERNAL_DEPENDENCY_REMOVED = "external-dependency-removed"
    HOTSPOT_CREATED = "hotspot-created"
    HOTSPOT_RESOLVED = "hotspot-resolved"


class Severity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    @classmethod
    def parse(cls, value: str) -> "Severity":
        try:
            return cls(value.lower())
        except ValueError:
            names = ", ".join(s.value for s in cls)
            raise ValueError(f"unknown severity '{value}' (expected one of {names})")


_SEVERITY_RANK = {Severity.LOW: 0, Severity.MEDIUM: 1, Severity.HIGH: 2, Severity.CRITICAL: 3}


class ChangeCategory(Enum):
    DEPENDENCIES = "dependencies"
    ARCHITECTURE = "architecture"
    COUPLING = "coupling"
    COMPLEXITY = "complexity"
    EXTERNAL = "external"


@dataclass(frozen=True)
class ChangeImpact:
    """Effect of one change on three quality axes, each in [-5, +5]."""

    maintainability: int
    performance: int
    testability: int
    reasoning: str = ""

    @property
    def overall_score(self) -> int:
        return self.maintainability + self.performance + self.testability

    def to_dict(self) -> dict[str, Any]:
        return {
            "maintainability": self.maintainability,
            "performance": self.performance,
            "testability": self.testability,
            "overallScore": self.overall_score,
            "reasoning": self.reasoning,
        }


@dataclass
class ChangeDetails:
    before: Any = None
    after: Any = None
    modules: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"before": self.before, "after": self.after, "modules": list(self.modules)}


@dataclass
class ArchitecturalChange:
    id: str
    type: ChangeType
    severity: Severity
    category: ChangeCategory
    description: str
    details: ChangeDetails
    impact: ChangeImpact

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "severity": self.severity.value,
            "category": self.category.value,
            "description": self.description,
            "details": self.details.to_dict(),
            "impact": self.impact.to_dict(),
        }


@dataclass(frozen=True)
class MetricChange:
    before: float
    after: float

    @property
    def delta(self) -> float:
        return round(self.after - self.before, 1)

    def to_dict(self) -> dict[str, Any]:
        return {"before": self.before, "after": self.after, "delta": self.delta}


@dataclass
class ImpactSummary:
    total_changes: int
    by_severity: dict[str, int]
    by_category: dict[str, int]
    health_change: MetricChange
    key_metrics: dict[str, MetricChange] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalChanges": self.total_changes,
            "bySeverity": dict(self.by_severity),
            "byCategory": dict(self.by_category),
            "healthChange": self.health_change.to_dict(),
            "keyMetrics": {name: m.to_dict() for name, m in self.key_metrics.items()},
        }


@dataclass
class Recommendation:
    id: str
    priority: Severity
    type: str  # fix-issue | improve-architecture | refactor | monitor
    title: str
    description: str
    actions: list[str]
    addresses: list[str]
    effort: str  # low | medium | high
    expected_impact: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "priority": self.priority.value,
            "type": self.type,
            "title": self.title,
            "description": self.description,
            "actions": list(self.actions),
            "addresses": list(self.addresses),
            "effort": self.effort,
            "expectedImpact": self.expected_impact,
        }


@dataclass
class DiffReport:
    """Complete comparison of two graph snapshots.

    Changes are in detection order; recommendations are most urgent first.
    """

    baseline_ref: str
    current_ref: str
    generated_at: datetime
    baseline_metrics: GraphMetrics
    current_metrics: GraphMetrics
    changes: list[ArchitecturalChange] = field(default_factory=list)
    impact: Optional[ImpactSummary] = None
    recommendations: list[Recommendation] = field(default_factory=list)

    def changes_of(self, change_type: ChangeType) -> list[ArchitecturalChange]:
        return [c for c in self.changes if c.type is change_type]

    @property
    def has_regressions(self) -> bool:
        return any(c.impact.overall_score < 0 for c in self.changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "baseline": self.baseline_ref,
            "current": self.current_ref,
            "generatedAt": self.generated_at.isoformat(),
            "metrics": {
                "baseline": self.baseline_metrics.to_dict(),
                "current": self.current_metrics.to_dict(),
            },
            "changes": [c.to_dict() for c in self.changes],
            "impact": self.impact.to_dict() if self.impact else None,
            "recommendations": [r.to_dict() for r in self.recommendations],
        }
