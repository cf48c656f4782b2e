"""Graph diffing: typed architectural changes between two snapshots."""

from .engine import diff_snapshots, filter_by_severity, summarize_impact
from .impact import IMPACT_TABLE, impact_for
from .models import (
    ArchitecturalChange,
    ChangeCategory,
    ChangeDetails,
    ChangeImpact,
    ChangeType,
    DiffReport,
    ImpactSummary,
    MetricChange,
    Recommendation,
    Severity,
)
from .recommendations import generate_recommendations

__all__ = [
    "ArchitecturalChange",
    "ChangeCategory",
    "ChangeDetails",
    "ChangeImpact",
    "ChangeType",
    "DiffReport",
    "IMPACT_TABLE",
    "ImpactSummary",
    "MetricChange",
    "Recommendation",
    "Severity",
    "diff_snapshots",
    "filter_by_severity",
    "generate_recommendations",
    "impact_for",
    "summarize_impact",
]
