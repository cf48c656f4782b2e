"""Dead export and unused import detection with removal risk assessment."""

from .analyzer import (
    DeadCodeAnalyzer,
    build_import_map,
    find_dead_exports,
    find_unused_imports,
)
from .models import (
    Confidence,
    DeadCodeMetrics,
    DeadCodeReport,
    DeadReferenceCandidate,
    RemovalSuggestion,
    RiskFactor,
    Safety,
)
from .risk import assess_export_risk, assess_import_risk, confidence_for
from .suggestions import generate_removal_suggestions

__all__ = [
    "Confidence",
    "DeadCodeAnalyzer",
    "DeadCodeMetrics",
    "DeadCodeReport",
    "DeadReferenceCandidate",
    "RemovalSuggestion",
    "RiskFactor",
    "Safety",
    "assess_export_risk",
    "assess_import_risk",
    "build_import_map",
    "confidence_for",
    "find_dead_exports",
    "find_unused_imports",
    "generate_removal_suggestions",
]
