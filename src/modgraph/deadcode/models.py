"""Data models for dead export and unused import detection."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from ..facts.models import ExportFact, ImportFact


class Confidence(Enum):
    """How safe removing a candidate looks."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _CONFIDENCE_RANK[self]


_CONFIDENCE_RANK = {Confidence.LOW: 1, Confidence.MEDIUM: 2, Confidence.HIGH: 3}


class RiskFactor:
    """Labels attached to candidates whose removal might break something."""

    PUBLIC_API = "likely public API"
    TEST_CONTEXT = "test context"
    TYPE_ONLY = "type-only"
    DEFAULT_EXPORT = "default export"
    DYNAMICALLY_LOADED = "dynamically loaded"
    SIDE_EFFECT_IMPORT = "side-effect import"
    POLYFILL = "polyfill or setup"
    FRAMEWORK_IMPORT = "framework import"


class Safety(Enum):
    SAFE = "safe"
    REVIEW_NEEDED = "review-needed"
    RISKY = "risky"

    @property
    def rank(self) -> int:
        return _SAFETY_RANK[self]


_SAFETY_RANK = {Safety.RISKY: 1, Safety.REVIEW_NEEDED: 2, Safety.SAFE: 3}


@dataclass
class DeadReferenceCandidate:
    """An export nobody imports, or an import nobody references."""

    fact: Union[ExportFact, ImportFact]
    confidence: Confidence
    risk_factors: list[str] = field(default_factory=list)
    reason: str = ""

    @property
    def category(self) -> str:
        return "dead-export" if isinstance(self.fact, ExportFact) else "unused-import"

    @property
    def module(self) -> str:
        return self.fact.module

    @property
    def name(self) -> str:
        if isinstance(self.fact, ImportFact):
            return self.fact.local
        return self.fact.name

    @property
    def line(self) -> int:
        return self.fact.line

    def to_dict(self) -> dict[str, Any]:
        data = self.fact.to_dict()
        data.update(
            {
                "category": self.category,
                "reason": self.reason,
                "confidence": self.confidence.value,
                "riskFactors": list(self.risk_factors),
            }
        )
        return data


@dataclass
class RemovalSuggestion:
    """A concrete, ranked removal action for one candidate."""

    id: str
    priority: Confidence
    safety: Safety
    action: str
    module: str
    line: int
    impact: str
    type: str  # remove-export | remove-import
    warnings: list[str] = field(default_factory=list)
    command: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "priority": self.priority.value,
            "safety": self.safety.value,
            "action": self.action,
            "file": self.module,
            "line": self.line,
            "impact": self.impact,
            "type": self.type,
        }
        if self.warnings:
            data["warnings"] = list(self.warnings)
        if self.command:
            data["command"] = self.command
        return data


@dataclass
class DeadCodeMetrics:
    total_files: int = 0
    total_exports: int = 0
    total_imports: int = 0
    dead_exports: int = 0
    unused_imports: int = 0
    skipped_files: int = 0
    analysis_time_ms: int = 0
    estimated_savings_kb: int = 0
    cache_stats: Optional[dict[str, Any]] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "totalFiles": self.total_files,
            "totalExports": self.total_exports,
            "totalImports": self.total_imports,
            "deadExports": self.dead_exports,
            "unusedImports": self.unused_imports,
            "skippedFiles": self.skipped_files,
            "analysisTimeMs": self.analysis_time_ms,
            "estimatedSavingsKB": self.estimated_savings_kb,
        }
        if self.cache_stats is not None:
            data["cacheStats"] = dict(self.cache_stats)
        return data


@dataclass
class DeadCodeReport:
    project_path: str
    dead_exports: list[DeadReferenceCandidate] = field(default_factory=list)
    unused_imports: list[DeadReferenceCandidate] = field(default_factory=list)
    suggestions: list[RemovalSuggestion] = field(default_factory=list)
    metrics: DeadCodeMetrics = field(default_factory=DeadCodeMetrics)
    skipped: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "projectPath": self.project_path,
            "deadExports": [c.to_dict() for c in self.dead_exports],
            "unusedImports": [c.to_dict() for c in self.unused_imports],
            "suggestions": [s.to_dict() for s in self.suggestions],
            "metrics": self.metrics.to_dict(),
            "skipped": list(self.skipped),
        }
