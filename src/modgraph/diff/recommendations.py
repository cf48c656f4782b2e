"""Recommendations derived from classified changes.

Each rule fires at most once per report and references every change it
covers, so ten new cycles give one "Resolve Circular Dependencies" entry.
"""

from collections.abc import Callable
from dataclasses import dataclass

from .models import ArchitecturalChange, ChangeType, Recommendation, Severity


@dataclass(frozen=True)
class _Rule:
    matches: Callable[[ArchitecturalChange], bool]
    priority: Severity
    type: str
    title: str
    description: str
    actions: tuple[str, ...]
    effort: str
    expected_impact: str


def _of_type(*types: ChangeType) -> Callable[[ArchitecturalChange], bool]:
    return lambda change: change.type in types


_RULES = (
    _Rule(
        matches=_of_type(ChangeType.CIRCULAR_DEPENDENCY_INTRODUCED),
        priority=Severity.HIGH,
        type="refactor",
        title="Resolve Circular Dependencies",
        description="New circular dependencies were introduced that should be resolved.",
        actions=(
            "Identify the circular dependency chain",
            "Extract common functionality to a shared module",
            "Use dependency injection or event-driven patterns",
            "Consider architectural refactoring",
        ),
        effort="medium",
        expected_impact="Improve code organization and testability",
    ),
    _Rule(
        matches=_of_type(ChangeType.COUPLING_INCREASED),
        priority=Severity.MEDIUM,
        type="improve-architecture",
        title="Reduce Module Coupling",
        description="Average coupling has increased, which may impact maintainability.",
        actions=(
            "Review new dependencies and remove unnecessary ones",
            "Use interfaces to decouple implementations",
            "Consider using dependency injection",
            "Extract common functionality to utilities",
        ),
        effort="medium",
        expected_impact="Improve modularity and make code easier to test",
    ),
    _Rule(
        matches=_of_type(ChangeType.LAYER_VIOLATION_INTRODUCED),
        priority=Severity.HIGH,
        type="fix-issue",
        title="Fix Layer Violations",
        description="New architectural layer violations detected.",
        actions=(
            "Review direct connections between UI and database layers",
            "Ensure all data access goes through service layer",
            "Implement proper abstractions and interfaces",
            "Set up architectural linting rules",
        ),
        effort="medium",
        expected_impact="Maintain proper separation of concerns",
    ),
    _Rule(
        matches=_of_type(ChangeType.HOTSPOT_CREATED),
        priority=Severity.MEDIUM,
        type="refactor",
        title="Split Complexity Hotspots",
        description="Some modules now depend on far more modules than average.",
        actions=(
            "Split hotspot modules by responsibility",
            "Move orchestration code into dedicated coordinators",
            "Review whether every import is still needed",
        ),
        effort="medium",
        expected_impact="Spread change risk across smaller, focused modules",
    ),
    _Rule(
        matches=_of_type(ChangeType.EXTERNAL_DEPENDENCY_ADDED),
        priority=Severity.LOW,
        type="improve-architecture",
        title="Review New External Dependencies",
        description="New third-party packages are now referenced.",
        actions=(
            "Confirm each package is needed and maintained",
            "Check license and bundle size impact",
            "Wrap third-party APIs behind local modules",
        ),
        effort="low",
        expected_impact="Keep the external surface small and replaceable",
    ),
    _Rule(
        matches=_of_type(
            ChangeType.CIRCULAR_DEPENDENCY_RESOLVED,
            ChangeType.COUPLING_DECREASED,
            ChangeType.LAYER_VIOLATION_RESOLVED,
            ChangeType.HOTSPOT_RESOLVED,
        ),
        priority=Severity.LOW,
        type="monitor",
        title="Continue Good Practices",
        description="Positive architectural changes detected. Keep up the good work!",
        actions=(
            "Document the refactoring patterns used",
            "Share knowledge with the team",
            "Consider applying similar patterns elsewhere",
        ),
        effort="low",
        expected_impact="Maintain and spread good architectural practices",
    ),
)


def generate_recommendations(changes: list[ArchitecturalChange]) -> list[Recommendation]:
    """Recommendations for ``changes``, most urgent first (stable for equal priority)."""
    recommendations: list[Recommendation] = []

    critical = [c for c in changes if c.severity is Severity.CRITICAL]
    if critical:
        recommendations.append(
            Recommendation(
                id="",
                priority=Severity.CRITICAL,
                type="fix-issue",
                title="Address Critical Architectural Issues",
                description=(
                    "Critical architectural problems detected that require immediate attention."
                ),
                actions=[f"Fix: {c.description}" for c in critical],
                addresses=[c.id for c in critical],
                effort="high",
                expected_impact="Prevent significant technical debt and maintainability issues",
            )
        )

    for rule in _RULES:
        matched = [c for c in changes if rule.matches(c)]
        if not matched:
            continue
        recommendations.append(
            Recommendation(
                id="",
                priority=rule.priority,
                type=rule.type,
                title=rule.title,
                description=rule.description,
                actions=list(rule.actions),
                addresses=[c.id for c in matched],
                effort=rule.effort,
                expected_impact=rule.expected_impact,
            )
        )

    recommendations.sort(key=lambda r: -r.priority.rank)
    for number, recommendation in enumerate(recommendations, start=1):
        recommendation.id = f"rec-{number}"
    return recommendations
