"""Removal suggestions ranked by priority and safety."""

import os
import posixpath
from typing import Iterable, Optional

from ..facts.models import ExportFact, ExportKind
from .models import Confidence, DeadReferenceCandidate, RemovalSuggestion, Safety

_KIND_DESCRIPTIONS = {
    ExportKind.FUNCTION: "function",
    ExportKind.CLASS: "class definition",
    ExportKind.VARIABLE: "variable/constant",
    ExportKind.INTERFACE: "type interface",
    ExportKind.TYPE: "type alias",
}

_KIND_LINES = {
    ExportKind.FUNCTION: 10,
    ExportKind.CLASS: 20,
    ExportKind.VARIABLE: 1,
    ExportKind.INTERFACE: 5,
    ExportKind.TYPE: 2,
}


def safety_for(confidence: Confidence, has_risks: bool) -> Safety:
    if confidence is Confidence.LOW:
        return Safety.RISKY
    if has_risks or confidence is not Confidence.HIGH:
        return Safety.REVIEW_NEEDED
    return Safety.SAFE


def _display_path(path: str, project_path: Optional[str]) -> str:
    if not project_path:
        return path
    try:
        return os.path.relpath(path, project_path).replace("\\", "/")
    except ValueError:
        return path


def suggestion_for(
    candidate: DeadReferenceCandidate, index: int, project_path: Optional[str] = None
) -> RemovalSuggestion:
    fact = candidate.fact
    has_risks = bool(candidate.risk_factors)
    file_name = posixpath.basename(fact.module.replace("\\", "/"))

    if isinstance(fact, ExportFact):
        kind = "remove-export"
        suggestion_id = f"export-{index}"
        action = f"Remove {fact.kind.value}: {fact.name}"
        impact = (
            f"Remove unused {_KIND_DESCRIPTIONS[fact.kind]} (~{_KIND_LINES[fact.kind]} lines)"
        )
        command = f"# Remove lines around {fact.line} in {file_name}"
    else:
        kind = "remove-import"
        suggestion_id = f"import-{index}"
        action = f"Remove unused import: {fact.local}"
        impact = f"Remove unused {fact.binding_kind.value} import (~1 line)"
        command = f"# Remove import on line {fact.line} in {file_name}"

    return RemovalSuggestion(
        id=suggestion_id,
        priority=candidate.confidence,
        safety=safety_for(candidate.confidence, has_risks),
        action=action,
        module=_display_path(fact.module, project_path),
        line=fact.line,
        impact=impact,
        type=kind,
        warnings=list(candidate.risk_factors),
        command=command if candidate.confidence is Confidence.HIGH and not has_risks else None,
    )


def generate_removal_suggestions(
    candidates: Iterable[DeadReferenceCandidate], project_path: Optional[str] = None
) -> list[RemovalSuggestion]:
    """One suggestion per candidate, highest priority first, then safest first."""
    suggestions = [
        suggestion_for(candidate, index, project_path)
        for index, candidate in enumerate(candidates)
    ]
    # sorted() is stable, so equal keys keep candidate order
    return sorted(suggestions, key=lambda s: (-s.priority.rank, -s.safety.rank))
