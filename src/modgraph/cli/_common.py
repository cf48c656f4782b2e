"""Shared CLI helpers."""

import json
import os
from pathlib import Path
from typing import Any, Optional

from rich.console import Console

from ..config import AnalysisConfig, load_config

console = Console()

SEVERITY_STYLES = {
    "critical": "bold red",
    "high": "red",
    "medium": "yellow",
    "low": "dim",
}

CONFIDENCE_STYLES = {
    "high": "green",
    "medium": "yellow",
    "low": "red",
}


def resolve_config(
    config: Optional[Path] = None,
    verbose: bool = False,
    **overrides: Any,
) -> AnalysisConfig:
    """Build configuration from CLI options; unset options keep file values."""
    if verbose:
        overrides["verbose"] = True
    return load_config(config_file=config, **overrides)


def print_json(data: Any) -> None:
    """Write JSON to stdout, bypassing rich markup."""
    print(json.dumps(data, indent=2, default=str))


def short_path(module_id: str, root: str) -> str:
    """``module_id`` relative to ``root`` when it lives there."""
    if root and os.path.isabs(module_id):
        relative = os.path.relpath(module_id, root)
        if not relative.startswith(".."):
            return relative.replace("\\", "/")
    return module_id


def health_style(score: float) -> str:
    if score >= 80:
        return "green"
    if score >= 50:
        return "yellow"
    return "red"
