"""Risk factors and confidence for removal candidates.

Every rule is a plain predicate on paths and names; none of them reads files
or raises. Confidence depends only on how many factors fired.
"""

import posixpath
import re
from typing import Iterable, Optional

from ..facts.models import BindingKind, ExportFact, ExportKind, ImportFact
from .models import Confidence, RiskFactor

_API_NAME_PATTERNS = (
    re.compile(r"^create[A-Z]"),
    re.compile(r"^use[A-Z]"),
    re.compile(r"^get[A-Z]"),
    re.compile(r"^set[A-Z]"),
    re.compile(r"^init[A-Z]"),
    re.compile(r"[A-Za-z]Config$"),
    re.compile(r"[A-Za-z]Utils$"),
    re.compile(r"[A-Za-z]Helper$"),
)
_PUBLIC_DIRECTORIES = frozenset({"lib", "public", "api"})
_ENTRY_FILE = re.compile(r"^(index|main|config)\.|\.config\.")

_TEST_FILE = re.compile(r"\.(test|spec)\.[^.]+$")
_TEST_DIRECTORIES = frozenset({"__tests__", "test", "tests"})

_DYNAMIC_FILE = re.compile(r"^config\.|\.config\.|^setup\.|^bootstrap\.|^polyfill\.")

_SIDE_EFFECT_SPECIFIER = re.compile(
    r"polyfill|setup|bootstrap|core-js|\.css$|\.scss$|\.sass$|\.less$"
)
_POLYFILL_SPECIFIER = re.compile(r"polyfill|core-js|regenerator")
_POLYFILL_NAME = re.compile(r"polyfill|regenerator", re.IGNORECASE)
_TYPE_NAME = re.compile(r"^[A-Z].*Type$|^[A-Z].*Interface$|^I[A-Z]")

# Names frameworks use without a visible reference (JSX pragmas, plugin setup)
FRAMEWORK_SENTINELS: dict[str, frozenset[str]] = {
    "react": frozenset({"React", "Component", "PureComponent"}),
    "vue": frozenset({"Vue", "createApp"}),
    "preact": frozenset({"h", "Fragment"}),
}


def confidence_for(risk_factors: Iterable[str]) -> Confidence:
    """0 factors: high, 1-2: medium, 3 or more: low."""
    count = len(set(risk_factors))
    if count == 0:
        return Confidence.HIGH
    if count <= 2:
        return Confidence.MEDIUM
    return Confidence.LOW


def _relative_segments(path: str, project_path: Optional[str]) -> list[str]:
    normalized = path.replace("\\", "/")
    if project_path:
        root = project_path.replace("\\", "/").rstrip("/") + "/"
        if normalized.startswith(root):
            normalized = normalized[len(root):]
    return [s for s in normalized.split("/") if s]


def is_public_api(export: ExportFact, project_path: Optional[str] = None) -> bool:
    file_name = posixpath.basename(export.module.replace("\\", "/"))
    if _ENTRY_FILE.search(file_name):
        return True
    segments = _relative_segments(export.module, project_path)
    if project_path and len(segments) > 1 and segments[0] in _PUBLIC_DIRECTORIES:
        return True
    return any(p.search(export.name) for p in _API_NAME_PATTERNS)


def is_test_context(path: str) -> bool:
    normalized = path.replace("\\", "/")
    parts = normalized.split("/")
    if _TEST_FILE.search(parts[-1]):
        return True
    return any(part in _TEST_DIRECTORIES for part in parts[:-1])


def is_dynamically_loaded(path: str) -> bool:
    return bool(_DYNAMIC_FILE.search(posixpath.basename(path.replace("\\", "/"))))


def is_framework_import(specifier: str, name: str) -> bool:
    return name in FRAMEWORK_SENTINELS.get(specifier, frozenset())


def assess_export_risk(export: ExportFact, project_path: Optional[str] = None) -> list[str]:
    """Risk factors for removing ``export``, each at most once, in rule order."""
    factors: list[str] = []
    if is_public_api(export, project_path):
        factors.append(RiskFactor.PUBLIC_API)
    if is_test_context(export.module):
        factors.append(RiskFactor.TEST_CONTEXT)
    if export.kind in (ExportKind.INTERFACE, ExportKind.TYPE):
        factors.append(RiskFactor.TYPE_ONLY)
    if export.is_default or export.name == "default":
        factors.append(RiskFactor.DEFAULT_EXPORT)
    if is_dynamically_loaded(export.module):
        factors.append(RiskFactor.DYNAMICALLY_LOADED)
    return factors


def assess_import_risk(imported: ImportFact) -> list[str]:
    """Risk factors for removing ``imported``, each at most once, in rule order."""
    factors: list[str] = []
    specifier = imported.specifier
    name = imported.local

    if imported.binding_kind is BindingKind.SIDE_EFFECT or _SIDE_EFFECT_SPECIFIER.search(specifier):
        factors.append(RiskFactor.SIDE_EFFECT_IMPORT)
    if _POLYFILL_SPECIFIER.search(specifier) or _POLYFILL_NAME.search(name):
        factors.append(RiskFactor.POLYFILL)
    if imported.type_only or _TYPE_NAME.search(name):
        factors.append(RiskFactor.TYPE_ONLY)
    if is_framework_import(specifier, name):
        factors.append(RiskFactor.FRAMEWORK_IMPORT)
    return factors
