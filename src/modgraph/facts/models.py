"""Raw import/export facts produced by a fact extractor.

These flat records are the only input the core consumes. The core branches
on ``FactKind`` and ``BindingKind``; it never sees syntax-tree node types.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class FactKind(Enum):
    """Kind of a module reference."""

    IMPORT = "import"
    EXPORT = "export"  # re-export: export {x} from / export * from
    TYPE_ONLY = "type-only"


class BindingKind(Enum):
    """How a reference binds names from its target."""

    DEFAULT = "default"
    NAMED = "named"
    NAMESPACE = "namespace"
    SIDE_EFFECT = "side-effect"


class ExportKind(Enum):
    """What an exported binding declares."""

    FUNCTION = "function"
    CLASS = "class"
    VARIABLE = "variable"
    INTERFACE = "interface"
    TYPE = "type"


# Sentinel names in import maps
DEFAULT_SENTINEL = "default"
NAMESPACE_SENTINEL = "*"


@dataclass(frozen=True)
class Binding:
    """One bound name of a reference."""

    name: str
    kind: BindingKind


@dataclass(frozen=True)
class ReferenceFact:
    """A reference from ``module`` to ``specifier``.

    An empty ``bindings`` tuple is a side-effect reference (``import './x'``).
    """

    module: str
    specifier: str
    kind: FactKind = FactKind.IMPORT
    bindings: tuple[Binding, ...] = ()
    line: int = 0


@dataclass(frozen=True)
class ExportFact:
    """A binding exported by ``module``."""

    module: str
    name: str
    kind: ExportKind = ExportKind.VARIABLE
    is_default: bool = False
    line: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "module": self.module,
            "name": self.name,
            "kind": self.kind.value,
            "isDefault": self.is_default,
            "line": self.line,
        }


@dataclass(frozen=True)
class ImportFact:
    """A binding imported by ``module`` from ``specifier``.

    ``name`` is the imported name, with ``"default"`` for default imports and
    ``"*"`` for namespace imports. ``local_name`` is the identifier the
    importing file uses. Re-exports are recorded as imports with
    ``reexport=True``: they consume the target's export but bind no local name.
    """

    module: str
    specifier: str
    name: str
    binding_kind: BindingKind = BindingKind.NAMED
    local_name: str = ""
    line: int = 0
    type_only: bool = False
    reexport: bool = False

    @property
    def local(self) -> str:
        return self.local_name or self.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "module": self.module,
            "specifier": self.specifier,
            "name": self.name,
            "localName": self.local,
            "bindingKind": self.binding_kind.value,
            "line": self.line,
            "typeOnly": self.type_only,
            "reexport": self.reexport,
        }


@dataclass
class FileFacts:
    """Everything the extractor reports for one file."""

    path: str
    exports: list[ExportFact] = field(default_factory=list)
    imports: list[ImportFact] = field(default_factory=list)
    references: list[ReferenceFact] = field(default_factory=list)
    # Identifiers used outside import declarations
    identifiers: frozenset[str] = frozenset()
