"""Module identity resolution.

Turns a (from_module, specifier) pair into a canonical module id. Relative
specifiers resolve against the importing file's directory; bare specifiers
are external package names.
"""

import os
import posixpath
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

DEFAULT_RESOLVE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".d.ts")


@dataclass(frozen=True)
class ResolvedModule:
    """Result of resolving one specifier."""

    id: str
    is_external: bool
    exists: bool


def is_relative_specifier(specifier: str) -> bool:
    """True for ``./x``, ``../x``, ``.``, ``..`` and absolute ``/x`` specifiers."""
    return specifier in (".", "..") or specifier.startswith(("./", "../", "/"))


def _normalize(path: str) -> str:
    return posixpath.normpath(path.replace("\\", "/"))


class ModuleResolver:
    """Resolves specifiers to canonical module ids.

    A candidate path exists when it is one of ``known_files`` (the analyzed
    file set, which lets in-memory fact sets resolve) or a file on disk.
    """

    def __init__(
        self,
        extensions: Iterable[str] = DEFAULT_RESOLVE_EXTENSIONS,
        known_files: Iterable[str] = (),
        check_disk: bool = True,
    ):
        self.extensions = tuple(extensions)
        self.known_files = {_normalize(f) for f in known_files}
        self.check_disk = check_disk

    def resolve(self, from_module: str, specifier: str) -> ResolvedModule:
        """Resolve ``specifier`` as referenced from ``from_module``.

        Never raises. An unresolvable relative specifier comes back as its
        best-effort absolute path with ``is_external=True, exists=False``.
        """
        if not is_relative_specifier(specifier):
            return ResolvedModule(id=specifier, is_external=True, exists=False)

        if specifier.startswith("/"):
            base = _normalize(specifier)
        else:
            base = _normalize(posixpath.join(posixpath.dirname(_normalize(from_module)), specifier))

        for candidate in self._candidates(base):
            if self._exists(candidate):
                return ResolvedModule(id=candidate, is_external=False, exists=True)

        return ResolvedModule(id=base, is_external=True, exists=False)

    def _candidates(self, base: str) -> list[str]:
        candidates = [base]
        candidates.extend(base + ext for ext in self.extensions)
        candidates.extend(posixpath.join(base, "index" + ext) for ext in self.extensions)
        return candidates

    def _exists(self, path: str) -> bool:
        if path in self.known_files:
            return True
        if not self.check_disk:
            return False
        try:
            return Path(path).is_file()
        except OSError:
            return False


def canonical_path(path: str, root: str = "") -> str:
    """Absolute, normalized, forward-slash form of ``path``."""
    if root and not os.path.isabs(path):
        path = os.path.join(root, path)
    return _normalize(os.path.abspath(path))
