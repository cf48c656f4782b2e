"""Configuration loading and management for modgraph.

Configuration sources are merged in priority order:
    1. Defaults (defined in AnalysisConfig)
    2. Global config (~/.modgraph.toml)
    3. Project config (./modgraph.toml)
    4. Explicit config file
    5. Environment variables (MODGRAPH_* prefix)
    6. Keyword overrides (typically CLI flags)

Example:
    >>> config = load_config(fail_fast=True)
    >>> config.fail_fast
    True
"""

from __future__ import annotations

import fnmatch
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import InvalidConfigError, ModgraphError

Verbosity = Literal["quiet", "normal", "verbose"]
SeverityName = Literal["low", "medium", "high", "critical"]

_SEVERITY_NAMES = ("low", "medium", "high", "critical")


@dataclass(frozen=True)
class ThresholdConfig:
    """Tuning parameters for metrics and diff classification.

    Attributes:
        hotspot_factor: A node is a hotspot when its internal out-degree
            exceeds ``hotspot_factor * average_coupling``.
        hotspot_min_out_degree: Minimum outgoing internal edges before a node
            can be a hotspot (a single import is never a hotspot).
        coupling_change_threshold: Minimum absolute change in average
            coupling reported as a coupling change.

        Health score penalties (subtracted from 100):
            cycle_penalty: Per circular dependency
            coupling_penalty: Per unit of average coupling above
                ``coupling_allowance``
            external_penalty: Per unit of external edges per node above
                ``external_allowance``
            hotspot_penalty: Per hotspot
    """

    hotspot_factor: float = 1.5
    hotspot_min_out_degree: int = 2
    coupling_change_threshold: float = 0.5

    cycle_penalty: float = 10.0
    coupling_penalty: float = 5.0
    coupling_allowance: float = 5.0
    external_penalty: float = 10.0
    external_allowance: float = 2.0
    hotspot_penalty: float = 3.0

    def __post_init__(self) -> None:
        if self.hotspot_factor <= 0:
            raise ValueError("hotspot_factor must be positive")
        if self.hotspot_min_out_degree < 1:
            raise ValueError("hotspot_min_out_degree must be at least 1")
        if self.coupling_change_threshold < 0:
            raise ValueError("coupling_change_threshold must be non-negative")
        for name in (
            "cycle_penalty",
            "coupling_penalty",
            "coupling_allowance",
            "external_penalty",
            "external_allowance",
            "hotspot_penalty",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")


DEFAULT_THRESHOLDS = ThresholdConfig()


@dataclass(frozen=True)
class AnalysisConfig:
    """Configuration for graph building, dead-code analysis and diffing.

    Attributes:
        File selection:
            source_extensions: Extensions of files analyzed as modules
            resolve_extensions: Ordered extension candidates for resolving
                extension-less relative specifiers
            exclude_patterns: Glob patterns excluded from analysis
            max_file_size_mb: Files larger than this are skipped

        Graph construction:
            include_external: Add external packages as graph nodes
            fail_fast: Abort on the first fact-extraction error instead of
                skipping the file

        Caching:
            cache_capacity: Entries kept by the in-memory LRU fact cache
            disk_cache: Use the persistent diskcache-backed fact cache
            cache_dir: Directory for the persistent cache
            cache_ttl_hours: Time-to-live of persistent cache entries

        Diff:
            min_severity: Lowest severity kept when filtering reports

        Git integration:
            git_timeout_seconds: Timeout for a single git invocation

        Output control:
            verbosity: Logging verbosity level
    """

    source_extensions: tuple[str, ...] = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs")
    resolve_extensions: tuple[str, ...] = (".ts", ".tsx", ".js", ".jsx", ".d.ts")
    exclude_patterns: list[str] = field(
        default_factory=lambda: [
            "node_modules/*",
            "*/node_modules/*",
            "dist/*",
            "build/*",
            "coverage/*",
            ".git/*",
            "*.d.ts",
            "*.min.js",
            "*.bundle.js",
        ]
    )
    max_file_size_mb: float = 5.0

    include_external: bool = True
    fail_fast: bool = False

    cache_capacity: int = 1024
    disk_cache: bool = False
    cache_dir: str = ".modgraph-cache"
    cache_ttl_hours: int = 24

    min_severity: SeverityName = "low"

    git_timeout_seconds: int = 30

    verbosity: Verbosity = "normal"

    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.source_extensions:
            raise ValueError("source_extensions must not be empty")
        for ext in (*self.source_extensions, *self.resolve_extensions):
            if not ext.startswith("."):
                raise ValueError(f"extension must start with '.': {ext}")
        if self.max_file_size_mb <= 0:
            raise ValueError("max_file_size_mb must be positive")
        if self.cache_capacity < 1:
            raise ValueError("cache_capacity must be at least 1")
        if self.cache_ttl_hours < 0:
            raise ValueError("cache_ttl_hours must be non-negative")
        if self.min_severity not in _SEVERITY_NAMES:
            raise ValueError(f"min_severity must be one of {', '.join(_SEVERITY_NAMES)}")
        if self.git_timeout_seconds < 1:
            raise ValueError("git_timeout_seconds must be at least 1")
        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise ValueError("verbosity must be quiet, normal or verbose")

    @property
    def max_file_size_bytes(self) -> int:
        """Get max file size in bytes."""
        return int(self.max_file_size_mb * 1024 * 1024)

    def is_source_file(self, relative_path: str) -> bool:
        """True when ``relative_path`` has a source extension and is not excluded."""
        normalized = relative_path.replace("\\", "/")
        if not normalized.endswith(self.source_extensions):
            return False
        return not any(fnmatch.fnmatch(normalized, pattern) for pattern in self.exclude_patterns)


def load_config(config_file: Optional[Path] = None, **overrides) -> AnalysisConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags); ``None``
            values are ignored so unset CLI options keep file values

    Returns:
        Validated AnalysisConfig instance

    Raises:
        ModgraphError: If a config file is invalid or missing
    """
    merged: dict = {}

    global_config = Path.home() / ".modgraph.toml"
    if global_config.exists():
        try:
            merged.update(_load_toml_file(global_config))
        except Exception as e:
            raise ModgraphError(f"Invalid global config '{global_config}': {e}")

    project_config = Path.cwd() / "modgraph.toml"
    if project_config.exists():
        try:
            merged.update(_load_toml_file(project_config))
        except Exception as e:
            raise ModgraphError(f"Invalid project config '{project_config}': {e}")

    if config_file is not None:
        if not config_file.exists():
            raise ModgraphError(f"Config file not found: {config_file}")
        try:
            merged.update(_load_toml_file(config_file))
        except Exception as e:
            raise ModgraphError(f"Invalid config file '{config_file}': {e}")

    merged.update(_load_env_vars())

    if overrides.pop("verbose", False):
        overrides["verbosity"] = "verbose"
    if overrides.pop("quiet", False):
        overrides["verbosity"] = "quiet"

    merged.update({k: v for k, v in overrides.items() if v is not None})

    # TOML arrays arrive as lists
    for key in ("source_extensions", "resolve_extensions"):
        if isinstance(merged.get(key), list):
            merged[key] = tuple(merged[key])

    thresholds_dict = merged.pop("thresholds", None)
    if thresholds_dict is not None:
        if isinstance(thresholds_dict, dict):
            try:
                merged["thresholds"] = ThresholdConfig(**thresholds_dict)
            except (TypeError, ValueError) as e:
                raise ModgraphError(f"Invalid [thresholds] config: {e}")
        elif isinstance(thresholds_dict, ThresholdConfig):
            merged["thresholds"] = thresholds_dict

    try:
        return AnalysisConfig(**merged)
    except (TypeError, ValueError) as e:
        raise ModgraphError(f"Invalid configuration: {e}")


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from MODGRAPH_* environment variables.

    Only scalar fields are read (MODGRAPH_FAIL_FAST, MODGRAPH_CACHE_CAPACITY,
    MODGRAPH_MIN_SEVERITY, ...); list and tuple fields are file-only.
    """
    type_hints = get_type_hints(AnalysisConfig)

    result: dict[str, Any] = {}

    for field_name in AnalysisConfig.__dataclass_fields__:
        env_key = f"MODGRAPH_{field_name.upper()}"
        env_value = os.environ.get(env_key)

        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint)
            if parsed is not None:
                result[field_name] = parsed
        except ValueError as e:
            raise InvalidConfigError(env_key, env_value, str(e))

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse an environment variable string to the field's type.

    Returns None for types that cannot be expressed in a single variable.

    Raises:
        ValueError: If value can't be parsed to expected type
    """
    origin = getattr(type_hint, "__origin__", None)

    if origin in (list, tuple) or type_hint in (list, tuple):
        return None

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        elif lower in ("false", "0", "no", "off"):
            return False
        else:
            raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    if type_hint is str or origin is Literal:
        return value

    return None


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict.

    A ``[modgraph]`` table is unwrapped so the settings can live inside a
    larger shared TOML file.
    """
    try:
        import tomllib
    except ModuleNotFoundError:
        try:
            import tomli as tomllib  # type: ignore
        except ImportError:
            raise ModgraphError(
                "TOML support requires Python 3.11+ or 'tomli' package. "
                "Install with: pip install tomli"
            )

    with open(path, "rb") as f:
        data = tomllib.load(f)
    if isinstance(data.get("modgraph"), dict):
        return dict(data["modgraph"])
    return data
