"""Import/export facts: models, extraction and caching."""

from .cache import CachingExtractor, DiskFactCache, FactCache, LRUFactCache, fact_cache_key
from .extractor import FactExtractor, RegexFactExtractor, extract_batch, extract_file
from .factory import default_extractor
from .models import (
    DEFAULT_SENTINEL,
    NAMESPACE_SENTINEL,
    Binding,
    BindingKind,
    ExportFact,
    ExportKind,
    FactKind,
    FileFacts,
    ImportFact,
    ReferenceFact,
)
from .treesitter import TREE_SITTER_AVAILABLE, TreeSitterFactExtractor

__all__ = [
    "Binding",
    "BindingKind",
    "CachingExtractor",
    "DEFAULT_SENTINEL",
    "DiskFactCache",
    "ExportFact",
    "ExportKind",
    "FactCache",
    "FactExtractor",
    "FactKind",
    "FileFacts",
    "ImportFact",
    "LRUFactCache",
    "NAMESPACE_SENTINEL",
    "ReferenceFact",
    "RegexFactExtractor",
    "TREE_SITTER_AVAILABLE",
    "TreeSitterFactExtractor",
    "default_extractor",
    "extract_batch",
    "extract_file",
    "fact_cache_key",
]
