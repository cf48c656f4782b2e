"""Extractor factory: resolves the best available fact extractor."""

from ..logging_config import get_logger
from . import treesitter
from .extractor import FactExtractor, RegexFactExtractor

logger = get_logger(__name__)


def default_extractor() -> FactExtractor:
    """Tree-sitter extractor when a grammar is installed, else the regex scanner."""
    languages = treesitter.get_supported_languages()
    if languages:
        logger.debug("Using tree-sitter fact extraction for %s", ", ".join(sorted(languages)))
        return treesitter.TreeSitterFactExtractor()

    if not treesitter.TREE_SITTER_AVAILABLE:
        logger.debug(
            "tree-sitter not installed, using regex fact extraction. "
            "Install with: pip install modgraph[parsing]"
        )
    return RegexFactExtractor()
