"""Skillpack Retrieval — query-to-skill matching."""

from skillpack.retrieval.embedder import OllamaEmbedder
from skillpack.retrieval.matcher import KeywordMatcher, SemanticMatcher

__all__ = ["OllamaEmbedder", "KeywordMatcher", "SemanticMatcher"]
