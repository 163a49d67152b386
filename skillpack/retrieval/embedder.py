"""
Ollama Embedder — Skill description embeddings for semantic matching.

Talks to an Ollama embeddings endpoint (default
http://localhost:11434/api/embeddings). The endpoint is probed on first
use; when it is unreachable ``available`` is False and callers fall back
to keyword matching.
"""

import logging
import math
from typing import Dict, List, Optional, Tuple

import requests

logger = logging.getLogger(__name__)

OLLAMA_EMBED_URL = "http://localhost:11434/api/embeddings"
OLLAMA_EMBED_MODEL = "nomic-embed-text"


class OllamaEmbedder:
    """Embed queries and skill descriptions; rank skills by similarity."""

    def __init__(
        self,
        url: str = OLLAMA_EMBED_URL,
        model: str = OLLAMA_EMBED_MODEL,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ):
        self.url = url
        self.model = model
        self.timeout = timeout
        self.session = session or requests.Session()
        self._available: Optional[bool] = None
        # (skill name, description) -> vector
        self._skill_vectors: Dict[Tuple[str, str], List[float]] = {}

    @property
    def available(self) -> bool:
        if self._available is None:
            self._available = self._request("ping", timeout=5) is not None
            if self._available:
                logger.info("OllamaEmbedder: %s is available", self.model)
            else:
                logger.warning(
                    "OllamaEmbedder: %s not available at %s; semantic matching disabled",
                    self.model,
                    self.url,
                )
        return self._available

    def _request(self, text: str, timeout: Optional[float] = None) -> Optional[List[float]]:
        try:
            resp = self.session.post(
                self.url,
                json={"model": self.model, "prompt": text},
                timeout=timeout or self.timeout,
            )
            resp.raise_for_status()
            vector = resp.json().get("embedding")
        except (requests.RequestException, ValueError, AttributeError) as e:
            logger.debug("Embedding request failed: %s", e)
            return None
        if not isinstance(vector, list) or not vector:
            logger.debug("Embedding response without a vector from %s", self.url)
            return None
        return vector

    def embed(self, text: str) -> Optional[List[float]]:
        """Return the embedding vector for *text*, or None on failure."""
        if not self.available:
            return None
        vector = self._request(text)
        if vector is None:
            logger.error("Embedding failed for %d chars of text", len(text))
        return vector

    def skill_vector(self, skill: dict) -> Optional[List[float]]:
        """Embedding of a skill's description (its name when blank), cached."""
        key = (skill["name"], skill.get("description", ""))
        if key not in self._skill_vectors:
            vector = self.embed(key[1] or key[0])
            if vector is None:
                return None
            self._skill_vectors[key] = vector
        return self._skill_vectors[key]

    def similarities(self, query: str, skills: list) -> Optional[List[Tuple[dict, float]]]:
        """Pair each embeddable skill with its cosine similarity to *query*.

        Returns None when the query itself cannot be embedded.
        """
        query_vec = self.embed(query)
        if query_vec is None:
            return None
        scored = []
        for skill in skills:
            vector = self.skill_vector(skill)
            if vector is not None:
                scored.append((skill, self.cosine_similarity(query_vec, vector)))
        return scored

    def forget(self):
        """Drop cached skill vectors (e.g. after the registry re-scans)."""
        self._skill_vectors.clear()

    @staticmethod
    def cosine_similarity(a: List[float], b: List[float]) -> float:
        """Cosine similarity; 0.0 for mismatched lengths or zero vectors."""
        if len(a) != len(b):
            return 0.0
        dot = norm_a = norm_b = 0.0
        for x, y in zip(a, b):
            dot += x * y
            norm_a += x * x
            norm_b += y * y
        if not norm_a or not norm_b:
            return 0.0
        return dot / math.sqrt(norm_a * norm_b)
