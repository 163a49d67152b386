"""
Skill matchers: decide which skills are relevant to a user query.

Both matchers take the registry's skill dicts and return
``(skill, score)`` pairs, best first.
"""

import logging
from typing import List, Tuple

logger = logging.getLogger(__name__)


class KeywordMatcher:
    """Match skills whose trigger keywords appear in the query."""

    def match(self, query: str, skills: list) -> List[Tuple[dict, float]]:
        if not query:
            return []
        query_lower = query.lower()
        results = []
        for skill in skills:
            hits = {
                t.lower() for t in skill.get("triggers", [])
                if t and t.lower() in query_lower
            }
            if hits:
                results.append((skill, float(len(hits))))
        results.sort(key=lambda pair: (-pair[1], pair[0]["name"]))
        return results


class SemanticMatcher:
    """Match skills by embedding similarity between query and description.

    Falls back to keyword matching when the embedder is unavailable.
    """

    def __init__(self, embedder, threshold: float = 0.5):
        self.embedder = embedder
        self.threshold = threshold
        self.fallback = KeywordMatcher()

    def match(self, query: str, skills: list) -> List[Tuple[dict, float]]:
        if not query:
            return []
        if not self.embedder.available:
            return self.fallback.match(query, skills)

        scored = self.embedder.similarities(query, skills)
        if scored is None:
            logger.warning("Query embedding failed; using keyword matching")
            return self.fallback.match(query, skills)

        results = [(skill, score) for skill, score in scored if score >= self.threshold]
        results.sort(key=lambda pair: (-pair[1], pair[0]["name"]))
        return results

    def reset(self):
        """Forget cached description embeddings."""
        self.embedder.forget()
