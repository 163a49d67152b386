"""
Skillpack Skills Registry — Indexes skill bundles and assembles prompt context.
"""

import logging
from typing import Optional

from skillpack.retrieval.matcher import KeywordMatcher
from skillpack.skills.skill_loader import SkillLoader

logger = logging.getLogger(__name__)


class SkillRegistry:
    """Registry that indexes skill bundles and provides the lookup interface."""

    def __init__(self, search_paths: Optional[list] = None, matcher=None):
        self.search_paths = list(search_paths or [])
        self.loader = SkillLoader()
        self.matcher = matcher or KeywordMatcher()
        self._index: dict = {}
        self._scan()

    def _scan(self):
        """Scan search paths and index all skills."""
        self._index = {}
        self._add(self.loader.scan(self.search_paths))

        if self._index:
            logger.info("Skills registry: %d skills indexed", len(self._index))
        else:
            logger.info("Skills registry: no skills found")

    def _add(self, skills: list) -> int:
        added = 0
        for skill in skills:
            name = skill["name"]
            existing = self._index.get(name)
            if existing:
                if existing["path"] != skill["path"]:
                    logger.warning(
                        "Duplicate skill name %s at %s (keeping %s)",
                        name,
                        skill["path"],
                        existing["path"],
                    )
                continue
            self._index[name] = skill
            added += 1
        return added

    def refresh(self):
        """Re-scan search paths (call when skills are added/removed)."""
        reset = getattr(self.matcher, "reset", None)
        if reset is not None:
            reset()
        self._scan()

    def register_skill_paths(self, paths: list) -> int:
        """Add search paths and index the skills they contain."""
        new_paths = [p for p in paths if p not in self.search_paths]
        self.search_paths.extend(new_paths)
        registered = self._add(self.loader.scan(new_paths))
        if registered:
            logger.info("Registered %d additional skills", registered)
        return registered

    def get(self, name: str) -> Optional[dict]:
        """Get skill info by name."""
        return self._index.get(name)

    def list_all(self) -> list:
        """List all indexed skills, sorted by name."""
        return [self._index[name] for name in sorted(self._index)]

    def match(self, query: str, limit: Optional[int] = None) -> list:
        """Match skills for a user query.

        Args:
            query: User query text.
            limit: Maximum number of skills to return.

        Returns:
            List of matching skill dicts, best match first.
        """
        if not query or not query.strip():
            return []
        ranked = self.matcher.match(query, self.list_all())
        skills = [skill for skill, _ in ranked]
        if limit is not None:
            skills = skills[:limit]
        return skills

    def get_context(self, name: str, references: Optional[list] = None) -> Optional[str]:
        """Assemble prompt context for one skill.

        Args:
            name: Skill name.
            references: Reference names to include (default: all of them).

        Returns:
            Manifest body followed by the full reference texts, or None if
            the skill is not indexed.
        """
        skill = self._index.get(name)
        if not skill:
            logger.warning("Skill not found: %s", name)
            return None

        if references is None:
            wanted = [ref["name"] for ref in skill["references"]]
        else:
            wanted = references

        parts = [f"[SKILL: {name}]\n{skill['body']}".rstrip()]
        for ref_name in wanted:
            text = self.loader.load_reference(skill, ref_name)
            if text is None:
                continue
            stem = ref_name[:-3] if ref_name.endswith(".md") else ref_name
            parts.append(f"[REFERENCE: {name}/references/{stem}.md]\n{text.strip()}")
        return "\n\n".join(parts)

    def build_context(
        self,
        query: str,
        limit: Optional[int] = None,
        max_chars: int = 0,
    ) -> str:
        """Assemble prompt context for every skill matching *query*.

        A positive *max_chars* caps the total length: blocks that would
        overflow it are dropped, except the first, which is truncated.
        """
        blocks = []
        total = 0
        for skill in self.match(query, limit=limit):
            block = self.get_context(skill["name"])
            if block is None:
                continue
            sep = 2 if blocks else 0
            if max_chars > 0 and total + sep + len(block) > max_chars:
                if not blocks:
                    blocks.append(block[:max_chars])
                logger.info(
                    "Context budget of %d chars reached at skill %s",
                    max_chars,
                    skill["name"],
                )
                break
            blocks.append(block)
            total += sep + len(block)
        return "\n\n".join(blocks)
