"""
Skillpack Skills — SKILL.md bundle loader

A skill bundle is a directory holding a SKILL.md manifest (YAML frontmatter
with ``name`` and ``description``) and an optional flat ``references/``
directory of markdown files. Bundles are read-only at use time.
"""

import logging
import re
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

MANIFEST_NAME = "SKILL.md"
REFERENCES_DIR = "references"

_FRONTMATTER_RE = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)

_STOPWORDS = {
    "use", "used", "using", "when", "user", "users", "asks", "ask", "about",
    "for", "related", "question", "questions", "the", "and", "or", "this",
    "that", "with", "how", "what", "into", "from", "any", "all", "also",
    "its", "their", "them", "skill", "skills", "reference", "references",
    "code", "writing", "write", "working", "help", "helps", "includes",
}


class ManifestError(ValueError):
    """Raised when a SKILL.md frontmatter block cannot be parsed."""


def parse_frontmatter(content: str) -> tuple:
    """Split markdown content into (header_dict, body_string).

    Content without a leading ``---`` block has no header. A block that is
    not valid YAML, or is not a mapping, raises ManifestError.
    """
    match = _FRONTMATTER_RE.match(content)
    if not match:
        return {}, content

    try:
        header = yaml.safe_load(match.group(1))
    except yaml.YAMLError as e:
        raise ManifestError(f"invalid YAML frontmatter: {e}") from e

    if header is None:
        header = {}
    if not isinstance(header, dict):
        raise ManifestError(
            f"frontmatter must be a mapping, got {type(header).__name__}"
        )
    return header, content[match.end():].strip()


def extract_trigger_keywords(description: str) -> list:
    """Extract trigger keywords from a skill description."""
    if not description:
        return []

    match = re.search(r"\((?:e\.g\.,?|i\.e\.,?)\s*([^)]+)\)", description, re.IGNORECASE)
    if match:
        return split_items(match.group(1))

    match = re.search(
        r"Use when\s*(?:the\s+)?user(?:s)?\s*(?:asks?|is asking|wants?)\s*(?:about|for|regarding|to)\s*(.+?)(?:\.|$)",
        description,
        re.IGNORECASE,
    )
    if match:
        return split_items(match.group(1))

    words = re.findall(r"[A-Za-z0-9_+#][A-Za-z0-9_+\-\.#]*[A-Za-z0-9_+#]", description)
    deduped = []
    seen = set()
    for word in words:
        key = word.lower()
        if len(key) < 3 or key in _STOPWORDS or key in seen:
            continue
        seen.add(key)
        deduped.append(word)
    return deduped[:10]


def split_items(text: str) -> list:
    """Split comma-separated text into cleaned, de-duplicated items."""
    if not text:
        return []
    normalized = text.replace(" and ", ",").replace(" or ", ",").replace("/", ",")
    parts = [p.strip(" .:;\"'") for p in normalized.split(",")]
    cleaned = []
    seen = set()
    for part in parts:
        if not part:
            continue
        key = part.lower()
        if key in seen:
            continue
        seen.add(key)
        cleaned.append(part)
    return cleaned


class SkillLoader:
    """Load and parse SKILL.md bundles and their reference files."""

    def load_skill(self, skill_dir) -> Optional[dict]:
        """Load a skill bundle from a directory containing SKILL.md.

        Args:
            skill_dir: Bundle directory.

        Returns:
            Skill dict, or None if the manifest is missing or unparseable.
        """
        skill_dir = Path(skill_dir).expanduser()
        skill_md = skill_dir / MANIFEST_NAME
        if not skill_md.is_file():
            logger.warning("Skill manifest not found: %s", skill_md)
            return None

        try:
            content = skill_md.read_text(encoding="utf-8")
            header, body = parse_frontmatter(content)
        except (OSError, UnicodeDecodeError, ManifestError) as e:
            logger.warning("Failed to load skill %s: %s", skill_md, e)
            return None

        description = header.get("description") or ""
        if not isinstance(description, str):
            logger.warning("Non-string description in %s: %r", skill_md, description)
            description = str(description)

        triggers = header.get("trigger_patterns") or header.get("triggers") or []
        if isinstance(triggers, str):
            triggers = split_items(triggers)
        elif not isinstance(triggers, list):
            logger.warning("Ignoring non-list triggers in %s: %r", skill_md, triggers)
            triggers = []
        if not triggers:
            triggers = extract_trigger_keywords(description)

        name = header.get("name")
        if name is not None and not isinstance(name, str):
            logger.warning("Ignoring non-string name in %s: %r", skill_md, name)
            name = None
        if not name or not name.strip():
            name = skill_dir.name

        return {
            "name": name.strip(),
            "description": description.strip(),
            "triggers": [str(t) for t in triggers],
            "header": header,
            "body": body,
            "path": str(skill_dir.resolve()),
            "manifest": str(skill_md.resolve()),
            "references": self.list_references(skill_dir),
        }

    def list_references(self, skill_dir) -> list:
        """List reference documents in a bundle's references/ directory."""
        ref_dir = Path(skill_dir).expanduser() / REFERENCES_DIR
        if not ref_dir.is_dir():
            return []

        references = []
        for path in sorted(ref_dir.glob("*.md")):
            if not path.is_file():
                continue
            references.append({
                "name": path.stem,
                "title": self._read_title(path),
                "path": str(path.resolve()),
                "size": path.stat().st_size,
            })
        return references

    def load_reference(self, skill: dict, name: str) -> Optional[str]:
        """Return the full text of a skill's reference file.

        Args:
            skill: Skill dict from load_skill().
            name: Reference name, with or without the .md extension.

        Returns:
            Reference text, or None if the file is not found.
        """
        stem = name[:-3] if name.endswith(".md") else name
        for ref in skill.get("references", []):
            if ref["name"] != stem:
                continue
            try:
                return Path(ref["path"]).read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Failed to read reference %s: %s", ref["path"], e)
                return None

        logger.warning("Reference not found: %s/%s", skill.get("name"), stem)
        return None

    def scan(self, search_paths: list) -> list:
        """Scan search paths and load every SKILL.md bundle found.

        Each path is either a bundle itself or a root searched recursively.
        """
        loaded = []
        seen_paths = set()

        for raw_path in search_paths:
            base = Path(raw_path).expanduser()
            if not base.is_dir():
                logger.debug("Skill path does not exist: %s", base)
                continue

            if (base / MANIFEST_NAME).is_file():
                candidates = [base]
            else:
                candidates = sorted(p.parent for p in base.rglob(MANIFEST_NAME))

            for candidate in candidates:
                skill_md = str((candidate / MANIFEST_NAME).resolve())
                if skill_md in seen_paths:
                    continue
                seen_paths.add(skill_md)
                skill = self.load_skill(candidate)
                if skill:
                    loaded.append(skill)

        return loaded

    @staticmethod
    def _read_title(path: Path) -> str:
        """Return the first level-1 heading of a markdown file, or its stem."""
        try:
            with path.open(encoding="utf-8") as f:
                in_fence = False
                for line in f:
                    if line.lstrip().startswith("```"):
                        in_fence = not in_fence
                        continue
                    if not in_fence and line.startswith("# "):
                        return line[2:].strip()
        except (OSError, UnicodeDecodeError):
            pass
        return path.stem
