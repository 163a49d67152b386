"""
Skillpack Skills System

A skill is a SKILL.md manifest plus a set of reference markdown files.
They are NOT executable code — they are manuals loaded into an LLM's
context when a user request matches the manifest description.
"""

from skillpack.skills.skill_loader import ManifestError, SkillLoader, parse_frontmatter
from skillpack.skills.registry import SkillRegistry
from skillpack.skills.validator import extract_code_blocks, validate_skill

__all__ = [
    "ManifestError",
    "SkillLoader",
    "SkillRegistry",
    "extract_code_blocks",
    "parse_frontmatter",
    "validate_skill",
]
