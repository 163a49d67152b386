"""
Skillpack configuration — environment variables, optionally from a .env file.

Call ``load_dotenv()`` before ``load_settings()`` to pick up a .env file.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List

from skillpack.retrieval.embedder import OLLAMA_EMBED_MODEL, OLLAMA_EMBED_URL

logger = logging.getLogger(__name__)

DEFAULT_SKILLS_PATHS = ["skills", "~/.claude/skills"]
MATCH_MODES = ("keyword", "semantic")


@dataclass
class Settings:
    skills_paths: List[str] = field(default_factory=lambda: list(DEFAULT_SKILLS_PATHS))
    match_mode: str = "keyword"
    max_context_chars: int = 0
    embed_url: str = OLLAMA_EMBED_URL
    embed_model: str = OLLAMA_EMBED_MODEL
    semantic_threshold: float = 0.5
    reload_check_interval: float = 2.0
    log_level: str = "INFO"


def _env_number(name: str, default, cast):
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        logger.warning("Invalid %s=%r; using default %s", name, raw, default)
        return default


def load_settings() -> Settings:
    """Build Settings from SKILLPACK_* environment variables."""
    settings = Settings()

    env_paths = os.getenv("SKILLPACK_SKILLS_PATH", "")
    if env_paths.strip():
        settings.skills_paths = [p for p in env_paths.split(os.pathsep) if p.strip()]

    mode = os.getenv("SKILLPACK_MATCH_MODE", settings.match_mode).strip().lower()
    if mode not in MATCH_MODES:
        logger.warning("Unknown SKILLPACK_MATCH_MODE=%r; using keyword", mode)
        mode = "keyword"
    settings.match_mode = mode

    settings.max_context_chars = _env_number(
        "SKILLPACK_MAX_CONTEXT_CHARS", settings.max_context_chars, int
    )
    settings.embed_url = os.getenv("SKILLPACK_EMBED_URL", settings.embed_url)
    settings.embed_model = os.getenv("SKILLPACK_EMBED_MODEL", settings.embed_model)
    settings.semantic_threshold = _env_number(
        "SKILLPACK_SEMANTIC_THRESHOLD", settings.semantic_threshold, float
    )
    settings.reload_check_interval = _env_number(
        "SKILLPACK_RELOAD_CHECK_INTERVAL", settings.reload_check_interval, float
    )
    settings.log_level = os.getenv("SKILLPACK_LOG_LEVEL", settings.log_level).upper()
    return settings
