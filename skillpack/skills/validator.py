"""
Skillpack Validator — Content QA for skill bundles.

Checks that a bundle's SKILL.md parses, that every markdown file decodes,
has balanced code fences and only links to files that exist. Also extracts
fenced code samples so an external linter can compile them.
"""

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional
from urllib.parse import unquote

from skillpack.skills.skill_loader import (
    MANIFEST_NAME,
    REFERENCES_DIR,
    ManifestError,
    parse_frontmatter,
)

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 64
MAX_DESCRIPTION_LENGTH = 1024

ERROR = "error"
WARNING = "warning"

_NAME_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
_FENCE_RE = re.compile(r"^ {0,3}(`{3,}|~{3,})\s*([\w+#.-]*)")
# [text](target) and ![alt](target); target stops at whitespace or ')'
_LINK_RE = re.compile(r"!?\[[^\]]*\]\(\s*<?([^)\s>]+)>?(?:\s+\"[^\"]*\")?\s*\)")
# [label]: target  (reference definitions; [^note]: footnotes excluded)
_LINK_DEF_RE = re.compile(r"^ {0,3}\[(?!\^)[^\]]+\]:\s*<?([^\s>]+)>?")
_INLINE_CODE_RE = re.compile(r"`[^`\n]*`")
_EXTERNAL_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")


def _issue(severity: str, path, message: str, line: int = 0) -> Dict:
    return {
        "severity": severity,
        "path": str(path),
        "line": line,
        "message": message,
    }


def _closes(fence: str, match) -> bool:
    """Whether a fence-like line closes the open fence."""
    marker = match.group(1)
    return marker[0] == fence[0] and len(marker) >= len(fence) and not match.group(2)


def extract_code_blocks(text: str) -> List[Dict]:
    """Return fenced code blocks as dicts: {lang, code, line}.

    ``line`` is the 1-based line of the opening fence. An unterminated
    block is not returned.
    """
    blocks = []
    fence = None
    lang = ""
    start = 0
    lines: List[str] = []

    for lineno, line in enumerate(text.splitlines(), 1):
        match = _FENCE_RE.match(line)
        if fence is None:
            if match:
                fence = match.group(1)
                lang = match.group(2).lower()
                start = lineno
                lines = []
            continue
        if match and _closes(fence, match):
            blocks.append({"lang": lang, "code": "\n".join(lines), "line": start})
            fence = None
            continue
        lines.append(line)

    return blocks


def _unclosed_fence_line(text: str) -> int:
    """Return the line of an unterminated code fence, or 0."""
    fence = None
    start = 0
    for lineno, line in enumerate(text.splitlines(), 1):
        match = _FENCE_RE.match(line)
        if not match:
            continue
        if fence is None:
            fence = match.group(1)
            start = lineno
        elif _closes(fence, match):
            fence = None
    return start if fence is not None else 0


def iter_links(text: str):
    """Yield (line, target) for markdown links outside code."""
    in_fence = None
    for lineno, line in enumerate(text.splitlines(), 1):
        match = _FENCE_RE.match(line)
        if match:
            if in_fence is None:
                in_fence = match.group(1)
            elif _closes(in_fence, match):
                in_fence = None
            continue
        if in_fence is not None:
            continue
        definition = _LINK_DEF_RE.match(line)
        if definition:
            yield lineno, definition.group(1)
            continue
        for link in _LINK_RE.finditer(_INLINE_CODE_RE.sub("", line)):
            yield lineno, link.group(1)


def check_manifest(skill_dir: Path) -> List[Dict]:
    """Validate the SKILL.md manifest of a bundle."""
    skill_md = skill_dir / MANIFEST_NAME
    if not skill_md.is_file():
        return [_issue(ERROR, skill_md, "missing SKILL.md manifest")]

    try:
        content = skill_md.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        return [_issue(ERROR, skill_md, f"not valid UTF-8: {e}")]
    except OSError as e:
        return [_issue(ERROR, skill_md, f"unreadable: {e}")]

    if not content.startswith("---"):
        return [_issue(ERROR, skill_md, "missing frontmatter block", line=1)]

    try:
        header, _ = parse_frontmatter(content)
    except ManifestError as e:
        return [_issue(ERROR, skill_md, str(e), line=1)]

    if not header:
        return [_issue(ERROR, skill_md, "missing frontmatter block", line=1)]

    issues = []
    name = header.get("name")
    if name is not None and not isinstance(name, str):
        issues.append(_issue(ERROR, skill_md, "frontmatter 'name' must be a string", line=1))
    elif not name or not name.strip():
        issues.append(_issue(ERROR, skill_md, "frontmatter 'name' is missing or blank", line=1))
    else:
        if not _NAME_RE.match(name):
            issues.append(_issue(
                WARNING, skill_md,
                f"name '{name}' should be lowercase letters, digits and hyphens", line=1,
            ))
        if len(name) > MAX_NAME_LENGTH:
            issues.append(_issue(
                WARNING, skill_md, f"name exceeds {MAX_NAME_LENGTH} characters", line=1,
            ))

    description = header.get("description")
    if description is not None and not isinstance(description, str):
        issues.append(_issue(
            ERROR, skill_md, "frontmatter 'description' must be a string", line=1,
        ))
    elif not description or not description.strip():
        issues.append(_issue(
            ERROR, skill_md, "frontmatter 'description' is missing or blank", line=1,
        ))
    elif len(description) > MAX_DESCRIPTION_LENGTH:
        issues.append(_issue(
            WARNING, skill_md,
            f"description exceeds {MAX_DESCRIPTION_LENGTH} characters", line=1,
        ))
    return issues


def check_document(path: Path, root: Optional[Path] = None) -> List[Dict]:
    """Validate one markdown file: encoding, code fences and relative links.

    Root-absolute links (``/docs/a.md``) resolve against *root*, the bundle
    directory, defaulting to the file's own directory.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        return [_issue(ERROR, path, f"not valid UTF-8: {e}")]
    except OSError as e:
        return [_issue(ERROR, path, f"unreadable: {e}")]

    issues = []
    unclosed = _unclosed_fence_line(text)
    if unclosed:
        issues.append(_issue(ERROR, path, "unterminated code fence", line=unclosed))

    for lineno, target in iter_links(text):
        if target.startswith("#") or _EXTERNAL_RE.match(target):
            continue
        file_part = unquote(target.split("#", 1)[0].split("?", 1)[0])
        if not file_part:
            continue
        if file_part.startswith("/"):
            resolved = (root or path.parent) / file_part.lstrip("/")
        else:
            resolved = path.parent / file_part
        if not resolved.exists():
            issues.append(_issue(ERROR, path, f"broken link: {target}", line=lineno))
    return issues


def validate_skill(skill_dir) -> List[Dict]:
    """Run every content check on a bundle directory.

    Returns:
        List of issue dicts {severity, path, line, message}.
    """
    skill_dir = Path(skill_dir).expanduser()
    if not skill_dir.is_dir():
        return [_issue(ERROR, skill_dir, "skill directory not found")]

    issues = check_manifest(skill_dir)

    ref_dir = skill_dir / REFERENCES_DIR
    if ref_dir.is_dir() and not any(ref_dir.glob("*.md")):
        issues.append(_issue(WARNING, ref_dir, "references directory has no markdown files"))

    seen = {(i["path"], i["line"], i["message"]) for i in issues}
    for path in sorted(skill_dir.rglob("*.md")):
        if not path.is_file():
            continue
        for issue in check_document(path, root=skill_dir):
            key = (issue["path"], issue["line"], issue["message"])
            if key not in seen:
                seen.add(key)
                issues.append(issue)

    errors = sum(1 for i in issues if i["severity"] == ERROR)
    logger.info(
        "Validated %s: %d errors, %d warnings", skill_dir, errors, len(issues) - errors,
    )
    return issues


def has_errors(issues: List[Dict]) -> bool:
    return any(i["severity"] == ERROR for i in issues)
