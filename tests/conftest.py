"""Shared pytest fixtures for skillpack tests."""

import pytest

SKILL_MD = """\
---
name: zig-raylib
description: Write idiomatic Zig 0.15.x code and use the raylib 5.5 bindings (e.g., zig, raylib, build.zig, allocator)
---

# Zig + raylib

Load [the build guide](references/build-system.md) before editing build.zig.
"""

BUILD_SYSTEM_MD = """\
# Build System

Use `zig build` to compile.

```zig
const std = @import("std");
pub fn build(b: *std.Build) void {}
```
"""

AUDIO_MD = """\
# raylib Audio

Call InitAudioDevice() first.
"""

PYTHON_SKILL_MD = """\
---
name: python-style
description: "Python formatting conventions"
trigger_patterns: ["pep8", "black formatter"]
---

Follow PEP 8.
"""


def write_bundle(root, dirname, manifest, references=None):
    """Create a skill bundle directory under *root*."""
    bundle = root / dirname
    bundle.mkdir(parents=True)
    (bundle / "SKILL.md").write_text(manifest, encoding="utf-8")
    if references is not None:
        ref_dir = bundle / "references"
        ref_dir.mkdir()
        for name, text in references.items():
            (ref_dir / name).write_text(text, encoding="utf-8")
    return bundle


@pytest.fixture
def skills_root(tmp_path):
    """A skills root holding a zig-raylib bundle and a python-style bundle."""
    root = tmp_path / "skills"
    write_bundle(
        root,
        "zig-raylib",
        SKILL_MD,
        {"build-system.md": BUILD_SYSTEM_MD, "audio.md": AUDIO_MD},
    )
    write_bundle(root, "python-style", PYTHON_SKILL_MD)
    return root


@pytest.fixture
def zig_bundle(skills_root):
    return skills_root / "zig-raylib"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep SKILLPACK_* settings from the host out of tests."""
    for name in (
        "SKILLPACK_SKILLS_PATH",
        "SKILLPACK_MATCH_MODE",
        "SKILLPACK_MAX_CONTEXT_CHARS",
        "SKILLPACK_EMBED_URL",
        "SKILLPACK_EMBED_MODEL",
        "SKILLPACK_SEMANTIC_THRESHOLD",
        "SKILLPACK_RELOAD_CHECK_INTERVAL",
        "SKILLPACK_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_bundle():
    """Factory fixture wrapping write_bundle()."""
    return write_bundle
