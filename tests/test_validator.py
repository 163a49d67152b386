"""Tests for skillpack.skills.validator — content QA checks."""

from pathlib import Path
from unittest.mock import patch

from skillpack.skills.validator import (
    ERROR,
    WARNING,
    extract_code_blocks,
    has_errors,
    validate_skill,
)


def _messages(issues, severity=None):
    return [i["message"] for i in issues if severity is None or i["severity"] == severity]


class TestValidateSkill:

    def test_clean_bundle(self, zig_bundle):
        assert validate_skill(zig_bundle) == []

    def test_bundle_without_references(self, skills_root):
        assert validate_skill(skills_root / "python-style") == []

    def test_missing_directory(self, tmp_path):
        issues = validate_skill(tmp_path / "nope")
        assert _messages(issues) == ["skill directory not found"]

    def test_missing_manifest(self, tmp_path):
        (tmp_path / "empty").mkdir()
        issues = validate_skill(tmp_path / "empty")
        assert _messages(issues, ERROR) == ["missing SKILL.md manifest"]

    def test_missing_frontmatter(self, tmp_path, make_bundle):
        bundle = make_bundle(tmp_path, "plain", "# Just markdown\n")
        assert _messages(validate_skill(bundle), ERROR) == ["missing frontmatter block"]

    def test_invalid_yaml(self, tmp_path, make_bundle):
        bundle = make_bundle(tmp_path, "bad", "---\nname: [oops\n---\nbody\n")
        issues = validate_skill(bundle)
        assert has_errors(issues)
        assert issues[0]["message"].startswith("invalid YAML frontmatter")

    def test_missing_description(self, tmp_path, make_bundle):
        bundle = make_bundle(tmp_path, "nodesc", "---\nname: nodesc\n---\nbody\n")
        assert _messages(validate_skill(bundle), ERROR) == [
            "frontmatter 'description' is missing or blank"
        ]

    def test_blank_name(self, tmp_path, make_bundle):
        bundle = make_bundle(tmp_path, "noname", "---\nname: ''\ndescription: d\n---\n")
        assert _messages(validate_skill(bundle), ERROR) == [
            "frontmatter 'name' is missing or blank"
        ]

    def test_non_string_name(self, tmp_path, make_bundle):
        bundle = make_bundle(tmp_path, "numbered", "---\nname: 123\ndescription: d\n---\n")
        assert _messages(validate_skill(bundle), ERROR) == [
            "frontmatter 'name' must be a string"
        ]

    def test_unreadable_files_reported(self, zig_bundle):
        real_read_text = Path.read_text

        def read_text(self, *args, **kwargs):
            if self.name in ("SKILL.md", "audio.md"):
                raise PermissionError(13, "Permission denied")
            return real_read_text(self, *args, **kwargs)

        with patch.object(Path, "read_text", read_text):
            issues = validate_skill(zig_bundle)

        unreadable = [i for i in issues if i["message"].startswith("unreadable")]
        assert sorted(Path(i["path"]).name for i in unreadable) == ["SKILL.md", "audio.md"]

    def test_name_style_is_warning(self, tmp_path, make_bundle):
        bundle = make_bundle(tmp_path, "styled", "---\nname: Zig_Raylib\ndescription: d\n---\n")
        issues = validate_skill(bundle)

        assert not has_errors(issues)
        assert len(_messages(issues, WARNING)) == 1

    def test_long_description_is_warning(self, tmp_path, make_bundle):
        manifest = "---\nname: long\ndescription: " + "x" * 1100 + "\n---\n"
        issues = validate_skill(make_bundle(tmp_path, "long", manifest))
        assert _messages(issues, WARNING) == ["description exceeds 1024 characters"]

    def test_broken_link(self, zig_bundle):
        (zig_bundle / "references" / "audio.md").write_text(
            "# Audio\n\nSee [streams](streams.md).\n", encoding="utf-8"
        )
        issues = validate_skill(zig_bundle)

        assert len(issues) == 1
        assert issues[0]["message"] == "broken link: streams.md"
        assert issues[0]["line"] == 3
        assert issues[0]["path"].endswith("audio.md")

    def test_broken_reference_definition(self, zig_bundle):
        (zig_bundle / "references" / "audio.md").write_text(
            "See [streams][s].\n\n[s]: streams.md\n", encoding="utf-8"
        )
        issues = validate_skill(zig_bundle)
        assert [(i["message"], i["line"]) for i in issues] == [("broken link: streams.md", 3)]

    def test_reference_definitions_resolved(self, zig_bundle):
        (zig_bundle / "references" / "audio.md").write_text(
            "See [build][b] and [site][w].[^1]\n\n"
            "[b]: <build-system.md> \"Build\"\n"
            "[w]: https://www.raylib.com\n"
            "[^1]: a footnote, not a link\n",
            encoding="utf-8",
        )
        assert validate_skill(zig_bundle) == []

    def test_root_absolute_links_resolve_against_bundle(self, zig_bundle):
        (zig_bundle / "references" / "audio.md").write_text(
            "[ok](/references/build-system.md) [gone](/docs/a.md)\n", encoding="utf-8"
        )
        issues = validate_skill(zig_bundle)
        assert [i["message"] for i in issues] == ["broken link: /docs/a.md"]

    def test_ignored_links(self, zig_bundle):
        (zig_bundle / "references" / "audio.md").write_text(
            "# Audio\n"
            "[site](https://www.raylib.com) [mail](mailto:dev@example.com)\n"
            "[top](#audio) [build](build-system.md#build-system)\n"
            "`[not](a-link.md)`\n"
            "```md\n[inside](fence.md)\n```\n",
            encoding="utf-8",
        )
        assert validate_skill(zig_bundle) == []

    def test_unterminated_fence(self, zig_bundle):
        (zig_bundle / "references" / "audio.md").write_text(
            "# Audio\n\n```zig\nconst x = 1;\n", encoding="utf-8"
        )
        issues = validate_skill(zig_bundle)
        assert [(i["message"], i["line"]) for i in issues] == [("unterminated code fence", 3)]

    def test_invalid_utf8(self, zig_bundle):
        (zig_bundle / "references" / "audio.md").write_bytes(b"# Audio \xff\xfe\n")
        issues = validate_skill(zig_bundle)

        assert has_errors(issues)
        assert issues[0]["message"].startswith("not valid UTF-8")

    def test_empty_references_dir(self, tmp_path, make_bundle):
        bundle = make_bundle(tmp_path, "empty-refs", "---\nname: empty-refs\ndescription: d\n---\n", {})
        assert _messages(validate_skill(bundle), WARNING) == [
            "references directory has no markdown files"
        ]


class TestExtractCodeBlocks:

    def test_blocks_with_lang_and_line(self):
        text = (
            "# Title\n"
            "```zig\n"
            "const std = @import(\"std\");\n"
            "```\n"
            "text\n"
            "~~~\n"
            "plain\n"
            "~~~\n"
        )
        blocks = extract_code_blocks(text)
        assert blocks == [
            {"lang": "zig", "code": 'const std = @import("std");', "line": 2},
            {"lang": "", "code": "plain", "line": 6},
        ]

    def test_nested_fence_markers(self):
        text = "````md\n```zig\nx\n```\n````\n"
        blocks = extract_code_blocks(text)
        assert blocks == [{"lang": "md", "code": "```zig\nx\n```", "line": 1}]

    def test_unterminated_block_dropped(self):
        assert extract_code_blocks("```zig\nconst x = 1;\n") == []
