"""
Skillpack CLI — inspect, match, validate and watch skill bundles.

Usage:
    skillpack list
    skillpack match "how do I draw a texture in raylib"
    skillpack context --skill zig-raylib --reference build-system
    skillpack validate skills/zig-raylib
    skillpack samples zig-raylib --lang zig --out /tmp/samples
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from skillpack.config import load_settings
from skillpack.retrieval import OllamaEmbedder, SemanticMatcher
from skillpack.services.hot_reload import HotReloader
from skillpack.skills import SkillRegistry, extract_code_blocks, validate_skill
from skillpack.skills.validator import has_errors

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_EXTENSIONS = {"zig": "zig", "c": "c", "python": "py", "py": "py", "bash": "sh", "sh": "sh"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="skillpack",
        description="Load, match and validate Agent Skill bundles (SKILL.md + references/)",
    )
    parser.add_argument(
        "--skills-path", action="append", metavar="PATH",
        help="Skill search path (repeatable; overrides SKILLPACK_SKILLS_PATH)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_list = sub.add_parser("list", help="List indexed skills")
    p_list.add_argument("--json", action="store_true", help="Print JSON")

    p_show = sub.add_parser("show", help="Show a skill's manifest and references")
    p_show.add_argument("name")

    p_match = sub.add_parser("match", help="Match skills against a query")
    p_match.add_argument("query")
    p_match.add_argument("--limit", type=int, default=None)
    p_match.add_argument("--json", action="store_true", help="Print JSON")

    p_ctx = sub.add_parser("context", help="Print prompt context for a query or skill")
    p_ctx.add_argument("query", nargs="?")
    p_ctx.add_argument("--skill", help="Use this skill instead of matching")
    p_ctx.add_argument(
        "--reference", action="append", metavar="NAME",
        help="Only include this reference (repeatable; with --skill)",
    )
    p_ctx.add_argument("--limit", type=int, default=None)
    p_ctx.add_argument("--max-chars", type=int, default=None)

    p_val = sub.add_parser("validate", help="Run content checks on skill bundles")
    p_val.add_argument("paths", nargs="*", help="Bundle directories (default: all indexed)")

    p_samples = sub.add_parser("samples", help="Extract fenced code samples from a skill")
    p_samples.add_argument("name")
    p_samples.add_argument("--lang", help="Only samples in this language")
    p_samples.add_argument("--out", help="Write samples to this directory")

    sub.add_parser("watch", help="Re-index skills whenever markdown changes")
    return parser


def build_registry(settings) -> SkillRegistry:
    matcher = None
    if settings.match_mode == "semantic":
        embedder = OllamaEmbedder(url=settings.embed_url, model=settings.embed_model)
        matcher = SemanticMatcher(embedder, threshold=settings.semantic_threshold)
    return SkillRegistry(settings.skills_paths, matcher=matcher)


def _skill_summary(skill: dict) -> dict:
    return {
        "name": skill["name"],
        "description": skill["description"],
        "path": skill["path"],
        "references": [ref["name"] for ref in skill["references"]],
    }


def cmd_list(registry, args) -> int:
    skills = registry.list_all()
    if args.json:
        print(json.dumps([_skill_summary(s) for s in skills], ensure_ascii=False, indent=2))
        return 0
    if not skills:
        print("No skills found")
        return 0
    for skill in skills:
        print(f"{skill['name']}  ({len(skill['references'])} references)")
        if skill["description"]:
            print(f"    {skill['description']}")
    return 0


def cmd_show(registry, args) -> int:
    skill = registry.get(args.name)
    if not skill:
        print(f"Skill not found: {args.name}", file=sys.stderr)
        return 1
    print(f"name:        {skill['name']}")
    print(f"description: {skill['description']}")
    print(f"path:        {skill['path']}")
    print(f"triggers:    {', '.join(skill['triggers'])}")
    print("references:")
    for ref in skill["references"]:
        print(f"  - {ref['name']}: {ref['title']} ({ref['size']} bytes)")
    return 0


def cmd_match(registry, args) -> int:
    skills = registry.match(args.query, limit=args.limit)
    if args.json:
        print(json.dumps([_skill_summary(s) for s in skills], ensure_ascii=False, indent=2))
        return 0 if skills else 1
    if not skills:
        print("No matching skills")
        return 1
    for skill in skills:
        print(skill["name"])
    return 0


def cmd_context(registry, args, settings) -> int:
    if args.skill:
        text = registry.get_context(args.skill, references=args.reference)
        if text is None:
            print(f"Skill not found: {args.skill}", file=sys.stderr)
            return 1
        print(text)
        return 0

    if not args.query:
        print("context needs a query or --skill", file=sys.stderr)
        return 2
    max_chars = args.max_chars if args.max_chars is not None else settings.max_context_chars
    text = registry.build_context(args.query, limit=args.limit, max_chars=max_chars)
    if not text:
        print("No matching skills", file=sys.stderr)
        return 1
    print(text)
    return 0


def cmd_validate(registry, args) -> int:
    paths = args.paths or [skill["path"] for skill in registry.list_all()]
    if not paths:
        print("No skills to validate", file=sys.stderr)
        return 1

    failed = False
    for path in paths:
        issues = validate_skill(path)
        failed = failed or has_errors(issues)
        status = "FAIL" if has_errors(issues) else "ok"
        print(f"{status}  {path}")
        for issue in issues:
            location = issue["path"]
            if issue["line"]:
                location = f"{location}:{issue['line']}"
            print(f"    {issue['severity']}: {location}: {issue['message']}")
    return 1 if failed else 0


def cmd_samples(registry, args) -> int:
    skill = registry.get(args.name)
    if not skill:
        print(f"Skill not found: {args.name}", file=sys.stderr)
        return 1

    out_dir = Path(args.out) if args.out else None
    if out_dir:
        out_dir.mkdir(parents=True, exist_ok=True)

    documents = [Path(skill["manifest"])] + [Path(ref["path"]) for ref in skill["references"]]
    count = 0
    for doc in documents:
        try:
            text = doc.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Skipping %s: %s", doc, e)
            continue
        for block in extract_code_blocks(text):
            if args.lang and block["lang"] != args.lang.lower():
                continue
            count += 1
            if out_dir:
                ext = _EXTENSIONS.get(block["lang"], "txt")
                target = out_dir / f"{doc.stem}-{block['line']:04d}.{ext}"
                target.write_text(block["code"] + "\n", encoding="utf-8")
            else:
                print(f"// {doc}:{block['line']} ({block['lang'] or 'text'})")
                print(block["code"])
                print()

    if out_dir:
        print(f"Wrote {count} samples to {out_dir}")
    return 0


def cmd_watch(registry, settings) -> int:
    reloader = HotReloader(
        registry.search_paths,
        on_change=registry.refresh,
        check_interval=settings.reload_check_interval,
    )
    print(f"Watching {len(reloader.watch_paths)} paths (Ctrl-C to stop)")
    try:
        reloader.run_forever()
    except KeyboardInterrupt:
        pass
    return 0


def main(argv=None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    settings = load_settings()
    if args.skills_path:
        settings.skills_paths = args.skills_path

    logging.basicConfig(
        format=LOG_FORMAT,
        level=logging.DEBUG if args.verbose else getattr(logging, settings.log_level, logging.INFO),
    )

    registry = build_registry(settings)
    if args.command == "list":
        return cmd_list(registry, args)
    if args.command == "show":
        return cmd_show(registry, args)
    if args.command == "match":
        return cmd_match(registry, args)
    if args.command == "context":
        return cmd_context(registry, args, settings)
    if args.command == "validate":
        return cmd_validate(registry, args)
    if args.command == "samples":
        return cmd_samples(registry, args)
    return cmd_watch(registry, settings)


if __name__ == "__main__":
    sys.exit(main())
