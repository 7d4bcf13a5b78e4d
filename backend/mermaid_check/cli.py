"""
mermaid-check command line.

Examples:
  mermaid-check diagram.mmd
  mermaid-check README.md docs/*.md --strict
  cat diagram.mmd | mermaid-check
  cat notes.txt | mermaid-check --format markdown

Exit codes:
  0 - every diagram passed (files without diagrams pass unless --error-on-empty)
  1 - validation findings at or above --fail-on, parse errors, or unreadable input
"""

import argparse
import json
import os
import sys
from dataclasses import dataclass, field
from typing import List, Optional

from mermaid_check import __version__
from mermaid_check.config import SEVERITY_NAMES, Settings, load_rules_file
from mermaid_check.errors import ExtractionError, RuleConfigError
from mermaid_check.extract.markdown import has_mermaid_fences
from mermaid_check.service import BlockResult, check_document, check_source, display_name
from mermaid_check.utils.logger import setup_logger

MARKDOWN_EXTENSIONS = (".md", ".markdown")
MERMAID_EXTENSIONS = (".mmd", ".mermaid")
STDIN_NAME = "<stdin>"


@dataclass
class FileResult:
    path: str
    blocks: List[BlockResult] = field(default_factory=list)
    error: Optional[str] = None
    empty: bool = False

    def fails(self, fail_on: str, error_on_empty: bool) -> bool:
        if self.error is not None:
            return True
        if self.empty:
            return error_on_empty
        return any(block.fails(fail_on) for block in self.blocks)

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "error": self.error,
            "empty": self.empty,
            "blocks": [block.to_dict() for block in self.blocks],
        }


def detect_format(path: str, content: str, forced: Optional[str] = None) -> Optional[str]:
    """'markdown', 'mermaid' or None for unsupported files."""
    if forced:
        return forced
    ext = os.path.splitext(path)[1].lower()
    if ext in MARKDOWN_EXTENSIONS:
        return "markdown"
    if ext in MERMAID_EXTENSIONS:
        return "markdown" if has_mermaid_fences(content) else "mermaid"
    return None


def check_content(path: str, content: str, fmt: str, settings: Settings) -> FileResult:
    result = FileResult(path=path)
    if fmt == "markdown":
        try:
            result.blocks = check_document(
                content,
                strict=settings.strict,
                disabled=settings.disabled_rules,
                workers=settings.workers,
            )
        except ExtractionError as e:
            result.error = str(e)
            return result
        result.empty = not result.blocks
        return result

    if not content.strip():
        result.error = "empty mermaid input"
        return result
    result.blocks = [check_source(content, strict=settings.strict, disabled=settings.disabled_rules)]
    return result


def check_path(path: str, settings: Settings, forced: Optional[str] = None) -> FileResult:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            content = fh.read()
    except (OSError, UnicodeDecodeError) as e:
        return FileResult(path=path, error=f"cannot read file: {e}")

    fmt = detect_format(path, content, forced)
    if fmt is None:
        return FileResult(path=path, error="unsupported file type")
    return check_content(path, content, fmt, settings)


def check_stdin(settings: Settings, forced: Optional[str] = None) -> FileResult:
    content = sys.stdin.read()
    fmt = forced or ("markdown" if has_mermaid_fences(content) else "mermaid")
    return check_content(STDIN_NAME, content, fmt, settings)


def print_result(result: FileResult, out=None) -> None:
    out = out or sys.stdout
    if result.error is not None:
        print(f"{result.path}: error: {result.error}", file=out)
        return
    if result.empty:
        print(f"{result.path}: no Mermaid diagrams found (use ```mermaid fences)", file=out)
        return

    print(f"Validating: {result.path}", file=out)
    if len(result.blocks) > 1:
        print(f"  Found {len(result.blocks)} diagrams", file=out)
    for idx, block in enumerate(result.blocks, start=1):
        prefix = f"  Diagram {idx} - {display_name(block.dialect)} ({block.line_range})"
        if block.error is not None:
            print(f"{prefix}: parse error: {block.error_text}", file=out)
        elif not block.diagnostics:
            print(f"{prefix}: valid", file=out)
        else:
            print(f"{prefix}: {len(block.diagnostics)} issue(s)", file=out)
            for diagnostic in block.diagnostics:
                print(f"    {diagnostic}", file=out)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mermaid-check",
        description="Parse and validate Mermaid diagrams in .mmd and Markdown files",
    )
    parser.add_argument("files", nargs="*", help="Files to check; stdin when omitted")
    parser.add_argument("--strict", action="store_true", default=None, help="Use strict validation rules")
    parser.add_argument("--format", choices=("mermaid", "markdown"), help="Force input format")
    parser.add_argument(
        "--error-on-empty",
        action="store_true",
        help="Treat files with no Mermaid diagrams as errors",
    )
    parser.add_argument(
        "--fail-on",
        choices=SEVERITY_NAMES,
        help="Lowest severity that fails the run (default: info, any finding fails)",
    )
    parser.add_argument("--rules", metavar="FILE", help="YAML rules file (strict, disabled_rules)")
    parser.add_argument("--json", action="store_true", help="Output as JSON")
    parser.add_argument("--workers", type=int, help="Check Markdown blocks in parallel")
    parser.add_argument("--log-level", help="Logging level, e.g. DEBUG")
    parser.add_argument("--version", action="version", version=f"mermaid-check version {__version__}")
    return parser


def resolve_settings(args: argparse.Namespace) -> Settings:
    settings = Settings.from_env()
    if args.rules:
        settings.apply_rules_file(load_rules_file(args.rules))
    if args.strict:
        settings.strict = True
    if args.fail_on:
        settings.fail_on = args.fail_on
    if args.workers:
        settings.workers = max(1, args.workers)
    if args.log_level:
        settings.log_level = args.log_level
    return settings


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = resolve_settings(args)
    except RuleConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    setup_logger("mermaid_check", settings.log_level)

    if args.files:
        results = [check_path(path, settings, args.format) for path in args.files]
    else:
        results = [check_stdin(settings, args.format)]

    if args.json:
        print(json.dumps([r.to_dict() for r in results], indent=2))
    else:
        for result in results:
            print_result(result)

    failed = any(r.fails(settings.fail_on, args.error_on_empty) for r in results)
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
