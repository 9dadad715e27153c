import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import structlog

from textmend import __version__
from textmend.diagnose import diagnose
from textmend.errors import PlanFormatError
from textmend.markup import render_task_markup
from textmend.matcher import find_match
from textmend.models import TaskStatus
from textmend.plan import PlanResponse, parse_plan
from textmend.session import EditSession


def _configure_logging(verbose: bool):
    level = logging.DEBUG if verbose else logging.WARNING
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def _read_text(path: Path) -> str:
    if not path.exists():
        print(f"Error: File not found: {path}", file=sys.stderr)
        sys.exit(1)
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def _load_plan(path: Path) -> PlanResponse:
    try:
        return parse_plan(_read_text(path))
    except PlanFormatError as e:
        print(f"Error parsing edit plan: {e}", file=sys.stderr)
        sys.exit(1)


def _default_output(source: Path, suffix: str) -> Path:
    if source.stem.endswith(suffix):
        return source
    return source.with_name(f"{source.stem}{suffix}{source.suffix}")


def handle_apply(args):
    content = _read_text(args.document)
    plan = _load_plan(args.plan)

    session = EditSession(content)
    session.add_tasks(plan.tasks)
    print(f"Applying {len(plan.tasks)} edits...", file=sys.stderr)
    report = session.apply_batch()

    output_path = args.output or _default_output(args.document, "_edited")
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(session.content)

    if args.json:
        print(json.dumps([t.model_dump(mode="json", by_alias=True) for t in session.tasks], indent=2, ensure_ascii=False))
    else:
        for task in session.tasks:
            preview = task.original_text[:50].replace("\n", " ")
            if task.status == TaskStatus.APPLIED:
                print(f"[✓] {preview}")
            else:
                print(f"[✗] {preview}")
                print(f"    {task.failure_reason}")
                for suggestion in task.fix_suggestions or []:
                    where = f" {list(suggestion.indices)}" if suggestion.indices else ""
                    print(f"    - {suggestion.label}{where}")

    print(f"✅ Saved to {output_path}", file=sys.stderr)
    print(f"Stats: {report.applied} applied, {report.failed} failed.", file=sys.stderr)
    if report.failed > 0:
        sys.exit(1)


def handle_diagnose(args):
    content = _read_text(args.document)
    query = _read_text(args.query_file) if args.query_file else args.query
    if query is None:
        print("Error: provide the reference text or --query-file.", file=sys.stderr)
        sys.exit(1)

    match = find_match(content, query)
    if match is not None:
        print(f"matches (strategy={match.strategy})")
        print(f"- [{match.start}:{match.end}]: {content[match.start:match.end]!r}")
        return

    result = diagnose(content, query)
    print(result.reason)
    for suggestion in result.suggestions:
        if suggestion.indices:
            start, end = suggestion.indices
            print(f"- {suggestion.label} [{start}:{end}]: {content[start:end]!r}")
        else:
            print(f"- {suggestion.label}")


def handle_preview(args):
    content = _read_text(args.document)
    plan = _load_plan(args.plan)

    session = EditSession(content)
    session.add_tasks(plan.tasks)
    result = render_task_markup(content, session.tasks, include_index=args.index)

    output_path = args.output
    if not output_path:
        output_path = args.document.with_suffix(".md")
        if args.document.suffix.lower() == ".md":
            output_path = args.document.with_name(f"{args.document.stem}_markup.md")

    with open(output_path, "w", encoding="utf-8") as f:
        f.write(result)

    print(f"✅ Saved CriticMarkup to {output_path}", file=sys.stderr)
    print(f"Stats: {len(plan.tasks)} edits processed.", file=sys.stderr)


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(prog="textmend", description="Textmend: apply AI-proposed edits to text documents")
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log matching decisions to stderr")
    subparsers = parser.add_subparsers(dest="command", required=True, help="Subcommands")

    p_apply = subparsers.add_parser("apply", help="Apply an edit plan to a text document")
    p_apply.add_argument("document", type=Path, help="Text or Markdown document")
    p_apply.add_argument("plan", type=Path, help="JSON edit plan (object with 'tasks' or a list of tasks)")
    p_apply.add_argument("-o", "--output", type=Path, help="Output path (default: <document>_edited)")
    p_apply.add_argument("--json", action="store_true", help="Print resulting tasks as JSON")
    p_apply.set_defaults(func=handle_apply)

    p_diagnose = subparsers.add_parser("diagnose", help="Explain why a reference text does not match")
    p_diagnose.add_argument("document", type=Path, help="Text or Markdown document")
    p_diagnose.add_argument("query", nargs="?", help="Reference text quoted by the AI")
    p_diagnose.add_argument("--query-file", type=Path, help="Read the reference text from a file")
    p_diagnose.set_defaults(func=handle_diagnose)

    p_preview = subparsers.add_parser("preview", help="Render an edit plan as CriticMarkup without applying it")
    p_preview.add_argument("document", type=Path, help="Text or Markdown document")
    p_preview.add_argument("plan", type=Path, help="JSON edit plan")
    p_preview.add_argument("-o", "--output", type=Path, help="Output Markdown path (default: <document>.md)")
    p_preview.add_argument(
        "-i",
        "--index",
        action="store_true",
        help="Include edit indices [Edit:N] in the output",
    )
    p_preview.set_defaults(func=handle_preview)

    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    args.func(args)


if __name__ == "__main__":
    main()
