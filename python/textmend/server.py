import logging
import sys
from pathlib import Path
from typing import List, Optional

import structlog
from mcp.server.fastmcp import FastMCP

from textmend.diagnose import diagnose
from textmend.markup import render_task_markup
from textmend.matcher import find_match
from textmend.models import EditProposal, TaskStatus
from textmend.session import EditSession

# --- LOGGING CONFIGURATION ---
# MCP communicates over stdio.
# CRITICAL: All logs must go to stderr. Any print to stdout will break the JSON-RPC protocol.
logging.basicConfig(stream=sys.stderr, level=logging.INFO, force=True)

structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
)

mcp = FastMCP("Textmend Editing Service")


def _read_text(path: str) -> str:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"File not found: {path}")
    with open(p, "r", encoding="utf-8") as f:
        return f.read()


def _save_text(text: str, path: str):
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)


@mcp.tool()
def apply_edit_plan(
    document_path: str,
    edits: List[EditProposal],
    output_path: Optional[str] = None,
) -> str:
    """
    Applies a list of text replacements to a text or Markdown file, in order.

    Matching Strategy:
    - `original_text` is located exactly first, then with flexible whitespace,
      then with LaTeX/Unicode math equivalence (\\sigma vs σ, optional $), then by
      a whitespace-insensitive fingerprint.
    - Only the first occurrence is replaced. Quote enough context to make it unique.
    - Each edit sees the document as changed by the edits before it.

    Args:
        document_path: Absolute path to the source file.
        edits: List of edits. Each edit replaces `original_text` with `replacement_text`.
        output_path: Optional. If not provided, writes `<name>_edited<ext>` next to the source
        (or overwrites the source if it already ends in _edited).
    """
    try:
        session = EditSession(_read_text(document_path))
        session.add_tasks(edits)
        report = session.apply_batch()

        if not output_path:
            p = Path(document_path)
            if p.stem.endswith("_edited"):
                output_path = str(p)
            else:
                output_path = str(p.parent / f"{p.stem}_edited{p.suffix}")

        _save_text(session.content, output_path)

        lines = [f"Applied {report.applied} edits. Failed {report.failed} edits. Saved to: {output_path}"]
        for idx, task in enumerate(session.tasks):
            if task.status == TaskStatus.FAILED:
                lines.append(f"- Edit {idx} failed: {task.failure_reason}")
        return "\n".join(lines)

    except Exception as e:
        return f"Error applying edits: {str(e)}"


@mcp.tool()
def diagnose_edit(document_path: str, original_text: str) -> str:
    """
    Reports where `original_text` matches, or explains why it cannot be matched and lists recovery options.
    When a likely location exists, its character range and current text are reported so the
    edit can be re-issued with an exact quote.

    Args:
        document_path: Absolute path to the text or Markdown file.
        original_text: The reference text that failed to match.
    """
    try:
        content = _read_text(document_path)
        match = find_match(content, original_text)
        if match is not None:
            return f"matches (strategy={match.strategy}): [{match.start}, {match.end}) {content[match.start:match.end]!r}"
        result = diagnose(content, original_text)
        lines = [result.reason]
        for suggestion in result.suggestions:
            if suggestion.indices:
                start, end = suggestion.indices
                lines.append(f"- {suggestion.label}: [{start}, {end}) {content[start:end]!r}")
            else:
                lines.append(f"- {suggestion.label}")
        return "\n".join(lines)
    except FileNotFoundError:
        return f"Error: File not found: {document_path}"
    except Exception as e:
        return f"Error diagnosing edit: {str(e)}"


@mcp.tool()
def preview_edit_plan(
    document_path: str,
    edits: List[EditProposal],
    output_path: Optional[str] = None,
    include_index: bool = False,
) -> str:
    """
    Renders edits as CriticMarkup over the document without changing it, and saves the result.

    Args:
        document_path: Absolute path to the text or Markdown file.
        edits: List of edits, as for apply_edit_plan.
        output_path: Optional path for the output .md file (default: `<name>_markup.md`).
        include_index: If True, appends the edit's 0-based index as [Edit:N] in the markup.

    The saved file contains CriticMarkup annotations:
    - Deletions: {--deleted text--}
    - Insertions: {++inserted text++}
    - Comments (the edit explanation): {>>comment text<<}
    """
    try:
        content = _read_text(document_path)
        session = EditSession(content)
        session.add_tasks(edits)
        result = render_task_markup(content, session.tasks, include_index=include_index)

        if not output_path:
            p = Path(document_path)
            output_path = str(p.parent / f"{p.stem}_markup.md")

        _save_text(result, output_path)
        return f"Saved CriticMarkup to: {output_path}"

    except FileNotFoundError:
        return f"Error: File not found: {document_path}"
    except Exception as e:
        return f"Error rendering preview: {str(e)}"


def main():
    mcp.run()


if __name__ == "__main__":
    main()
