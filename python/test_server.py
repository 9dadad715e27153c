"""
Tests for the MCP tool functions, called directly on files in a temp directory.

Run: python3 test_server.py   (or pytest)
From: python/
"""

import tempfile
from pathlib import Path

from textmend.diagnose import FORMATTING_MISMATCH
from textmend.models import EditProposal
from textmend.server import apply_edit_plan, diagnose_edit, preview_edit_plan


def _edit(original, replacement, explanation=""):
    return EditProposal(explanation=explanation, original_text=original, replacement_text=replacement)


def test_apply_edit_plan_saves_next_to_source():
    with tempfile.TemporaryDirectory() as tmp:
        doc = Path(tmp) / "letter.txt"
        doc.write_text("The cat sat.\nIt was happy.", encoding="utf-8")

        result = apply_edit_plan(str(doc), [_edit("cat", "dog"), _edit("It was very happy", "x")])

        out = Path(tmp) / "letter_edited.txt"
        lines = result.splitlines()
        assert lines[0] == f"Applied 1 edits. Failed 1 edits. Saved to: {out}"
        assert lines[1].startswith("- Edit 1 failed: ")
        assert out.read_text(encoding="utf-8") == "The dog sat.\nIt was happy."
        assert doc.read_text(encoding="utf-8") == "The cat sat.\nIt was happy."
    print("PASS: apply_edit_plan")


def test_apply_edit_plan_overwrites_edited_file():
    with tempfile.TemporaryDirectory() as tmp:
        doc = Path(tmp) / "notes_edited.md"
        doc.write_text("one  two", encoding="utf-8")

        result = apply_edit_plan(str(doc), [_edit("one two", "three")])

        assert result == f"Applied 1 edits. Failed 0 edits. Saved to: {doc}"
        assert doc.read_text(encoding="utf-8") == "three"


def test_apply_edit_plan_reports_missing_file():
    with tempfile.TemporaryDirectory() as tmp:
        result = apply_edit_plan(str(Path(tmp) / "absent.txt"), [_edit("a", "b")])
    assert result.startswith("Error applying edits: File not found")


def test_diagnose_edit_reports_match_and_miss():
    with tempfile.TemporaryDirectory() as tmp:
        doc = Path(tmp) / "doc.md"
        doc.write_text("The **Quick** brown_fox jumps. Tail.", encoding="utf-8")

        found = diagnose_edit(str(doc), "Tail.")
        missed = diagnose_edit(str(doc), "The Quick brown-fox jumps")
        absent = diagnose_edit(str(Path(tmp) / "nope.md"), "x")

    assert found == "matches (strategy=exact): [31, 36) 'Tail.'"

    lines = missed.splitlines()
    assert lines[0] == FORMATTING_MISMATCH
    assert lines[1].startswith("- Force replace")
    assert "'The **Quick** brown_fox jumps'" in lines[1]
    assert lines[-1] == "- Replace the current selection"

    assert absent.startswith("Error: File not found")
    print("PASS: diagnose_edit")


def test_preview_edit_plan_writes_markup_file():
    with tempfile.TemporaryDirectory() as tmp:
        doc = Path(tmp) / "doc.txt"
        doc.write_text("The cat sat.", encoding="utf-8")

        result = preview_edit_plan(str(doc), [_edit("cat", "dog", "why")], include_index=True)

        out = Path(tmp) / "doc_markup.md"
        assert result == f"Saved CriticMarkup to: {out}"
        assert out.read_text(encoding="utf-8") == "The {--cat--}{++dog++}{>>why [Edit:0]<<} sat."
        assert doc.read_text(encoding="utf-8") == "The cat sat."
    print("PASS: preview_edit_plan")


if __name__ == "__main__":
    import sys

    import pytest

    sys.exit(pytest.main([__file__, "-q"]))
