"""
Tests for plan parsing (planner boundary) and the CriticMarkup preview.
"""

import json

import pytest

from textmend.errors import PlanFormatError
from textmend.markup import diff_words, render_task_markup
from textmend.models import EditProposal, TaskStatus
from textmend.plan import clean_json, parse_plan
from textmend.session import EditSession


def test_clean_json_strips_fences():
    assert clean_json('```json\n{"tasks": []}\n```') == '{"tasks": []}'
    assert clean_json("") == "{}"


def test_parse_plan_camel_case_payload():
    raw = """```json
{
  "expertProfile": {"domain": "finance", "title": "Analyst", "competency": "Top 1%"},
  "critique": {"overallScore": 70},
  "thoughts": "Tighten wording.",
  "tasks": [
    {"explanation": "Be precise", "originalText": "grew a lot", "replacementText": "grew 12%"}
  ]
}
```"""
    plan = parse_plan(raw)
    assert plan.expert_profile["domain"] == "finance"
    assert plan.thoughts == "Tighten wording."
    assert plan.tasks == [EditProposal(explanation="Be precise", original_text="grew a lot", replacement_text="grew 12%")]


def test_parse_plan_bare_list_and_alternate_keys():
    plan = parse_plan([{"target_text": "Fee", "new_text": "Charge"}, {"original": "a", "replace": "b"}])
    assert [(t.original_text, t.replacement_text) for t in plan.tasks] == [("Fee", "Charge"), ("a", "b")]


def test_parse_plan_rejects_malformed_payloads():
    with pytest.raises(PlanFormatError):
        parse_plan("not json at all")
    with pytest.raises(PlanFormatError):
        parse_plan({"tasks": [{"explanation": "missing the quote"}]})
    with pytest.raises(PlanFormatError):
        parse_plan("42")


def test_task_serializes_camel_case():
    session = EditSession("x")
    task = session.add_tasks([EditProposal(original_text="x", replacement_text="y")])[0]
    dumped = json.loads(task.model_dump_json(by_alias=True))
    assert dumped["originalText"] == "x"
    assert dumped["replacementText"] == "y"
    assert dumped["status"] == "pending"


def test_diff_words_keeps_unchanged_words():
    diffs = diff_words("The quick brown fox", "The slow brown fox")
    assert diffs == [(0, "The "), (-1, "quick"), (1, "slow"), (0, " brown fox")]
    assert diff_words("", "") == []


def test_render_task_markup():
    doc = "The cat sat.\n\nIt was happy."
    session = EditSession(doc)
    session.add_tasks(
        [
            EditProposal(explanation="word choice", original_text="cat", replacement_text="feline"),
            EditProposal(explanation="", original_text="happy", replacement_text="content"),
            EditProposal(explanation="unmatched", original_text="dog", replacement_text="hound"),
        ]
    )
    result = render_task_markup(doc, session.tasks, include_index=True)
    assert result == "The {--cat--}{++feline++}{>>word choice [Edit:0]<<} sat.\n\nIt was {--happy--}{++content++}{>>[Edit:1]<<}."


def test_render_task_markup_skips_overlaps_and_settled_tasks():
    doc = "The cat sat down."
    session = EditSession(doc)
    first, second, third = session.add_tasks(
        [
            EditProposal(original_text="cat sat", replacement_text="dog sat"),
            EditProposal(original_text="sat down", replacement_text="stood up"),
            EditProposal(original_text="The", replacement_text="A"),
        ]
    )
    session.discard(third.id)
    assert session.get(third.id).status == TaskStatus.REJECTED

    result = render_task_markup(doc, session.tasks)
    assert result == "The {--cat--}{++dog++} sat down."
