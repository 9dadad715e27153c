"""
Tests for the host bridge (pipeline.py).

Run: python3 test_pipeline.py
From: python/
"""

import json
import sys

sys.path.insert(0, '.')

import pipeline

PLAN = json.dumps({
    "thoughts": "Two small fixes.",
    "tasks": [
        {"explanation": "word choice", "originalText": "cat", "replacementText": "feline"},
        {"explanation": "tone", "originalText": "happy", "replacementText": "content"},
        {"explanation": "paraphrased", "originalText": "It was very sad", "replacementText": "It was glum"},
    ],
})


def _tasks(result):
    return json.loads(result["tasks"])


def test_requires_prepare():
    pipeline._session = None
    try:
        pipeline.apply_all()
    except RuntimeError:
        pass
    else:
        raise AssertionError("apply_all() should fail without a prepared session")
    print("PASS: requires prepare")


def test_prepare_and_apply_all():
    result = pipeline.prepare("The cat sat.\n\nIt was happy.", PLAN)
    assert result["pendingCount"] == 3

    result = pipeline.apply_all()
    assert result["content"] == "The feline sat.\n\nIt was content."
    assert result["applied"] == 2
    assert result["failed"] == 1

    statuses = [t["status"] for t in _tasks(result)]
    assert statuses == ["applied", "applied", "failed"]
    failed = _tasks(result)[2]
    assert failed["failureReason"]
    assert failed["fixSuggestions"][-1]["kind"] == "replace_selection"
    print("PASS: prepare + apply_all")


def test_apply_fix_needs_selection():
    pipeline.prepare("The cat sat.\n\nIt was happy.", PLAN)
    pipeline.apply_all()
    failed = _tasks(pipeline.snapshot())[2]

    result = pipeline.apply_fix(failed["id"], "manual")
    assert result["ok"] is False
    assert "Select" in result["message"]

    start = result["content"].index("It was")
    result = pipeline.apply_fix(failed["id"], "manual", start, len(result["content"]) - 1)
    assert result["ok"] is True
    assert result["content"] == "The feline sat.\n\nIt was glum."
    print("PASS: apply_fix selection")


def test_single_task_discard_and_clear():
    result = pipeline.prepare("The cat sat.\n\nIt was happy.", PLAN)
    first, second, third = _tasks(result)

    result = pipeline.apply_task(first["id"])
    assert result["status"] == "applied"

    pipeline.update_task(second["id"], "joyful")
    result = pipeline.apply_task(second["id"])
    assert result["content"] == "The feline sat.\n\nIt was joyful."

    pipeline.discard_task(third["id"])
    result = pipeline.clear_completed()
    assert _tasks(result) == []
    print("PASS: single task lifecycle")


if __name__ == "__main__":
    tests = [
        test_requires_prepare,
        test_prepare_and_apply_all,
        test_apply_fix_needs_selection,
        test_single_task_discard_and_clear,
    ]

    passed = 0
    failed = 0
    for test in tests:
        try:
            test()
            passed += 1
        except Exception as e:
            print(f"FAIL: {test.__name__}: {e}")
            import traceback
            traceback.print_exc()
            failed += 1

    print(f"\n{'='*60}")
    print(f"Results: {passed} passed, {failed} failed out of {len(tests)} tests")
    if failed == 0:
        print("ALL TESTS PASSED")
    else:
        print("SOME TESTS FAILED")
