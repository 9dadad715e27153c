"""
Host bridge for an embedded editor (e.g. Pyodide running inside the page).

Wraps EditSession so the host only ever exchanges JSON-ready dicts:

Phase 1 — prepare(): stores the document and the planner's tasks
Phase 2 — apply_task() / apply_all() / apply_fix() / discard_task():
          mutate the stored session and return the new document + task list

The session lives at module level between calls, like the editor's single
open document. Calls must not be made concurrently.
"""

import json

import structlog

from textmend.errors import FixPreconditionError, TextmendError
from textmend.plan import parse_plan
from textmend.session import EditSession

logger = structlog.get_logger(__name__)

_session = None


def _require_session() -> EditSession:
    if _session is None:
        raise RuntimeError("No session prepared. Call prepare() first.")
    return _session


def snapshot() -> dict:
    """Current document and tasks in the camelCase shape the editor renders."""
    session = _require_session()
    return {
        "content": session.content,
        "pendingCount": session.pending_count,
        "tasks": json.dumps([t.model_dump(mode="json", by_alias=True) for t in session.tasks], ensure_ascii=False),
    }


def prepare(content: str, plan_json: str = None) -> dict:
    """
    Phase 1: start a session over `content`, optionally queueing a plan.
    Any previous session is discarded.
    """
    global _session

    _session = EditSession(content)
    if plan_json:
        load_plan(plan_json)
    return snapshot()


def load_plan(plan_json: str) -> dict:
    """Queues the tasks of one planner response. Raises PlanFormatError on bad payloads."""
    session = _require_session()
    plan = parse_plan(plan_json)
    session.add_tasks(plan.tasks)
    return snapshot()


def set_content(content: str) -> dict:
    """Syncs text the user typed in the editor since the last call."""
    _require_session().replace_content(content)
    return snapshot()


def apply_task(task_id: str) -> dict:
    session = _require_session()
    task = session.apply_one(task_id)
    logger.debug("Applied task from host", task_id=task_id, status=task.status.value)
    result = snapshot()
    result["status"] = task.status.value
    return result


def apply_all() -> dict:
    session = _require_session()
    report = session.apply_batch()
    result = snapshot()
    result["applied"] = report.applied
    result["failed"] = report.failed
    return result


def apply_fix(task_id: str, suggestion_id: str, selection_start: int = None, selection_end: int = None) -> dict:
    """
    Applies one of the task's fix suggestions.

    A missing selection or stale range is reported back as
    {"ok": False, "message": ...} so the host can prompt the user;
    the session is left unchanged.
    """
    session = _require_session()
    task = session.get(task_id)

    suggestion = next((s for s in task.fix_suggestions or [] if s.id == suggestion_id), None)
    if suggestion is None:
        raise TextmendError(f"Task '{task_id}' has no fix suggestion '{suggestion_id}'.")

    selection = None
    if selection_start is not None and selection_end is not None:
        selection = (selection_start, selection_end)

    try:
        session.apply_fix(task_id, suggestion, selection=selection)
    except FixPreconditionError as e:
        result = snapshot()
        result["ok"] = False
        result["message"] = str(e)
        return result

    result = snapshot()
    result["ok"] = True
    return result


def discard_task(task_id: str) -> dict:
    _require_session().discard(task_id)
    return snapshot()


def update_task(task_id: str, replacement_text: str) -> dict:
    _require_session().update_replacement(task_id, replacement_text)
    return snapshot()


def clear_completed() -> dict:
    _require_session().clear_completed()
    return snapshot()
