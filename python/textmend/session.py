"""
Edit session: owns the document text and the queue of AI-proposed edit tasks.

Task lifecycle:

    pending --apply ok--> applied
    pending --apply miss--> failed --retry/fix ok--> applied
    pending | failed --discard--> rejected

`applied` and `rejected` are terminal. The document is only ever mutated here.
"""

import uuid
from typing import Dict, Iterable, List, Optional, Tuple

import structlog

from textmend.diagnose import diagnose
from textmend.errors import FixPreconditionError, TaskNotFoundError, TaskStateError
from textmend.matcher import attempt_replace, splice
from textmend.models import BatchReport, EditProposal, EditTask, FixKind, FixSuggestion, TaskStatus

logger = structlog.get_logger(__name__)


def _new_task_id() -> str:
    return uuid.uuid4().hex[:12]


def _mark_applied(task: EditTask) -> EditTask:
    return task.model_copy(update={"status": TaskStatus.APPLIED, "failure_reason": None, "fix_suggestions": None})


def _attempt(content: str, version: int, task: EditTask) -> Tuple[Optional[str], EditTask]:
    """
    Runs the matcher for one task against `content`, which is document `version`.
    Returns (new_content, updated_task); new_content is None on a miss.
    """
    new_content = attempt_replace(content, task.original_text, task.replacement_text)
    if new_content is not None:
        return new_content, _mark_applied(task)

    diagnosis = diagnose(content, task.original_text)
    logger.info("Edit task did not match", task_id=task.id, reason=diagnosis.reason)
    suggestions = [s.model_copy(update={"document_version": version}) for s in diagnosis.suggestions]
    failed = task.model_copy(
        update={
            "status": TaskStatus.FAILED,
            "failure_reason": diagnosis.reason,
            "fix_suggestions": suggestions,
        }
    )
    return None, failed


class EditSession:
    def __init__(self, content: str = "", tasks: Optional[Iterable[EditTask]] = None):
        self._content = content
        # Bumped on every write to _content; fix suggestions remember the version they were computed for
        self._version = 0
        self._tasks: Dict[str, EditTask] = {}
        for task in tasks or []:
            self._tasks[task.id] = task

    @property
    def content(self) -> str:
        return self._content

    @property
    def version(self) -> int:
        return self._version

    def _commit_content(self, content: str) -> None:
        self._content = content
        self._version += 1

    @property
    def tasks(self) -> List[EditTask]:
        return list(self._tasks.values())

    @property
    def pending_count(self) -> int:
        return sum(1 for t in self._tasks.values() if t.status == TaskStatus.PENDING)

    def get(self, task_id: str) -> EditTask:
        try:
            return self._tasks[task_id]
        except KeyError:
            raise TaskNotFoundError(task_id) from None

    def replace_content(self, content: str) -> None:
        """Takes over text typed or loaded by the editor surface."""
        self._commit_content(content)

    def add_tasks(self, proposals: Iterable[EditProposal]) -> List[EditTask]:
        """Queues one batch of proposals from the planner as fresh pending tasks."""
        created = []
        for proposal in proposals:
            task = EditTask(
                id=_new_task_id(),
                explanation=proposal.explanation,
                original_text=proposal.original_text,
                replacement_text=proposal.replacement_text,
            )
            self._tasks[task.id] = task
            created.append(task)
        logger.info("Queued edit tasks", count=len(created))
        return created

    def _require_live(self, task_id: str) -> EditTask:
        task = self.get(task_id)
        if not task.is_live:
            raise TaskStateError(f"Task '{task_id}' is already {task.status.value}.")
        return task

    def apply_one(self, task_id: str) -> EditTask:
        """Applies (or retries) a single task against the current document."""
        task = self._require_live(task_id)
        new_content, updated = _attempt(self._content, self._version, task)
        if new_content is not None:
            self._commit_content(new_content)
        self._tasks[task_id] = updated
        return updated

    def apply_batch(self) -> BatchReport:
        """
        Applies every pending task in queue order.

        Each task is matched against the document as left by the tasks before
        it. A miss does not stop the batch. Document and task states are
        committed once, after the last task.
        """
        working = self._content
        working_version = self._version
        updates: Dict[str, EditTask] = {}
        report = BatchReport()

        for task in self._tasks.values():
            if task.status != TaskStatus.PENDING:
                continue
            new_content, updated = _attempt(working, working_version, task)
            if new_content is not None:
                working = new_content
                working_version += 1
                report.applied += 1
            else:
                report.failed += 1
                report.failed_ids.append(task.id)
            updates[task.id] = updated

        self._content = working
        self._version = working_version
        self._tasks.update(updates)
        logger.info("Applied edit batch", applied=report.applied, failed=report.failed)
        return report

    def apply_fix(
        self,
        task_id: str,
        suggestion: FixSuggestion,
        selection: Optional[Tuple[int, int]] = None,
    ) -> EditTask:
        """
        Applies a recovery action to a live task.

        `replace_selection` writes the replacement over `selection`, the range
        the user currently has selected in the editor. `force_replace_range`
        writes it over the suggestion's own indices, which must come from the
        current document version. Both ranges must fit the current document;
        otherwise FixPreconditionError is raised and nothing changes.
        """
        task = self._require_live(task_id)

        if suggestion.kind == FixKind.REPLACE_SELECTION:
            if selection is None or selection[0] == selection[1]:
                raise FixPreconditionError("Select the text to replace in the editor first.")
            start, end = selection
        else:
            if suggestion.indices is None:
                raise FixPreconditionError(f"Suggestion '{suggestion.id}' carries no range to replace.")
            if suggestion.document_version is not None and suggestion.document_version != self._version:
                raise FixPreconditionError(
                    "The document changed since this suggestion was made. Retry the task to get a fresh suggestion."
                )
            start, end = suggestion.indices

        if not 0 <= start <= end <= len(self._content):
            raise FixPreconditionError(
                f"Range [{start}, {end}) does not fit the document (length {len(self._content)}). "
                "Retry the task to get a fresh suggestion."
            )

        self._commit_content(splice(self._content, start, end, task.replacement_text))
        updated = _mark_applied(task)
        self._tasks[task_id] = updated
        logger.info("Applied fix", task_id=task_id, kind=suggestion.kind.value, start=start, end=end)
        return updated

    def discard(self, task_id: str) -> EditTask:
        task = self._require_live(task_id)
        updated = task.model_copy(update={"status": TaskStatus.REJECTED})
        self._tasks[task_id] = updated
        return updated

    def update_replacement(self, task_id: str, replacement_text: str) -> EditTask:
        """Lets the user rewrite the proposed replacement before applying it."""
        task = self._require_live(task_id)
        updated = task.model_copy(update={"replacement_text": replacement_text})
        self._tasks[task_id] = updated
        return updated

    def clear_completed(self) -> int:
        """Drops applied and rejected tasks. Returns how many were removed."""
        done = [tid for tid, t in self._tasks.items() if not t.is_live]
        for tid in done:
            del self._tasks[tid]
        return len(done)
