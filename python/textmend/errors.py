class TextmendError(Exception):
    """Base class for errors raised by the edit session and its boundaries."""


class TaskNotFoundError(TextmendError, KeyError):
    def __init__(self, task_id: str):
        super().__init__(task_id)
        self.task_id = task_id

    def __str__(self) -> str:
        return f"No edit task with id '{self.task_id}'."


class TaskStateError(TextmendError):
    """Raised when an operation is not allowed from the task's current status."""


class FixPreconditionError(TextmendError):
    """
    A fix suggestion could not be applied because user input is missing or stale
    (no selection, or a range that no longer fits the document).
    The task is left untouched.
    """


class PlanFormatError(TextmendError, ValueError):
    """The planning collaborator returned a payload that is not a valid edit plan."""
