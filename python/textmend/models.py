from enum import Enum
from typing import List, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class TaskStatus(str, Enum):
    PENDING = "pending"
    APPLIED = "applied"
    REJECTED = "rejected"
    FAILED = "failed"


class FixKind(str, Enum):
    REPLACE_SELECTION = "replace_selection"
    FORCE_REPLACE_RANGE = "force_replace_range"


class FixSuggestion(BaseModel):
    """
    A recovery action offered after a failed match.
    Regenerated on every failed attempt; never persisted.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    kind: FixKind = Field(..., validation_alias=AliasChoices("kind", "type"))
    label: str
    indices: Optional[Tuple[int, int]] = Field(
        None,
        description="Half-open [start, end) offsets into the document the suggestion was computed against.",
    )
    document_version: Optional[int] = Field(
        None,
        validation_alias=AliasChoices("document_version", "documentVersion"),
        serialization_alias="documentVersion",
        description="Session document version the indices refer to. None when built outside a session.",
    )


class EditProposal(BaseModel):
    """
    One edit as produced by the planning collaborator.
    The session treats this as a "find original_text, write replacement_text" operation.
    """

    model_config = ConfigDict(populate_by_name=True)

    explanation: str = Field("", description="Why the edit is proposed. Shown to the user, never matched.")

    original_text: str = Field(
        ...,
        validation_alias=AliasChoices("original_text", "originalText", "target_text", "original"),
        serialization_alias="originalText",
        description="Text quoted from the document. May differ from the document in whitespace, math notation or Markdown.",
    )

    replacement_text: str = Field(
        "",
        validation_alias=AliasChoices("replacement_text", "replacementText", "new_text", "replace"),
        serialization_alias="replacementText",
        description="Text written in place of the located span. An empty string deletes it.",
    )


class EditTask(EditProposal):
    id: str
    status: TaskStatus = TaskStatus.PENDING
    failure_reason: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("failure_reason", "failureReason"),
        serialization_alias="failureReason",
    )
    fix_suggestions: Optional[List[FixSuggestion]] = Field(
        None,
        validation_alias=AliasChoices("fix_suggestions", "fixSuggestions"),
        serialization_alias="fixSuggestions",
    )

    @property
    def is_live(self) -> bool:
        """Pending and failed tasks can still be applied, fixed or discarded."""
        return self.status in (TaskStatus.PENDING, TaskStatus.FAILED)


class Diagnosis(BaseModel):
    reason: str
    suggestions: List[FixSuggestion]


class BatchReport(BaseModel):
    applied: int = 0
    failed: int = 0
    failed_ids: List[str] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return self.applied + self.failed
