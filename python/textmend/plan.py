"""
Boundary with the planning collaborator: turns raw LLM output into validated edit proposals.
"""

import json
import re
from typing import Any, Dict, List, Optional, Union

import structlog
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from textmend.errors import PlanFormatError
from textmend.models import EditProposal

logger = structlog.get_logger(__name__)

_FENCE_RE = re.compile(r"```json\n?|```")


class PlanResponse(BaseModel):
    """
    The planner's answer for one user request.
    Only `tasks` is consumed; the profile and critique are carried for display.
    """

    model_config = ConfigDict(populate_by_name=True)

    expert_profile: Optional[Dict[str, Any]] = Field(
        None,
        validation_alias=AliasChoices("expert_profile", "expertProfile"),
        serialization_alias="expertProfile",
    )
    critique: Optional[Dict[str, Any]] = None
    thoughts: str = ""
    tasks: List[EditProposal] = Field(default_factory=list)


def clean_json(text: str) -> str:
    """Strips Markdown code fences that models like to wrap JSON in."""
    if not text:
        return "{}"
    return _FENCE_RE.sub("", text).strip()


def parse_plan(raw: Union[str, bytes, Dict[str, Any], List[Any]]) -> PlanResponse:
    """
    Validates a plan payload.

    Accepts the planner's raw text (optionally fenced), an already decoded
    object, or a bare list of tasks. Raises PlanFormatError on anything that
    is not a plan.
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")

    if isinstance(raw, str):
        try:
            data = json.loads(clean_json(raw))
        except json.JSONDecodeError as e:
            logger.error("Plan JSON decode failed", error=str(e), preview=raw[:100])
            raise PlanFormatError(f"Could not decode edit plan: {e}. Output starts with: {raw[:100]!r}") from e
    else:
        data = raw

    if isinstance(data, list):
        data = {"tasks": data}

    if not isinstance(data, dict):
        raise PlanFormatError(f"Edit plan must be a JSON object or list, got {type(data).__name__}.")

    try:
        return PlanResponse.model_validate(data)
    except ValidationError as e:
        raise PlanFormatError(f"Edit plan has an invalid shape: {e}") from e
