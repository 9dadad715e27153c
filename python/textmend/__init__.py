from importlib.metadata import PackageNotFoundError, version

from textmend.diagnose import diagnose
from textmend.locator import find_best_span
from textmend.matcher import attempt_replace, find_match
from textmend.models import Diagnosis, EditProposal, EditTask, FixKind, FixSuggestion, TaskStatus
from textmend.plan import parse_plan
from textmend.session import EditSession

try:
    __version__ = version("textmend")
except PackageNotFoundError:
    # Running from a source checkout without an install
    __version__ = "0.0.0-dev"

__all__ = [
    "EditSession",
    "EditProposal",
    "EditTask",
    "TaskStatus",
    "FixKind",
    "FixSuggestion",
    "Diagnosis",
    "attempt_replace",
    "find_match",
    "find_best_span",
    "diagnose",
    "parse_plan",
    "__version__",
]
