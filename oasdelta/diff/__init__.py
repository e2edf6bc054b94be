from .base import Direction, ValueDiff
from .document import Diff, filter_paths, get_diff
from .summary import Summary, SummaryDetails, get_summary

__all__ = [
    "Diff",
    "Direction",
    "Summary",
    "SummaryDetails",
    "ValueDiff",
    "filter_paths",
    "get_diff",
    "get_summary",
]
