from .config import DiffConfig
from .diff import Diff, Direction, Summary, SummaryDetails, get_diff
from .errors import (
    AmbiguousMediaTypeError,
    LoaderError,
    MalformedReferenceError,
    OasDeltaException,
)

__version__ = "0.1.0"

__all__ = [
    "AmbiguousMediaTypeError",
    "Diff",
    "DiffConfig",
    "Direction",
    "LoaderError",
    "MalformedReferenceError",
    "OasDeltaException",
    "Summary",
    "SummaryDetails",
    "get_diff",
]
