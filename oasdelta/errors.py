from typing import Optional


class OasDeltaException(Exception):
    """Base class for every error raised by oasdelta."""


class MalformedReferenceError(OasDeltaException):
    def __init__(self, kind: str, ref: Optional[str] = None) -> None:
        self.kind = kind
        self.ref = ref
        if ref:
            super().__init__(f"{kind} reference {ref!r} could not be resolved")
        else:
            super().__init__(f"{kind} reference is nil")


class AmbiguousMediaTypeError(OasDeltaException):
    def __init__(self, count: int) -> None:
        self.count = count
        super().__init__(
            f"content map should hold exactly one media type but has {count}"
        )


class LoaderError(OasDeltaException):
    def __init__(self, location: str, reason: str) -> None:
        self.location = location
        super().__init__(f"failed to load spec from {location!r}: {reason}")
