"""Failure kinds reported by the storage operations.

Every failure a request can hit is one of the four subclasses below. The HTTP
layer renders all of them the same way (400 with the message), so callers
only need to catch ``StoreError``.
"""


class StoreError(Exception):
    kind = "StoreError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MissingKey(StoreError):
    """The key was empty or absent."""
    kind = "MissingKey"

    def __init__(self, message: str = "Missing path"):
        super().__init__(message)


class InvalidPath(StoreError):
    """The key is malformed or resolves outside the storage root."""
    kind = "InvalidPath"

    def __init__(self, message: str = "Invalid path"):
        super().__init__(message)


class NotFound(StoreError):
    """No regular file exists at the resolved path."""
    kind = "NotFound"

    def __init__(self, message: str = "Not found"):
        super().__init__(message)


class IOFailure(StoreError):
    """Disk or stream error while storing or removing a blob."""
    kind = "IOFailure"

    def __init__(self, message: str = "Upload failed"):
        super().__init__(message)


def describe(exc: BaseException) -> str:
    """Short client-facing text for ``exc``, without filesystem paths."""
    if isinstance(exc, OSError) and exc.strerror:
        return exc.strerror
    if isinstance(exc, OSError):
        return type(exc).__name__
    return str(exc) or type(exc).__name__
