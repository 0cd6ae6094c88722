import os
from pathlib import Path
from typing import Sequence, Union

from app.services.errors import InvalidPath, MissingKey

KeyLike = Union[str, Sequence[str]]


class KeyResolver:
    """Map client supplied keys onto paths beneath a single storage root.

    Resolution is pure string computation: nothing is read from or written to
    disk, so it is safe to run on untrusted input before any other step. Every
    operation must resolve its key itself rather than reuse an earlier result.
    """

    def __init__(self, root: Path):
        self.root = Path(os.path.abspath(root))
        root_str = str(self.root)
        self._root_str = root_str
        self._prefix = root_str if root_str.endswith(os.sep) else root_str + os.sep

    def resolve(self, key: KeyLike) -> Path:
        """Return the absolute path for ``key``.

        Args:
            key: A slash-delimited string, or the segments of one (as produced
                by a wildcard route match).

        Raises:
            MissingKey: the key is empty.
            InvalidPath: the key contains a NUL byte or escapes the root.
        """
        if not key:
            raise MissingKey()

        if not isinstance(key, str):
            key = "/".join(key)
            if not key:
                raise MissingKey()

        if "\x00" in key:
            raise InvalidPath()

        # Clients may send an absolute-looking key; only one separator is dropped
        if key.startswith("/"):
            key = key[1:]

        target = os.path.normpath(os.path.join(self._root_str, key))
        if target != self._root_str and not target.startswith(self._prefix):
            raise InvalidPath()

        return Path(target)
