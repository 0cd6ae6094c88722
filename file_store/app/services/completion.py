import asyncio
from typing import Any


class Completion:
    """Single-assignment outcome of one request.

    Several sources can try to finish an upload (the incoming stream, the
    output file, the final commit). Only the first call to ``succeed`` or
    ``fail`` takes effect; every later call is a no-op that returns False.
    """

    def __init__(self):
        self._future = asyncio.get_running_loop().create_future()

    @property
    def done(self) -> bool:
        return self._future.done()

    @property
    def succeeded(self) -> bool:
        return self._future.done() and self._future.exception() is None

    def succeed(self, result: Any) -> bool:
        if self._future.done():
            return False
        self._future.set_result(result)
        return True

    def fail(self, error: BaseException) -> bool:
        if self._future.done():
            return False
        self._future.set_exception(error)
        return True

    def result(self) -> Any:
        """Return the outcome, raising the recorded error if it failed."""
        return self._future.result()
