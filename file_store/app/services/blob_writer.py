import asyncio
import os
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator
from urllib.parse import quote

import aiofiles
import aiofiles.os

import config
from app.services.completion import Completion
from app.services.errors import IOFailure, StoreError, describe
from app.services.key_resolver import KeyLike, KeyResolver
from logger_config import setup_logger

logger = setup_logger()


@dataclass
class WriteResult:
    url: str
    key: str
    path: Path
    size: int


class BlobWriter:
    """Persist upload bodies without ever exposing a partial blob.

    Bytes go to a uniquely named staging file in ``temp_dir`` and are moved
    onto the resolved path with a single ``os.replace`` once the body is
    complete. If anything fails first, the staging file is discarded and the
    resolved path keeps whatever it held before (or stays absent).

    Concurrent writes to the same key are not serialized: each one stages
    separately and the last replace wins.
    """

    def __init__(self, resolver: KeyResolver, temp_dir: Path, base_url: str,
                 file_mode: int = config.FILE_MODE):
        self.resolver = resolver
        self.temp_dir = temp_dir
        self.base_url = base_url.rstrip("/")
        self.file_mode = file_mode

    async def write_bytes(self, key: KeyLike, data: bytes) -> WriteResult:
        """Commit a body that was already buffered in memory in one write."""
        async def single_chunk():
            yield data

        return await self.write_stream(key, single_chunk())

    async def write_stream(self, key: KeyLike, chunks: AsyncIterator[bytes]) -> WriteResult:
        """Stream ``chunks`` to disk and commit them under ``key``.

        Raises:
            MissingKey, InvalidPath: the key does not resolve.
            IOFailure: the body stream broke, or the disk refused the write.
        """
        target = self.resolver.resolve(key)
        key_str = key if isinstance(key, str) else "/".join(key)

        try:
            await aiofiles.os.makedirs(target.parent, exist_ok=True)
        except OSError as e:
            logger.error(f"Upload failed for {key_str} at stage prepare: {e}")
            raise IOFailure(f"Upload preparation failed: {describe(e)}") from e

        staging = self.temp_dir / f"{uuid.uuid4().hex}.part"
        completion = Completion()
        size = 0
        stage = "open"

        try:
            async with aiofiles.open(staging, "wb") as out:
                iterator = chunks.__aiter__()
                while True:
                    try:
                        chunk = await iterator.__anext__()
                    except StopAsyncIteration:
                        break
                    except Exception as e:
                        self._fail(completion, "request", e, key_str)
                        break

                    try:
                        await out.write(chunk)
                    except Exception as e:
                        self._fail(completion, "write", e, key_str)
                        break
                    size += len(chunk)

                # Closing the handle flushes buffered bytes
                stage = "close"

            if not completion.done:
                stage = "commit"
                await asyncio.to_thread(os.chmod, staging, self.file_mode)
                await aiofiles.os.replace(staging, target)
                completion.succeed(WriteResult(
                    url=f"{self.base_url}/files/{quote(key_str)}",
                    key=key_str,
                    path=target,
                    size=size,
                ))
                logger.info(f"Upload successful: {key_str} -> {target} ({size} bytes)")
        except Exception as e:
            self._fail(completion, stage, e, key_str)
        finally:
            if not completion.succeeded:
                await self._discard(staging)

        return completion.result()

    def _fail(self, completion: Completion, stage: str, exc: Exception, key: str) -> None:
        if isinstance(exc, StoreError):
            error = exc
        else:
            error = IOFailure(f"Upload failed: {describe(exc)}")
            error.__cause__ = exc

        if completion.fail(error):
            logger.error(f"Upload failed for {key} at stage {stage}: {exc}")
            logger.debug(f"Upload failure details for {key}", exc_info=exc)
        else:
            logger.debug(f"Ignoring {stage} error for {key} after completion: {exc}")

    async def _discard(self, staging: Path) -> None:
        # Best effort; a failed cleanup must not mask the upload error
        try:
            await aiofiles.os.remove(staging)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove staging file {staging}: {e}")
