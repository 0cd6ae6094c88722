import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator

import aiofiles
import aiofiles.os

import config
from app.services.errors import NotFound
from app.services.key_resolver import KeyLike, KeyResolver


async def stat_regular_file(path: Path) -> os.stat_result:
    """Stat ``path`` and raise NotFound unless it is a regular file."""
    try:
        st = await aiofiles.os.stat(path)
    except OSError:
        raise NotFound()

    if not stat.S_ISREG(st.st_mode):
        raise NotFound()
    return st


@dataclass
class OpenedBlob:
    key: str
    path: Path
    size: int
    chunk_size: int = config.CHUNK_SIZE

    async def chunks(self) -> AsyncIterator[bytes]:
        async with aiofiles.open(self.path, 'rb') as file:
            while chunk := await file.read(self.chunk_size):
                yield chunk


class BlobReader:
    def __init__(self, resolver: KeyResolver, chunk_size: int = config.CHUNK_SIZE):
        self.resolver = resolver
        self.chunk_size = chunk_size

    async def open(self, key: KeyLike) -> OpenedBlob:
        """Resolve ``key`` and confirm a regular file is stored there."""
        target = self.resolver.resolve(key)
        st = await stat_regular_file(target)
        key_str = key if isinstance(key, str) else "/".join(key)
        return OpenedBlob(key=key_str, path=target, size=st.st_size, chunk_size=self.chunk_size)

    async def read(self, key: KeyLike) -> bytes:
        blob = await self.open(key)
        return b"".join([chunk async for chunk in blob.chunks()])
