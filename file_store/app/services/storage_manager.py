import os
from pathlib import Path
from typing import AsyncIterator

import aiofiles.os

import config
from app.services.blob_deleter import BlobDeleter
from app.services.blob_reader import BlobReader, OpenedBlob
from app.services.blob_writer import BlobWriter, WriteResult
from app.services.key_resolver import KeyLike, KeyResolver
from logger_config import setup_logger

logger = setup_logger()


class StorageManager:
    """Owns the storage root and the operations that act beneath it."""

    def __init__(self, data_dir: Path, temp_dir: Path, base_url: str = config.BASE_URL):
        self.data_dir = Path(os.path.abspath(data_dir))
        self.temp_dir = Path(os.path.abspath(temp_dir))
        self.resolver = KeyResolver(self.data_dir)
        self.writer = BlobWriter(self.resolver, self.temp_dir, base_url)
        self.reader = BlobReader(self.resolver)
        self.deleter = BlobDeleter(self.resolver)

    async def initialize(self):
        """Create the storage directories and drop uploads left from a previous run."""
        logger.info("Initializing storage manager...")

        # Create directories if they don't exist
        self.data_dir.mkdir(exist_ok=True, parents=True)
        self.temp_dir.mkdir(exist_ok=True, parents=True)
        logger.debug(f"Storage directories created/verified: {self.data_dir}, {self.temp_dir}")

        files_removed = await self.clean_temp_dir()
        logger.info(f"Cleaned temporary directory, removed {files_removed} files")

    async def clean_temp_dir(self) -> int:
        files_removed = 0
        for file in self.temp_dir.glob("*.part"):
            if file.is_file():
                await aiofiles.os.unlink(file)
                files_removed += 1
        return files_removed

    def resolve(self, key: KeyLike) -> Path:
        return self.resolver.resolve(key)

    async def write_stream(self, key: KeyLike, chunks: AsyncIterator[bytes]) -> WriteResult:
        return await self.writer.write_stream(key, chunks)

    async def write_bytes(self, key: KeyLike, data: bytes) -> WriteResult:
        return await self.writer.write_bytes(key, data)

    async def open_blob(self, key: KeyLike) -> OpenedBlob:
        return await self.reader.open(key)

    async def delete_blob(self, key: KeyLike) -> Path:
        return await self.deleter.delete(key)
