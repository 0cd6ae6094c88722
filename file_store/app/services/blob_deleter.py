from pathlib import Path

import aiofiles.os

from app.services.blob_reader import stat_regular_file
from app.services.errors import IOFailure, NotFound, describe
from app.services.key_resolver import KeyLike, KeyResolver
from logger_config import setup_logger

logger = setup_logger()


class BlobDeleter:
    """Remove stored blobs.

    Deleting a key with no blob behind it is reported as NotFound rather than
    treated as success.
    """

    def __init__(self, resolver: KeyResolver):
        self.resolver = resolver

    async def delete(self, key: KeyLike) -> Path:
        target = self.resolver.resolve(key)
        await stat_regular_file(target)

        try:
            await aiofiles.os.remove(target)
        except FileNotFoundError:
            # Removed by another request after the check
            raise NotFound()
        except OSError as e:
            logger.error(f"Delete failed for {target}: {e}")
            raise IOFailure(f"Delete failed: {describe(e)}") from e

        logger.info(f"Delete successful: {target}")
        return target
