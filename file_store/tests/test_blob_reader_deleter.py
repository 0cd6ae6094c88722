import pytest

from app.services.errors import InvalidPath, MissingKey, NotFound
from app.services.storage_manager import StorageManager


@pytest.fixture
def storage(tmp_path):
    manager = StorageManager(tmp_path / "data", tmp_path / "temp")
    manager.data_dir.mkdir()
    manager.temp_dir.mkdir()
    return manager


@pytest.mark.asyncio
async def test_open_reports_size_and_streams_content(storage):
    content = b"x" * 20000
    await storage.write_bytes("big.bin", content)

    blob = await storage.open_blob("big.bin")
    chunks = [chunk async for chunk in blob.chunks()]

    assert blob.size == len(content)
    assert blob.path == storage.data_dir / "big.bin"
    assert len(chunks) > 1
    assert b"".join(chunks) == content


@pytest.mark.asyncio
async def test_missing_blob_is_not_found(storage):
    with pytest.raises(NotFound):
        await storage.open_blob("nope.txt")


@pytest.mark.asyncio
async def test_directory_is_not_a_blob(storage):
    await storage.write_bytes("dir/file.txt", b"x")

    with pytest.raises(NotFound):
        await storage.open_blob("dir")
    with pytest.raises(NotFound):
        await storage.delete_blob("dir")

    assert (storage.data_dir / "dir").is_dir()


@pytest.mark.asyncio
async def test_path_through_a_file_is_not_found(storage):
    await storage.write_bytes("plain", b"x")

    with pytest.raises(NotFound):
        await storage.open_blob("plain/child")


@pytest.mark.asyncio
async def test_delete_then_read_is_not_found(storage):
    await storage.write_bytes("gone.txt", b"bye")

    removed = await storage.delete_blob("gone.txt")

    assert removed == storage.data_dir / "gone.txt"
    assert not removed.exists()
    with pytest.raises(NotFound):
        await storage.open_blob("gone.txt")


@pytest.mark.asyncio
async def test_delete_of_missing_blob_is_reported(storage):
    with pytest.raises(NotFound) as exc_info:
        await storage.delete_blob("never-written.txt")
    assert exc_info.value.message == "Not found"


@pytest.mark.asyncio
async def test_read_and_delete_resolve_their_own_keys(storage, tmp_path):
    (tmp_path / "outside.txt").write_bytes(b"secret")

    with pytest.raises(InvalidPath):
        await storage.open_blob("../outside.txt")
    with pytest.raises(InvalidPath):
        await storage.delete_blob("../outside.txt")
    with pytest.raises(MissingKey):
        await storage.delete_blob("")

    assert (tmp_path / "outside.txt").read_bytes() == b"secret"
