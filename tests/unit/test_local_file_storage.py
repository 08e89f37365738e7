"""Unit tests for LocalFileStorage."""

import pytest

from shared.storage import LocalFileStorage, StorageError


@pytest.fixture()
def storage(tmp_path) -> LocalFileStorage:
    return LocalFileStorage(tmp_path / "uploads", base_url="/files/")


@pytest.mark.asyncio()
async def test_upload_writes_file(storage):
    key = await storage.upload("dune.jpg", "image/jpeg", b"jpeg-bytes")

    directory, filename = key.split("/")
    assert filename == "dune.jpg"
    assert directory
    assert (storage.base_path / key).read_bytes() == b"jpeg-bytes"


@pytest.mark.asyncio()
async def test_uploads_get_distinct_keys(storage):
    first = await storage.upload("cover.png", "image/png", b"1")
    second = await storage.upload("cover.png", "image/png", b"2")

    assert first != second
    assert (storage.base_path / first).read_bytes() == b"1"
    assert (storage.base_path / second).read_bytes() == b"2"


@pytest.mark.asyncio()
@pytest.mark.parametrize(
    ("filename", "expected"),
    [
        ("../../etc/passwd", "passwd"),
        ("..\\..\\boot.ini", "boot.ini"),
        ("..", "file"),
        ("", "file"),
    ],
)
async def test_upload_strips_directories(storage, filename, expected):
    key = await storage.upload(filename, None, b"data")

    assert key.split("/")[-1] == expected
    assert (storage.base_path / key).is_file()


@pytest.mark.asyncio()
async def test_delete_removes_file_and_directory(storage):
    key = await storage.upload("dune.jpg", "image/jpeg", b"jpeg-bytes")
    directory = (storage.base_path / key).parent

    await storage.delete(key)

    assert not (storage.base_path / key).exists()
    assert not directory.exists()


@pytest.mark.asyncio()
async def test_delete_missing_key_is_noop(storage):
    await storage.delete("00000000-0000-0000-0000-000000000000/missing.jpg")


@pytest.mark.asyncio()
@pytest.mark.parametrize("key", ["../outside.txt", "a/../../outside.txt", "."])
async def test_keys_cannot_escape_base_path(storage, key):
    with pytest.raises(StorageError):
        await storage.delete(key)


def test_get_url(storage):
    assert storage.get_url("abc/dune.jpg") == "/files/abc/dune.jpg"
