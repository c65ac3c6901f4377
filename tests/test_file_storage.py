import io

import pytest
from starlette.datastructures import UploadFile

from fileshare.exceptions import BlobTooLargeError, InvalidBlobNameError
from fileshare.services import file_storage
from fileshare.services.file_storage import FileStorageService


def _upload(data: bytes, name: str = "report.pdf") -> UploadFile:
    return UploadFile(file=io.BytesIO(data), filename=name)


@pytest.mark.asyncio
async def test_save_names_blob_after_timestamp_and_extension(tmp_path):
    storage = FileStorageService(tmp_path)

    blob = await storage.save(_upload(b"hello"), "report.PDF", max_bytes=1024)

    stem, ext = blob.filename.split(".")
    assert stem.isdigit()
    assert ext == "PDF"
    assert blob.size_bytes == 5
    assert (tmp_path / blob.filename).read_bytes() == b"hello"
    assert blob.path == str(tmp_path.resolve() / blob.filename)


@pytest.mark.asyncio
async def test_save_without_extension_uses_bare_timestamp(tmp_path):
    storage = FileStorageService(tmp_path)

    blob = await storage.save(_upload(b"x"), "Makefile", max_bytes=1024)

    assert blob.filename.isdigit()


@pytest.mark.asyncio
async def test_same_millisecond_uploads_get_distinct_names(tmp_path, monkeypatch):
    monkeypatch.setattr(file_storage.time, "time", lambda: 1700000000.5)
    storage = FileStorageService(tmp_path)

    first = await storage.save(_upload(b"one"), "a.txt", max_bytes=1024)
    second = await storage.save(_upload(b"two"), "b.txt", max_bytes=1024)
    other_ext = await storage.save(_upload(b"three"), "c.csv", max_bytes=1024)

    assert first.filename != second.filename
    assert int(second.filename[:-4]) == int(first.filename[:-4]) + 1
    assert other_ext.filename == first.filename[:-4] + ".csv"
    assert (tmp_path / first.filename).read_bytes() == b"one"
    assert (tmp_path / second.filename).read_bytes() == b"two"


@pytest.mark.asyncio
async def test_save_over_limit_leaves_no_partial_blob(tmp_path):
    storage = FileStorageService(tmp_path)
    data = b"a" * (200 * 1024)

    with pytest.raises(BlobTooLargeError) as exc_info:
        await storage.save(_upload(data), "big.bin", max_bytes=100 * 1024)

    assert exc_info.value.limit_bytes == 100 * 1024
    assert list(tmp_path.iterdir()) == []


@pytest.mark.asyncio
async def test_save_at_exact_limit_is_accepted(tmp_path):
    storage = FileStorageService(tmp_path)

    blob = await storage.save(_upload(b"a" * 10), "ten.bin", max_bytes=10)

    assert blob.size_bytes == 10


@pytest.mark.parametrize("name", ["", ".", "..", "../secret.txt", "nested/file.txt", "/etc/passwd"])
def test_resolve_rejects_names_outside_base_dir(tmp_path, name):
    storage = FileStorageService(tmp_path / "uploads")

    with pytest.raises(InvalidBlobNameError):
        storage.resolve(name)


def test_resolve_accepts_plain_names(tmp_path):
    storage = FileStorageService(tmp_path)

    assert storage.resolve("1700000000000.png") == tmp_path.resolve() / "1700000000000.png"


@pytest.mark.asyncio
async def test_delete_removes_blob_and_ignores_missing(tmp_path):
    storage = FileStorageService(tmp_path)
    blob = await storage.save(_upload(b"bye"), "x.txt", max_bytes=1024)

    await storage.delete(blob.filename)
    await storage.delete(blob.filename)

    assert not storage.exists(blob.filename)


def test_is_writable(tmp_path):
    assert FileStorageService(tmp_path / "new").is_writable()
