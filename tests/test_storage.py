import io

import pytest

from storage import LocalStorage, S3Storage, StorageError, get_storage, unique_name


class FakeS3:
    def __init__(self):
        self.calls = []

    def upload_fileobj(self, **kwargs):
        self.calls.append(kwargs)


def test_unique_names_keep_extension():
    first, second = unique_name("clip.MP4"), unique_name("clip.MP4")
    assert first != second
    assert first.endswith(".mp4")


def test_local_storage_writes_file(tmp_path):
    storage = LocalStorage(str(tmp_path))

    url = storage.save(io.BytesIO(b"hello"), "note.txt", "docs")

    name = url.rsplit("/", 1)[1]
    assert url == f"/uploads/docs/{name}"
    assert (tmp_path / "docs" / name).read_bytes() == b"hello"


def test_s3_storage_returns_public_url():
    client = FakeS3()
    storage = S3Storage("academy-media", "ap-south-1", client=client)

    url = storage.save(io.BytesIO(b"data"), "drill.mp4", "army-videos")

    key = client.calls[0]["Key"]
    assert key.startswith("army-videos/")
    assert client.calls[0]["ExtraArgs"] == {"ACL": "public-read"}
    assert url == f"https://academy-media.s3.ap-south-1.amazonaws.com/{key}"


def test_get_storage_backends(settings):
    assert isinstance(get_storage(settings), LocalStorage)

    with pytest.raises(StorageError):
        get_storage(settings.model_copy(update={"STORAGE_BACKEND": "s3"}))
    with pytest.raises(StorageError):
        get_storage(settings.model_copy(update={"STORAGE_BACKEND": "ftp"}))
