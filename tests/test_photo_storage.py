import pytest

from core.exceptions import ValidationError
from utils.photo_storage import PHOTO_SUBDIR, PhotoStorage


@pytest.fixture
def storage(tmp_path):
    return PhotoStorage(tmp_path, max_size=1024)


def test_save_writes_file_under_subdir(storage, tmp_path):
    ref = storage.save(b"gambar", "foto.JPG", "image/jpeg")

    assert ref.startswith(f"{PHOTO_SUBDIR}/")
    assert ref.endswith(".jpg")
    assert (tmp_path / ref).read_bytes() == b"gambar"


def test_save_falls_back_to_extension(storage):
    ref = storage.save(b"gambar", "foto.webp", "application/octet-stream")

    assert ref.endswith(".webp")


def test_save_generates_unique_names(storage):
    assert storage.save(b"a", "a.png", "image/png") != storage.save(b"a", "a.png", "image/png")


@pytest.mark.parametrize(
    "content, filename, content_type",
    [
        (b"", "kosong.png", "image/png"),
        (b"x" * 2048, "besar.png", "image/png"),
        (b"%PDF", "dokumen.pdf", "application/pdf"),
        (b"data", None, None),
    ],
)
def test_save_rejects_bad_uploads(storage, content, filename, content_type):
    with pytest.raises(ValidationError):
        storage.save(content, filename, content_type)


def test_path_for_refuses_traversal(storage):
    with pytest.raises(ValidationError):
        storage.path_for("../../etc/passwd")


def test_delete_removes_file_and_ignores_missing(storage, tmp_path):
    ref = storage.save(b"gambar", "foto.png", "image/png")

    storage.delete(ref)
    assert not (tmp_path / ref).exists()

    storage.delete(ref)
    storage.delete(None)
