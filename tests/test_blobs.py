import pytest
from pathlib import Path
from docshelf.exceptions import InvalidArgumentError, NotFoundError, StorageWriteError
from docshelf.storage.blobs import BlobStore

def test_put_and_get_roundtrip(blob_store):
    path = blob_store.put(b"# Title\n", "notes.md")
    assert blob_store.get(path) == b"# Title\n"
    assert not Path(path).is_absolute()
    assert blob_store.path_of(path).parent == blob_store.root

def test_blob_name_layout(blob_store):
    path = Path(blob_store.put(b"x", "notes.md"))
    millis, token, rest = path.name.split("_", 2)
    assert millis.isdigit()
    assert len(token) == 10
    assert rest == "notes.md"

def test_same_suggested_name_never_collides(blob_store):
    paths = {blob_store.put(str(i).encode(), "same.md") for i in range(20)}
    assert len(paths) == 20
    assert sorted(blob_store.get(p) for p in paths) == sorted(str(i).encode() for i in range(20))

def test_put_sanitizes_suggested_name(blob_store):
    path = Path(blob_store.put(b"x", "../../escape.md"))
    assert blob_store.path_of(path).parent == blob_store.root
    assert path.name.endswith("_escape.md")

def test_get_missing_blob_is_not_found(blob_store):
    with pytest.raises(NotFoundError):
        blob_store.get(blob_store.root / "nope.md")

def test_remove_is_idempotent(blob_store):
    path = blob_store.put(b"x", "a.md")
    blob_store.remove(path)
    blob_store.remove(path)
    assert not blob_store.path_of(path).exists()

def test_refuses_paths_outside_content_dir(blob_store, tmp_path):
    outside = tmp_path / "secret.md"
    outside.write_text("nope")
    with pytest.raises(InvalidArgumentError):
        blob_store.get(outside)
    with pytest.raises(InvalidArgumentError):
        blob_store.remove(str(blob_store.root / ".." / "secret.md"))
    assert outside.exists()

def test_absolute_path_inside_root_still_resolves(blob_store):
    name = blob_store.put(b"data", "abs.md")
    assert blob_store.get(blob_store.root / name) == b"data"

def test_write_failure_raises_storage_error_and_cleans_up(blob_store, monkeypatch):
    def full_disk(self, data):
        raise OSError(28, "No space left on device")

    class FailingFile:
        def __init__(self, path):
            self.path = path
        def __enter__(self):
            self.path.touch()
            return self
        def __exit__(self, *exc):
            return False
        write = full_disk

    import builtins
    real_open = builtins.open

    def fake_open(path, mode="r", *args, **kwargs):
        if mode == "xb":
            return FailingFile(Path(path))
        return real_open(path, mode, *args, **kwargs)

    monkeypatch.setattr(builtins, "open", fake_open)

    with pytest.raises(StorageWriteError):
        blob_store.put(b"data", "big.pdf")
    assert list(blob_store.iter_blobs()) == []

def test_write_failure_with_failed_cleanup_is_still_storage_error(blob_store, monkeypatch):
    import builtins
    real_open = builtins.open

    def fake_open(path, mode="r", *args, **kwargs):
        if mode == "xb":
            raise OSError(28, "No space left on device")
        return real_open(path, mode, *args, **kwargs)

    def denied(self, missing_ok=False):
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr(builtins, "open", fake_open)
    monkeypatch.setattr(Path, "unlink", denied)

    with pytest.raises(StorageWriteError):
        blob_store.put(b"data", "big.pdf")

def test_iter_blobs_lists_files_only(blob_store):
    blob_store.put(b"1", "a.md")
    blob_store.put(b"2", "b.pdf")
    (blob_store.root / "subdir").mkdir()
    assert len(list(blob_store.iter_blobs())) == 2

def test_creates_content_dir(tmp_path):
    store = BlobStore(tmp_path / "deep" / "uploads")
    assert store.root.is_dir()
