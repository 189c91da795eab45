import csv
import pytest
from docshelf.reporting import ConsistencyChecker

@pytest.fixture
def checker(app):
    return ConsistencyChecker(app.db, app.blobs)

def test_clean_store(app, checker):
    app.upload_file(b"x", "a.md")
    report = checker.scan()
    assert report.is_clean
    assert report.checked_records == 1
    assert report.checked_blobs == 1

def test_finds_orphans_and_dangling_rows(app, checker):
    kept = app.upload_file(b"x", "kept.md")
    dangling = app.upload_file(b"y", "dangling.md")
    app.blobs.path_of(dangling.blob_path).unlink()
    orphan = app.blobs.path_of(app.blobs.put(b"z", "orphan.pdf"))

    report = checker.scan()

    assert report.orphan_blobs == [orphan]
    assert [r.id for r in report.dangling_records] == [dangling.id]
    assert not report.is_clean
    assert kept.id not in {r.id for r in report.dangling_records}

def test_write_csv(app, checker, tmp_path):
    dangling = app.upload_file(b"y", "dangling.md")
    app.blobs.path_of(dangling.blob_path).unlink()
    orphan = str(app.blobs.path_of(app.blobs.put(b"z", "orphan.pdf")))

    out = tmp_path / "report.csv"
    checker.write_csv(checker.scan(), out)

    with open(out, "r", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))

    statuses = {row["Status"]: row for row in rows}
    assert statuses["Orphan Blob"]["Path"] == orphan
    assert statuses["Dangling Record"]["File ID"] == dangling.id

def test_reconcile_dry_run_changes_nothing(app, checker):
    dangling = app.upload_file(b"y", "dangling.md")
    app.blobs.path_of(dangling.blob_path).unlink()
    orphan = app.blobs.path_of(app.blobs.put(b"z", "orphan.pdf"))

    assert checker.reconcile(checker.scan(), dry_run=True) == 2
    assert orphan.exists()
    assert app.db.find_by_id(dangling.id) is not None

def test_reconcile_repairs_store(app, checker):
    kept = app.upload_file(b"x", "kept.md")
    dangling = app.upload_file(b"y", "dangling.md")
    app.blobs.path_of(dangling.blob_path).unlink()
    orphan = app.blobs.path_of(app.blobs.put(b"z", "orphan.pdf"))

    assert checker.reconcile(checker.scan()) == 2

    assert not orphan.exists()
    assert [r.id for r in app.list_files()] == [kept.id]
    assert checker.scan().is_clean
