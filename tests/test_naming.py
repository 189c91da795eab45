import pytest
from docshelf.naming import (
    content_disposition,
    file_type_for,
    format_size,
    recover_filename,
    sanitize_filename,
)

def mojibake(name: str) -> str:
    """What a Latin-1 decoding transport makes of a UTF-8 filename."""
    return name.encode("utf-8").decode("latin-1")

def test_recovers_arabic_name():
    assert recover_filename(mojibake("تقرير.md")) == "تقرير.md"

def test_recovers_accented_latin_name():
    assert recover_filename(mojibake("résumé.pdf")) == "résumé.pdf"

@pytest.mark.parametrize("name", [
    "report.pdf",           # ascii
    "تقرير.md",             # already proper unicode
    "café.md",              # genuine latin-1, not valid utf-8 bytes
    "",
])
def test_leaves_correct_names_alone(name):
    assert recover_filename(name) == name

def test_recovery_is_not_applied_twice_by_accident():
    # Already recovered text stays put when run through again
    once = recover_filename(mojibake("تقرير.md"))
    assert recover_filename(once) == once

@pytest.mark.parametrize("name,expected", [
    ("notes.md", "md"),
    ("NOTES.MD", "md"),
    ("paper.Pdf", "pdf"),
    ("archive.zip", None),
    ("noext", None),
    (".md", None),
])
def test_file_type_for(name, expected):
    assert file_type_for(name) == expected

def test_sanitize_strips_directories_and_traversal():
    assert sanitize_filename("../../etc/passwd.md") == "passwd.md"
    assert sanitize_filename("C:\\docs\\plan.md") == "plan.md"
    assert ".." not in sanitize_filename("a..b.md")

def test_sanitize_removes_control_characters():
    assert sanitize_filename("bad\x00name\n.md") == "badname.md"

def test_sanitize_empty_falls_back():
    assert sanitize_filename("") == "file"
    assert sanitize_filename("/") == "file"

def test_sanitize_caps_utf8_length_and_keeps_extension():
    name = "ت" * 200 + ".pdf"
    out = sanitize_filename(name, max_bytes=100)
    assert out.endswith(".pdf")
    assert len(out.encode("utf-8")) <= 100

def test_content_disposition_encodes_non_ascii():
    header = content_disposition("تقرير.md")
    assert header.startswith("attachment; filename*=UTF-8''")
    assert header.isascii()
    assert "%D8%AA" in header

def test_content_disposition_plain_name():
    assert content_disposition("report.pdf") == "attachment; filename*=UTF-8''report.pdf"

@pytest.mark.parametrize("size,expected", [
    (0, "0 B"),
    (512, "512 B"),
    (1536, "1.5 KB"),
    (2048, "2 KB"),
    (10 * 1024 * 1024, "10 MB"),
])
def test_format_size(size, expected):
    assert format_size(size) == expected
