"""
Filename handling: transport mis-encoding recovery, blob-name sanitizing
and download header encoding.
"""
import logging
import os
from typing import Optional
from urllib.parse import quote

from . import config

# Characters RFC 5987 allows unescaped in an ext-value, beyond alphanumerics
_ATTR_SAFE = "!#$&+-.^_`|~"

def recover_filename(name: str) -> str:
    r"""
    Recovers a UTF-8 filename that the upload transport decoded as Latin-1.

    Each code point of the mis-decoded name is one byte of the original
    UTF-8 sequence, so re-encoding as Latin-1 gives back those bytes:

        "ØªÙ\x82Ø±Ù\x8aØ±.md"  ->  b"\xd8\xaa\xd9\x82..."  ->  "تقرير.md"

    The transform corrupts names that were never mis-encoded, so it only
    runs when the name looks like mojibake:
      - pure ASCII names are returned as-is (nothing to recover),
      - names with code points above U+00FF are already proper Unicode,
      - names whose Latin-1 bytes are not valid UTF-8 (e.g. a genuine
        "café.md") are returned as-is.

    Never raises; a name must never block an upload.
    """
    if name.isascii():
        return name

    try:
        raw = name.encode(config.TRANSPORT_FALLBACK_ENCODING)
    except UnicodeEncodeError:
        return name

    try:
        recovered = raw.decode('utf-8')
    except UnicodeDecodeError:
        return name

    logging.debug(f"Recovered mis-encoded filename {name!r} -> {recovered!r}")
    return recovered

def file_type_for(filename: str) -> Optional[str]:
    """Returns 'md' / 'pdf' for a supported extension (case-insensitive), else None."""
    ext = os.path.splitext(filename)[1].lower()
    return config.EXT_TO_TYPE.get(ext)

def sanitize_filename(filename: str, max_bytes: int = config.MAX_FILENAME_LENGTH) -> str:
    """
    Reduces a user-supplied name to a single safe path component.
    Strips directories, '..', NUL and other control characters, then trims
    the stem so the UTF-8 encoded name fits in max_bytes.
    """
    name = filename.replace("\\", "/").rsplit("/", 1)[-1]
    name = "".join(ch for ch in name if ch.isprintable())
    name = name.replace("..", "_").strip()
    if not name or name == ".":
        name = "file"

    if len(name.encode('utf-8')) > max_bytes:
        stem, ext = os.path.splitext(name)
        ext_len = len(ext.encode('utf-8'))
        while stem and len(stem.encode('utf-8')) + ext_len > max_bytes:
            stem = stem[:-1]
        name = stem + ext

    return name

def content_disposition(filename: str) -> str:
    """Attachment header value carrying a non-ASCII-safe filename (RFC 5987)."""
    return f"attachment; filename*=UTF-8''{quote(filename, safe=_ATTR_SAFE)}"

def format_size(num_bytes: int) -> str:
    """Human-readable size: 0 B, 512 B, 1.5 KB, 2 MB..."""
    if num_bytes == 0:
        return "0 B"

    units = ["B", "KB", "MB", "GB"]
    value = float(num_bytes)
    idx = 0
    while value >= 1024 and idx < len(units) - 1:
        value /= 1024
        idx += 1
    return f"{round(value, 2):g} {units[idx]}"
