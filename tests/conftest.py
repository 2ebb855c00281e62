import struct

import pytest
from PIL import Image

from media_importer.database.db import CatalogStore
from media_importer.database.ops import CatalogOperations
from media_importer.exceptions import MimeDetectionError
from media_importer.scanning.filesystem import SourceDirectory
import media_importer.metadata.enricher as enricher_module

@pytest.fixture
def source_root(tmp_path):
    root = tmp_path / "src"
    root.mkdir()
    return root

@pytest.fixture
def store(source_root):
    """Returns an open catalog store inside the source root."""
    s = CatalogStore(source_root).open()
    try:
        yield s
    finally:
        s.close()

@pytest.fixture
def catalog(store):
    return CatalogOperations(store)

@pytest.fixture
def source(source_root):
    return SourceDirectory(source_root)

@pytest.fixture
def fake_sniff(monkeypatch):
    """Replaces libmagic with a tiny signature table so tests don't need it installed."""
    def sniff(head: bytes) -> str:
        if head.startswith(b"\xff\xd8"):
            return "image/jpeg"
        if head.startswith(b"\x89PNG"):
            return "image/png"
        if head[4:8] == b"ftyp":
            return "video/mp4"
        if head.startswith(b"text"):
            return "text/plain"
        raise MimeDetectionError("unknown signature")

    monkeypatch.setattr(enricher_module, "sniff", sniff)
    return sniff


def _exif_segment(date_time_original=None, date_time=None) -> bytes:
    """Builds a little-endian EXIF APP1 payload with the given date tags."""
    def ascii_value(v):
        return v.encode("ascii") + b"\x00"

    ifd0 = []
    if date_time:
        ifd0.append((0x0132, ascii_value(date_time)))
    count = len(ifd0) + (1 if date_time_original else 0)

    offset = 8 + 2 + 12 * count + 4
    entries = b""
    data = b""
    for tag, value in ifd0:
        entries += struct.pack("<HHII", tag, 2, len(value), offset)
        data += value
        offset += len(value)

    if date_time_original:
        value = ascii_value(date_time_original)
        entries += struct.pack("<HHII", 0x8769, 4, 1, offset)
        data += struct.pack("<H", 1)
        data += struct.pack("<HHII", 0x9003, 2, len(value), offset + 2 + 12 + 4)
        data += struct.pack("<I", 0)
        data += value

    tiff = b"II*\x00" + struct.pack("<I", 8) + struct.pack("<H", count) + entries + struct.pack("<I", 0) + data
    return b"Exif\x00\x00" + tiff


@pytest.fixture
def make_jpeg():
    """Factory writing a small JPEG, optionally carrying EXIF date tags."""
    def _make(path, date_time_original=None, date_time=None, color="red"):
        kwargs = {}
        if date_time_original or date_time:
            kwargs["exif"] = _exif_segment(date_time_original, date_time)
        with Image.new("RGB", (8, 8), color=color) as im:
            im.save(path, "JPEG", **kwargs)
        return path
    return _make
