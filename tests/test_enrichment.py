import logging

import pytest
from datetime import datetime

from media_importer import config
from media_importer.exceptions import SourceUnreadable, StoreError
from media_importer.metadata import sniff as sniff_module
from media_importer.metadata.enricher import MetadataEnricher
from media_importer.scanning.scanner import Scanner

MP4_HEAD = b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 16

@pytest.fixture
def enricher(source, catalog):
    return MetadataEnricher(source, catalog)

def _scan(source, catalog):
    Scanner(source, catalog).scan()

def _set_mime(catalog, path, mime):
    rec = catalog.get_file_by_path(str(path))
    rec.mime_type = mime
    catalog.save_media(rec)
    return rec

# --- Mimetype Pass ---

def test_detect_mimetypes(fake_sniff, enricher, source, catalog, source_root, make_jpeg):
    make_jpeg(source_root / "a.jpg")
    (source_root / "b.mp4").write_bytes(MP4_HEAD)
    (source_root / "c.bin").write_bytes(b"\x01\x02\x03")
    (source_root / "empty.jpg").write_bytes(b"")
    _scan(source, catalog)

    assert enricher.detect_mimetypes() == 4

    found = {r.path: r.mime_type for r in catalog.get_all_files()}
    assert found == {
        str(source_root / "a.jpg"): "image/jpeg",
        str(source_root / "b.mp4"): "video/mp4",
        str(source_root / "c.bin"): config.UNKNOWN_MIMETYPE,
        str(source_root / "empty.jpg"): config.UNKNOWN_MIMETYPE,
    }

def test_detect_mimetypes_continues_past_missing_files(fake_sniff, enricher, source, catalog, source_root, make_jpeg):
    make_jpeg(source_root / "a.jpg")
    make_jpeg(source_root / "b.jpg")
    _scan(source, catalog)
    (source_root / "a.jpg").unlink()

    enricher.detect_mimetypes()

    assert catalog.get_file_by_path(str(source_root / "a.jpg")).mime_type == config.UNKNOWN_MIMETYPE
    assert catalog.get_file_by_path(str(source_root / "b.jpg")).mime_type == "image/jpeg"

def test_detect_mimetypes_is_monotonic(fake_sniff, enricher, source, catalog, source_root, make_jpeg):
    make_jpeg(source_root / "a.jpg")
    _scan(source, catalog)
    enricher.detect_mimetypes()

    # Content changes, but the stored value is kept unless forced
    (source_root / "a.jpg").write_bytes(MP4_HEAD)
    assert enricher.detect_mimetypes() == 0
    assert catalog.get_file_by_path(str(source_root / "a.jpg")).mime_type == "image/jpeg"

    assert enricher.detect_mimetypes(force=True) == 1
    assert catalog.get_file_by_path(str(source_root / "a.jpg")).mime_type == "video/mp4"

def test_missing_libmagic_is_reported_once(monkeypatch, caplog, enricher, source, catalog, source_root, make_jpeg):
    monkeypatch.setattr(sniff_module, "magic", None)
    make_jpeg(source_root / "a.jpg")
    make_jpeg(source_root / "b.jpg")
    _scan(source, catalog)

    with caplog.at_level(logging.ERROR):
        assert enricher.detect_mimetypes() == 2

    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert "libmagic" in errors[0].getMessage()
    assert {r.mime_type for r in catalog.get_all_files()} == {config.UNKNOWN_MIMETYPE}

# --- Checksum Pass ---

def test_identical_content_shares_a_group(enricher, source, catalog, source_root):
    (source_root / "a.jpg").write_bytes(b"same bytes")
    (source_root / "b.jpg").write_bytes(b"same bytes")
    (source_root / "c.jpg").write_bytes(b"same bytes!")
    _scan(source, catalog)

    assert enricher.compute_checksums() == 3

    groups = catalog.get_all_checksums()
    by_size = sorted(groups, key=lambda g: len(g.sources), reverse=True)
    assert len(groups) == 2
    assert by_size[0].sources == [str(source_root / "a.jpg"), str(source_root / "b.jpg")]
    assert by_size[1].sources == [str(source_root / "c.jpg")]

    a = catalog.get_file_by_path(str(source_root / "a.jpg"))
    assert by_size[0].checksum == a.checksum
    assert len(a.checksum) == 40

def test_checksum_ignores_names(enricher, source, catalog, source_root):
    (source_root / "x").mkdir()
    (source_root / "x" / "same.jpg").write_bytes(b"one")
    (source_root / "same.jpg").write_bytes(b"two")
    _scan(source, catalog)
    enricher.compute_checksums()

    assert len(catalog.get_all_checksums()) == 2

def test_checksums_are_monotonic(enricher, source, catalog, source_root):
    (source_root / "a.jpg").write_bytes(b"first")
    _scan(source, catalog)
    enricher.compute_checksums()
    before = catalog.get_file_by_path(str(source_root / "a.jpg")).checksum

    assert enricher.compute_checksums() == 0
    assert catalog.get_file_by_path(str(source_root / "a.jpg")).checksum == before

    # Forcing over unchanged content doesn't grow the group
    assert enricher.compute_checksums(force=True) == 1
    groups = catalog.get_all_checksums()
    assert [g.sources for g in groups] == [[str(source_root / "a.jpg")]]

def test_checksum_read_error_aborts_sweep(enricher, source, catalog, source_root):
    (source_root / "a.jpg").write_bytes(b"a")
    (source_root / "b.jpg").write_bytes(b"b")
    _scan(source, catalog)
    (source_root / "b.jpg").unlink()

    with pytest.raises(SourceUnreadable):
        enricher.compute_checksums()

    # Progress before the failure is committed
    assert catalog.get_file_by_path(str(source_root / "a.jpg")).checksum
    assert catalog.get_file_by_path(str(source_root / "b.jpg")).checksum == ""

def test_interrupted_grouping_is_redone(monkeypatch, enricher, source, catalog, source_root):
    (source_root / "a.jpg").write_bytes(b"a")
    _scan(source, catalog)

    real_add_checksum = catalog.add_checksum
    calls = []

    def add_checksum_once_failing(record):
        calls.append(record.path)
        if len(calls) == 1:
            raise StoreError("crashed before grouping")
        return real_add_checksum(record)

    monkeypatch.setattr(catalog, "add_checksum", add_checksum_once_failing)

    with pytest.raises(StoreError):
        enricher.compute_checksums()
    # Nothing was saved, so the file is still pending
    assert catalog.get_file_by_path(str(source_root / "a.jpg")).checksum == ""

    assert enricher.compute_checksums() == 1
    rec = catalog.get_file_by_path(str(source_root / "a.jpg"))
    groups = catalog.get_all_checksums()
    assert [(g.checksum, g.sources) for g in groups] == [(rec.checksum, [rec.path])]

# --- Creation Date Pass ---

def test_date_from_filename_without_exif(enricher, source, catalog, source_root, make_jpeg):
    make_jpeg(source_root / "IMG_20200101_000000.jpg")
    _scan(source, catalog)
    _set_mime(catalog, source_root / "IMG_20200101_000000.jpg", "image/jpeg")

    assert enricher.extract_creation_dates() == 1
    rec = catalog.get_file_by_path(str(source_root / "IMG_20200101_000000.jpg"))
    assert rec.creation_date == datetime(2020, 1, 1)

def test_exif_date_beats_filename(enricher, source, catalog, source_root, make_jpeg):
    make_jpeg(source_root / "IMG_20200101_000000.jpg", date_time_original="2019:05:04 10:11:12")
    _scan(source, catalog)
    _set_mime(catalog, source_root / "IMG_20200101_000000.jpg", "image/jpeg")

    enricher.extract_creation_dates()
    rec = catalog.get_file_by_path(str(source_root / "IMG_20200101_000000.jpg"))
    assert rec.creation_date == datetime(2019, 5, 4, 10, 11, 12)

def test_video_uses_filename_only(monkeypatch, enricher, source, catalog, source_root):
    (source_root / "clip_20210615_x.mp4").write_bytes(MP4_HEAD)
    _scan(source, catalog)
    _set_mime(catalog, source_root / "clip_20210615_x.mp4", "video/mp4")

    def no_exif(stream):
        raise AssertionError("EXIF must not be read for videos")

    monkeypatch.setattr(enricher.dates, "get_exif_date", no_exif)

    enricher.extract_creation_dates()
    rec = catalog.get_file_by_path(str(source_root / "clip_20210615_x.mp4"))
    assert rec.creation_date == datetime(2021, 6, 15)

def test_unresolved_date_is_not_an_error(enricher, source, catalog, source_root, make_jpeg):
    make_jpeg(source_root / "holiday.jpg")
    _scan(source, catalog)
    _set_mime(catalog, source_root / "holiday.jpg", "image/jpeg")

    assert enricher.extract_creation_dates() == 0
    assert catalog.get_file_by_path(str(source_root / "holiday.jpg")).creation_date is None

def test_only_media_types_get_dates(enricher, source, catalog, source_root):
    (source_root / "notes_20200101.txt").write_text("text")
    _scan(source, catalog)
    _set_mime(catalog, source_root / "notes_20200101.txt", "text/plain")

    assert enricher.extract_creation_dates() == 0
    assert catalog.get_file_by_path(str(source_root / "notes_20200101.txt")).creation_date is None

def test_existing_dates_are_kept_unless_forced(enricher, source, catalog, source_root, make_jpeg):
    make_jpeg(source_root / "IMG_20200101.jpg")
    make_jpeg(source_root / "IMG_20200202.jpg", color="blue")
    _scan(source, catalog)

    trusted = _set_mime(catalog, source_root / "IMG_20200101.jpg", "image/jpeg")
    trusted.creation_date = datetime(2015, 5, 5)
    catalog.save_media(trusted)

    # Camera default dates don't count as set
    stale = _set_mime(catalog, source_root / "IMG_20200202.jpg", "image/jpeg")
    stale.creation_date = datetime(1999, 1, 1)
    catalog.save_media(stale)

    assert enricher.extract_creation_dates() == 1
    assert catalog.get_file_by_path(str(source_root / "IMG_20200101.jpg")).creation_date == datetime(2015, 5, 5)
    assert catalog.get_file_by_path(str(source_root / "IMG_20200202.jpg")).creation_date == datetime(2020, 2, 2)

    assert enricher.extract_creation_dates(force=True) == 2
    assert catalog.get_file_by_path(str(source_root / "IMG_20200101.jpg")).creation_date == datetime(2020, 1, 1)
