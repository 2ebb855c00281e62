import logging
from datetime import datetime
from typing import Optional

from tqdm import tqdm

from .. import config
from ..database.ops import CatalogOperations
from ..exceptions import ExtractionFailed, MimeDetectionError, SourceUnreadable
from ..models import MediaRecord
from ..scanning.filesystem import SourceDirectory
from ..scanning.hasher import FileHasher
from .extract import DateExtractor
from .sniff import sniff, sniff_available

class MetadataEnricher:
    """
    Fills in MIME type, checksum and creation date for cataloged files.

    Each pass is a full sweep over the catalog that saves every record as soon
    as it is updated, so an interrupted sweep keeps all progress made so far.
    Already populated values are left alone unless `force` is set.
    """
    def __init__(self, source: SourceDirectory, catalog: CatalogOperations):
        self.source = source
        self.catalog = catalog
        self.hasher = FileHasher()
        self.dates = DateExtractor()

    # --- Mimetype Pass ---

    def detect_mimetypes(self, force: bool = False) -> int:
        """
        Sniffs the leading bytes of each file. Unreadable or unrecognised files
        get the unknown sentinel instead of stopping the sweep.
        """
        records = self.catalog.get_all_files()
        pending = [r for r in records if force or not r.mime_type]
        logging.info(f"Detecting mimetypes for {len(pending)} of {len(records)} files (Force={force})...")
        if pending and not sniff_available():
            logging.error(f"python-magic (libmagic) not found. Every file will be marked {config.UNKNOWN_MIMETYPE}.")

        for record in tqdm(pending, desc="Mimetypes"):
            try:
                record.mime_type = self._detect_mimetype(record)
                logging.debug(f"{record.path} {record.mime_type}")
            except SourceUnreadable as e:
                logging.warning(f"Could not detect mimetype for {record.path}: {e}")
                record.mime_type = config.UNKNOWN_MIMETYPE
            self.catalog.save_media(record)

        return len(pending)

    def _detect_mimetype(self, record: MediaRecord) -> str:
        with self.source.open_for_read(record.path) as f:
            try:
                head = f.read(config.SNIFF_LENGTH)
            except OSError as e:
                raise SourceUnreadable(f"Cannot read {record.path}: {e}") from e
        if not head:
            raise MimeDetectionError("File is empty")
        return sniff(head)

    # --- Checksum Pass ---

    def compute_checksums(self, force: bool = False) -> int:
        """
        Hashes every file and groups identical content.
        A file that can't be read aborts the sweep with SourceUnreadable.
        """
        records = self.catalog.get_all_files()
        pending = [r for r in records if force or not r.checksum]
        logging.info(f"Computing checksums for {len(pending)} of {len(records)} files (Force={force})...")

        for record in tqdm(pending, desc="Checksums"):
            with self.source.open_for_read(record.path) as f:
                try:
                    record.checksum = self.hasher.hash_stream(f)
                except OSError as e:
                    raise SourceUnreadable(f"Cannot read {record.path}: {e}") from e
            logging.debug(f"{record.path} {record.checksum}")

            # Group first: a record with a checksum but no group would never be revisited
            self.catalog.add_checksum(record)
            self.catalog.save_media(record)

        return len(pending)

    # --- Creation Date Pass ---

    def extract_creation_dates(self, force: bool = False) -> int:
        """
        Resolves creation dates for images and videos: EXIF first (images only),
        then a YYYYMMDD run in the path. Unresolved files are logged and skipped.
        """
        records = self.catalog.get_files_by_mimetype(config.DATE_MIMETYPES)
        resolved = 0
        unresolved = 0

        for record in tqdm(records, desc="Creation dates"):
            if record.has_creation_date and not force:
                continue

            logging.debug(f"Searching creation date for {record.path}")
            created = self._resolve_creation_date(record)
            if created is None:
                logging.info(f"Could not find creation date for {record.path}")
                unresolved += 1
                continue

            record.creation_date = created
            logging.debug(f"Found creation date {created:%Y-%m-%d} for {record.path}")
            self.catalog.save_media(record)
            resolved += 1

        logging.info(f"Creation dates: {resolved} resolved, {unresolved} unresolved.")
        return resolved

    def _resolve_creation_date(self, record: MediaRecord) -> Optional[datetime]:
        if record.mime_type != config.VIDEO_MIMETYPE:
            try:
                with self.source.open_for_read(record.path) as f:
                    return self.dates.get_exif_date(f)
            except (ExtractionFailed, SourceUnreadable) as e:
                logging.debug(f"No EXIF date for {record.path}: {e}")

        try:
            return self.dates.get_filename_date(record.path)
        except ExtractionFailed as e:
            logging.debug(str(e))
            return None
