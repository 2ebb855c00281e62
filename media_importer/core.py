import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List

from .database.db import CatalogStore
from .database.ops import CatalogOperations
from .metadata.enricher import MetadataEnricher
from .models import MediaRecord
from .organization.destination import DestinationDirectory
from .organization.organizer import Organizer
from .reporting import ReportGenerator
from .scanning.filesystem import SourceDirectory
from .scanning.scanner import Scanner

class MediaImporterApp:
    """
    Entry point for each pipeline step against one source tree.

    Steps are independent: every call opens the catalog, runs one pass and
    closes it again, so they can be spread over separate invocations.
      1. register          (Scanner)
      2. detect_mimetypes  (Enricher)
      3. compute_checksums (Enricher)
      4. extract_creation_dates (Enricher)
      5. reorganize        (Organizer)
    """
    def __init__(self, source_root: Path):
        self.source_root = Path(source_root)

    @contextmanager
    def _session(self) -> Iterator[tuple]:
        # Check the source first so a typo doesn't create a catalog directory
        source = SourceDirectory(self.source_root)
        with CatalogStore(self.source_root) as store:
            yield source, CatalogOperations(store)

    def register(self, detect_mimetypes: bool = True, force: bool = False) -> int:
        """Registers new files; by default follows up with the mimetype pass."""
        with self._session() as (source, catalog):
            added = Scanner(source, catalog).scan()
            if detect_mimetypes:
                MetadataEnricher(source, catalog).detect_mimetypes(force=force)
        return added

    def detect_mimetypes(self, force: bool = False) -> int:
        with self._session() as (source, catalog):
            return MetadataEnricher(source, catalog).detect_mimetypes(force=force)

    def compute_checksums(self, force: bool = False) -> int:
        with self._session() as (source, catalog):
            return MetadataEnricher(source, catalog).compute_checksums(force=force)

    def extract_creation_dates(self, force: bool = False) -> int:
        with self._session() as (source, catalog):
            return MetadataEnricher(source, catalog).extract_creation_dates(force=force)

    def reorganize(self, dest_root: Path, continue_on_error: bool = False) -> int:
        destination = DestinationDirectory(dest_root)
        with self._session() as (_, catalog):
            return Organizer(catalog, destination).organize(continue_on_error=continue_on_error)

    def list_entries(self) -> List[MediaRecord]:
        with self._session() as (_, catalog):
            entries = catalog.get_all_files()
            logging.info(f"{len(entries)} files, {catalog.count_checksums()} distinct checksums.")
            return entries

    def report(self, output_csv: Path) -> int:
        with self._session() as (_, catalog):
            return ReportGenerator(catalog).generate_duplicate_report(output_csv)
