import logging
from typing import Optional

from tqdm import tqdm

from .. import config
from ..database.ops import CatalogOperations
from ..exceptions import DestinationWriteFailed, StoreError
from ..models import ChecksumGroup, MediaRecord
from .destination import DestinationDirectory

class Organizer:
    def __init__(self, catalog: CatalogOperations, destination: DestinationDirectory):
        self.catalog = catalog
        self.destination = destination

    def organize(self, continue_on_error: bool = False) -> int:
        """
        Exports the canonical file of every checksum group into the date tree.

        Only one source of a group is copied, so each distinct content lands in
        the destination once. Types outside the export map are skipped and
        undated files go under 0001/01. A failed copy stops the run unless
        `continue_on_error` is set.
        """
        groups = self.catalog.get_all_checksums()
        logging.info(f"Organizing {len(groups)} checksum groups into {self.destination.root}...")

        exported = 0
        for index, group in enumerate(tqdm(groups, desc="Organizing")):
            media = self._representative(group)
            if media is None:
                continue

            ext = config.EXPORT_EXTENSIONS.get(media.mime_type)
            if ext is None:
                logging.debug(f"Skipping {media.path} ({media.mime_type})")
                continue

            if media.creation_date is None:
                logging.debug(f"{media.path} has no creation date, exporting as undated")

            try:
                self.destination.export(media, index, ext)
            except DestinationWriteFailed as e:
                if not continue_on_error:
                    raise
                logging.error(str(e))
                continue
            exported += 1

        logging.info(f"Exported {exported} files.")
        return exported

    def _representative(self, group: ChecksumGroup) -> Optional[MediaRecord]:
        """
        First source of the group whose content still hashes to the group's
        checksum. A path re-hashed to new content stays listed in its old group
        but is exported only from the new one.
        """
        for path in group.sources:
            media = self.catalog.get_file_by_path(path)
            if media is None:
                raise StoreError(f"Checksum group {group.checksum} points at uncataloged {path}")
            if media.checksum == group.checksum:
                return media
            logging.debug(f"{path} no longer matches {group.checksum}")
        return None
