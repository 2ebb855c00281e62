import logging
from typing import Iterable, List, Optional

from .. import config
from ..models import ChecksumGroup, MediaRecord, media_key, checksum_key
from .codec import decode_checksum, decode_media, encode_checksum, encode_media
from .db import CatalogStore

class CatalogOperations:
    """
    Record-level operations on the catalog.
    Each call commits on its own; there is no transaction spanning calls.
    """
    def __init__(self, store: CatalogStore):
        self.store = store

    def add_file(self, path: str) -> str:
        """Registers a new path with only its key, path and id set."""
        with self.store.transaction(write=True) as tx:
            record = MediaRecord.for_path(path, id=tx.next_sequence(config.MEDIA_COLLECTION))
            tx.put(config.MEDIA_COLLECTION, record.key, encode_media(record))
        return record.key

    def has_file(self, path: str) -> bool:
        return self.store.get(config.MEDIA_COLLECTION, media_key(path)) is not None

    def get_file_by_path(self, path: str) -> Optional[MediaRecord]:
        data = self.store.get(config.MEDIA_COLLECTION, media_key(path))
        return decode_media(data) if data is not None else None

    def get_all_files(self) -> List[MediaRecord]:
        return [decode_media(v) for _, v in self.store.scan(config.MEDIA_COLLECTION)]

    def get_files_by_mimetype(self, mime_types: Iterable[str]) -> List[MediaRecord]:
        wanted = set(mime_types)
        return [r for r in self.get_all_files() if r.mime_type in wanted]

    def save_media(self, record: MediaRecord) -> str:
        """Upserts the full record under its key."""
        self.store.put(config.MEDIA_COLLECTION, record.key, encode_media(record))
        return record.key

    def add_checksum(self, record: MediaRecord):
        """
        Appends the record's path to the group for its checksum,
        creating the group the first time a checksum is seen.
        """
        if not record.checksum:
            return

        key = checksum_key(record.checksum)
        with self.store.transaction(write=True) as tx:
            data = tx.get(config.CHECKSUM_COLLECTION, key)
            group = decode_checksum(data) if data is not None else ChecksumGroup(key=key)

            # A path belongs to one group only once, even across forced re-runs
            if record.path in group.sources:
                logging.debug(f"{record.path} already grouped under {record.checksum}")
                return
            group.sources.append(record.path)
            tx.put(config.CHECKSUM_COLLECTION, key, encode_checksum(group))

    def get_all_checksums(self) -> List[ChecksumGroup]:
        return [decode_checksum(v) for _, v in self.store.scan(config.CHECKSUM_COLLECTION)]

    def count_files(self) -> int:
        return self.store.count(config.MEDIA_COLLECTION)

    def count_checksums(self) -> int:
        return self.store.count(config.CHECKSUM_COLLECTION)
