import shutil
import logging
from datetime import datetime
from pathlib import Path

from .. import config
from ..exceptions import DestinationWriteFailed
from ..models import MediaRecord

class DestinationDirectory:
    """
    Write view of the export tree: <root>/<year>/<month>/image_<date>_<n>.<ext>
    """
    def __init__(self, root: Path):
        root = Path(root)
        if not root.is_dir():
            raise DestinationWriteFailed(f"Destination path {root} does not exist or is not a directory.")
        self.root = root

    def target_dir(self, created: datetime) -> Path:
        return self.root / config.FOLDER_PATTERN.format(year=created.year, month=created.month)

    def ensure_dir(self, path: Path):
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DestinationWriteFailed(f"Cannot create {path}: {e}") from e

    def copy_file(self, src: Path, dst: Path) -> int:
        """Copies a regular file's bytes and returns how many were written."""
        src = Path(src)
        if not src.is_file():
            raise DestinationWriteFailed(f"{src} is not a regular file")
        try:
            with open(src, 'rb') as fsrc, open(dst, 'wb') as fdst:
                shutil.copyfileobj(fsrc, fdst)
                return fdst.tell()
        except OSError as e:
            raise DestinationWriteFailed(f"Failed to copy {src} -> {dst}: {e}") from e

    def export(self, record: MediaRecord, index: int, ext: str) -> Path:
        """Copies the record's file into its date folder and returns the new path."""
        # Undated files are exported under the placeholder date 0001-01-01
        created = record.creation_date or config.UNDATED_DATE

        target = self.target_dir(created)
        self.ensure_dir(target)
        dest = target / config.EXPORT_NAME_PATTERN.format(
            year=created.year, month=created.month, day=created.day, index=index, ext=ext)

        logging.debug(f"Exporting {record.path} -> {dest}")
        self.copy_file(Path(record.path), dest)
        return dest
