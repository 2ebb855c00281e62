import logging
import re
from datetime import datetime
from typing import BinaryIO

from .. import config
from ..exceptions import ExtractionFailed

# Optional import handled gracefully so the rest of the pipeline still runs
try:
    import exifread
except ImportError:
    exifread = None


class DateExtractor:
    """
    Creation date sources for a media file.

    Strategies:
      - Images: EXIF 'DateTimeOriginal', then 'DateTime', via 'exifread'.
      - Anything: the first 8-digit run in the path that is a valid YYYYMMDD.
    """

    def __init__(self):
        self.filename_pattern = re.compile(config.FILENAME_DATE_PATTERN)

    def get_exif_date(self, stream: BinaryIO) -> datetime:
        """Reads EXIF tags from an open image and parses the first date tag found."""
        if not exifread:
            raise ExtractionFailed("exifread module not found")

        try:
            # details=False skips makernotes and thumbnails
            tags = exifread.process_file(stream, details=False)
        except Exception as e:
            raise ExtractionFailed(f"EXIF parsing failed: {e}") from e

        for tag in config.EXIF_DATE_TAGS:
            if tag not in tags:
                continue
            value = str(tags[tag]).strip()
            try:
                return datetime.strptime(value, config.EXIF_DATE_FORMAT)
            except ValueError:
                logging.debug(f"Unparseable {tag}: {value!r}")

        raise ExtractionFailed("No usable EXIF date tag")

    def get_filename_date(self, path: str) -> datetime:
        """Scans the path left to right for an 8-digit run that is a real date."""
        for candidate in self.filename_pattern.findall(path):
            try:
                return datetime.strptime(candidate, config.FILENAME_DATE_FORMAT)
            except ValueError:
                continue
        raise ExtractionFailed(f"No date pattern in {path}")
