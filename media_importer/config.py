"""
Configuration constants for the media importer.
"""
from datetime import datetime

# --- Catalog Layout ---
# The catalog lives inside the source tree it describes.
CATALOG_DIR_NAME = ".media_importer"
CATALOG_FILE_NAME = "catalog.db"

MEDIA_COLLECTION = "media"
CHECKSUM_COLLECTION = "checksums"
COLLECTIONS = (MEDIA_COLLECTION, CHECKSUM_COLLECTION)

MEDIA_KEY_PREFIX = "source:"
CHECKSUM_KEY_PREFIX = "checksum:"

# Leading byte of every stored value. Bump when the payload layout changes.
CODEC_VERSION = 1

# Seconds to wait for another process to release the catalog before giving up
STORE_LOCK_TIMEOUT = 1.0

# --- MIME Detection ---
SNIFF_LENGTH = 512
UNKNOWN_MIMETYPE = "unknown/error"

# --- Hashing ---
HASH_ALGORITHM = "sha1"
HASH_CHUNK_SIZE = 64 * 1024  # 64 KB chunks for reading

# --- Creation Date Extraction ---
VIDEO_MIMETYPE = "video/mp4"
DATE_MIMETYPES = ["image/jpeg", "image/png", VIDEO_MIMETYPE]

# Checked in order; the first parseable value wins
EXIF_DATE_TAGS = [
    'EXIF DateTimeOriginal',
    'Image DateTime',
]
EXIF_DATE_FORMAT = "%Y:%m:%d %H:%M:%S"

FILENAME_DATE_PATTERN = r'\d{8}'
FILENAME_DATE_FORMAT = "%Y%m%d"

# Dates at or before this year are treated as camera defaults, not real values
MIN_TRUSTED_YEAR = 2000

# --- Organization ---
EXPORT_EXTENSIONS = {
    "image/jpeg": "jpg",
    "video/mp4": "mp4",
    "image/png": "png",
}
FOLDER_PATTERN = "{year:04d}/{month:02d}"
EXPORT_NAME_PATTERN = "image_{year:04d}{month:02d}{day:02d}_{index}.{ext}"
UNDATED_DATE = datetime(1, 1, 1)
