"""
MIME type sniffing from a file's leading bytes.
"""
from ..exceptions import MimeDetectionError

# libmagic is a system library; without it every file degrades to the unknown sentinel
try:
    import magic
except ImportError:
    magic = None


def sniff_available() -> bool:
    return magic is not None


def sniff(head: bytes) -> str:
    """
    Classifies content by its leading bytes and returns a MIME type string.
    Raises MimeDetectionError when nothing can be determined.
    """
    if not head:
        raise MimeDetectionError("No content to classify")
    if magic is None:
        raise MimeDetectionError("python-magic (libmagic) is not available")

    try:
        mime_type = magic.from_buffer(head, mime=True)
    except magic.MagicException as e:
        raise MimeDetectionError(f"libmagic failed: {e}") from e

    if not mime_type:
        raise MimeDetectionError("libmagic returned no MIME type")
    return mime_type
