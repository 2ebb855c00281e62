"""
Custom exception hierarchy for the media importer.

Each pass decides for itself which of these abort a sweep and which only
degrade a single record; see the enricher and organizer for the policy.
"""


class MediaImporterError(Exception):
    """Base exception for all media importer errors."""
    pass


class StoreUnavailable(MediaImporterError):
    """Raised when the catalog cannot be created, opened or locked."""
    pass


class StoreError(MediaImporterError):
    """Raised when a single catalog transaction or record decode fails."""
    pass


class SourceUnreadable(MediaImporterError):
    """Raised when walking the source tree or reading a source file fails."""
    pass


class MimeDetectionError(SourceUnreadable):
    """Raised when the MIME type of a file cannot be sniffed."""
    pass


class ExtractionFailed(MediaImporterError):
    """Raised when neither EXIF nor the file path yields a creation date."""
    pass


class DestinationWriteFailed(MediaImporterError):
    """Raised when exporting into the destination tree fails."""
    pass
