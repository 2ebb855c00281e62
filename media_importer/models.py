from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from . import config


def media_key(path: str) -> str:
    return config.MEDIA_KEY_PREFIX + path


def checksum_key(checksum: str) -> str:
    return config.CHECKSUM_KEY_PREFIX + checksum


@dataclass
class MediaRecord:
    """
    Represents one source path registered in the catalog.
    """
    key: str
    path: str
    id: int = 0

    # Filled in by the enrichment passes
    mime_type: str = ""
    checksum: str = ""
    creation_date: Optional[datetime] = None

    @classmethod
    def for_path(cls, path: str, id: int = 0) -> "MediaRecord":
        return cls(key=media_key(path), path=path, id=id)

    @property
    def has_creation_date(self) -> bool:
        """Early years are camera defaults, so they don't count as resolved."""
        return (
            self.creation_date is not None
            and self.creation_date.year > config.MIN_TRUSTED_YEAR
        )


@dataclass
class ChecksumGroup:
    """
    All source paths sharing one content checksum.
    The first entry is the canonical copy of the group.
    """
    key: str
    sources: List[str] = field(default_factory=list)

    @classmethod
    def for_checksum(cls, checksum: str) -> "ChecksumGroup":
        return cls(key=checksum_key(checksum))

    @property
    def checksum(self) -> str:
        return self.key[len(config.CHECKSUM_KEY_PREFIX):]

    @property
    def canonical(self) -> Optional[str]:
        return self.sources[0] if self.sources else None

    @property
    def duplicates(self) -> List[str]:
        return self.sources[1:]
