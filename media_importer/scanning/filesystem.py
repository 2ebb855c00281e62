import os
import logging
from pathlib import Path
from typing import BinaryIO, Iterator

from .. import config
from ..exceptions import SourceUnreadable

class SourceDirectory:
    """
    Read-only view of the import source tree.
    """
    def __init__(self, root: Path):
        root = Path(root)
        if not root.is_dir():
            raise SourceUnreadable(f"Source path {root} does not exist or is not a directory.")
        self.root = root

    def iter_files(self) -> Iterator[Path]:
        """
        Depth-first walker using os.scandir for speed.
        Any unreadable directory aborts the walk with SourceUnreadable.
        """
        catalog_dir = self.root / config.CATALOG_DIR_NAME
        stack = [self.root]
        while stack:
            current = stack.pop()
            try:
                with os.scandir(current) as it:
                    entries = list(it)
            except OSError as e:
                logging.error(f"Failed accessing {current}: {e}")
                raise SourceUnreadable(f"Cannot read directory {current}: {e}") from e

            # Sort for stable traversal order
            entries.sort(key=lambda e: e.name)

            dirs = []
            files = []
            for e in entries:
                try:
                    if e.is_dir(follow_symlinks=False):
                        path = Path(e.path)
                        # Never catalog the catalog itself
                        if path != catalog_dir:
                            dirs.append(path)
                    elif e.is_file(follow_symlinks=False):
                        files.append(Path(e.path))
                except OSError as err:
                    raise SourceUnreadable(f"Cannot stat {e.path}: {err}") from err

            for f in files:
                yield f

            # Push dirs to stack (reversed so we process A before Z)
            for d in reversed(dirs):
                stack.append(d)

    def open_for_read(self, path: Path) -> BinaryIO:
        try:
            return open(path, 'rb')
        except OSError as e:
            raise SourceUnreadable(f"Cannot open {path}: {e}") from e
