import logging

from ..database.ops import CatalogOperations
from .filesystem import SourceDirectory

class Scanner:
    """
    Registers every file under the source root that the catalog hasn't seen yet.
    Only paths are recorded here; file contents are left to the enrichment passes.
    """
    def __init__(self, source: SourceDirectory, catalog: CatalogOperations):
        self.source = source
        self.catalog = catalog

    def scan(self) -> int:
        """
        Walks the source tree and returns the number of newly added files.
        A walk error stops the scan; files registered before it stay in the catalog.
        """
        logging.info(f"Scanning {self.source.root}...")
        added = 0
        seen = 0
        for path in self.source.iter_files():
            seen += 1
            path_str = str(path)
            if self.catalog.has_file(path_str):
                continue
            key = self.catalog.add_file(path_str)
            logging.debug(f"Added key {key}")
            added += 1

        logging.info(f"Scan complete. {seen} files found, {added} new.")
        return added
