import csv
import logging
from pathlib import Path
from typing import Dict, List

from .database.ops import CatalogOperations
from .models import MediaRecord

class ReportGenerator:
    def __init__(self, catalog: CatalogOperations):
        self.catalog = catalog

    def generate_duplicate_report(self, output_csv: Path) -> int:
        """
        Writes one CSV row per cataloged file describing its dedup status:
        canonical copy, duplicate of another path, or not yet checksummed.
        """
        logging.info(f"Generating catalog report -> {output_csv}")

        records = self.catalog.get_all_files()
        # Map: Checksum -> Canonical Source Path (first path seen with that content)
        canonical_map = self._load_canonical_map(records)

        headers = [
            "Source Path",
            "Status",
            "MIME Type",
            "Checksum",
            "Creation Date",
            "Canonical Source (If Duplicate)",
        ]

        rows = 0
        with open(output_csv, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(headers)
            for record in records:
                writer.writerow(self._analyze_record(record, canonical_map))
                rows += 1

        logging.info(f"Report complete. {rows} files listed.")
        return rows

    def _analyze_record(self, record: MediaRecord, canonical_map: Dict[str, str]) -> list:
        created = record.creation_date.strftime("%Y-%m-%d") if record.creation_date else ""
        base = [record.path]
        tail = [record.mime_type, record.checksum, created]

        if not record.checksum:
            return base + ["Pending Checksum"] + tail + [""]

        canon = canonical_map.get(record.checksum)
        if canon is None or canon == record.path:
            return base + ["Canonical"] + tail + [""]
        return base + ["Duplicate"] + tail + [canon]

    def _load_canonical_map(self, records: List[MediaRecord]) -> Dict[str, str]:
        # Paths re-hashed to new content stay listed in their old group; skip them
        current = {r.path: r.checksum for r in records}
        canonical_map = {}
        for group in self.catalog.get_all_checksums():
            for path in group.sources:
                if current.get(path) == group.checksum:
                    canonical_map[group.checksum] = path
                    break
        return canonical_map
