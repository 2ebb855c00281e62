import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .core import MediaImporterApp
from .exceptions import MediaImporterError

ACTIONS = [
    "info",
    "scan-source",
    "detect-mimetype",
    "compute-checksum",
    "extract-creationdate",
    "reorganize",
    "report",
]

def setup_logging(verbose: bool, log_file: Optional[Path] = None):
    """Sets up logging to the console and, optionally, a file."""
    log_level = logging.DEBUG if verbose else logging.INFO

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers,
        force=True,
    )

    # Silence chatty libraries
    logging.getLogger("exifread").setLevel(logging.ERROR)
    logging.getLogger("PIL").setLevel(logging.WARNING)

def parse_args(argv: Optional[Sequence[str]] = None):
    p = argparse.ArgumentParser(description="Media Importer: catalog, deduplicate and reorganize media files")

    p.add_argument("action", choices=ACTIONS, help="Pipeline step to run")
    p.add_argument("src", type=Path, help="Source directory (holds the catalog)")
    p.add_argument("dest", type=Path, nargs="?", default=None, help="Destination root for 'reorganize'")

    p.add_argument("--force", action="store_true", help="Recompute values that are already cataloged")
    p.add_argument("--continue-on-error", action="store_true", help="Keep exporting after a failed copy")
    p.add_argument("--report-csv", type=Path, default=Path("catalog_report.csv"), help="Output path for 'report'")
    p.add_argument("--log-file", type=Path, default=None, help="Also write the log to this file")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    args = p.parse_args(argv)
    if args.action == "reorganize" and args.dest is None:
        p.error("reorganize requires a destination directory")
    return args

def run_action(app: MediaImporterApp, args) -> None:
    if args.action == "info":
        for i, entry in enumerate(app.list_entries()):
            logging.info(f"Entry: {i}: {entry}")
    elif args.action == "scan-source":
        app.register(detect_mimetypes=True, force=args.force)
    elif args.action == "detect-mimetype":
        app.detect_mimetypes(force=args.force)
    elif args.action == "compute-checksum":
        app.compute_checksums(force=args.force)
    elif args.action == "extract-creationdate":
        app.extract_creation_dates(force=args.force)
    elif args.action == "reorganize":
        app.reorganize(args.dest.resolve(), continue_on_error=args.continue_on_error)
    elif args.action == "report":
        app.report(args.report_csv)

def main(argv: Optional[Sequence[str]] = None):
    args = parse_args(argv)

    src_root = args.src.resolve()
    setup_logging(args.verbose, args.log_file)

    logging.info(f"=== Media Importer: {args.action} ===")
    logging.info(f"Source: {src_root}")

    app = MediaImporterApp(src_root)
    try:
        run_action(app, args)
    except KeyboardInterrupt:
        logging.warning("Operation cancelled by user.")
        sys.exit(1)
    except MediaImporterError as e:
        logging.error(f"{args.action} failed: {e}")
        sys.exit(1)
    except Exception:
        logging.exception(f"Fatal error during {args.action}.")
        sys.exit(1)

    sys.exit(0)

if __name__ == "__main__":
    main()
