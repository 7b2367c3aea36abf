"""CLI entrypoint for the attribute backfill.

Usage:
  python -m backfill.cli --dry-run
  python -m backfill.cli --source howtos --reference users --workers 4

Reads every source document, fills the target field from the reference
collection, and commits all updates in a single bulk write.

Exit codes: 0 success, 1 backfill failed, 2 invalid configuration.
"""

from __future__ import annotations

import argparse
import sys
from typing import Optional

from pydantic import ValidationError

from backfill.config.settings import load_settings
from backfill.db import open_store
from backfill.errors import BackfillConfigError, BackfillError
from backfill.pipeline import BackfillPipeline
from backfill.utils.logger import get_logger, set_level

logger = get_logger(__name__)


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Backfill a missing attribute from a reference collection"
    )
    parser.add_argument("--dry-run", action="store_true", help="Log planned updates without writing")
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Parallel lookup queries against the reference collection (default: RESOLVER_MAX_WORKERS)",
    )
    parser.add_argument("--source", default=None, help="Collection to backfill (default: SOURCE_COLLECTION)")
    parser.add_argument("--reference", default=None, help="Collection to look values up in (default: REFERENCE_COLLECTION)")
    args = parser.parse_args(argv)

    try:
        cfg = load_settings()
    except ValidationError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    set_level(cfg.LOG_LEVEL)
    source = args.source or cfg.SOURCE_COLLECTION
    reference = args.reference or cfg.REFERENCE_COLLECTION
    workers = args.workers if args.workers is not None else cfg.RESOLVER_MAX_WORKERS
    logger.info(
        "Starting backfill (backend=%s, source=%s, reference=%s, dry_run=%s)",
        cfg.STORE_BACKEND, source, reference, args.dry_run,
    )
    try:
        with open_store(cfg) as store:
            report = BackfillPipeline(
                store,
                source,
                reference,
                mapping=cfg.field_mapping,
                max_workers=workers,
                dry_run=args.dry_run,
            ).run()
    except BackfillConfigError as e:
        logger.error("Invalid configuration: %s", e)
        return 2
    except BackfillError:
        # already logged by the pipeline
        return 1
    except Exception as e:
        logger.exception("Backfill failed: %s", e)
        return 1

    logger.info(
        "scanned=%d qualifying=%d owners=%d resolved=%d updated=%d",
        report.scanned, report.qualifying, report.unique_keys, report.resolved_keys, report.updated,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
