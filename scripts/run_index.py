"""
Script to index the WAD files inside the zip archives below a directory
"""

import argparse
import asyncio
import sys
import os
import logging

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.config import settings
from core.database import create_engine_for, make_session_factory, mask_url
from core.exceptions import SetupError
from core.logging import setup_logging
from indexer.reference import IdGamesLookup, NullLookup
from indexer.runner import WADIndexer

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Index WAD files found inside zip archives")
    ap.add_argument("root", nargs="?", default=settings.INDEX_ROOT,
                    help="Directory to walk (default: INDEX_ROOT)")
    ap.add_argument("--limit", type=int, default=settings.MAX_FILES,
                    help="Stop after visiting N files (default: MAX_FILES, unlimited)")
    ap.add_argument("--scratch-dir", default=settings.SCRATCH_DIR,
                    help="Directory for temporary extraction (default: system temp dir)")
    ap.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    return ap.parse_args(argv)


async def run_index(args) -> int:
    """Run one index pass; returns the process exit code"""

    engine = create_engine_for(settings.DATABASE_URL)
    reference_engine = None
    if settings.REFERENCE_DATABASE_URL:
        reference_engine = create_engine_for(settings.REFERENCE_DATABASE_URL)

    logger.info(f"Index database: {mask_url(settings.DATABASE_URL)}")

    try:
        async with make_session_factory(engine)() as session:
            if reference_engine is not None:
                logger.info(f"Reference database: {mask_url(settings.REFERENCE_DATABASE_URL)}")
                reference_session = make_session_factory(reference_engine)()
                lookup = IdGamesLookup(reference_session)
            else:
                reference_session = None
                lookup = NullLookup()

            try:
                indexer = WADIndexer(
                    session,
                    lookup=lookup,
                    scratch_dir=args.scratch_dir,
                    archive_suffix=settings.ARCHIVE_SUFFIX,
                    container_suffix=settings.CONTAINER_SUFFIX,
                    max_files=args.limit,
                )
                stats = await indexer.run(args.root)
            finally:
                if reference_session is not None:
                    await reference_session.close()

        if stats.errors:
            logger.warning(f"Index completed with {stats.errors} recorded errors")
        return 0

    except SetupError as e:
        logger.error(f"Index run aborted: {e.message}", extra={"error_context": e.to_dict()})
        return 1
    finally:
        await engine.dispose()
        if reference_engine is not None:
            await reference_engine.dispose()


def main(argv=None):
    args = parse_args(argv)
    setup_logging(args.log_level)

    if not args.root:
        logger.error("No input directory given (pass a path or set INDEX_ROOT)")
        sys.exit(2)

    sys.exit(asyncio.run(run_index(args)))


if __name__ == "__main__":
    main()
