import argparse
import asyncio
import logging
import logging.config
import sys
from pathlib import Path
from typing import Optional, Sequence

import httpx

from tumblr_import.errors import MalformedUrlError, ProtocolError
from tumblr_import.models.config import DEFAULT_SOURCE_URL, MigrationConfig
from tumblr_import.services.pipeline import run_migration

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool = False) -> None:
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "format": '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}',
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "json",
                },
            },
            "root": {"level": "DEBUG" if verbose else "INFO", "handlers": ["console"]},
            # Keep per-request client chatter out of the import log.
            "loggers": {"httpx": {"level": "WARNING"}, "httpcore": {"level": "WARNING"}},
        }
    )


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="tumblr-import",
        description="Import every post of a legacy Tumblr blog as MDX bundles.",
    )
    parser.add_argument("command", nargs="?", default="run", choices=["run"])
    parser.add_argument("--source-url", default=DEFAULT_SOURCE_URL, help="Tumblr v1 read endpoint")
    parser.add_argument(
        "--output",
        default=Path("content") / "posts",
        type=Path,
        help="Directory where dated post bundles are written",
    )
    parser.add_argument(
        "--single-page",
        action="store_true",
        help="Only read the first page of the feed",
    )
    parser.add_argument("--max-posts", type=int, default=None, help="Stop after this many posts")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)

    config = MigrationConfig(
        source_url=args.source_url,
        output_root=args.output,
        paginate=not args.single_page,
        max_posts=args.max_posts,
    )

    try:
        report = asyncio.run(run_migration(config))
    except ProtocolError as exc:
        logger.error("Could not decode the Tumblr feed: %s", exc)
        return 1
    except httpx.HTTPError as exc:
        logger.error("Could not fetch the Tumblr feed: %s", exc)
        return 1
    except MalformedUrlError as exc:
        logger.error("Invalid source URL: %s", exc)
        return 1

    logger.info(
        "Created %d documents (%d failed), %d images (%d failed)",
        report.documents_written,
        report.documents_failed,
        report.images_written,
        report.images_failed,
    )
    return 0 if report.documents_failed == 0 else 2


if __name__ == "__main__":
    sys.exit(main())
