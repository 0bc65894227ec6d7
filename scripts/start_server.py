#!/usr/bin/env python3
"""
Serve the Ranked Choice Polls API with uvicorn.

The database file is taken from --db or, when omitted, from the
RCV_DATABASE_PATH environment variable. Its schema is created before the
server starts accepting requests.
"""

import argparse
import logging
import os
import sys
from pathlib import Path

import uvicorn

# Add src to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from web.main import DATABASE_ENV_VAR, set_database_path  # noqa: E402

logger = logging.getLogger(__name__)

LOG_LEVELS = ["debug", "info", "warning", "error"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Serve the poll API")
    parser.add_argument(
        "--db",
        default=os.environ.get(DATABASE_ENV_VAR),
        help=f"DuckDB file holding polls and ballots (default: ${DATABASE_ENV_VAR})",
    )
    parser.add_argument("--host", default="127.0.0.1", help="Interface to listen on")
    parser.add_argument("--port", type=int, default=8000, help="TCP port to listen on")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes")
    parser.add_argument(
        "--log-level", choices=LOG_LEVELS, default="info", help="Server log verbosity"
    )
    return parser


def resolve_database(db: str) -> Path:
    """
    Turn the --db value into an absolute path whose directory exists.

    Raises:
        ValueError: If no path was given or its directory is missing
    """
    if not db:
        raise ValueError(f"No database given; pass --db or set {DATABASE_ENV_VAR}")
    path = Path(db).absolute()
    if not path.parent.is_dir():
        raise ValueError(f"Directory not found: {path.parent}")
    return path


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(), format="%(asctime)s - %(levelname)s - %(message)s"
    )

    try:
        db_path = resolve_database(args.db)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)

    # Exported to the environment too, so reloaded workers find the same file
    set_database_path(str(db_path))

    logger.info(f"Serving {db_path} on http://{args.host}:{args.port}")
    uvicorn.run(
        "web.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
