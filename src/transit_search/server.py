import argparse
import asyncio
import logging
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel

from transit_search.app import mcp
from transit_search.data.database import get_db_path

# Importing the tool modules registers their tools on `mcp`
from transit_search.tools import fare_tools, search_tools, stop_tools, trip_tools  # noqa: F401


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str


@mcp.tool()
def health() -> HealthResponse:
    """Check if the transit search server is running and healthy.

    Returns the server status, version, and current timestamp.
    """
    from transit_search import __version__

    return HealthResponse(
        status="ok",
        version=__version__,
        timestamp=datetime.now(UTC).isoformat(),
    )


async def run_ingest(catalog_path: Path, db_path: Path) -> None:
    """Run catalog ingestion."""
    from transit_search.data.catalog_loader import CatalogLoader

    loader = CatalogLoader(db_path)
    row_counts = await loader.ingest(catalog_path)

    print("\nIngestion complete. Row counts:")
    for table, count in row_counts.items():
        print(f"  {table}: {count:,}")


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="transit-search",
        description="Scheduled Trip Search MCP Server",
    )
    subparsers = parser.add_subparsers(dest="command")

    ingest_parser = subparsers.add_parser(
        "ingest",
        help="Ingest a stop/trip catalog into the SQLite database",
    )
    ingest_parser.add_argument(
        "catalog_path",
        type=Path,
        help="Directory with stops.json and trips.json, or a single catalog JSON file",
    )
    ingest_parser.add_argument(
        "--db",
        type=Path,
        default=get_db_path(),
        help="SQLite database path (default: data/catalog.db or TRANSIT_DB_PATH env var)",
    )
    ingest_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    if args.command == "ingest":
        log_level = logging.DEBUG if args.verbose else logging.INFO
        logging.basicConfig(
            level=log_level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )

        asyncio.run(run_ingest(args.catalog_path, args.db))
    else:
        # Default: run MCP server
        mcp.run()


if __name__ == "__main__":
    main()
