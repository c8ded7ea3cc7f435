"""CLI entry point: python -m aquasim.mcp [--store DIR]"""

from __future__ import annotations

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="python -m aquasim.mcp")
    parser.add_argument(
        "--store", default="./saves", help="Directory holding save files (default: ./saves)"
    )
    args = parser.parse_args(argv)

    # Keep stdout clean for the stdio transport while the catalog loads
    real_stdout = sys.stdout
    sys.stdout = sys.stderr
    try:
        from aquasim.service import AquariumService, JsonFileStore

        service = AquariumService(JsonFileStore(args.store))
    finally:
        sys.stdout = real_stdout

    from aquasim.mcp.server import create_server

    server = create_server(service)
    server.run(transport="stdio")


if __name__ == "__main__":
    main()
