"""Run the Crusade ledger API with uvicorn."""

from __future__ import annotations

import argparse
import logging

import uvicorn

from crusade.config import get_settings

logger = logging.getLogger("crusade")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Serve the Crusade campaign ledger")
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind")
    parser.add_argument("--port", type=int, default=8000, help="TCP port to listen on")
    parser.add_argument("--log-level", help="Override CRUSADE_LOG_LEVEL for this run")
    parser.add_argument("--reload", action="store_true", help="Restart on source changes")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    settings = get_settings()
    settings.configure_logging(args.log_level)
    logger.info("campaign snapshots in %s", settings.data_dir.resolve())

    uvicorn.run(
        "crusade.api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=(args.log_level or settings.log_level).lower(),
    )


if __name__ == "__main__":
    main()
