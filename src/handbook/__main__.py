"""CLI entry point for the handbook data-access core.

Examples:
    ```bash
    python -m handbook check --config config/handbook.yaml
    python -m handbook watch --log-level DEBUG --json-logs
    ```
"""

import argparse
import asyncio
import json
import signal
import sys
from pathlib import Path
from typing import Any

from handbook.core import Database, start_metrics_server
from handbook.core.exceptions import HandbookError
from handbook.core.logger import Logger, setup_logging
from handbook.core.yaml import load_yaml
from handbook.repositories import ALL_REPOSITORIES


DEFAULT_CONFIG = Path("config") / "handbook.yaml"

logger = Logger("cli")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="handbook",
        description="Handbook database health checks and pool monitoring",
    )

    parser.add_argument(
        "command",
        choices=["check", "watch"],
        help="check: one-shot health report; watch: keep the pool monitored until stopped",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG,
        help=f"Config path (default: {DEFAULT_CONFIG})",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Log level (default: INFO)",
    )

    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit one JSON object per log line",
    )

    return parser.parse_args(argv)


def _load_config(path: Path) -> dict[str, Any]:
    """Load the YAML config, returning ``{}`` if the file does not exist."""
    if not path.exists():
        logger.warning("config_not_found", path=str(path))
        return {}
    return load_yaml(str(path))


async def run_check(db: Database) -> int:
    """Print the pool and table health report as JSON.

    Returns:
        Exit code: 0 when everything is healthy, 1 otherwise.
    """
    report = await db.health_report(ALL_REPOSITORIES)
    report["status"] = db.status().to_dict()
    print(json.dumps(report, indent=2, default=str))
    return 0 if report["healthy"] else 1


async def run_watch(db: Database) -> int:
    """Keep the pool's health and monitoring loops running until a shutdown signal."""
    metrics_config = db.config.metrics
    metrics_server = await start_metrics_server(metrics_config)

    if metrics_config.enabled:
        logger.info(
            "metrics_server_started",
            host=metrics_config.host,
            port=metrics_config.port,
            path=metrics_config.path,
        )

    stop = asyncio.Event()

    def handle_signal(sig: signal.Signals) -> None:
        logger.info("shutdown_signal", signal=sig.name)
        stop.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, handle_signal, sig)

    try:
        await db.initialize()
        logger.info("watch_started", pool=repr(db.pool))
        await stop.wait()
        return 0
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)
        await metrics_server.stop()
        if metrics_config.enabled:
            logger.info("metrics_server_stopped")


async def main(argv: list[str] | None = None) -> int:
    """Main entry point: parse args, build the Database and run the command."""
    args = parse_args(argv)
    setup_logging(args.log_level, json_output=args.json_logs)

    try:
        db = Database.from_dict(_load_config(args.config))
    except (HandbookError, ValueError) as e:
        logger.error("config_invalid", error=str(e))
        return 2

    try:
        if args.command == "check":
            return await run_check(db)
        return await run_watch(db)
    except HandbookError as e:
        logger.error(f"{args.command}_failed", error=str(e), error_type=type(e).__name__)
        return 1
    finally:
        await db.close()


def cli() -> None:
    """Synchronous entry point for console_scripts."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
