"""Entry point for the Slack webhook server."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import uvicorn
from pydantic import ValidationError

from src.config.logging_config import get_logger, setup_logging
from src.config.settings import get_settings
from src.domain.exceptions import LedgerError
from src.presentation.webhook_app import create_app

logger = get_logger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the Slack webhook server")
    parser.add_argument(
        "--host",
        default="0.0.0.0",
        help="Interface to bind",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8080,
        help="Port to listen on",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit logs in JSON format",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    try:
        settings = get_settings()
    except ValidationError as exc:
        setup_logging(json_logs=args.json_logs)
        logger.error("settings_invalid", error=str(exc))
        return 1

    setup_logging(log_level=settings.log_level, json_logs=args.json_logs)

    try:
        app = create_app(settings)
    except (LedgerError, ValueError) as exc:
        logger.error("webhook_app_initialization_failed", error=str(exc))
        return 1

    logger.info("webhook_server_starting", host=args.host, port=args.port)
    uvicorn.run(app, host=args.host, port=args.port, log_config=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
