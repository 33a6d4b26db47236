"""FastAPI application exposing the Slack Events API webhook.

Run with::

    python scripts/run_webhook_server.py --port 8080
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Final

from fastapi import FastAPI, Request, Response
from starlette.requests import ClientDisconnect

from src.adapters.job_runner_inprocess import InProcessJobRunner
from src.adapters.sheets_ledger import create_sheets_ledger
from src.adapters.slack_client import SlackClient
from src.config.logging_config import get_logger
from src.config.settings import Settings, get_settings
from src.ports.job_runner import JobRunnerPort
from src.services.ledger_query import LedgerQueryEngine
from src.services.text_scanner import TextScanner
from src.use_cases.give_tokens import TransferOrchestrator
from src.use_cases.handle_mention import MentionCommandHandler
from src.use_cases.handle_webhook import WebhookHandler, build_job_handlers

logger = get_logger(__name__)

SLACK_EVENTS_PATH: Final[str] = "/slack/events"
SHUTDOWN_WAIT_SECONDS: Final[float] = 10.0


def build_webhook_handler(settings: Settings) -> tuple[WebhookHandler, JobRunnerPort]:
    """Wire Slack, the Sheets ledger and the use cases from settings."""
    config = settings.to_bot_config()
    messaging = SlackClient(settings.slack_bot_token.get_secret_value())
    ledger = create_sheets_ledger(
        settings.google_credentials_file,
        settings.spreadsheet_id,
        write_range=settings.ledger_write_range,
    )
    scanner = TextScanner(config.emoji_name)
    query_engine = LedgerQueryEngine(ledger, config.timezone)

    orchestrator = TransferOrchestrator(
        config, messaging, ledger, scanner=scanner, query_engine=query_engine
    )
    mention_handler = MentionCommandHandler(config, messaging, query_engine)
    runner = InProcessJobRunner(build_job_handlers(orchestrator, mention_handler))

    verification_token = settings.slack_verification_token
    signing_secret = settings.slack_signing_secret
    handler = WebhookHandler(
        scanner,
        runner,
        verification_token=(
            verification_token.get_secret_value() if verification_token else None
        ),
        signing_secret=signing_secret.get_secret_value() if signing_secret else None,
    )
    if verification_token is None and signing_secret is None:
        logger.warning("webhook_verification_disabled")

    logger.info(
        "webhook_handler_built",
        emoji=config.emoji_name,
        daily_limit=config.daily_limit,
        timezone=config.timezone,
    )
    return handler, runner


def create_app(
    settings: Settings | None = None,
    *,
    webhook_handler: WebhookHandler | None = None,
    runner: JobRunnerPort | None = None,
    shutdown_wait_seconds: float = SHUTDOWN_WAIT_SECONDS,
) -> FastAPI:
    """Build the FastAPI app.

    Args:
        settings: Used to wire real adapters when ``webhook_handler`` is None
        webhook_handler: Pre-built handler (tests inject one with stubs)
        runner: Job runner drained on shutdown
        shutdown_wait_seconds: How long shutdown waits for running jobs
    """
    if webhook_handler is None:
        webhook_handler, runner = build_webhook_handler(settings or get_settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("webhook_app_started")
        yield
        if runner is not None and not runner.wait(timeout=shutdown_wait_seconds):
            logger.warning("webhook_app_jobs_abandoned", timeout=shutdown_wait_seconds)
        logger.info("webhook_app_stopped")

    app = FastAPI(title="Taco Bot", version="1.0.0", lifespan=lifespan)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post(SLACK_EVENTS_PATH)
    async def slack_events(request: Request) -> Response:
        try:
            raw_body = await request.body()
        except ClientDisconnect:
            logger.warning("webhook_body_unreadable")
            return Response(status_code=500)

        result = webhook_handler.handle(raw_body, dict(request.headers))
        return Response(
            content=result.body,
            status_code=result.status_code,
            media_type=result.content_type,
        )

    return app


__all__ = ["SLACK_EVENTS_PATH", "build_webhook_handler", "create_app"]
