"""Application entry point for the lablink relay."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from typing import Optional

import uvicorn
from art import tprint
from fastapi import FastAPI

from lablink.adapters.gitlab_client import GitLabClient
from lablink.adapters.slack_client import SlackClient
from lablink.api import create_app
from lablink.core.config import DispatchConfig, RefreshConfig
from lablink.core.decisions import NotificationEngine
from lablink.core.directory import IdentityDirectory
from lablink.core.dispatch import DispatchGate
from lablink.core.processor import EventProcessor
from lablink.core.recipients import ActiveRecipients
from lablink.core.scheduler import RefreshScheduler
from lablink.settings import PROJECT_ROOT, ConfigError, Settings, load_settings

NAME = "LABLINK"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        # Longest first so a secret containing another is masked whole.
        self._secrets = sorted({secret for secret in secrets if secret}, key=len, reverse=True)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _configure_logging(settings: Settings) -> None:
    level = getattr(logging, settings.log_level, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = _RedactingFormatter(settings.secrets(), fmt=fmt, datefmt=datefmt)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    handlers: list[logging.Handler] = [console_handler]

    if settings.log_file:
        path = settings.log_file
        if not os.path.isabs(path):
            path = os.path.join(PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        file_handler = RotatingFileHandler(
            path,
            maxBytes=5 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, force=True)


def _load_or_exit() -> Settings:
    try:
        return load_settings()
    except ConfigError as exc:
        logging.getLogger(__name__).critical("Invalid configuration: %s", exc)
        raise SystemExit(1) from exc


def build_app(settings: Settings) -> FastAPI:
    """Wire clients, core services, and the HTTP layer together."""

    recipients = ActiveRecipients.from_csv(settings.active_users)
    gitlab = GitLabClient(settings.gitlab_token, base_url=settings.gitlab_url)
    slack = SlackClient(settings.slack_token, bot_name=settings.bot_name)

    directory = IdentityDirectory(source_directory=gitlab, chat_directory=slack)
    gate = DispatchGate(slack, DispatchConfig(queue_size=settings.dispatch_queue_size))
    scheduler = RefreshScheduler(
        directory,
        RefreshConfig(interval_seconds=settings.refresh_interval_minutes * 60),
    )
    processor = EventProcessor(NotificationEngine(directory, recipients), gate)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger = logging.getLogger(__name__)
        gate.start()
        scheduler.start()
        logger.info("Relay started for %s active users", len(recipients))
        try:
            yield
        finally:
            # In-flight deliveries are best effort and are not awaited.
            await scheduler.stop()
            await gate.stop()
            await gitlab.aclose()
            await slack.aclose()
            logger.info("Stopping...")

    app = create_app(processor, settings.secret_token, lifespan=lifespan)
    app.state.directory = directory
    app.state.gate = gate
    app.state.scheduler = scheduler
    return app


def _run() -> None:
    _print_banner()
    settings = _load_or_exit()
    _configure_logging(settings)
    logger = logging.getLogger(__name__)

    app = build_app(settings)

    ssl_options: dict[str, str] = {}
    if settings.use_ssl:
        ssl_options = {"ssl_keyfile": settings.ssl_key_path, "ssl_certfile": settings.ssl_cert_path}
    else:
        logger.warning("TLS key or certificate not found, serving plain HTTP")

    logger.info("Listening for GitLab events on %s:%s", settings.host, settings.port)
    # log_config=None keeps uvicorn on our handlers (and our redaction).
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None, **ssl_options)


async def _print_identities(settings: Settings) -> None:
    recipients = ActiveRecipients.from_csv(settings.active_users)
    gitlab = GitLabClient(settings.gitlab_token, base_url=settings.gitlab_url)
    slack = SlackClient(settings.slack_token, bot_name=settings.bot_name)
    try:
        directory = IdentityDirectory(source_directory=gitlab, chat_directory=slack)
        if not await directory.refresh():
            print("No identities could be linked. See the log for details.")
            return
        for index, identity in enumerate(directory.identities, start=1):
            marker = "active" if recipients.is_active(identity) else "inactive"
            print(f"{index}. {identity.gitlab_username} | {identity.chat_username} | {identity.email} | {marker}")
        missing = recipients.usernames - {identity.gitlab_username for identity in directory.identities}
        for username in sorted(missing):
            print(f"Active user without a linked identity: {username}")
    finally:
        await gitlab.aclose()
        await slack.aclose()


def _discover() -> None:
    _print_banner()
    settings = _load_or_exit()
    _configure_logging(settings)
    asyncio.run(_print_identities(settings))


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="lablink")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the webhook relay")
    subparsers.add_parser(
        "discover",
        help="Links GitLab and Slack users once and prints the result.",
    )

    args = parser.parse_args(argv)
    if args.command == "discover":
        _discover()
        return
    _run()


if __name__ == "__main__":
    main()
