"""Application entry point for the linkscope bot."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint
from dotenv import load_dotenv
from telethon import events

from linkscope import settings as settings_module
from linkscope.adapters.http_fetcher import HttpFetcher
from linkscope.adapters.sqlite_history import SQLiteHistory
from linkscope.adapters.telegram_mapper import build_inbound
from linkscope.adapters.telegram_replier import TelegramReplier
from linkscope.core.config import DEFAULT_USER_AGENT, ExtractConfig, FetchConfig, ReplyConfig
from linkscope.core.formatting import format_reply
from linkscope.core.links import is_valid_link
from linkscope.core.models import FailureSummary
from linkscope.core.ports import HistoryPort, NullHistory
from linkscope.core.processor import MessageProcessor
from linkscope.core.resolver import LinkResolver
from linkscope.session import SECRET_ENV_VARS, authorize, build_client, credentials_from_env
from linkscope.settings import Settings

NAME = "LINKSCOPE"
FONT = "tarty-1"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", True):
        return []
    names = redact_cfg.get("patterns") or list(SECRET_ENV_VARS)
    values = [os.getenv(name) for name in names]
    return sorted({value for value in values if value}, key=len, reverse=True)


def _configure_logging(config: dict) -> None:
    """Set up console/file logging from the ``logging`` section of config.json."""

    if not config.get("enabled", True):
        return

    load_dotenv()
    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    formatter = _RedactingFormatter(_collect_redaction_values(config), fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)
    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/linkscope.log")
        if not os.path.isabs(path):
            path = os.path.join(settings_module.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        file_handler = RotatingFileHandler(
            path,
            maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
            backupCount=int(file_cfg.get("backup_count", 5)),
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)
    # httpx logs every request at INFO; the fetcher already logs what matters.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _configure_cli_logging(verbose: int, quiet: bool) -> None:
    if quiet:
        level = logging.ERROR
    else:
        level = (logging.WARNING, logging.INFO, logging.DEBUG)[min(verbose, 2)]
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATEFMT)
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))


def build_history(settings: Settings) -> HistoryPort:
    """Return the SQLite store, or the no-op store when history is disabled."""

    if settings.db_path is None:
        return NullHistory()
    history = SQLiteHistory(settings.db_path)
    history.init_db()
    return history


def build_processor(settings: Settings, history: HistoryPort, fetcher=None) -> MessageProcessor:
    resolver = LinkResolver(
        fetcher=fetcher or HttpFetcher(settings.fetch),
        history=history,
        extract_config=settings.extract,
        reply_config=settings.reply,
    )
    return MessageProcessor(resolver, settings.pipeline)


def _run(config_path: Optional[str]) -> int:
    settings = settings_module.load_settings(config_path)
    _print_banner()
    _configure_logging(settings.logging)
    logger = logging.getLogger(__name__)

    logger.info("Starting linkscope")
    history = build_history(settings)
    logger.info("History %s", f"stored in {settings.db_path}" if settings.db_path else "disabled")
    processor = build_processor(settings, history)

    credentials = credentials_from_env()
    client = build_client(credentials)
    client.loop.run_until_complete(client.connect())
    client.loop.run_until_complete(authorize(client, credentials))
    replier = TelegramReplier(client, silent=settings.silent_replies)

    # Filtering (ignored nicks, channel allowlist) happens in the processor.
    @client.on(events.NewMessage(incoming=True))
    async def handler(event) -> None:
        try:
            inbound = await build_inbound(event.message)
            replies = await processor.handle(inbound.channel, inbound.nick, inbound.text)
            await replier.send(inbound, replies)
        except Exception:
            logger.exception("Error while processing message")

    logger.info("Client connected. Listening for incoming messages...")
    client.run_until_disconnected()
    return 0


async def resolve_once(url: str, fetch: FetchConfig, extract: ExtractConfig) -> tuple[str, bool]:
    """Resolve a single URL without history; returns (reply, succeeded)."""

    resolver = LinkResolver(fetcher=HttpFetcher(fetch), extract_config=extract)
    summary, _ = await resolver.summarize(url)
    return format_reply(summary, None, ReplyConfig()), not isinstance(summary, FailureSummary)


def _get(args: argparse.Namespace) -> int:
    _configure_cli_logging(args.verbose, args.quiet)
    if not is_valid_link(args.url):
        logging.getLogger(__name__).error("Not an http(s) URL: %s", args.url)
        return 2

    fetch = FetchConfig(
        timeout_s=args.timeout,
        user_agent=args.user_agent or DEFAULT_USER_AGENT,
        accept_lang=args.accept_lang,
    )
    extract = ExtractConfig(report_metadata=not args.no_metadata, report_mime=not args.no_mime)
    reply, ok = asyncio.run(resolve_once(args.url, fetch, extract))
    print(reply)
    return 0 if ok else 1


def _history(args: argparse.Namespace) -> int:
    settings = settings_module.load_settings(args.config)
    if settings.db_path is None:
        print("History is disabled in the config.")
        return 1

    store = SQLiteHistory(settings.db_path)
    store.init_db()
    posts = store.list_posts(args.url)
    if not posts:
        print(f"No postings of {args.url}.")
    for entry in posts:
        print(f"{entry.timestamp.strftime('%Y-%m-%d %H:%M:%S')} | {entry.nick} | {entry.channel}")
    print(f"Failed resolutions logged (all urls): {store.count_errors()}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="linkscope")
    parser.add_argument("--config", help="Path to config.json (default: $LINKSCOPE_CONFIG or ./config.json)")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the bot")

    get_parser = subparsers.add_parser("get", help="Resolve one URL and print the reply line")
    get_parser.add_argument("url")
    get_parser.add_argument("-u", "--user-agent", help="User-Agent header to send")
    get_parser.add_argument("-l", "--accept-lang", default="en", help="Accept-Language header to send")
    get_parser.add_argument("--timeout", type=float, default=10.0, help="Fetch timeout in seconds")
    get_parser.add_argument("--no-metadata", action="store_true", help="Do not report image metadata")
    get_parser.add_argument("--no-mime", action="store_true", help="Do not report MIME type and size")
    get_parser.add_argument("-v", "--verbose", action="count", default=0, help="Show extra information")
    get_parser.add_argument("-q", "--quiet", action="store_true", help="Only log errors")

    history_parser = subparsers.add_parser("history", help="List stored postings of a URL")
    history_parser.add_argument("url")

    args = parser.parse_args(argv)
    if args.command == "get":
        return _get(args)
    if args.command == "history":
        return _history(args)
    return _run(args.config)


if __name__ == "__main__":
    raise SystemExit(main())
