#!/usr/bin/env python3
"""
Lucia command line.

Usage:
    lucia serve --port 3000
    lucia chat "Quanto custa a caneta metálica?" [--thread-id thread_...]
    lucia sync
    lucia init-db
    lucia tools-schema
    lucia config
"""

import argparse
import json
import logging
import sys

from lucia.core.config import (
    CHAT_REQUIREMENTS,
    SERVER_REQUIREMENTS,
    SYNC_REQUIREMENTS,
    Settings,
    configure_logging,
    get_config_summary,
    validate_config,
)
from lucia.core.errors import ConfigMissing, LuciaError

logger = logging.getLogger(__name__)


def cmd_serve(args, settings: Settings) -> int:
    import uvicorn

    validate_config(settings, SERVER_REQUIREMENTS)
    uvicorn.run("lucia.web.app:app", host=args.host, port=args.port)
    return 0


def cmd_chat(args, settings: Settings) -> int:
    from lucia.core.context import LuciaContext

    validate_config(settings, CHAT_REQUIREMENTS)
    context = LuciaContext.from_settings(settings)
    try:
        result = context.conversation().run_turn(args.message, thread_id=args.thread_id)
    except LuciaError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        context.close()

    print(result.reply)
    print(f"\n[thread: {result.thread_id} | run: {result.run_id} | tool calls: {result.tool_calls}]")
    return 0


def cmd_sync(args, settings: Settings) -> int:
    from lucia.core.context import LuciaContext

    validate_config(settings, SYNC_REQUIREMENTS)
    context = LuciaContext.from_settings(settings)
    try:
        result = context.catalog_sync().run()
    finally:
        context.close()

    print(json.dumps(result.to_dict(), indent=2))
    return 0 if result.success else 1


def cmd_init_db(args, settings: Settings) -> int:
    from lucia.catalog.store import CatalogStore

    validate_config(settings, ("database_url",))
    store = CatalogStore.from_url(settings.database_url, schema=settings.catalog_schema)
    store.create_all()
    store.dispose()
    print("Catalog tables created.")
    return 0


def cmd_tools_schema(args, settings: Settings) -> int:
    from lucia.assistant.tools import TOOLS_SCHEMA

    print(json.dumps(TOOLS_SCHEMA, indent=2, ensure_ascii=False))
    return 0


def cmd_config(args, settings: Settings) -> int:
    print(get_config_summary(settings))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lucia", description="Lucia sales assistant backend")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("--log-file", help="Also write logs to this file")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP server")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=3000)
    serve.set_defaults(func=cmd_serve)

    chat = subparsers.add_parser("chat", help="Send one message to the assistant")
    chat.add_argument("message", help="User message")
    chat.add_argument("--thread-id", help="Continue an existing thread")
    chat.set_defaults(func=cmd_chat)

    sync = subparsers.add_parser("sync", help="Sync the Spot catalog from the Stricker API")
    sync.set_defaults(func=cmd_sync)

    init_db = subparsers.add_parser("init-db", help="Create the catalog tables")
    init_db.set_defaults(func=cmd_init_db)

    tools_schema = subparsers.add_parser("tools-schema", help="Print the assistant tool definitions")
    tools_schema.set_defaults(func=cmd_tools_schema)

    config = subparsers.add_parser("config", help="Show the current configuration")
    config.set_defaults(func=cmd_config)

    return parser


def main(argv=None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = Settings.from_env()
    configure_logging("DEBUG" if args.verbose else settings.log_level, log_file=args.log_file)

    try:
        return args.func(args, settings)
    except ConfigMissing as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        print("\nPlease set the required environment variables and try again.", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
