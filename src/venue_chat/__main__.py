"""CLI entry point for venue-chat."""

from __future__ import annotations

import argparse
import asyncio
import sys

from venue_chat.ai.providers import PROVIDERS, get_api_key, get_provider
from venue_chat.config import AppConfig, load_config
from venue_chat.log import setup_logging


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="venue-chat",
        description="Conversational booking assistant for vacation venues",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    commands = {
        "serve": subparsers.add_parser("serve", help="Start the HTTP API"),
        "config-check": subparsers.add_parser("config-check", help="Validate configuration"),
        "model-info": subparsers.add_parser(
            "model-info", help="Show model providers and credential status"
        ),
        "seed": subparsers.add_parser("seed", help="Load venue fixtures from a YAML file"),
    }
    commands["seed"].add_argument("file", help="Path to fixture YAML")
    for command_parser in commands.values():
        command_parser.add_argument("-c", "--config", default="config.yaml", help="Path to config file")
        command_parser.add_argument("-e", "--env", default=".env", help="Path to .env file")

    args = parser.parse_args()

    if args.command is None:
        # Default to serve
        args.command = "serve"
        args.config = "config.yaml"
        args.env = ".env"

    if args.command == "config-check":
        _check_config(args.config, args.env)
    elif args.command == "model-info":
        _model_info(args.config, args.env)
    elif args.command == "seed":
        _seed(args.config, args.env, args.file)
    elif args.command == "serve":
        _serve(args.config, args.env)


def _load(config_path: str, env_path: str) -> AppConfig:
    try:
        return load_config(config_path, env_path)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("Copy config.example.yaml to config.yaml first")
        sys.exit(1)
    except Exception as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)


def _check_config(config_path: str, env_path: str) -> None:
    """Validate configuration and print summary."""
    config = _load(config_path, env_path)
    print(f"Configuration valid: {config_path}")
    print(f"  Data directory: {config.data_dir}")
    print(f"  Storage: {config.storage.db_path}")
    print(f"  Server: {config.server.host}:{config.server.port}")
    print(f"  Default provider: {config.chat.default_provider}")
    if config.chat.default_provider not in PROVIDERS:
        print(
            f"  Warning: unknown default provider '{config.chat.default_provider}'",
            file=sys.stderr,
        )
    print(f"  Webhook token: {'set' if config.webhook.verify_token else 'not set'}")


def _model_info(config_path: str, env_path: str) -> None:
    """Show every known provider and whether its credential is present."""
    config = _load(config_path, env_path)

    print("AI Model Providers")
    print("=" * 50)
    for code in PROVIDERS:
        spec = get_provider(code, config.providers)
        marker = " (default)" if code == config.chat.default_provider else ""
        print(f"\n  Provider: {spec.code}{marker}")
        print(f"    Name    : {spec.name}")
        print(f"    Model   : {spec.model}")
        print(f"    Family  : {spec.family.value}")
        print(f"    Base URL: {spec.base_url}")
        key_state = "present" if get_api_key(spec) else "missing"
        print(f"    API key : {spec.env_key} ({key_state})")
    print()


def _seed(config_path: str, env_path: str, fixture_path: str) -> None:
    from venue_chat.storage.database import Database
    from venue_chat.storage.seed import seed_file
    from venue_chat.storage.venue_repo import VenueRepository

    config = _load(config_path, env_path)
    setup_logging(config.log_level)

    async def _async_seed() -> dict[str, int]:
        db = Database(config.storage.db_path)
        await db.initialize()
        try:
            return await seed_file(VenueRepository(db), fixture_path)
        finally:
            await db.close()

    try:
        counts = asyncio.run(_async_seed())
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    print("Seeded: " + ", ".join(f"{k}={v}" for k, v in counts.items()))


def _serve(config_path: str, env_path: str) -> None:
    """Load config and run the API under uvicorn."""
    import uvicorn

    from venue_chat.app import create_app

    config = _load(config_path, env_path)
    setup_logging(config.log_level)

    uvicorn.run(
        create_app(config),
        host=config.server.host,
        port=config.server.port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
