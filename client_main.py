import argparse
import asyncio
import ipaddress
import logging
import sys

from pydantic import ValidationError

from chat_client.chat_renderer import ChatRenderer
from chat_client.chat_session_manager import ChatSessionManager
from chat_client.errors import ChatClientError
from chat_shared.config import ClientConfig
from chat_shared.log import setup_logging


def ipv4_address(value: str) -> str:
    try:
        return str(ipaddress.IPv4Address(value))
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Terminal chat client")
    target = parser.add_mutually_exclusive_group()
    target.add_argument(
        "--ip", dest="host", type=ipv4_address, help="Server IPv4 address"
    )
    target.add_argument("--domain", dest="host", help="Server host name")
    parser.add_argument("--port", type=int, help="Server port")
    parser.add_argument("--username", help="Display name (default: current user)")
    parser.add_argument(
        "--quiet",
        action="store_true",
        default=None,
        help="Do not highlight or ring the bell on mentions",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log session events to stderr"
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> ClientConfig:
    overrides = {
        key: value
        for key, value in (
            ("host", args.host),
            ("port", args.port),
            ("username", args.username),
            ("quiet", args.quiet),
        )
        if value is not None
    }
    if args.verbose:
        overrides["log_level"] = "INFO"
    return ClientConfig(**overrides)


async def main(config: ClientConfig) -> int:
    logger = logging.getLogger(config.logger_name)
    renderer = ChatRenderer()
    renderer.render_notice(
        f"[SERVER] information\naddress: {config.host}\nport: {config.port}"
    )

    session_manager = ChatSessionManager(config, renderer)
    try:
        await session_manager.init_session()
    except ChatClientError as e:
        logger.error(f"Could not start session: {e}")
        renderer.render_error(str(e))
        return 1

    await session_manager.run_session()
    return 0


def run(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        config = build_config(args)
    except ValidationError as e:
        print(f"Error: invalid configuration\n{e}", file=sys.stderr)
        return 2

    logger = setup_logging(
        config.logger_name,
        console_handler_level=config.log_level,
        log_dir=config.log_dir,
    )
    logger.info("Starting client application")
    try:
        return asyncio.run(main(config))
    except KeyboardInterrupt:
        logger.info("Client interrupted by user (Ctrl+C). Shutting down cleanly.")
        print("\nDisconnected. Goodbye!")
        return 130
    finally:
        logging.shutdown()


if __name__ == "__main__":
    sys.exit(run())
