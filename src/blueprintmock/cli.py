"""
blueprintmock CLI

Command-line interface for the blueprint mock server.

Examples:
    # Serve every blueprint in ./api on port 3000
    blueprint-mock

    # Serve another directory, always answering with the happy path
    blueprint-mock -d ./blueprints -p 8080 --happy

    # Wait at most 10 seconds for the control client
    blueprint-mock --timeout 10
"""

import argparse
import logging
import sys
from typing import List, Optional

from .common import BlueprintLoadError
from .model import parse_status
from .mock import MockServer, MockConfig


def status_code(value: str) -> int:
    """argparse type: an HTTP status code in the 100-599 range."""
    status = parse_status(value)
    if status is None:
        raise argparse.ArgumentTypeError(f"{value!r} is not an HTTP status code (100-599)")
    return status


def timeout_seconds(value: str) -> float:
    """argparse type: seconds to wait, 0 meaning no deadline."""
    try:
        seconds = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value!r} is not a number")
    if seconds < 0:
        raise argparse.ArgumentTypeError(f"timeout cannot be negative, got {value}")
    return seconds


def build_config(args: argparse.Namespace) -> MockConfig:
    """Translate parsed arguments into a MockConfig."""
    return MockConfig(
        directory=args.directory,
        drafter_path=args.drafter,
        strict_status=args.strict,
        cors=not args.no_cors,
        stick_to_happy_path=args.happy,
        answer_timeout=args.timeout if args.timeout > 0 else None,
        fallback_status=args.fallback_status,
        host=args.host,
        port=args.port,
        log_level=args.log_level,
        admin_enabled=not args.no_admin
    )


def cmd_serve(args: argparse.Namespace) -> int:
    """
    Load blueprints and run the mock server.

    Returns:
        Process exit code
    """
    print(f"🎭 blueprintmock")
    print(f"   Blueprints: {args.directory}")

    if args.happy:
        print(f"😀 Happy path mode: always serving the first response")
    elif args.timeout > 0:
        print(f"⏱️  Waiting up to {args.timeout}s for the control client")
    else:
        print(f"⏱️  Waiting for the control client without a deadline")

    config = build_config(args)

    try:
        server = MockServer(config=config)
    except BlueprintLoadError as e:
        print(f"❌ Failed to load blueprints: {e}")
        return 1

    try:
        server.start()
    except KeyboardInterrupt:
        print("\n\n👋 Mock server stopped")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="blueprintmock - Mock HTTP server for API Blueprints with interactive response selection",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Serve ./api on port 3000
  %(prog)s

  # Always serve the first response of each action
  %(prog)s -d ./blueprints --happy

Connect a WebSocket client to ws://HOST:PORT/ws to choose responses.
        """
    )

    parser.add_argument('-p', '--port', type=int, default=3000, help='Port to run on (default: 3000)')
    parser.add_argument('-d', '--directory', default='./api', help='Directory to load blueprints from (default: ./api)')
    parser.add_argument('--host', default='127.0.0.1', help='Host to bind (default: 127.0.0.1)')
    parser.add_argument('--no-cors', action='store_true', help='Do not respond to preflight requests')
    parser.add_argument('--happy', action='store_true', help='Always stick to the happy path')
    parser.add_argument('--timeout', type=timeout_seconds, default=30.0,
                        help='Seconds to wait for the control client before serving the default (default: 30, 0=forever)')
    parser.add_argument('--fallback-status', type=status_code, default=200,
                        help='Status for responses whose name is not a status code (default: 200)')
    parser.add_argument('--strict', action='store_true', help='Reject responses whose name is not a status code')
    parser.add_argument('--drafter', help='Path to the drafter executable (default: looked up on PATH)')
    parser.add_argument('--no-admin', action='store_true', help='Disable admin API')
    parser.add_argument('--log-level', default='info', choices=['debug', 'info', 'warning', 'error'],
                        help='Log level (default: info)')

    return parser


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    sys.exit(cmd_serve(args))


if __name__ == '__main__':
    main()
