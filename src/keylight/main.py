"""
Key Light Control Server - Main Entry Point
Runs a single control command against all Key Lights, or serves the HTTP API
"""

import argparse
import asyncio
import logging
import os
import signal
import sys
from typing import Any

from .control.models import mireds_to_kelvin
from .services.keylight_server import KeyLightServer

logger = logging.getLogger(__name__)

COMMANDS = {
    "toggle": "toggle",
    "increase-brightness": "increase_brightness",
    "decrease-brightness": "decrease_brightness",
    "increase-temperature": "increase_temperature",
    "decrease-temperature": "decrease_temperature",
}

def format_result(operation: str, value: Any) -> str:
    """Human-readable report for an operation result"""
    if value is None:
        return "No Key Lights to update"
    if operation == "toggle":
        return "Key Light turned on" if value else "Key Light turned off"
    if operation.endswith("brightness"):
        return f"Brightness set to {value}%"
    return f"Temperature set to {mireds_to_kelvin(value)}K"

async def run_command(server: KeyLightServer, operation: str) -> int:
    """Run one operation and report the outcome"""
    try:
        value = await server.run_operation(operation)
        print(format_result(operation, value))
        return 0
    except Exception as e:
        logger.error(f"{operation} failed: {e}")
        print(str(e), file=sys.stderr)
        return 1
    finally:
        await server.stop()

async def run_discover(server: KeyLightServer) -> int:
    """Discover Key Lights and list them"""
    try:
        result = await server.discover()
        for endpoint in result.endpoints:
            print(endpoint)
        if not result.complete:
            print(f"Found {len(result.endpoints)} of {result.target_count} Key Lights", file=sys.stderr)
        return 0
    except Exception as e:
        logger.error(f"Discovery failed: {e}")
        print(str(e), file=sys.stderr)
        return 1
    finally:
        await server.stop()

async def run_server(server: KeyLightServer) -> int:
    """Serve the HTTP API until interrupted"""
    loop = asyncio.get_running_loop()

    def signal_handler(signum, frame):
        logger.info(f"Received signal {signum}, shutting down...")
        loop.create_task(server.stop())

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        await server.start()
    except Exception as e:
        logger.error(f"Server failed: {e}")
        return 1
    finally:
        await server.stop()
    return 0

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="keylight", description="Discover and control Elgato Key Lights")
    parser.add_argument(
        "--config",
        default=os.environ.get('CONFIG_FILE', 'config/config.yaml'),
        help="Path to YAML configuration (default: $CONFIG_FILE or config/config.yaml)"
    )
    parser.add_argument("command", choices=[*COMMANDS, "discover", "serve"])
    return parser

async def main(argv=None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)

    try:
        server = KeyLightServer(config_path=args.config)
    except Exception as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    if args.command == "serve":
        return await run_server(server)
    if args.command == "discover":
        return await run_discover(server)
    return await run_command(server, COMMANDS[args.command])

def cli():
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\nStopped by user")
        sys.exit(0)

if __name__ == "__main__":
    cli()
