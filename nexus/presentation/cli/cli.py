"""
CLI Module

Architectural Intent:
- Command-line interface for Event Nexus
- Builds the EventManager through the composition root
- Supports --verbose/--debug flags for log level control
"""

import argparse
import asyncio
import dataclasses
import json
import logging
import sys
import traceback

from nexus.infrastructure.config import load_config
from nexus.infrastructure.logging import configure_logging


async def async_main():
    parser = argparse.ArgumentParser(
        description="Event Nexus: in-process publish/subscribe dispatcher"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose output"
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug output with tracebacks"
    )
    parser.add_argument(
        "--config", "-c", default=None, help="Path to JSON config (default: nexus.json)"
    )
    parser.add_argument(
        "--json-logs", action="store_true", help="Emit structured JSON logs"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser(
        "demo", help="Run the end-to-end dispatch demonstration"
    )
    subparsers.add_parser(
        "config", help="Print the effective configuration as JSON"
    )

    args = parser.parse_args()

    config = load_config(args.config)
    if args.debug:
        config = dataclasses.replace(
            config, dispatch=dataclasses.replace(config.dispatch, debug=True)
        )

    # Configure logging based on flags, falling back to the configured level
    if args.debug:
        level = logging.DEBUG
    elif args.verbose:
        level = logging.INFO
    else:
        level = config.log_level
    configure_logging(level=level, json_format=args.json_logs or config.json_logs)

    verbose = args.verbose or args.debug

    if args.command == "config":
        print(json.dumps(config.to_dict(), indent=2))
        return

    if args.command == "demo":
        from nexus.composition_root import create_container
        from nexus.presentation.cli.demo import print_error_sink, run_demo

        container = create_container(config, on_error=print_error_sink())
        print("[*] Starting Event Nexus demo...")
        try:
            await run_demo(container.event_manager)
            await container.event_manager.drain()
        except Exception as e:
            print(f"[-] Demo Failed: {e}")
            if verbose:
                traceback.print_exc()
            sys.exit(1)
        return

    parser.print_help()


def main():
    asyncio.run(async_main())


if __name__ == "__main__":
    main()
