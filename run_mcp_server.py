#!/usr/bin/env python3
"""
MeteoSwiss MCP Server Launcher

This script launches the MeteoSwiss MCP server with command line overrides
for the environment-based configuration.

Usage:
    python run_mcp_server.py [--transport stdio|http] [--host HOST] [--port PORT]
"""

import argparse
import logging
import sys
from typing import Optional

from meteoswiss.config import load_config
from meteoswiss.exceptions import ConfigurationError
from meteoswiss.logging import setup_logging
from meteoswiss.urls import get_health_endpoint_url
from mcp_server import ServerContext, create_http_app, create_mcp_server


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="MeteoSwiss MCP Server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Run with STDIO transport (default)
    python run_mcp_server.py

    # Run with HTTP transport
    python run_mcp_server.py --transport http --host 127.0.0.1 --port 3000

    # Run with debug logging
    python run_mcp_server.py --log-level DEBUG
        """,
    )

    parser.add_argument(
        "--transport",
        choices=["stdio", "http"],
        default="stdio",
        help="Transport protocol to use (default: stdio)",
    )
    parser.add_argument(
        "--host",
        default=None,
        help="Host to bind to for HTTP transport (default: METEOSWISS_BIND_ADDRESS or 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to bind to for HTTP transport (default: PORT or 3000)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Logging level (default: from environment, INFO)",
    )
    return parser


def cli_overrides(args: argparse.Namespace) -> dict:
    """Configuration overrides given on the command line."""
    overrides: dict = {}
    if args.host:
        overrides.setdefault("server", {})["bind_address"] = args.host
    if args.port:
        overrides.setdefault("server", {})["port"] = args.port
    if args.log_level:
        overrides["logging"] = {"level": args.log_level}
    return overrides


def main(argv: Optional[list] = None) -> None:
    """Main entry point for the MCP server launcher."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(overrides=cli_overrides(args))
    except ConfigurationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(2)

    setup_logging(config.logging)
    logger = logging.getLogger(__name__)

    try:
        context = ServerContext(config)
        mcp = create_mcp_server(context)

        logger.info(f"Starting MeteoSwiss MCP Server with {args.transport} transport")

        if args.transport == "stdio":
            mcp.run()
        else:
            import uvicorn

            logger.info(f"Server running on HTTP transport at {context.mcp_endpoint_url}")
            logger.info(
                "Health check at "
                + get_health_endpoint_url(config.server.port, config.server.public_url)
            )
            uvicorn.run(
                create_http_app(mcp, context),
                host=config.server.bind_address,
                port=config.server.port,
            )

    except KeyboardInterrupt:
        logger.info("Server stopped by user")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Server error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
