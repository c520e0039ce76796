#!/usr/bin/env python3
"""
MeteoSwiss MCP Server Entry Point

Usage:
    python -m mcp_server
"""

import logging
import sys

from .server import main

if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        logging.info("Server stopped by user")
        sys.exit(0)
    except Exception as e:
        logging.error(f"Server error: {e}")
        sys.exit(1)
