#!/usr/bin/env python3
"""
Core Ledger Entry Point

Starts the FastAPI server with the in-memory ledger.
"""

import sys

from core_ledger.api import run_server
from core_ledger.config import get_config


if __name__ == "__main__":
    config = get_config()

    try:
        run_server(
            host=config.api_host,
            port=config.api_port,
            log_level=config.log_level,
            log_format=config.log_format
        )
    except KeyboardInterrupt:
        print("\nShutting down Core Ledger...")
    except Exception as e:
        print(f"Error starting server: {e}")
        sys.exit(1)
