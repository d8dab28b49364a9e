#!/usr/bin/env python3
"""
Vault Banking Entry Point

Starts the FastAPI server with settings taken from VAULT_* environment variables.
"""

import sys

from vault_banking.api import run_server
from vault_banking.config import get_config


if __name__ == "__main__":
    config = get_config()
    print(f"Starting Vault Banking API at http://{config.api_host}:{config.api_port}")
    print(f"Documentation at http://{config.api_host}:{config.api_port}/docs")

    try:
        run_server(host=config.api_host, port=config.api_port)
    except KeyboardInterrupt:
        print("\nShutting down Vault Banking...")
    except Exception as e:
        print(f"Error starting server: {e}")
        sys.exit(1)
