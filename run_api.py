#!/usr/bin/env python3
"""
Script to run the Library API server.
"""

import uvicorn

from library_api.config import config


def main():
    """Run the API server."""
    print("Starting Library API Server")
    print(f"Host: {config.host}")
    print(f"Port: {config.port}")
    print(f"Debug: {config.debug}")
    print(f"Storage: {config.storage_backend}")
    print("=" * 50)

    uvicorn.run(
        "library_api.main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level=config.log_level.lower(),
        access_log=True
    )


if __name__ == "__main__":
    main()
