#!/usr/bin/env python3
"""
Run the Swipely Discovery API with uvicorn.

Host, port, reload and log level come from SWIPELY_HOST, SWIPELY_PORT,
SWIPELY_RELOAD and SWIPELY_LOG_LEVEL (see ``swipely.config.ServerSettings``).
"""

import logging

import uvicorn

from swipely.config import ServerSettings


def main() -> None:
    settings = ServerSettings.from_env()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    base_url = f"http://localhost:{settings.port}"
    print("Starting Swipely Discovery API...")
    print(f"API Documentation: {base_url}/docs")
    print(f"Health Check: {base_url}/health")
    print("\nPress CTRL+C to stop\n")

    uvicorn.run(
        "swipely.api.feed_api:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    main()
