#!/usr/bin/env python3
"""Entry point for the Watered service."""

import uvicorn

# Note: .env is loaded in app.config before config is initialized
from app.config import config


def main() -> None:
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=config.PORT,
        log_level=config.LOG_LEVEL.lower()
    )


if __name__ == "__main__":
    main()
