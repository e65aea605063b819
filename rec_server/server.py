#!/usr/bin/env python3
"""
Hybrid Recommendation API server — entrypoint for python -m rec_server.server.

For uvicorn rec_server:app use rec_server/__init__.py (exposes app from rec_server.app).
"""

import uvicorn

from . import app
from .config import configure_logging, get_config


def main() -> None:
    config = get_config()
    configure_logging(config.log_level)
    uvicorn.run(app, host=config.host, port=config.port)


if __name__ == "__main__":
    main()
