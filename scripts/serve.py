#!/usr/bin/env python
"""Run the API server.

Usage:
    python -m scripts.serve
"""

import uvicorn

from vectorcart.config import get_settings


def main() -> None:
    """Main entry point."""
    settings = get_settings()
    uvicorn.run(
        "vectorcart.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
