# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""ASGI entry point.

Run with:
    uvicorn schoolboard.main:app
or through the ``schoolboard-api`` console script.
"""

import uvicorn

from schoolboard.api.app import create_app
from schoolboard.core.config import get_settings

app = create_app()


def main() -> None:
    """Serve the API with the API_* settings."""
    settings = get_settings()
    uvicorn.run(
        "schoolboard.main:app",
        host=settings.api.host,
        port=settings.api.port,
        workers=settings.api.workers,
        log_config=None,
    )


if __name__ == "__main__":
    main()
