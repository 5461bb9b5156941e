# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Run the API server: python -m eduportal"""

import uvicorn

from eduportal.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "eduportal.api.app:create_app",
        factory=True,
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.is_development,
        log_config=None,
    )


if __name__ == "__main__":
    main()
