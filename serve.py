"""Run the coaching API locally.

Run with:  python3 serve.py
"""

from __future__ import annotations

import os

import uvicorn

from coaching.config import get_settings

API_PORT = int(os.getenv("API_PORT", "8000"))


def main() -> None:
    from api.main import create_app

    settings = get_settings()
    uvicorn.run(create_app(), host="127.0.0.1", port=API_PORT, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
