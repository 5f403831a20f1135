# main.py
"""Main entry point for the project assistant."""

import os

import uvicorn

from pm_assistant.core import Config
from pm_assistant.web.app import app  # noqa: F401


def main():
    port = int(os.environ.get("PORT", "8000"))
    uvicorn.run(
        "pm_assistant.web.app:app",
        host="0.0.0.0",
        port=port,
        reload=Config.IS_DEVELOPMENT,
    )


if __name__ == "__main__":
    main()
