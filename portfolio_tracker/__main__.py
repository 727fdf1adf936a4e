"""Serve the dashboard API: ``python -m portfolio_tracker``."""

import os

import uvicorn

from .main import configure_logging, create_app


def main() -> None:
    configure_logging()
    uvicorn.run(
        create_app(),
        host=os.environ.get("HOST", "127.0.0.1"),
        port=int(os.environ.get("PORT", "8000")),
        log_config=None,  # Keep the root logger configured above
    )


if __name__ == "__main__":
    main()
