"""Backend entrypoint: starts uvicorn on the configured host and port.

Run with: python -m portfolio_tracker
"""
import uvicorn

from portfolio_tracker.config.settings import get_settings
from portfolio_tracker.main import app


def main() -> None:
    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
