"""Run the record service: python -m expense_tracker.server"""

import uvicorn

from expense_tracker.config import get_settings
from expense_tracker.server.app import create_app


def main() -> None:
    settings = get_settings()
    server_settings = settings.server
    uvicorn.run(
        create_app(settings=server_settings),
        host=server_settings.host,
        port=server_settings.port,
        log_level=settings.app.log_level.lower(),
    )


if __name__ == "__main__":
    main()
