"""
ASGI entry point.

Used by uvicorn:

    uvicorn server.asgi:app --app-dir backend

or through the `cooking-voice` console script.
"""

import uvicorn
from dotenv import load_dotenv

load_dotenv()

from config import AppConfig  # pylint: disable=wrong-import-position
from server.app import create_app  # pylint: disable=wrong-import-position

app = create_app()


def main() -> None:
    config = AppConfig.load_from_env()
    uvicorn.run(
        "server.asgi:app",
        host="0.0.0.0",
        port=8000,
        log_level=config.log_level.lower(),
        reload=config.env == "dev",
    )


if __name__ == "__main__":
    main()
