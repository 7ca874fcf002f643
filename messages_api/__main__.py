"""
Run the API with uvicorn: `python -m messages_api` or the `messages-api` script.
"""

import uvicorn

from messages_api.config import settings


def main() -> None:
    uvicorn.run(
        "messages_api.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_config=None,
    )


if __name__ == "__main__":
    main()
