"""Run the FriendBeats API server: python -m friendbeats."""

import uvicorn

from friendbeats.config import get_settings


def main() -> None:
    """Start uvicorn with the app factory's module-level app on the configured HOST/PORT."""
    settings = get_settings()
    uvicorn.run(
        "friendbeats.main:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
