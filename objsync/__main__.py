# objsync/__main__.py
import uvicorn

from objsync.app.core.config import get_settings
from objsync.app.core.logging import setup_logging


def main() -> None:
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)

    uvicorn.run(
        "objsync.app.main:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        # Keep the handlers installed by setup_logging
        log_config=None,
    )


if __name__ == "__main__":
    main()
