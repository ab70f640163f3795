"""Run the server: python -m app"""
import logging

import uvicorn

from app.config import load_config
from app.main import configure_logging, create_app

# Seconds to let in-flight requests finish after SIGINT/SIGTERM
SHUTDOWN_GRACE_SECONDS = 30


def main() -> None:
    config = load_config()
    configure_logging(config)

    app = create_app(config)

    logging.getLogger(__name__).info(f"Server starting on :{config.port}")
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=config.port,
        log_config=None,
        timeout_keep_alive=60,
        timeout_graceful_shutdown=SHUTDOWN_GRACE_SECONDS,
    )
    logging.getLogger(__name__).info("Server stopped")


if __name__ == "__main__":
    main()
