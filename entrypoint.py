import uvicorn

import constants
from logging_config import setup_logging

# Setup logging before importing app
setup_logging(log_level=constants.LOG_LEVEL, log_file=constants.LOG_FILE)

from logging_config import get_logger

logger = get_logger(__name__)


def main():
    logger.info(f"Starting chat server on {constants.HOST}:{constants.PORT}")
    logger.info(f"Admin panel: http://localhost:{constants.PORT}/admin")
    uvicorn.run("app:app", host=constants.HOST, port=constants.PORT)


if __name__ == "__main__":
    main()
