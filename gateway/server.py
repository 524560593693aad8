import uvicorn

from .config import settings
from .logging_config import setup_logging
from .main import create_app


def main():
    setup_logging(settings.log_level)
    # uvicorn's own access log is replaced by RequestLogMiddleware
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port, access_log=False, log_config=None)


if __name__ == "__main__":
    main()
