import logging
import sys


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the API process.

    Format: time level logger message k=v ...
    """
    root = logging.getLogger()
    if root.handlers:
        # Respect existing (e.g., uvicorn, pytest) but align level
        root.setLevel(level.upper())
        return

    handler = logging.StreamHandler(stream=sys.stdout)
    formatter = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    handler.setFormatter(formatter)

    root.addHandler(handler)
    root.setLevel(level.upper())
    # SQLAlchemy echoes every statement at INFO when its logger inherits root
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
