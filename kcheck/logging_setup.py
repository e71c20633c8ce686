"""Console logging for the knowledge-check service."""
import logging

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"


def setup_console_logging(level: int | str = logging.INFO) -> None:
    """
    Route kcheck service logs to stderr.
    Safe to call more than once: a configured root logger only gets its
    level updated.
    """
    root = logging.getLogger()
    root.setLevel(level)
    if root.handlers:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    root.addHandler(handler)
    # Statement echo belongs to SQLAlchemy's own echo flag
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
