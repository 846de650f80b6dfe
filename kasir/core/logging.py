"""
Logging setup for the API process.
"""
import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the root logger."""
    root = logging.getLogger()
    root.setLevel(level.upper())

    if not any(getattr(h, "_kasir", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._kasir = True
        root.addHandler(handler)

    # SQL statements are echoed only when DEBUG enables engine echo
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
