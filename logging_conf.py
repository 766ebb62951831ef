import logging
import sys


def configure_logging(level: str = "INFO") -> None:
    """Configures the root logger for the application."""
    numeric_level = getattr(logging, str(level).upper(), None)
    invalid = not isinstance(numeric_level, int)
    if invalid:
        numeric_level = logging.INFO

    # "2026-10-19 10:00:00 [INFO] modules.shop.registry: Part part1 -> in-repair"
    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # create_app() may run several times in one process (tests, reloader)
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    root_logger.addHandler(handler)

    # Quiet down noisy libraries
    logging.getLogger("werkzeug").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    if invalid:
        logging.getLogger(__name__).warning("Invalid log level %r, defaulting to INFO", level)
