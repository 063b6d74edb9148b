import logging

from .config import LOG_LEVEL


def configure_logging(level: str | int | None = None, *, force: bool = False) -> None:
    """Set up the root logger for the API process and the cron script."""
    logging.basicConfig(
        level=level or LOG_LEVEL,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        force=force,
    )
