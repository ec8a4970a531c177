"""Process-level logging setup for runtime entrypoints."""

import logging

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def config_configure_logging(log_level: str = "INFO") -> None:
    """Install the root log handler and level for the current process.

    Args:
        log_level: Logging level name (for example `INFO`).

    Returns:
        None: Logging is configured as side effect.

    Raises:
        ValueError: Raised when the level name is unknown.
    """

    normalized_level = log_level.strip().upper()
    numeric_level = logging.getLevelName(normalized_level)
    if not isinstance(numeric_level, int):
        raise ValueError(f"unknown log level: {log_level}")

    logging.basicConfig(level=numeric_level, format=_LOG_FORMAT, force=True)
    # httpx logs every request at INFO; keep poll loops readable.
    logging.getLogger("httpx").setLevel(max(numeric_level, logging.WARNING))
