import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def setup_logging(
    level: str = "INFO",
    log_dir: Path = Path("logs"),
    log_file: str = "server.log",
    console: bool = True,
) -> logging.Logger:
    """Configure the `gamedesigner` logger tree and return it.

    Over stdio the MCP protocol owns stdout, so pass ``console=False`` to log
    to the rotating file only.
    """
    logger = logging.getLogger("gamedesigner")
    if logger.handlers:
        return logger

    logger.setLevel(level)
    fmt = logging.Formatter(LOG_FORMAT)

    if console:
        ch = logging.StreamHandler()
        ch.setFormatter(fmt)
        logger.addHandler(ch)

    log_dir.mkdir(parents=True, exist_ok=True)
    fh = RotatingFileHandler(log_dir / log_file, maxBytes=5_000_000, backupCount=3)
    fh.setFormatter(fmt)
    logger.addHandler(fh)

    return logger
