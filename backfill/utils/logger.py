import logging
from typing import Union

LOG_FORMAT = "[%(asctime)s] %(levelname)s - %(name)s - %(message)s"


def _coerce_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    # getLevelName returns "Level X" for unknown names
    return resolved if isinstance(resolved, int) else logging.INFO


def get_logger(name: str, level: Union[int, str] = logging.INFO) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(_coerce_level(level))

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    return logger


def set_level(level: Union[int, str], prefix: str = "backfill") -> None:
    """Apply `level` to every already-created logger under `prefix`."""
    value = _coerce_level(level)
    for name, logger in list(logging.Logger.manager.loggerDict.items()):
        if isinstance(logger, logging.Logger) and name.split(".")[0] == prefix:
            logger.setLevel(value)
