# log.py
import logging

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

LOG_FORMAT = "%(asctime)s [%(levelname)s] NetBridge: %(message)s"


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"NetBridge.{name}")


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=parse_level(level), format=LOG_FORMAT)


def parse_level(level: str) -> int:
    level = level.upper()
    if level == "TRACE":
        return TRACE
    value = logging.getLevelName(level)
    if not isinstance(value, int):
        raise ValueError(f"unknown log level: {level}")
    return value
