import logging

from duellog.config import config


def create_logger(level: int) -> logging.Logger:
    log_format = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    formatter = logging.Formatter(log_format)

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    _logger = logging.getLogger("duellog")
    _logger.setLevel(level)
    if not _logger.handlers:
        _logger.addHandler(handler)

    return _logger


logger = create_logger(logging.getLevelName(config.log_level.upper()))
