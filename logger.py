import logging

ROOT_LOGGER = "b2b_ordering"

_configured = False


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a single console handler to the application logger."""
    global _configured
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    if not _configured:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s [%(name)s] %(message)s"
        ))
        logger.handlers.clear()
        logger.addHandler(handler)
        logger.propagate = False
        _configured = True
    return logger


def get_logger(name: str) -> logging.Logger:
    if name.startswith(ROOT_LOGGER):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
