"""Logging setup for the lti namespace."""

import logging

APP_NAME = "lti"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | int = logging.INFO) -> logging.Logger:
    """Attach a single stream handler to the ``lti`` logger."""
    logger = logging.getLogger(APP_NAME)
    logger.setLevel(level)
    if not any(getattr(h, "_lti_handler", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._lti_handler = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    return logger
