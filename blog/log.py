import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

APP_LOGGER = "blog"


def configure_logging(level: str = "INFO") -> None:
    """
    Install a single stream handler on the ``blog`` logger.

    Safe to call more than once: an existing handler installed by this
    function is replaced rather than duplicated.  Records still propagate
    to the root logger.
    """
    logger = logging.getLogger(APP_LOGGER)
    for handler in list(logger.handlers):
        if getattr(handler, "_blog_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._blog_handler = True
    logger.addHandler(handler)
    logger.setLevel(level.upper())
