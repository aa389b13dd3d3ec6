import logging

from blog.log import APP_LOGGER, configure_logging


def _installed(logger: logging.Logger) -> list[logging.Handler]:
    return [h for h in logger.handlers if getattr(h, "_blog_handler", False)]


def test_configure_logging_targets_the_app_logger():
    app_logger = logging.getLogger(APP_LOGGER)
    root = logging.getLogger()
    original_level = app_logger.level
    try:
        configure_logging("debug")
        configure_logging("warning")

        assert len(_installed(app_logger)) == 1
        assert _installed(root) == []
        assert app_logger.level == logging.WARNING
        assert app_logger.propagate
    finally:
        for handler in _installed(app_logger):
            app_logger.removeHandler(handler)
        app_logger.setLevel(original_level)
