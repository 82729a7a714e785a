"""
Logging setup for the app factory.

Modules log through ``logging.getLogger(__name__)``; this only attaches the
handler and level once per process.
"""

import logging

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(app) -> None:
    level = str(app.config.get("LOG_LEVEL", "INFO")).upper()

    root = logging.getLogger()
    if not any(getattr(h, "_storefront_auth", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._storefront_auth = True
        root.addHandler(handler)

    root.setLevel(level)
    app.logger.setLevel(level)
