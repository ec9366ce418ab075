"""
Logging setup for the scheduling API.
"""

import logging

CONSOLE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DETAILED_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d in %(funcName)s()] - %(message)s'

_configured = False


def setup_logging(level: str = "INFO", detailed: bool = False) -> None:
    """
    Attach one console handler to the root logger. Safe to call once per app;
    later calls only adjust the level.
    """
    global _configured

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    if _configured:
        return

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(
        DETAILED_FORMAT if detailed else CONSOLE_FORMAT,
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    root_logger.addHandler(console_handler)

    # SQL echo is far too chatty outside of debugging
    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)
    _configured = True
