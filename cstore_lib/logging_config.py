from __future__ import annotations
import logging


def configure_logging(level: str | int = logging.WARNING) -> logging.Logger:
    """Configure root logging for the application.

    `level` is a level name from the server config (e.g. "INFO") or a
    numeric level. Unknown names fall back to WARNING. Returns a module
    logger for the caller.
    """
    if isinstance(level, str):
        numeric = getattr(logging, level.upper(), None)
        level = numeric if isinstance(numeric, int) else logging.WARNING

    # Reconfigure root handlers to use the selected level and format
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)
    logging.basicConfig(level=level, format='%(asctime)s %(levelname)s [%(name)s]: %(message)s')
    logging.log(100, f'[cstore]: Log level set to: {logging.getLevelName(level)}')
    logger = logging.getLogger(__name__)

    # Keep known noisy libraries quiet by default
    logging.getLogger('uvicorn.access').setLevel(logging.WARNING)
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)
    logger.info("Starting C-Store server")

    return logger
