import logging
import sys
from pathlib import Path

_HANDLER_MARK = "_fitness_rpg_handler"


def setup_logging(level: str = "INFO", log_dir: str = "logs"):
    """Configure logging for the application.

    Safe to call more than once: handlers installed by an earlier call are
    replaced, not duplicated.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    
    # Root logger
    logger = logging.getLogger()
    logger.setLevel(log_level)
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARK, False):
            logger.removeHandler(handler)
            handler.close()
    
    handlers = []
    
    # File handler
    if log_dir:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path / "app.log")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
        handlers.append(file_handler)
    
    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(
        '%(levelname)s: %(message)s'
    ))
    handlers.append(console_handler)
    
    for handler in handlers:
        setattr(handler, _HANDLER_MARK, True)
        logger.addHandler(handler)
    
    # Specific loggers
    logging.getLogger("uvicorn.access").handlers = []
    logging.getLogger("uvicorn.error").handlers = []
