import logging
import sys
from pathlib import Path
from typing import Optional


def setup_logging(log_level: str = "INFO", log_file: Optional[Path] = None,
                  console: bool = True) -> None:
    """Setup logging for the application.

    The dashboard passes ``console=False`` because the terminal belongs to
    the UI; records then only go to ``log_file`` when one is given.
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    handlers = []
    if console:
        handlers.append(logging.StreamHandler(sys.stderr))
    else:
        handlers.append(logging.NullHandler())

    logging.basicConfig(
        level=numeric_level,
        format=log_format,
        handlers=handlers,
    )

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter(log_format))
        logging.getLogger().addHandler(file_handler)
