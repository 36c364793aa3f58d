import logging
import os
import sys
from pathlib import Path
from typing import Optional

LOG_LEVEL_ENV = "STATIONBOOT_LOG_LEVEL"


def configure_logging(level: int = logging.INFO, log_file: Optional[Path] = None) -> None:
    """Configure the root logger.

    Respects the STATIONBOOT_LOG_LEVEL env var if present. When ``log_file`` is
    given, records are also appended to that file.
    """
    level_name = os.getenv(LOG_LEVEL_ENV)
    if level_name:
        level = getattr(logging, level_name.upper(), level)

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    # Remove existing handlers to avoid duplicates in repeated test runs
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
