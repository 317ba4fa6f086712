"""
Run logging helpers.
"""

import logging
from datetime import datetime
from pathlib import Path

PACKAGE_LOGGER_NAME = "mockdata"


class WarningCollector(logging.Handler):
    """Keep the text of every WARNING-or-worse record emitted during a build."""

    def __init__(self, level=logging.WARNING):
        super().__init__(level)
        self.messages = []

    def emit(self, record):
        self.messages.append(record.getMessage())


def resolve_logger(logger=None):
    if logger is not None:
        return logger
    return logging.getLogger(PACKAGE_LOGGER_NAME)


def setup_run_logger(log_dir=None, name=PACKAGE_LOGGER_NAME, log_level="info"):
    """Configure ``name`` with a WARNING stream handler and, optionally, a run log.

    When ``log_dir`` is blank or None no file is written and the returned
    path is None.
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO if log_level != "quiet" else logging.WARNING)
    logger.propagate = False

    if logger.handlers:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            try:
                handler.close()
            except Exception:
                pass

    log_path = None
    text = str(log_dir).strip() if log_dir is not None else ""
    if text:
        resolved_log_dir = Path(text).expanduser()
        resolved_log_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_path = resolved_log_dir / f"run_{timestamp}.log"

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(message)s")
        )
        logger.addHandler(file_handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(logging.WARNING)
    stream_handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
    logger.addHandler(stream_handler)

    return logger, (str(log_path) if log_path is not None else None)
