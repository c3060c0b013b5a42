import logging
import os
from typing import Optional

LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'


def setup_logger(name: str = "vcalc", level: int = logging.INFO) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.setLevel(level)
        handler = logging.StreamHandler()
        formatter = logging.Formatter(LOG_FORMAT)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger


class DiagnosticsSink:
    """Append-only error log shared by every session.

    Critical reports are written at CRITICAL level, everything else at
    WARNING. Handlers serialize writes with their own locks, so reports from
    one thread keep their order.
    """

    def __init__(self, log_file: Optional[str] = None):
        self.log_file = log_file
        # Private to this sink: not registered with the logging manager, so
        # two sinks never share handlers.
        self.logger = logging.Logger("diagnostics", logging.INFO)
        console = logging.StreamHandler()
        console.setFormatter(logging.Formatter(LOG_FORMAT))
        self.logger.addHandler(console)
        self._file_handler = None
        if log_file:
            self._open(log_file)

    def _open(self, log_file: str):
        try:
            directory = os.path.dirname(log_file)
            if directory:
                os.makedirs(directory, exist_ok=True)
            handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        except OSError as e:
            self.logger.warning(f"Cannot open log file {log_file}: {e}; logging to console only")
            return
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        self.logger.addHandler(handler)
        self._file_handler = handler

    def report(self, message: str, is_critical: bool) -> None:
        level = logging.CRITICAL if is_critical else logging.WARNING
        self.logger.log(level, message)

    def close(self):
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()
        self._file_handler = None
