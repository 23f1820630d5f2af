import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(threadName)s: %(message)s"

# Libraries that log every request or parsed PDF object at INFO/DEBUG.
_NOISY_LOGGERS = ("httpx", "httpcore", "openai", "pdfminer", "uvicorn.access")


class Log:
    """Process-wide logger for workers, the queue and the probe API."""

    _logger: logging.Logger = logging.getLogger("moderation")

    @classmethod
    def configure(cls, log_level: str) -> None:
        """Attach a stdout handler once and set the level for the service logger."""
        level = log_level.upper()
        cls._logger.setLevel(level)
        if not cls._logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            cls._logger.addHandler(handler)
            cls._logger.propagate = False
        if level != "DEBUG":
            for name in _NOISY_LOGGERS:
                logging.getLogger(name).setLevel(logging.WARNING)

    @classmethod
    def debug(cls, message: str, **kwargs: object) -> None:
        cls._logger.debug(message, extra=kwargs)

    @classmethod
    def info(cls, message: str, **kwargs: object) -> None:
        cls._logger.info(message, extra=kwargs)

    @classmethod
    def warning(cls, message: str, **kwargs: object) -> None:
        cls._logger.warning(message, extra=kwargs)

    @classmethod
    def error(cls, message: str, **kwargs: object) -> None:
        cls._logger.error(message, extra=kwargs)

    @classmethod
    def exception(cls, message: str, **kwargs: object) -> None:
        """Log at ERROR with the traceback of the exception being handled."""
        cls._logger.exception(message, extra=kwargs)
