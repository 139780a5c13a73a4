"""
Centralized logging configuration for the support bot.

- setup_logging() is called once at startup (get_logger calls it lazily too)
- Console output goes to stderr; a rotating log file is optional
- JSON line format can be switched on for log aggregation
- Health check access lines are filtered out
- Credentials pasted by users are scrubbed from every record
"""
import os
import sys
import logging
from logging.handlers import RotatingFileHandler
from typing import Optional

from utils.redactor import redact_text

# No api_key pattern: session ids are 32-char hex
LOG_REDACTION_PATTERNS = ("private_key", "aws_key", "password_field", "token")

# Logging configuration from environment
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE_ENABLED = os.getenv("LOG_FILE_ENABLED", "false").lower() == "true"
LOG_FILE_PATH = os.getenv("LOG_FILE_PATH", "./logs/support_bot.log")
LOG_FILE_MAX_BYTES = int(os.getenv("LOG_FILE_MAX_BYTES", 5 * 1024 * 1024))  # 5MB default
LOG_FILE_BACKUP_COUNT = int(os.getenv("LOG_FILE_BACKUP_COUNT", 3))
LOG_JSON_FORMAT = os.getenv("LOG_JSON_FORMAT", "false").lower() == "true"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_FORMAT_JSON = '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}'

_configured = False
_root_logger: Optional[logging.Logger] = None


class ExcludeHealthCheckFilter(logging.Filter):
    """Drop successful /health access lines."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        return not ("/health" in message and "200" in message)


class RedactCredentialsFilter(logging.Filter):
    """Scrub passwords, tokens and keys from the formatted message."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_text(message, patterns=LOG_REDACTION_PATTERNS)
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True


def setup_logging() -> None:
    """
    Configure the root logger. Safe to call more than once; only the first
    call has an effect.
    """
    global _configured, _root_logger
    if _configured:
        return

    root_logger = logging.getLogger()
    root_logger.setLevel(LOG_LEVEL)
    root_logger.handlers.clear()

    log_format = LOG_FORMAT_JSON if LOG_JSON_FORMAT else LOG_FORMAT
    formatter = logging.Formatter(log_format, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(LOG_LEVEL)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(ExcludeHealthCheckFilter())
    console_handler.addFilter(RedactCredentialsFilter())
    root_logger.addHandler(console_handler)

    if LOG_FILE_ENABLED:
        log_dir = os.path.dirname(LOG_FILE_PATH)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        file_handler = RotatingFileHandler(
            LOG_FILE_PATH,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUP_COUNT,
            encoding='utf-8'
        )
        file_handler.setLevel(LOG_LEVEL)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(RedactCredentialsFilter())
        root_logger.addHandler(file_handler)

    # The Azure SDK logs every HTTP request at INFO
    logging.getLogger("azure").setLevel(logging.WARNING)
    logging.getLogger("azure.core.pipeline.policies.http_logging_policy").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    _root_logger = root_logger
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the given name, configuring logging first if needed.

    Args:
        name: The name for the logger (typically __name__)

    Returns:
        A configured logger instance
    """
    setup_logging()
    return logging.getLogger(name)
