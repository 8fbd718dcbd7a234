"""
Logging setup for the storefront client.

Usage:
    from storefront.logging import get_logger
    logger = get_logger(__name__)

Bearer tokens must never reach a log line. Messages built from backend
errors or transport exceptions go through redact_secrets() at the call
site, and the stdout handler installed here runs RedactingFilter as a
second line of defence.
"""

import logging
import os
import re
import sys
from functools import cache

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FORMAT_SIMPLE = "%(levelname)s - %(name)s - %(message)s"

REDACTED = "[REDACTED]"

# "Bearer abc.def", "Authorization: xyz", '"token": "abc"', token=abc
_SECRET_PATTERNS = (
    re.compile(r"(?i)(bearer\s+)[A-Za-z0-9\-._~+/]+=*"),
    re.compile(r"(?i)(authorization['\"]?\s*[:=]\s*['\"]?)(?!bearer\b)(?:(?:basic|digest)\s+)?[^\s'\",}]+"),
    re.compile(r"(?i)(['\"]?(?:token|password)['\"]?\s*[:=]\s*['\"]?)[^\s'\",}&]+"),
)


def redact_secrets(value: object) -> str:
    """Mask bearer tokens, Authorization values, tokens and passwords in text."""
    text = str(value)
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(lambda m: m.group(1) + REDACTED, text)
    return text


class RedactingFilter(logging.Filter):
    """Rewrites each record's final message with redact_secrets()."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_secrets(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def _get_log_level() -> int:
    level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def _configure_root_logger() -> None:
    root = logging.getLogger()

    # Host application (or pytest) already configured logging
    if root.handlers:
        return

    root.setLevel(_get_log_level())

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(_get_log_level())
    is_production = os.environ.get("STOREFRONT_ENV") == "production"
    handler.setFormatter(logging.Formatter(LOG_FORMAT_SIMPLE if is_production else LOG_FORMAT))
    handler.addFilter(RedactingFilter())
    root.addHandler(handler)

    # httpx logs every request line, URL query strings included
    logging.getLogger("httpx").setLevel(logging.WARNING)


_configure_root_logger()


@cache
def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def _escape_control_chars(value: str) -> str:
    """Neutralize characters that could forge log lines (CWE-117)."""
    return (
        value.replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
        .replace("\x00", "")
    )


def sanitize_id_for_logging(id_value: str | None) -> str:
    """Product/order ids: escaped and cut to 8 characters, "N/A" when empty."""
    if not id_value:
        return "N/A"
    return _escape_control_chars(str(id_value))[:8]


def sanitize_string_for_logging(value: str | None, max_length: int = 50) -> str:
    """E-mails and backend messages: redacted, escaped, truncated."""
    if not value:
        return "N/A"
    safe_value = _escape_control_chars(redact_secrets(value))
    if len(safe_value) <= max_length:
        return safe_value
    return safe_value[:max_length] + "..."


__all__ = [
    "REDACTED",
    "RedactingFilter",
    "get_logger",
    "redact_secrets",
    "sanitize_id_for_logging",
    "sanitize_string_for_logging",
]
