"""
Central logging configuration utilities for the CongestiQ service.

Usage
-----
In the entrypoint (``run_server.py``):

    from utils.logging_utils import setup_logging

    setup_logging(level="INFO", job_name="congestiq")

In a module:

    from utils.logging_utils import get_tagged_logger

    logger = get_tagged_logger(__name__, tag="openweather_client")
    logger.info("Fetching current weather")

Every record carries `job_name` and `tag` so the two edge handlers
(weather and chat) can be told apart in a shared log stream.
"""

from __future__ import annotations

import logging
import logging.config
from typing import Any, Mapping, Optional
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse


# Early records (before setup_logging runs) still get timestamps and levels.
BOOTSTRAP_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"
BOOTSTRAP_DATEFMT = "%Y-%m-%d %H:%M:%S"

logging.basicConfig(
    level=logging.INFO,
    format=BOOTSTRAP_FORMAT,
    datefmt=BOOTSTRAP_DATEFMT,
)

DEFAULT_LOG_FORMAT = (
    "%(asctime)s | %(levelname)s | %(job_name)s | %(tag)s | %(name)s | %(message)s"
)
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Query-string keys whose values must never reach a log line.
SENSITIVE_QUERY_TOKENS = ("appid", "key", "token", "secret", "pass", "pwd")

_CONFIGURED: bool = False


class MaxLevelFilter(logging.Filter):
    """Allow only records up to (and including) `max_level`."""

    def __init__(self, max_level: int) -> None:
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        return record.levelno <= self.max_level


class EnsureTagFilter(logging.Filter):
    """
    Ensure every LogRecord has a `tag` attribute.

    Records coming from a tagged LoggerAdapter keep their tag; anything else
    (uvicorn, requests, third-party code) gets the last segment of its logger
    name, e.g. "uvicorn.access" -> "access".
    """

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if not hasattr(record, "tag"):
            logger_name = getattr(record, "name", "")
            record.tag = logger_name.split(".")[-1] if logger_name else "-"
        return True


class JobNameFilter(logging.Filter):
    """Inject a process-wide `job_name` attribute into every LogRecord."""

    def __init__(self, job_name: Optional[str] = None) -> None:
        super().__init__()
        self._job_name = job_name or "-"

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if not hasattr(record, "job_name"):
            record.job_name = self._job_name
        return True


def build_logging_config(*, level: str | int = "INFO", job_name: Optional[str] = None) -> Mapping[str, Any]:
    """
    Build a dictConfig-style logging configuration.

    DEBUG/INFO go to stdout, WARNING and above go to stderr.
    """
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "ensure_tag": {"()": EnsureTagFilter},
            "job_name": {"()": JobNameFilter, "job_name": job_name},
            "stdout_max_info": {
                "()": MaxLevelFilter,
                "max_level": logging.INFO,
            },
        },
        "formatters": {
            "standard": {
                "format": DEFAULT_LOG_FORMAT,
                "datefmt": DEFAULT_DATE_FORMAT,
            },
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "filters": ["ensure_tag", "job_name", "stdout_max_info"],
                "level": "DEBUG",
                "stream": "ext://sys.stdout",
            },
            "stderr": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "filters": ["ensure_tag", "job_name"],
                "level": "WARNING",
                "stream": "ext://sys.stderr",
            },
        },
        "root": {
            "level": level,
            "handlers": ["stdout", "stderr"],
        },
    }


def setup_logging(*, level: str | int = "INFO", job_name: Optional[str] = None, override_existing: bool = False) -> None:
    """
    Configure application-wide logging once per process.

    Repeated calls are a no-op unless `override_existing` is True.
    """
    global _CONFIGURED

    if _CONFIGURED and not override_existing:
        return

    logging.config.dictConfig(build_logging_config(level=level, job_name=job_name))
    _CONFIGURED = True


def get_tagged_logger(
    name: str,
    *,
    tag: Optional[str] = None,
) -> logging.LoggerAdapter:
    """
    Return a LoggerAdapter that always carries a `tag` field.

    If `tag` is omitted it defaults to the last segment of the logger name.
    """
    base_logger = logging.getLogger(name)
    if tag is None:
        tag = name.split(".")[-1]
    return logging.LoggerAdapter(base_logger, {"tag": tag})


def mask_url(url: str) -> str:
    """Return a copy of a provider URL with credential query values masked.

    https://api.openweathermap.org/data/2.5/weather?lat=1&appid=abc
      -> https://api.openweathermap.org/data/2.5/weather?lat=1&appid=%2A%2A%2A
    """
    parsed = urlparse(url)
    if not parsed.query:
        return url

    masked_query = urlencode(
        [
            (key, "***" if any(token in key.lower() for token in SENSITIVE_QUERY_TOKENS) else value)
            for key, value in parse_qsl(parsed.query, keep_blank_values=True)
        ]
    )
    return urlunparse(parsed._replace(query=masked_query))
