"""Logging setup for batch runs.

Plain text on stderr by default. With ``json_output`` every record is one
JSON object (python-json-logger) carrying a ``severity`` field, which log
collectors such as Cloud Logging pick up without a parser.
"""

from __future__ import annotations

import logging

from pythonjsonlogger.json import JsonFormatter

# Chatty third-party loggers that drown out per-file progress at INFO.
_NOISY_LOGGERS = ("httpx", "httpcore", "google_genai")

_TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s  %(message)s"


class SeverityJsonFormatter(JsonFormatter):
    """JSON formatter that reports the level as ``severity``."""

    def add_fields(
        self,
        log_record: dict[str, object],
        record: logging.LogRecord,
        message_dict: dict[str, object],
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["severity"] = record.levelname
        log_record.pop("levelname", None)


def setup_logging(*, level: str = "INFO", json_output: bool = False) -> None:
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for h in root.handlers[:]:
        root.removeHandler(h)

    handler = logging.StreamHandler()
    if json_output:
        handler.setFormatter(
            SeverityJsonFormatter(
                fmt="%(asctime)s %(message)s %(name)s",
                rename_fields={"asctime": "time", "name": "logger"},
            )
        )
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT, datefmt="%H:%M:%S"))
    root.addHandler(handler)

    if root.level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
