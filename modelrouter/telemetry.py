"""Logging setup and the telemetry bundle handed to routers."""

from __future__ import annotations

import json
import logging
import os
import sys
import traceback
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import TextIO

LOGGER_NAME = "modelrouter"

SERVICE_NAME_KEY = "service.name"
SERVICE_INSTANCE_ID_KEY = "service.instance.id"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "dpanic": logging.CRITICAL,
    "panic": logging.CRITICAL,
    "fatal": logging.CRITICAL,
}

_STANDARD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime", "taskName"}

_LEVEL_COLORS = {
    logging.DEBUG: 35,
    logging.INFO: 34,
    logging.WARNING: 33,
}


def _parse_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    try:
        return _LEVELS[level.strip().lower()]
    except KeyError:
        raise ValueError(f"unrecognized level: {level!r}") from None


def _level_name(levelno: int) -> str:
    name = logging.getLevelName(levelno)
    return "WARN" if name == "WARNING" else str(name)


class _StructuredFormatter(logging.Formatter):
    def __init__(
        self,
        include_caller: bool = True,
        stacktrace_level: int | None = logging.ERROR,
        initial_fields: dict | None = None,
    ) -> None:
        super().__init__()
        self._include_caller = include_caller
        self._stacktrace_level = stacktrace_level
        self._initial_fields = dict(initial_fields or {})

    def _fields(self, record: logging.LogRecord) -> dict:
        fields = dict(self._initial_fields)
        fields.update(
            (key, value) for key, value in record.__dict__.items() if key not in _STANDARD_ATTRS
        )
        return fields

    def _caller(self, record: logging.LogRecord) -> str | None:
        return f"{record.filename}:{record.lineno}" if self._include_caller else None

    def _stacktrace(self, record: logging.LogRecord) -> str | None:
        if self._stacktrace_level is None or record.levelno < self._stacktrace_level:
            return None
        if record.exc_info:
            return self.formatException(record.exc_info)
        return "".join(traceback.format_stack()).rstrip()


class _JsonFormatter(_StructuredFormatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: dict = {"level": _level_name(record.levelno).lower(), "ts": record.created}
        caller = self._caller(record)
        if caller:
            entry["caller"] = caller
        entry["msg"] = record.getMessage()
        entry.update(self._fields(record))
        stack = self._stacktrace(record)
        if stack:
            entry["stacktrace"] = stack
        return json.dumps(entry, default=str)


class _ConsoleFormatter(_StructuredFormatter):
    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).astimezone()
        color = _LEVEL_COLORS.get(record.levelno, 31)
        parts = [
            timestamp.isoformat(timespec="milliseconds"),
            f"\x1b[{color}m{_level_name(record.levelno)}\x1b[0m",
        ]
        caller = self._caller(record)
        if caller:
            parts.append(caller)
        parts.append(record.getMessage())
        fields = self._fields(record)
        if fields:
            parts.append(json.dumps(fields, default=str))
        line = "\t".join(parts)
        stack = self._stacktrace(record)
        return f"{line}\n{stack}" if stack else line


def _handler(path: str, formatter: str) -> dict:
    if path in ("stdout", "stderr"):
        return {"class": "logging.StreamHandler", "stream": f"ext://sys.{path}", "formatter": formatter}
    return {"class": "logging.FileHandler", "filename": path, "formatter": formatter}


def _build_formatter(spec: dict) -> logging.Formatter:
    options = dict(spec)
    factory = options.pop("()")
    return factory(**options)


def _resolve_stream(name: str) -> TextIO:
    if name == "ext://sys.stdout":
        return sys.stdout
    if name == "ext://sys.stderr":
        return sys.stderr
    raise ValueError(f"unsupported stream: {name!r}")


def _build_handler(spec: dict, formatters: dict[str, logging.Formatter]) -> logging.Handler:
    if spec["class"] == "logging.StreamHandler":
        handler: logging.Handler = logging.StreamHandler(_resolve_stream(spec["stream"]))
    else:
        handler = logging.FileHandler(spec["filename"])
    handler.setFormatter(formatters[spec["formatter"]])
    return handler


@dataclass
class LogConfig:
    """Logger settings."""

    level: str | int = "info"  # minimum enabled level
    encoding: str = "json"  # "json" or "console"
    disable_caller: bool = False  # omit file name and line number
    disable_stacktrace: bool = False  # never attach stack traces
    output_paths: list[str] = field(default_factory=lambda: ["stdout"])
    initial_fields: dict = field(default_factory=dict)  # added to every entry

    def to_logging_config(self) -> dict:
        """Describe these settings as a dictConfig-shaped dictionary."""
        level = _parse_level(self.level)
        console = self.encoding == "console"
        encoding = "console" if console else "json"
        # development-style console logs capture stack traces from warnings on
        stack_level = logging.WARNING if console else logging.ERROR

        formatter = {
            "()": _ConsoleFormatter if console else _JsonFormatter,
            "include_caller": not self.disable_caller,
            "stacktrace_level": None if self.disable_stacktrace else stack_level,
            "initial_fields": dict(self.initial_fields),
        }
        handlers = {
            f"output{idx}": _handler(path, encoding) for idx, path in enumerate(self.output_paths)
        }

        return {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {encoding: formatter},
            "handlers": handlers,
            "loggers": {
                LOGGER_NAME: {
                    "level": level,
                    "handlers": list(handlers),
                    "propagate": False,
                }
            },
        }


def new_logger(cfg: LogConfig) -> logging.Logger:
    """Configure and return the package logger."""
    settings = cfg.to_logging_config()
    formatters = {name: _build_formatter(spec) for name, spec in settings["formatters"].items()}
    logger_settings = settings["loggers"][LOGGER_NAME]

    logger = logging.getLogger(LOGGER_NAME)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    for name in logger_settings["handlers"]:
        logger.addHandler(_build_handler(settings["handlers"][name], formatters))

    logger.setLevel(logger_settings["level"])
    logger.propagate = logger_settings["propagate"]
    logger.disabled = False
    return logger


@dataclass
class TelemetryConfig:
    log_config: LogConfig = field(default_factory=LogConfig)
    resource: dict[str, str] = field(default_factory=dict)


def default_config() -> TelemetryConfig:
    instance = os.environ.get("POD_NAME") or str(uuid.uuid4())
    return TelemetryConfig(
        log_config=LogConfig(),
        resource={
            SERVICE_NAME_KEY: LOGGER_NAME,
            SERVICE_INSTANCE_ID_KEY: instance,
        },
    )


@dataclass
class Telemetry:
    config: TelemetryConfig
    logger: logging.Logger


def new_telemetry(cfg: TelemetryConfig) -> Telemetry:
    return Telemetry(cfg, new_logger(cfg.log_config))


def _nop_logger() -> logging.Logger:
    logger = logging.getLogger(f"{LOGGER_NAME}.nop")
    logger.handlers = [logging.NullHandler()]
    logger.propagate = False
    logger.disabled = True
    return logger


def new_telemetry_mock() -> Telemetry:
    """Telemetry whose logger discards everything."""
    return Telemetry(default_config(), _nop_logger())