from __future__ import annotations

import logging.config
import os
from collections.abc import Mapping, MutableMapping
from typing import Any, Final

import structlog
from beartype import beartype

# Event keys whose values must never reach a log sink
SENSITIVE_KEYS: Final[frozenset[str]] = frozenset(
    {"api_key", "api_secret", "secret", "secret_key", "signature", "private_key"}
)
REDACTED: Final[str] = "***"
WILDCARD: Final[str] = "*"


class ModuleFilter(logging.Filter):
    """
    Per-namespace minimum levels.

    The longest logger-name prefix in `modules_to_log` decides the level of a
    record; `*` applies to everything else. Records matching no entry are dropped.
    """

    def __init__(self, modules_to_log: Mapping[str, str]) -> None:
        super().__init__()
        self.levels: dict[str, int] = {module: self._to_level(level) for module, level in modules_to_log.items()}

    @staticmethod
    def _to_level(level: str) -> int:
        value = logging.getLevelName(level.upper())
        return value if isinstance(value, int) else logging.INFO

    def _level_for(self, name: str) -> int | None:
        matches = [m for m in self.levels if m != WILDCARD and (name == m or name.startswith(f"{m}."))]
        if matches:
            return self.levels[max(matches, key=len)]
        return self.levels.get(WILDCARD)

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.levels:
            return True
        level = self._level_for(record.name)
        return level is not None and record.levelno >= level


def redact_secrets(
    _logger: Any, _method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Replace the value of any credential-bearing key with a placeholder."""
    for key in SENSITIVE_KEYS.intersection(event_dict):
        event_dict[key] = REDACTED
    return event_dict


timestamper = structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S")

# applied to records emitted through plain `logging` (aiohttp, web3, ...)
foreign_pre_chain: list[Any] = [
    structlog.stdlib.add_log_level,
    structlog.stdlib.ExtraAdder(),
    redact_secrets,
    timestamper,
]


def _formatter(colors: bool) -> dict[str, Any]:
    return {
        "()": structlog.stdlib.ProcessorFormatter,
        "processors": [
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.dev.ConsoleRenderer(colors=colors),
        ],
        "foreign_pre_chain": foreign_pre_chain,
    }


def _handlers(service_name: str, log_level: str, log_dir: str | None) -> dict[str, dict[str, Any]]:
    handlers: dict[str, dict[str, Any]] = {
        "console": {
            "level": log_level,
            "class": "logging.StreamHandler",
            "formatter": "colored",
            "filters": ["module_filter"],
        },
    }
    if log_dir is not None:
        os.makedirs(log_dir, exist_ok=True)
        handlers["file"] = {
            "level": log_level,
            "class": "logging.handlers.TimedRotatingFileHandler",
            "filename": os.path.join(log_dir, f"{service_name}.log"),
            "when": "midnight",
            "backupCount": 30,
            "encoding": "utf-8",
            "formatter": "plain",
            "filters": ["module_filter"],
        }
    return handlers


@beartype
def configure(
    service_name: str = "stratex_core",
    log_level: str = "INFO",
    log_dir: str | None = "./logs",
) -> None:
    """
    Route structlog and stdlib logging through one set of handlers.

    Args:
        service_name: Logger namespace kept at `log_level`; everything else logs at INFO
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for the daily rotating log file, or None for console only
    """
    log_level = log_level.upper()
    handlers = _handlers(service_name, log_level, log_dir)
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "module_filter": {
                    "()": ModuleFilter,
                    "modules_to_log": {service_name: log_level, WILDCARD: "INFO"},
                },
            },
            "formatters": {"plain": _formatter(colors=False), "colored": _formatter(colors=True)},
            "handlers": handlers,
            "root": {"handlers": list(handlers), "level": log_level},
        }
    )
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            redact_secrets,
            timestamper,
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    structlog.processors.CallsiteParameter.FILENAME,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            ),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.get_logger().debug("logging configured", service=service_name, log_dir=log_dir)


logger: structlog.stdlib.BoundLogger = structlog.get_logger()
