from stratex_core.logs.notifiers import BasePushNotifier, LogNotifier, NoOpNotifier, PushNotifier
from stratex_core.logs.structlog import configure, logger

__all__ = [
    "configure",
    "logger",
    "BasePushNotifier",
    "PushNotifier",
    "NoOpNotifier",
    "LogNotifier",
]
