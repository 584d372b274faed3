"""Controller-tagged logging on top of the stdlib `logging` module."""

import logging
from typing import Any, MutableMapping

logger = logging.getLogger("better_controller")


class ControllerLogger(logging.LoggerAdapter):
    """Prefixes messages and appends controller/action tags.

    Example output: `[BetterController] Service failed {'controller': 'UsersController', 'action': 'create'}`
    """

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        tags = dict(self.extra or {})
        tags.update(kwargs.pop("tags", None) or {})
        if tags:
            return f"[BetterController] {msg} {tags}", kwargs
        return f"[BetterController] {msg}", kwargs


def controller_logger(controller: str, action: str | None = None) -> ControllerLogger:
    extra: dict[str, Any] = {"controller": controller}
    if action:
        extra["action"] = action
    return ControllerLogger(logger, extra)


def log_exception(log: logging.LoggerAdapter | logging.Logger, error: BaseException,
                  enabled: bool = True, **tags: Any) -> None:
    """Log `error` with its class name when error logging is enabled."""
    if not enabled:
        return
    tags["exception_class"] = type(error).__name__
    message = str(error) or type(error).__name__
    if isinstance(log, ControllerLogger):
        log.error(message, exc_info=error, tags=tags)
    else:
        log.error("%s %s", message, tags, exc_info=error)
