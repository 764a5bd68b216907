"""Runtime helpers for labcli CLI orchestration."""

from __future__ import annotations

import os
from collections.abc import Callable
from typing import Any, Protocol

from .config import LabConfig, load_config
from .errors import EXIT_OK, LabError, classify_error
from .logging import configure_logging, get_logger
from .ux import print_error

# Commands that never talk to the API and therefore need no token
_NO_CONFIG_COMMANDS = {"browse"}


class _HandlerCallable(Protocol):
    def __call__(self) -> Any: ...


def prepare_config(
    args: Any, *, loader: Callable[[], LabConfig] | None = None
) -> LabConfig | None:
    """Load the configuration for the given argparse namespace and set up logging."""
    loader = loader or load_config
    cfg = None if getattr(args, "cmd", None) in _NO_CONFIG_COMMANDS else loader()
    level = cfg.logging_level if cfg is not None else "WARNING"
    json_logging = cfg.logging_json_enabled if cfg is not None else False
    if getattr(args, "verbose", False):
        level = "DEBUG"
    if os.environ.get("LAB_LOG_JSON") == "1":
        json_logging = True
    configure_logging(json_logging=json_logging, level=level)
    return cfg


def execute_command(handler: _HandlerCallable, command: str) -> int:
    """Run a command handler, turning ``LabError`` into an exit code."""
    logger = get_logger()
    try:
        with logger.timed_operation(command):
            result = handler()
    except LabError as exc:
        info = classify_error(exc)
        logger.log_error(f"{command} failed", error=info.message, category=info.category)
        print_error(info.message)
        return exc.exit_code
    return int(result) if result is not None else EXIT_OK


def run_guarded(step: Callable[[], Any]) -> tuple[Any, int | None]:
    """Run a setup step outside ``execute_command`` with the same error reporting."""
    try:
        return step(), None
    except LabError as exc:
        print_error(classify_error(exc).message)
        return None, exc.exit_code


__all__ = ["prepare_config", "execute_command", "run_guarded"]
