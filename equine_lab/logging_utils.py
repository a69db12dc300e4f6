from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, TextIO, Union

from rich.console import Console
from rich.theme import Theme

_LOG_LEVELS = {"DEBUG": 10, "INFO": 20, "WARN": 30, "ERROR": 40}
_STYLES = {"DEBUG": "dim", "INFO": "white", "WARN": "yellow", "ERROR": "red"}


def _normalize_level(level: str) -> str:
    level = level.upper().strip()
    if level == "WARNING":
        return "WARN"
    if level == "CRITICAL":
        return "ERROR"
    return level


def _should_emit(configured: str, requested: str) -> bool:
    return _LOG_LEVELS.get(requested, 100) >= _LOG_LEVELS.get(configured, 20)


@dataclass(slots=True)
class RunLogger:
    console: Optional[Console]
    level: str = "INFO"
    logfile: Optional[Path] = None
    _plain_file: Optional[TextIO] = field(init=False, repr=False, default=None)

    def __post_init__(self) -> None:
        self.level = _normalize_level(self.level)
        if self.logfile:
            self.logfile.parent.mkdir(parents=True, exist_ok=True)
            self._plain_file = self.logfile.open("a", encoding="utf-8")

    def close(self) -> None:
        if self._plain_file:
            self._plain_file.close()
            self._plain_file = None

    def log(
        self,
        step: str,
        message: str,
        level: str = "INFO",
        elapsed_ms: Optional[float] = None,
    ) -> None:
        level = _normalize_level(level)
        if not _should_emit(self.level, level):
            return
        now = datetime.now().strftime("%H:%M:%S.%f")[:-3]
        step_fmt = step.upper().ljust(7)
        level_fmt = level.ljust(5)
        suffix = f" (ms={elapsed_ms:.0f})" if elapsed_ms is not None else ""
        line = f"[{now}] [{level_fmt}] [{step_fmt}] {message}{suffix}"
        if self.console is not None:
            self.console.print(line, style=_STYLES.get(level, "white"), highlight=False, soft_wrap=True)
        if self._plain_file:
            self._plain_file.write(line + "\n")
            self._plain_file.flush()

    def timed(
        self,
        step: str,
        message: Union[str, Callable[[object], str]],
        func: Callable[..., object],
        *args,
        level: str = "INFO",
        **kwargs,
    ) -> object:
        start = time.perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception as exc:
            elapsed = (time.perf_counter() - start) * 1000.0
            self.log(step, f"error: {exc}", level="ERROR", elapsed_ms=elapsed)
            raise
        elapsed = (time.perf_counter() - start) * 1000.0
        msg = message(result) if callable(message) else message
        self.log(step, msg, level=level, elapsed_ms=elapsed)
        return result


class RunLogHandler(logging.Handler):
    """Forwards ``equine.*`` library records to a :class:`RunLogger`."""

    def __init__(self, run_logger: RunLogger) -> None:
        super().__init__(level=logging.DEBUG)
        self.run_logger = run_logger

    def emit(self, record: logging.LogRecord) -> None:
        try:
            step = record.name.rsplit(".", 1)[-1]
            self.run_logger.log(step, record.getMessage(), level=record.levelname)
        except Exception:  # pragma: no cover - logging must not raise
            self.handleError(record)


def create_logger(level: str, logfile: Optional[Path], *, attach: str | None = "equine") -> RunLogger:
    console = Console(theme=Theme({"repr.number": "cyan"}), stderr=True)
    run_logger = RunLogger(console=console, level=level, logfile=logfile)
    if attach:
        library_logger = logging.getLogger(attach)
        for handler in list(library_logger.handlers):
            if isinstance(handler, RunLogHandler):
                library_logger.removeHandler(handler)
        library_logger.addHandler(RunLogHandler(run_logger))
        library_logger.setLevel(_LOG_LEVELS.get(run_logger.level, logging.INFO))
        library_logger.propagate = False
    return run_logger


__all__ = ["RunLogHandler", "RunLogger", "create_logger"]
