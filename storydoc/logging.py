"""Logging setup and the run-level records storydoc emits."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from .models import RunSummary

ROOT_LOGGER = "storydoc"
CONSOLE_FORMAT = "[storydoc] %(levelname)s %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """``storydoc.<name>``, or the package logger itself."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER)


def _attach(logger: logging.Logger, handler: logging.Handler, fmt: str) -> None:
    handler.setLevel(logger.level)
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Send storydoc records to stderr and, when given, to ``log_file``.

    Progress is reported at INFO. ``verbose`` adds up-to-date skips and the
    individual oracle requests.
    """
    logger = get_logger()
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    _attach(logger, logging.StreamHandler(), CONSOLE_FORMAT)
    if log_file is not None:
        _attach(logger, logging.FileHandler(log_file, encoding="utf-8"), FILE_FORMAT)
    return logger


def log_module_failure(logger: logging.Logger, path: Path, message: str) -> None:
    logger.error("Error processing file %s: %s", path, message)


def log_run_summary(logger: logging.Logger, summary: "RunSummary") -> None:
    """One INFO line with the totals, plus a WARNING naming each failed module."""
    logger.info(
        "Run finished: %d documented, %d up to date, %d failed, %d files changed%s",
        len(summary.materialized),
        len(summary.skipped),
        len(summary.failed),
        len(summary.changed_files),
        f" (stopped: {summary.stopped_reason})" if summary.stopped_reason else "",
    )
    for failure in summary.failed:
        logger.warning("Not documented: %s", failure.path)


__all__ = ["configure_logging", "get_logger", "log_module_failure", "log_run_summary"]
