"""
Logging configuration for the ``pact`` process.

``configure_logging`` is called by the dispatcher before routing, and
again by the click group when it sees level flags.  Every module that
does ``logger = logging.getLogger(__name__)`` inherits the result.

Level precedence:
    --debug / --verbose / --quiet  >  PACT_LOG_LEVEL  >  WARNING

PACT_LOG_FILE adds a file handler; PACT_LOG_FILE_LEVEL sets its level
(defaults to the console level).

Extensions share the terminal with us, so the default console format
is the bare message and only warnings get through.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping

ENV_LOG_LEVEL = "PACT_LOG_LEVEL"
ENV_LOG_FILE = "PACT_LOG_FILE"
ENV_LOG_FILE_LEVEL = "PACT_LOG_FILE_LEVEL"

# level threshold -> (format, datefmt); first match wins
_CONSOLE_FORMATS: tuple[tuple[int, str, str | None], ...] = (
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
)
_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

_NOISY_LOGGERS = ("urllib3", "charset_normalizer")


def level_for_flags(
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Console level name for the given CLI flags and environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    env = os.environ if environ is None else environ
    return env.get(ENV_LOG_LEVEL) or "WARNING"


def configure_logging(
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    environ: Mapping[str, str] | None = None,
) -> None:
    """Set up logging from CLI flags plus the PACT_LOG_* variables."""
    env = os.environ if environ is None else environ
    setup_logging(
        level=level_for_flags(debug, verbose, quiet, env),
        log_file=env.get(ENV_LOG_FILE) or None,
        log_file_level=env.get(ENV_LOG_FILE_LEVEL) or None,
        quiet_third_party=not debug,
    )


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
) -> None:
    """Replace the root logger's handlers with a stderr console handler
    and, when ``log_file`` is given, a file handler.

    Safe to call more than once; earlier handlers are closed.
    """
    console_level = _parse_level(level)

    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()

    root.addHandler(_console_handler(console_level))
    root_level = console_level

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
        root.addHandler(fh)
        root_level = min(root_level, file_level)

    root.setLevel(root_level)

    if quiet_third_party and console_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.raiseExceptions = False


def _console_handler(level: int) -> logging.Handler:
    fmt, datefmt = "%(message)s", None
    for threshold, candidate, candidate_datefmt in _CONSOLE_FORMATS:
        if level <= threshold:
            fmt, datefmt = candidate, candidate_datefmt
            break

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def _parse_level(level: str | None) -> int:
    """Level name to its numeric value; unknown names mean WARNING."""
    if not level:
        return logging.WARNING
    numeric = logging.getLevelName(level.strip().upper())
    return numeric if isinstance(numeric, int) else logging.WARNING
