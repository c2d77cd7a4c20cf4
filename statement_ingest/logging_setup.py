"""Logging for the ``statement_ingest`` package.

Every module logs through ``get_logger("statement_ingest.<area>")`` with
messages shaped ``"<area>:<event> key=value ..."``. Nothing is printed until an
entrypoint calls :func:`configure_logging`; until then the package root only
carries a ``NullHandler``.

Levels are set per area as well as globally, so a noisy area can be opened up
on its own::

    STATEMENT_INGEST_LOG_LEVEL=WARNING
    STATEMENT_INGEST_LOG_LEVELS="parsers=DEBUG,classifier=INFO"

An area is a dotted logger suffix below the package root (``parsers`` covers
``statement_ingest.parsers.hyundai`` and its siblings).
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping
from typing import IO

PKG_LOGGER_NAME = "statement_ingest"
LEVEL_ENV = "STATEMENT_INGEST_LOG_LEVEL"
AREA_LEVELS_ENV = "STATEMENT_INGEST_LOG_LEVELS"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_CONFIGURED = False
_logger = logging.getLogger(f"{PKG_LOGGER_NAME}.logging_setup")


def parse_level(value: int | str | None, default: int = logging.INFO) -> int:
    """Level from an int, a numeric string or a level name; ``default`` when
    missing or unknown."""

    if isinstance(value, int):
        return value
    if not value or not value.strip():
        return default
    name = value.strip().upper()
    if name.isdigit():
        return int(name)
    numeric = logging.getLevelName(name)
    return numeric if isinstance(numeric, int) else default


def parse_area_levels(text: str | None) -> dict[str, int]:
    """``"parsers=DEBUG, classifier=warning"`` -> ``{"parsers": 10, "classifier": 30}``.

    Entries without ``=`` or with an unknown level are skipped.
    """

    out: dict[str, int] = {}
    for item in (text or "").split(","):
        area, sep, level = item.partition("=")
        area = area.strip().removeprefix(f"{PKG_LOGGER_NAME}.")
        if not sep or not area:
            continue
        resolved = parse_level(level, default=-1)
        if resolved < 0:
            continue
        out[area] = resolved
    return out


def area_logger_name(area: str) -> str:
    return f"{PKG_LOGGER_NAME}.{area}" if area else PKG_LOGGER_NAME


def configure_logging(
    level: int | str | None = None,
    *,
    area_levels: Mapping[str, int | str] | None = None,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Attach one ``StreamHandler`` to the package root, once per process.

    ``level`` falls back to ``STATEMENT_INGEST_LOG_LEVEL`` and then ``INFO``.
    ``area_levels`` is merged over ``STATEMENT_INGEST_LOG_LEVELS``; each entry
    sets the level of ``statement_ingest.<area>``. The handler itself does not
    filter, so an area may be more verbose than the package root.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    root = logging.getLogger(PKG_LOGGER_NAME)
    for h in list(root.handlers):
        if isinstance(h, logging.NullHandler):
            root.removeHandler(h)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    root.addHandler(handler)
    root.setLevel(parse_level(level if level is not None else os.getenv(LEVEL_ENV)))
    # Avoid double emission via the root logger.
    root.propagate = False

    overrides = parse_area_levels(os.getenv(AREA_LEVELS_ENV))
    for area, value in (area_levels or {}).items():
        overrides[area] = parse_level(value)
    for area, value in overrides.items():
        logging.getLogger(area_logger_name(area)).setLevel(value)

    _CONFIGURED = True
    if overrides:
        _logger.debug(
            "logging:configured level=%s areas=%s",
            logging.getLevelName(root.level),
            ",".join(f"{a}={logging.getLevelName(v)}" for a, v in sorted(overrides.items())),
        )


def get_logger(name: str) -> logging.Logger:
    """Logger for ``name``; installs the package ``NullHandler`` while
    unconfigured."""

    root = logging.getLogger(PKG_LOGGER_NAME)
    if not _CONFIGURED and not root.handlers:
        root.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = [
    "AREA_LEVELS_ENV",
    "LEVEL_ENV",
    "area_logger_name",
    "configure_logging",
    "get_logger",
    "parse_area_levels",
    "parse_level",
]
