"""Process configuration read from the environment.

Entrypoints call :func:`load_settings` after ``load_dotenv(override=False)``;
library code receives the resulting :class:`Settings` (or explicit arguments)
and never reads the environment itself.

Recognised keys:

- ``STATEMENT_INGEST_LOG_LEVEL``: see :mod:`statement_ingest.logging_setup`.
- ``STATEMENT_INGEST_PASSWORD_<PATTERN>``: password for files whose name
  contains ``<pattern>`` (e.g. ``STATEMENT_INGEST_PASSWORD_CHAK``).
- ``STATEMENT_INGEST_MODEL``: model for the classification client.
- ``STATEMENT_INGEST_CLASSIFY_BATCH_SIZE``: items per classification request.
- ``OPENAI_API_KEY``: consumed by the OpenAI SDK directly.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from .classifier import DEFAULT_BATCH_SIZE, DEFAULT_MODEL
from .logging_setup import get_logger

_logger = get_logger("statement_ingest.config")

ENV_PREFIX = "STATEMENT_INGEST_"
PASSWORD_ENV_PREFIX = f"{ENV_PREFIX}PASSWORD_"

# Filename fragments of sources that ship password-protected workbooks.
PASSWORD_PATTERNS: tuple[str, ...] = ("chak",)


def password_pattern(filename: str) -> str | None:
    """The password pattern a filename belongs to, e.g. ``"chak"``."""

    lowered = filename.lower()
    for pattern in PASSWORD_PATTERNS:
        if pattern in lowered:
            return pattern
    return None


@dataclass(frozen=True, slots=True)
class Settings:
    model: str = DEFAULT_MODEL
    classify_batch_size: int = DEFAULT_BATCH_SIZE
    passwords: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def password_for(self, filename: str) -> str | None:
        """Password configured for the first pattern the filename contains."""

        pattern = password_pattern(filename)
        if pattern is not None and pattern in self.passwords:
            return self.passwords[pattern]
        lowered = filename.lower()
        for key, value in self.passwords.items():
            if key in lowered:
                return value
        return None


def _int_env(environ: Mapping[str, str], key: str, default: int) -> int:
    raw = environ.get(key)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        _logger.warning("config:invalid_int key=%s value=%r default=%d", key, raw, default)
        return default
    if value < 1:
        _logger.warning("config:invalid_int key=%s value=%r default=%d", key, raw, default)
        return default
    return value


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if environ is None else environ
    passwords = {
        key[len(PASSWORD_ENV_PREFIX) :].lower(): value
        for key, value in env.items()
        if key.startswith(PASSWORD_ENV_PREFIX) and value
    }
    return Settings(
        model=env.get(f"{ENV_PREFIX}MODEL") or DEFAULT_MODEL,
        classify_batch_size=_int_env(env, f"{ENV_PREFIX}CLASSIFY_BATCH_SIZE", DEFAULT_BATCH_SIZE),
        passwords=MappingProxyType(passwords),
    )


__all__ = ["PASSWORD_PATTERNS", "Settings", "load_settings", "password_pattern"]
