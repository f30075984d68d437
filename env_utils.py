"""Shared helpers for reading configuration from .env files."""

from __future__ import annotations

import logging
import os
from typing import Iterable, Mapping, MutableMapping

# Counted in bytes. Longer physical lines are read as several chunks, each
# parsed on its own.
MAX_LINE_LENGTH = 255


class TunnelLauncherError(Exception):
    """Base exception for launcher failures."""


class ConfigOpenError(TunnelLauncherError):
    """Raised when the .env file cannot be opened for reading."""


class MissingVariableError(TunnelLauncherError):
    """Raised when a required environment variable is not set."""


def parse_env_line(line: str) -> tuple[str, str] | None:
    """Return the ``(key, value)`` pair for one line, or ``None`` to skip it.

    Only the literal space character is trimmed; tabs are part of the data.
    """

    if line.startswith("#") or line == "\n":
        return None

    key, sep, value = line.rstrip("\n").partition("=")
    if not sep or not key or not value:
        return None

    key = key.strip(" ")
    if not key:
        return None
    return key, value.strip(" ")


def load_env_file(
    path: str = ".env",
    environ: MutableMapping[str, str] | None = None,
) -> MutableMapping[str, str]:
    """Apply the entries of ``path`` on top of ``environ`` and return it.

    ``environ`` defaults to a copy of the inherited process environment, so
    file entries override inherited ones without touching ``os.environ``.
    """

    if environ is None:
        environ = dict(os.environ)

    try:
        handle = open(path, "rb")
    except OSError as exc:
        raise ConfigOpenError(
            f"Failed to open {path} file: {exc.strerror or exc}"
        ) from exc

    applied = 0
    with handle:
        while True:
            chunk = handle.readline(MAX_LINE_LENGTH)
            if not chunk:
                break
            # Undecodable bytes round-trip the same way os.environ stores them.
            entry = parse_env_line(os.fsdecode(chunk))
            if entry is None:
                continue
            key, value = entry
            environ[key] = value
            applied += 1

    logging.debug("Applied %d entries from %s", applied, path)
    return environ


def get_required_env(
    names: Iterable[str],
    environ: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Look up every name in ``names``; an empty string counts as set."""

    if environ is None:
        environ = os.environ

    values: dict[str, str] = {}
    for name in names:
        value = environ.get(name)
        if value is None:
            raise MissingVariableError("Required environment variables are not set.")
        values[name] = value
    return values


__all__ = [
    "MAX_LINE_LENGTH",
    "TunnelLauncherError",
    "ConfigOpenError",
    "MissingVariableError",
    "parse_env_line",
    "load_env_file",
    "get_required_env",
]
