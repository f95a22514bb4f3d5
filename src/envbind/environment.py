"""Ambient key/value environment: lookup functions and ``.env`` file loading."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

logger = logging.getLogger(__name__)

Lookup = Callable[[str], str | None]


def environ_lookup(key: str) -> str | None:
    """Read ``key`` from the process environment."""
    return os.environ.get(key)


def mapping_lookup(mapping: Mapping[str, str]) -> Lookup:
    """Return a lookup over a snapshot of ``mapping``."""

    snapshot = dict(mapping)

    def lookup(key: str) -> str | None:
        return snapshot.get(key)

    return lookup


def load_env_files(*paths: str | Path, override: bool = False) -> list[Path]:
    """Populate ``os.environ`` from ``.env`` files before a parse call.

    Every existing file is loaded in the order given. Without ``override`` a
    variable that is already set (by the process or an earlier file) keeps its
    value. With no paths, the nearest ``.env`` from the working directory
    upwards is used. Returns the files that were loaded.
    """

    candidates: list[Path]
    if paths:
        candidates = [Path(path).expanduser() for path in paths]
    else:
        discovered = find_dotenv(usecwd=True)
        candidates = [Path(discovered)] if discovered else []

    loaded: list[Path] = []
    for candidate in candidates:
        if not candidate.is_file():
            logger.debug("skipping missing env file %s", candidate, extra={"path": str(candidate)})
            continue
        load_dotenv(candidate, override=override)
        loaded.append(candidate)
        logger.debug("loaded env file %s", candidate, extra={"path": str(candidate)})
    return loaded


__all__ = [
    "Lookup",
    "environ_lookup",
    "load_env_files",
    "mapping_lookup",
]
