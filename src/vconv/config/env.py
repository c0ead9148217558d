"""Typed reads of VCONV_* environment variables.

A variable that fails to parse is logged and treated as unset, so a stray
value in the environment never stops vconv from starting. Tests inject a
plain dict instead of touching os.environ.
"""

from __future__ import annotations

import logging
import math
import os
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _finite_float(raw: str) -> float:
    value = float(raw)
    if not math.isfinite(value):
        raise ValueError(raw)
    return value


class EnvReader:
    """Reads VCONV_* variables from os.environ or an injected mapping.

    Example:
        reader = EnvReader(env={"VCONV_CANCEL_GRACE_SECONDS": "5"})
        reader.get_float("VCONV_CANCEL_GRACE_SECONDS")  # 5.0
    """

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        self._env: Mapping[str, str] = os.environ if env is None else env

    def _convert(self, var: str, convert: Callable[[str], T], kind: str) -> T | None:
        raw = self._env.get(var)
        if raw is None:
            return None
        try:
            return convert(raw)
        except ValueError:
            logger.warning("Ignoring %s=%r: not %s", var, raw, kind)
            return None

    def get_str(self, var: str) -> str | None:
        return self._env.get(var)

    def get_int(self, var: str) -> int | None:
        return self._convert(var, int, "an integer")

    def get_float(self, var: str) -> float | None:
        """Read a finite number; "nan" and "inf" count as unparseable."""
        return self._convert(var, _finite_float, "a finite number")

    def get_path(self, var: str, *, must_exist: bool = True) -> Path | None:
        """Read a tilde-expanded path.

        With must_exist, a path that does not exist is logged and ignored.
        Log files are read with must_exist=False since vconv creates them.
        """
        raw = self._env.get(var)
        if not raw:
            return None
        path = Path(raw).expanduser()
        if must_exist and not path.exists():
            logger.warning("Ignoring %s=%s: path does not exist", var, raw)
            return None
        return path
