# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import os
import tempfile
from pathlib import Path
from shutil import which
from typing import Optional

BIN_ENV = "ADMIXTOOLS_BIN"
OUTDIR_ENV = "ADMIXTOOLS_OUTDIR"
TIMEOUT_ENV = "ADMIXTOOLS_TIMEOUT"

PROGRAMS = ("qpDstat", "qpF4ratio", "qp3Pop", "qpAdm", "qpWave")


def default_outdir() -> Path:
    """
    Directory used for generated files when a call does not pass one.

    Honours $ADMIXTOOLS_OUTDIR, otherwise <system temp>/admixtools-toolkit.
    """
    env = os.environ.get(OUTDIR_ENV)
    if env:
        return Path(env).expanduser().resolve()
    return Path(tempfile.gettempdir()).resolve() / "admixtools-toolkit"


def resolve_outdir(outdir: str | os.PathLike | None) -> Path:
    """Absolute output directory for one call, created if missing."""
    path = default_outdir() if outdir is None else Path(outdir).expanduser().resolve()
    path.mkdir(parents=True, exist_ok=True)
    return path


def resolve_timeout(timeout: Optional[float]) -> Optional[float]:
    if timeout is not None:
        return float(timeout)
    env = os.environ.get(TIMEOUT_ENV)
    if not env:
        return None
    try:
        return float(env)
    except ValueError:
        raise ValueError(f"${TIMEOUT_ENV} must be a number of seconds, got '{env}'")


def resolve_tool(name: str) -> Optional[str]:
    """
    Locate an ADMIXTOOLS executable.

    $ADMIXTOOLS_BIN is searched first, then PATH. Returns None if not found.
    """
    bin_dir = os.environ.get(BIN_ENV)
    if bin_dir:
        found = which(name, path=str(Path(bin_dir).expanduser()))
        if found:
            return found
    return which(name)
