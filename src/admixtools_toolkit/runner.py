# SPDX-License-Identifier: Apache-2.0
"""
Run one ADMIXTOOLS program:  <program> -p <par_file> > <log_file>
"""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Optional

from admixtools_toolkit.errors import ProcessError
from admixtools_toolkit.resources.resolver import resolve_timeout, resolve_tool

logger = logging.getLogger(__name__)


def run_program(
    program: str,
    par_file: str | os.PathLike,
    log_file: str | os.PathLike,
    timeout: Optional[float] = None,
) -> None:
    """
    Raises ProcessError if the program is not found, exits non-zero,
    exceeds `timeout` seconds or leaves an empty log.
    Generated files are left in place.
    """
    exe = resolve_tool(program)
    if exe is None:
        raise ProcessError(
            program,
            "not found in $ADMIXTOOLS_BIN or PATH. Install ADMIXTOOLS and make sure "
            f"'{program}' is available.",
        )

    cmd = [exe, "-p", str(par_file)]
    timeout = resolve_timeout(timeout)
    logger.info("[%s] Running: %s > %s", program, " ".join(cmd), log_file)

    with open(log_file, "w", encoding="utf-8") as out:
        try:
            p = subprocess.run(
                cmd,
                stdout=out,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=timeout,
                shell=False,
            )
        except subprocess.TimeoutExpired as e:
            stderr = e.stderr.decode("utf-8", "replace") if isinstance(e.stderr, bytes) else (e.stderr or "")
            raise ProcessError(program, f"timed out after {timeout} s", None, stderr) from e
        except OSError as e:
            raise ProcessError(program, f"could not be started: {e}") from e

    if p.returncode != 0:
        raise ProcessError(
            program,
            f"exited with status {p.returncode} (log: {log_file})",
            p.returncode,
            p.stderr,
        )

    if Path(log_file).stat().st_size == 0:
        raise ProcessError(program, f"produced no output (log: {log_file})", p.returncode, p.stderr)

    if p.stderr.strip():
        logger.debug("[%s] stderr:\n%s", program, p.stderr.strip())
