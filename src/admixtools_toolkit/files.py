# SPDX-License-Identifier: Apache-2.0
"""
Configuration files read by ADMIXTOOLS programs.

Every call gets its own set of files named <program>__<random int>.{pop,par,log}
(or .popleft/.popright for qpAdm and qpWave) inside the output directory.
"""

from __future__ import annotations

import logging
import os
import random
from pathlib import Path
from typing import Dict, Iterable, Mapping, Sequence

from admixtools_toolkit.data import EigenstratData
from admixtools_toolkit.errors import ValidationError
from admixtools_toolkit.resources.resolver import resolve_outdir

logger = logging.getLogger(__name__)

MAX_PREFIX = 2**31 - 1

# parameter-file key for each population-file role
POP_KEYS = {
    "pop_file": "popfilename",
    "popleft": "popleft",
    "popright": "popright",
}

_rng = random.SystemRandom()


class RunFiles(dict):
    """Role -> absolute path for one program run (pop files, par_file, log_file)."""

    @property
    def pop_roles(self) -> list:
        return [role for role in POP_KEYS if role in self]


def get_files(
    outdir: str | os.PathLike | None,
    program: str,
    leftright: bool = False,
) -> RunFiles:
    """
    Allocate (but do not create) the files for one run of `program`.

    The prefix is redrawn until none of its files exist yet, so repeated
    calls into the same directory never share paths.
    """
    directory = resolve_outdir(outdir)
    pop_suffixes = {"popleft": ".popleft", "popright": ".popright"} if leftright else {"pop_file": ".pop"}

    while True:
        prefix = f"{program}__{_rng.randint(0, MAX_PREFIX)}"
        files = RunFiles(
            (role, str(directory / f"{prefix}{suffix}"))
            for role, suffix in {**pop_suffixes, "par_file": ".par", "log_file": ".log"}.items()
        )
        if not any(Path(p).exists() for p in files.values()):
            break

    logger.debug("Allocated %s files: %s", program, dict(files))
    return files


def write_pop_file(records: Iterable[str], path: str | os.PathLike) -> None:
    """One record per line: a population label or a space-joined combination."""
    with open(path, "w", encoding="utf-8") as fh:
        for rec in records:
            fh.write(f"{rec}\n")


def check_disjoint(left: Sequence[str], right: Sequence[str]) -> None:
    overlap = [p for p in dict.fromkeys(left) if p in set(right)]
    if overlap:
        raise ValidationError(
            "Duplicated populations in both left and right population sets not allowed: "
            + " ".join(overlap)
        )


def write_leftright_pop_files(
    left: Sequence[str],
    right: Sequence[str],
    files: Mapping[str, str],
) -> None:
    check_disjoint(left, right)
    write_pop_file(left, files["popleft"])
    write_pop_file(right, files["popright"])


def write_par_file(files: RunFiles, data: EigenstratData) -> None:
    """Write the base parameter block: dataset paths, then population files."""
    lines = [
        f"genotypename: {data.geno}",
        f"snpname: {data.snp}",
        f"indivname: {data.ind}",
    ]
    if data.exclude is not None:
        lines.append(f"badsnpname: {data.exclude}")
    for role in files.pop_roles:
        lines.append(f"{POP_KEYS[role]}: {files[role]}")

    with open(files["par_file"], "w", encoding="utf-8") as fh:
        fh.write("\n".join(lines) + "\n")


def _par_keys(path: str | os.PathLike) -> set:
    with open(path, encoding="utf-8") as fh:
        return {line.split(":", 1)[0].strip() for line in fh if ":" in line}


def append_par_options(path: str | os.PathLike, options: Dict[str, object]) -> None:
    """
    Append `key: value` lines after the base block.

    ADMIXTOOLS decides what a repeated key means, so duplicates are refused.
    """
    if not options:
        return
    present = _par_keys(path)
    dup = [k for k in options if k in present]
    if dup:
        raise ValidationError(f"Parameter(s) already set in {path}: {', '.join(dup)}")

    with open(path, "a", encoding="utf-8") as fh:
        for key, value in options.items():
            fh.write(f"{key}: {value}\n")
