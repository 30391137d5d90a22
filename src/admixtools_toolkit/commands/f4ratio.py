# SPDX-License-Identifier: Apache-2.0
"""
f4-ratio (admixture proportion) estimates with qpF4ratio.

alpha = f4(A, O; X, C) / f4(A, O; B, C)

X may be a list of populations; one ratio is estimated for each.
"""

from __future__ import annotations

import itertools
from typing import Optional

import pandas as pd

from admixtools_toolkit.data import EigenstratData, Labels, as_labels, check_presence
from admixtools_toolkit.files import get_files, write_par_file, write_pop_file
from admixtools_toolkit.parsers import parse_qpf4ratio, read_log
from admixtools_toolkit.runner import run_program


def f4ratio(
    data: EigenstratData,
    X: Labels,
    A: Labels,
    B: Labels,
    C: Labels,
    O: Labels,
    outdir: Optional[str] = None,
    timeout: Optional[float] = None,
) -> pd.DataFrame:
    pops = [as_labels(p) for p in (X, A, B, C, O)]
    check_presence(itertools.chain(*pops), data)

    files = get_files(outdir, "qpF4ratio")
    write_pop_file(
        (f"{a} {o} : {x} {c} :: {a} {o} : {b} {c}" for x, a, b, c, o in itertools.product(*pops)),
        files["pop_file"],
    )
    write_par_file(files, data)

    run_program("qpF4ratio", files["par_file"], files["log_file"], timeout=timeout)

    return parse_qpf4ratio(read_log(files["log_file"]))
