# SPDX-License-Identifier: Apache-2.0
"""
D and f4 statistics with qpDstat.

Each of W, X, Y, Z may be a single population or a list; every combination
is tested (one quadruple per line of the population file).
"""

from __future__ import annotations

import itertools
from typing import Optional

import pandas as pd

from admixtools_toolkit.data import EigenstratData, Labels, as_labels, check_presence
from admixtools_toolkit.files import append_par_options, get_files, write_par_file, write_pop_file
from admixtools_toolkit.parsers import parse_qpdstat, read_log
from admixtools_toolkit.runner import run_program


def d(
    data: EigenstratData,
    W: Labels,
    X: Labels,
    Y: Labels,
    Z: Labels,
    outdir: Optional[str] = None,
    f4mode: bool = False,
    timeout: Optional[float] = None,
) -> pd.DataFrame:
    """
    D(W, X; Y, Z), or f4(W, X; Y, Z) with f4mode=True.

    Returns one row per quadruple: W X Y Z D|f4 stderr Zscore BABA ABBA nsnps.
    """
    pops = [as_labels(p) for p in (W, X, Y, Z)]
    check_presence(itertools.chain(*pops), data)

    files = get_files(outdir, "qpDstat")
    write_pop_file((" ".join(q) for q in itertools.product(*pops)), files["pop_file"])
    write_par_file(files, data)

    options = {}
    if f4mode:
        options["f4mode"] = "YES"
    # standard errors are not printed by default
    options["printsd"] = "YES"
    append_par_options(files["par_file"], options)

    run_program("qpDstat", files["par_file"], files["log_file"], timeout=timeout)

    return parse_qpdstat(read_log(files["log_file"]), f4mode=f4mode)


def f4(
    data: EigenstratData,
    W: Labels,
    X: Labels,
    Y: Labels,
    Z: Labels,
    outdir: Optional[str] = None,
    timeout: Optional[float] = None,
) -> pd.DataFrame:
    return d(data, W, X, Y, Z, outdir=outdir, f4mode=True, timeout=timeout)
