# SPDX-License-Identifier: Apache-2.0
"""
f3 statistics with qp3Pop: f3(C; A, B), C being the putative admixed target.
"""

from __future__ import annotations

import itertools
from typing import Optional

import pandas as pd

from admixtools_toolkit.data import EigenstratData, Labels, as_labels, check_presence
from admixtools_toolkit.files import append_par_options, get_files, write_par_file, write_pop_file
from admixtools_toolkit.parsers import parse_qp3pop, read_log
from admixtools_toolkit.runner import run_program


def f3(
    data: EigenstratData,
    A: Labels,
    B: Labels,
    C: Labels,
    outdir: Optional[str] = None,
    inbreed: bool = False,
    timeout: Optional[float] = None,
) -> pd.DataFrame:
    """
    inbreed : bool
        Set 'inbreed: YES' (see README.3PopTest in ADMIXTOOLS); needed when
        the target is made of pseudo-haploid samples.
    """
    pops = [as_labels(p) for p in (A, B, C)]
    check_presence(itertools.chain(*pops), data)

    files = get_files(outdir, "qp3Pop")
    write_pop_file((" ".join(t) for t in itertools.product(*pops)), files["pop_file"])
    write_par_file(files, data)

    if inbreed:
        append_par_options(files["par_file"], {"inbreed": "YES"})

    run_program("qp3Pop", files["par_file"], files["log_file"], timeout=timeout)

    return parse_qp3pop(read_log(files["log_file"]))
