# SPDX-License-Identifier: Apache-2.0
"""
qpWave: lowest number of ancestry streams relating 'left' to 'right'.

If the left populations are mixtures of N sources related differently to the
right populations, the matrix f4(left_i, left_0; right_j, right_0) has rank
N - 1. qpWave tests each rank in turn.
"""

from __future__ import annotations

from typing import Optional, Sequence

from admixtools_toolkit.data import EigenstratData, as_labels, check_presence
from admixtools_toolkit.files import (
    append_par_options,
    check_disjoint,
    get_files,
    write_leftright_pop_files,
    write_par_file,
)
from admixtools_toolkit.parsers import parse_qpwave, read_log
from admixtools_toolkit.runner import run_program


def qpWave(
    data: EigenstratData,
    left: Sequence[str],
    right: Sequence[str],
    maxrank: Optional[int] = None,
    details: bool = False,
    outdir: Optional[str] = None,
    timeout: Optional[float] = None,
):
    """
    Returns the rank-test table (rank dof chisq tail dofdiff chisqdiff taildiff),
    or with details=True a dict {"ranks", "A", "B"} where A and B map each
    rank to the matrix qpWave fitted for it.
    """
    left, right = as_labels(left), as_labels(right)
    check_presence(left + right, data)
    check_disjoint(left, right)

    files = get_files(outdir, "qpWave", leftright=True)
    write_leftright_pop_files(left, right, files)
    write_par_file(files, data)

    if maxrank is not None:
        append_par_options(files["par_file"], {"maxrank": int(maxrank)})

    run_program("qpWave", files["par_file"], files["log_file"], timeout=timeout)

    return parse_qpwave(read_log(files["log_file"]), details=details)
