# SPDX-License-Identifier: Apache-2.0
"""
qpAdm: ancestry proportions of target populations.

Each target is fitted separately, as a mixture of `sources` with `outgroups`
as the right populations, and the per-target tables are stacked in the order
the targets were given.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Sequence

import pandas as pd

from admixtools_toolkit.data import EigenstratData, Labels, as_labels, check_presence
from admixtools_toolkit.errors import ValidationError
from admixtools_toolkit.files import (
    check_disjoint,
    get_files,
    write_leftright_pop_files,
    write_par_file,
)
from admixtools_toolkit.parsers import parse_qpadm, read_log
from admixtools_toolkit.runner import run_program

logger = logging.getLogger(__name__)


def _qpadm_one(
    data: EigenstratData,
    target: str,
    sources: Sequence[str],
    outgroups: Sequence[str],
    outdir: Optional[str],
    timeout: Optional[float],
) -> Dict[str, pd.DataFrame]:
    files = get_files(outdir, "qpAdm", leftright=True)
    write_leftright_pop_files([target] + list(sources), outgroups, files)
    write_par_file(files, data)

    run_program("qpAdm", files["par_file"], files["log_file"], timeout=timeout)

    return parse_qpadm(read_log(files["log_file"]))


def _stack(tables, targets) -> pd.DataFrame:
    tagged = []
    for target, df in zip(targets, tables):
        df = df.copy()
        if "target" in df.columns:
            df["target"] = target
        else:
            df.insert(0, "target", target)
        tagged.append(df)
    return pd.concat(tagged, ignore_index=True)


def qpAdm(
    data: EigenstratData,
    target: Labels,
    sources: Sequence[str],
    outgroups: Sequence[str],
    details: bool = True,
    outdir: Optional[str] = None,
    timeout: Optional[float] = None,
):
    """
    Parameters
    ----------
    target : str or list of str
        Target populations, each evaluated in its own qpAdm run.
    sources : list of str
        Source populations related to the true ancestors.
    outgroups : list of str
        Outgroup ('right') populations.
    details : bool
        Return {"proportions", "ranks", "subsets"}; otherwise only the
        proportions table.
    """
    targets, sources, outgroups = as_labels(target), as_labels(sources), as_labels(outgroups)
    check_presence(targets + sources + outgroups, data)
    for t in targets:
        if t in sources:
            raise ValidationError(f"Target population '{t}' is also listed as a source")
        check_disjoint([t] + sources, outgroups)

    results = []
    for t in targets:
        logger.info("[qpAdm] target %s (%d/%d)", t, len(results) + 1, len(targets))
        results.append(_qpadm_one(data, t, sources, outgroups, outdir, timeout))

    proportions = _stack([r["proportions"] for r in results], targets)
    if not details:
        return proportions

    return {
        "proportions": proportions,
        "ranks": _stack([r["ranks"] for r in results], targets),
        "subsets": _stack([r["subsets"] for r in results], targets),
    }
