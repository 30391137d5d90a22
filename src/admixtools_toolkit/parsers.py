# SPDX-License-Identifier: Apache-2.0
"""
Parse ADMIXTOOLS log files into DataFrames.

The layout of these logs is not a documented format; everything that depends
on it lives in this module. Each parser looks for the marker that precedes
its result block and raises ParseError if it is missing, since ADMIXTOOLS
often exits 0 after printing an error message instead of results.

Markers used:
  qpDstat / qp3Pop / qpF4ratio   lines starting with 'result:'
  qpAdm    'left pops:', 'best coefficients:', 'std. errors:', 'f4rank:', 'fixed pat'
  qpWave   'f4rank:', then 'B:' / 'A:' matrix blocks
"""

from __future__ import annotations

import os
import re
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from admixtools_toolkit.errors import ParseError

RANK_COLUMNS = ["rank", "dof", "chisq", "tail", "dofdiff", "chisqdiff", "taildiff"]

RANK_RE = re.compile(
    r"f4rank:\s*(?P<rank>\d+)\s+dof:\s*(?P<dof>-?\d+)\s+chisq:\s*(?P<chisq>\S+)"
    r"\s+tail:\s*(?P<tail>\S+)"
    r"(?:\s+dofdiff:\s*(?P<dofdiff>-?\d+)\s+chisqdiff:\s*(?P<chisqdiff>\S+)"
    r"\s+taildiff:\s*(?P<taildiff>\S+))?"
)


def read_log(path: str | os.PathLike) -> str:
    with open(path, encoding="utf-8", errors="replace") as fh:
        return fh.read()


# ------------------------
# Helpers
# ------------------------
def _float(tok: str, line: str) -> float:
    try:
        return float(tok)
    except ValueError:
        raise ParseError(f"Expected a number, got '{tok}' in line: {line.strip()}")


def _int(tok: str, line: str) -> int:
    return int(round(_float(tok, line)))


def _result_lines(text: str, program: str) -> List[str]:
    lines = [
        ln.strip()[len("result:"):]
        for ln in text.splitlines()
        if ln.strip().startswith("result:")
    ]
    if not lines:
        raise ParseError(f"No 'result:' lines found in {program} output")
    return lines


def _marker_index(lines: List[str], marker: str, program: str) -> int:
    for i, ln in enumerate(lines):
        if marker in ln:
            return i
    raise ParseError(f"Marker '{marker}' not found in {program} output")


def _numbers_after(lines: List[str], marker: str, program: str) -> List[float]:
    ln = lines[_marker_index(lines, marker, program)]
    rest = ln.split(marker, 1)[1]
    return [_float(t, ln) for t in rest.split()]


# ------------------------
# D / f4 / f3 / f4-ratio
# ------------------------
def parse_qpdstat(text: str, f4mode: bool = False) -> pd.DataFrame:
    """
    result:  W  X  Y  Z  stat  stderr  Z  BABA  ABBA  nsnps
    (stat is D, or f4 when the run used 'f4mode: YES')

    A 'best' token after Z is dropped; 'nodata' quadruples are skipped.
    """
    stat = "f4" if f4mode else "D"
    rows = []
    for body in _result_lines(text, "qpDstat"):
        tok = [t for t in body.split() if t != "best"]
        if "nodata" in tok:
            continue
        if len(tok) < 10:
            raise ParseError(f"Truncated qpDstat result line: {body.strip()}")
        rows.append(
            tok[:4]
            + [_float(t, body) for t in tok[4:7]]
            + [_int(t, body) for t in tok[7:10]]
        )
    if not rows:
        raise ParseError("qpDstat reported 'nodata' for every quadruple")
    return pd.DataFrame(rows, columns=["W", "X", "Y", "Z", stat, "stderr", "Zscore", "BABA", "ABBA", "nsnps"])


def parse_qp3pop(text: str) -> pd.DataFrame:
    """result:  A  B  C  f3  stderr  Z  nsnps"""
    rows = []
    for body in _result_lines(text, "qp3Pop"):
        tok = body.split()
        if len(tok) < 7:
            raise ParseError(f"Truncated qp3Pop result line: {body.strip()}")
        rows.append(tok[:3] + [_float(t, body) for t in tok[3:6]] + [_int(tok[6], body)])
    return pd.DataFrame(rows, columns=["A", "B", "C", "f3", "stderr", "Zscore", "nsnps"])


def parse_qpf4ratio(text: str) -> pd.DataFrame:
    """
    result:  A O : X C :: A O : B C   alpha  stderr  Z

    alpha = f4(A, O; X, C) / f4(A, O; B, C)
    """
    rows = []
    for body in _result_lines(text, "qpF4ratio"):
        tok = re.sub(r":+", " ", body).split()
        if len(tok) < 11:
            raise ParseError(f"Truncated qpF4ratio result line: {body.strip()}")
        A, O, X, C, _, _, B, _ = tok[:8]
        rows.append([A, B, X, C, O] + [_float(t, body) for t in tok[8:11]])
    return pd.DataFrame(rows, columns=["A", "B", "X", "C", "O", "alpha", "stderr", "Zscore"])


# ------------------------
# qpAdm / qpWave
# ------------------------
def _left_pops(lines: List[str], program: str) -> List[str]:
    start = _marker_index(lines, "left pops:", program) + 1
    pops = []
    for ln in lines[start:]:
        if not ln.strip() or ln.strip().startswith("right pops:"):
            break
        pops.append(ln.strip())
    if not pops:
        raise ParseError(f"Empty 'left pops:' block in {program} output")
    return pops


def _ranks(lines: List[str], program: str) -> pd.DataFrame:
    rows = []
    for ln in lines:
        m = RANK_RE.search(ln)
        if m is None:
            continue
        g = m.groupdict()
        rows.append([
            int(g["rank"]),
            int(g["dof"]),
            _float(g["chisq"], ln),
            _float(g["tail"], ln),
            int(g["dofdiff"]) if g["dofdiff"] is not None else pd.NA,
            _float(g["chisqdiff"], ln) if g["chisqdiff"] is not None else np.nan,
            _float(g["taildiff"], ln) if g["taildiff"] is not None else np.nan,
        ])
    if not rows:
        raise ParseError(f"No 'f4rank:' lines found in {program} output")
    df = pd.DataFrame(rows, columns=RANK_COLUMNS)
    df["dofdiff"] = df["dofdiff"].astype("Int64")
    return df


def _subsets(lines: List[str], sources: List[str]) -> pd.DataFrame:
    start = _marker_index(lines, "fixed pat", "qpAdm") + 1
    n = len(sources)
    rows = []
    for ln in lines[start:]:
        tok = ln.split()
        if not tok or ln.strip().startswith("best pat:"):
            break
        if len(tok) < 5 + n:
            raise ParseError(f"Truncated qpAdm subset line: {ln.strip()}")
        rows.append(
            [tok[0], _int(tok[1], ln), _int(tok[2], ln), _float(tok[3], ln), _float(tok[4], ln)]
            + [_float(t, ln) for t in tok[5:5 + n]]
            + ["infeasible" not in tok[5 + n:]]
        )
    return pd.DataFrame(rows, columns=["pattern", "wt", "dof", "chisq", "tail"] + sources + ["feasible"])


def _first_int(lines: List[str], pattern: str) -> Optional[int]:
    rx = re.compile(pattern)
    for ln in lines:
        m = rx.search(ln)
        if m:
            return int(m.group(1))
    return None


def parse_qpadm(text: str) -> Dict[str, pd.DataFrame]:
    """
    Split a qpAdm log into three tables:

    proportions  target, one column per source, stderr_<source>,
                 nsnps_used, nsnps_target, pvalue
    ranks        rank test of the left-population f4 matrix
    subsets      fit of every sub-model ('fixed pat' table)
    """
    lines = text.splitlines()
    left = _left_pops(lines, "qpAdm")
    target, sources = left[0], left[1:]

    coefs = _numbers_after(lines, "best coefficients:", "qpAdm")
    errors = _numbers_after(lines, "std. errors:", "qpAdm")
    if len(coefs) != len(sources) or len(errors) != len(sources):
        raise ParseError(
            f"qpAdm reported {len(coefs)} coefficients / {len(errors)} std. errors "
            f"for {len(sources)} sources"
        )

    ranks = _ranks(lines, "qpAdm")
    subsets = _subsets(lines, sources)

    full = subsets[subsets["pattern"].str.fullmatch(r"0+")]
    if not full.empty:
        pvalue = float(full["tail"].iloc[0])
    else:
        top = ranks[ranks["rank"] == len(sources) - 1]
        pvalue = float(top["tail"].iloc[0]) if not top.empty else np.nan

    nsnps_used = _first_int(lines, r"numsnps used:\s*(\d+)")
    if nsnps_used is None:
        nsnps_used = _first_int(lines, r"^\s*snps:\s*(\d+)")
    nsnps_target = _first_int(lines, r"coverage:\s+" + re.escape(target) + r"\s+(\d+)")

    row = {"target": target}
    row.update(dict(zip(sources, coefs)))
    row.update({f"stderr_{s}": e for s, e in zip(sources, errors)})
    row["nsnps_used"] = nsnps_used
    row["nsnps_target"] = nsnps_target
    row["pvalue"] = pvalue

    proportions = pd.DataFrame([row])
    for col in ("nsnps_used", "nsnps_target"):
        proportions[col] = proportions[col].astype("Int64")

    return {"proportions": proportions, "ranks": ranks, "subsets": subsets}


def _matrix(lines: List[str], start: int) -> pd.DataFrame:
    names, values = [], []
    for ln in lines[start:]:
        tok = ln.split()
        if len(tok) < 2:
            break
        try:
            nums = [float(t) for t in tok[1:]]
        except ValueError:
            break
        names.append(tok[0])
        values.append(nums)
    if not values:
        raise ParseError(f"Empty matrix block after line {start}")
    return pd.DataFrame(values, index=pd.Index(names, name="population"))


def parse_qpwave(text: str, details: bool = False):
    """
    Rank test table; with details=True also the A and B matrices that
    qpWave prints after each 'f4rank:' line, as {"ranks", "A", "B"} where
    A and B map rank -> DataFrame (first row is the 'scale' row).
    """
    lines = text.splitlines()
    ranks = _ranks(lines, "qpWave")
    if not details:
        return ranks

    mats: Dict[str, Dict[int, pd.DataFrame]] = {"A": {}, "B": {}}
    rank = None
    for i, ln in enumerate(lines):
        m = RANK_RE.search(ln)
        if m:
            rank = int(m.group("rank"))
            continue
        key = ln.strip().rstrip(":")
        if ln.strip() in ("A:", "B:"):
            if rank is None:
                raise ParseError(f"qpWave matrix '{ln.strip()}' appears before any f4rank line")
            mats[key][rank] = _matrix(lines, i + 1)

    if not mats["A"] and not mats["B"]:
        raise ParseError("No 'A:'/'B:' matrix blocks found in qpWave output")

    return {"ranks": ranks, "A": mats["A"], "B": mats["B"]}
