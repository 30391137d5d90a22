# SPDX-License-Identifier: Apache-2.0
"""
EIGENSTRAT dataset handles.

A dataset is three co-located files:
  <prefix>.geno   genotype matrix (passed to ADMIXTOOLS untouched)
  <prefix>.snp    id chrom genetic_pos pos [ref alt]
  <prefix>.ind    id sex population_label

Only the .ind and .snp files are ever read here: the .ind file to learn
which population labels exist, the .snp file for SNP counting/filtering.
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Union

import pandas as pd

from admixtools_toolkit.errors import ValidationError
from admixtools_toolkit.resources.resolver import resolve_outdir

IND_COLUMNS = ["id", "sex", "label"]
SNP_COLUMNS = ["id", "chrom", "gen", "pos", "ref", "alt"]

TRANSITIONS = {("C", "T"), ("T", "C"), ("G", "A"), ("A", "G")}

Labels = Union[str, Sequence[str]]


@dataclass(frozen=True)
class EigenstratData:
    """Read-only reference to an EIGENSTRAT dataset and its population labels."""

    geno: str
    snp: str
    ind: str
    labels: FrozenSet[str]
    exclude: Optional[str] = None  # written as 'badsnpname' when set

    def __contains__(self, label: str) -> bool:
        return label in self.labels


def as_labels(pops: Labels) -> List[str]:
    """Accept a single label or a sequence of labels."""
    if isinstance(pops, str):
        return [pops]
    return [str(p) for p in pops]


def read_ind(path: str | os.PathLike) -> pd.DataFrame:
    try:
        df = pd.read_csv(path, sep=r"\s+", header=None, dtype=str, comment="#")
    except pd.errors.EmptyDataError:
        raise ValidationError(f"Empty .ind file: {path}")
    if df.shape[1] < 3:
        raise ValidationError(
            f".ind file {path} must have 3 columns (id, sex, label); found {df.shape[1]}"
        )
    df = df.iloc[:, :3]
    df.columns = IND_COLUMNS
    return df


def read_snp(path: str | os.PathLike) -> pd.DataFrame:
    try:
        df = pd.read_csv(path, sep=r"\s+", header=None, dtype=str, comment="#")
    except pd.errors.EmptyDataError:
        return pd.DataFrame(columns=SNP_COLUMNS)
    if df.shape[1] < 4:
        raise ValidationError(
            f".snp file {path} must have at least 4 columns (id, chrom, gen, pos)"
        )
    df = df.iloc[:, : len(SNP_COLUMNS)]
    df.columns = SNP_COLUMNS[: df.shape[1]]
    return df


def eigenstrat(
    prefix: str | os.PathLike | None = None,
    ind: str | os.PathLike | None = None,
    snp: str | os.PathLike | None = None,
    geno: str | os.PathLike | None = None,
    exclude: str | os.PathLike | None = None,
) -> EigenstratData:
    """
    Load a dataset handle.

    Explicit ind/snp/geno paths take precedence over <prefix>.ind/.snp/.geno.
    """
    paths = {}
    for key, explicit in (("geno", geno), ("snp", snp), ("ind", ind)):
        if explicit is not None:
            paths[key] = Path(explicit)
        elif prefix is not None:
            paths[key] = Path(f"{prefix}.{key}")
        else:
            raise ValidationError(f"No prefix given and no explicit .{key} path")

    for key, pth in paths.items():
        if not pth.exists():
            raise FileNotFoundError(f"{key} file not found: {pth}")
    if exclude is not None and not Path(exclude).exists():
        raise FileNotFoundError(f"exclude file not found: {exclude}")

    ind_df = read_ind(paths["ind"])

    return EigenstratData(
        geno=str(paths["geno"].resolve()),
        snp=str(paths["snp"].resolve()),
        ind=str(paths["ind"].resolve()),
        labels=frozenset(ind_df["label"]),
        exclude=str(Path(exclude).resolve()) if exclude is not None else None,
    )


def check_presence(labels: Iterable[str], data: EigenstratData) -> None:
    """Fail if any label is not a population in the dataset; report all of them."""
    missing = []
    for label in labels:
        if label not in data.labels and label not in missing:
            missing.append(label)
    if missing:
        raise ValidationError(
            "The following populations are not present in the dataset: "
            + ", ".join(missing)
        )


def _new_file(outfile: str | os.PathLike | None, stem: str, suffix: str) -> Path:
    if outfile is not None:
        path = Path(outfile).resolve()
        path.parent.mkdir(parents=True, exist_ok=True)
        return path
    fd, name = tempfile.mkstemp(prefix=f"{stem}__", suffix=suffix, dir=resolve_outdir(None))
    os.close(fd)
    return Path(name)


def relabel(
    data: EigenstratData,
    labels: Dict[str, Labels],
    outfile: str | os.PathLike | None = None,
) -> EigenstratData:
    """
    Merge populations under new labels.

    `labels` maps a new label to the old label(s) it replaces, e.g.
    {"Europe": ["French", "Sardinian"]}. A modified .ind file is written
    and a new handle pointing to it is returned; the original is untouched.
    """
    mapping: Dict[str, str] = {}
    for new, olds in labels.items():
        for old in as_labels(olds):
            if old in mapping and mapping[old] != new:
                raise ValidationError(
                    f"Population '{old}' assigned to both '{mapping[old]}' and '{new}'"
                )
            mapping[old] = new
    check_presence(mapping, data)

    ind_df = read_ind(data.ind)
    ind_df["label"] = ind_df["label"].replace(mapping)

    path = _new_file(outfile, "relabel", ".ind")
    with open(path, "w", encoding="utf-8") as fh:
        for row in ind_df.itertuples(index=False):
            fh.write(f"{row.id}\t{row.sex}\t{row.label}\n")

    return replace(data, ind=str(path), labels=frozenset(ind_df["label"]))


def _excluded_ids(data: EigenstratData) -> set:
    if data.exclude is None:
        return set()
    return set(read_snp(data.exclude)["id"])


def transversions_only(
    data: EigenstratData,
    outfile: str | os.PathLike | None = None,
) -> EigenstratData:
    """
    Exclude transition SNPs (C<->T, G<->A).

    Writes an exclusion file in .snp format holding every transition plus any
    SNP already excluded, and returns a handle that uses it as 'badsnpname'.
    """
    snps = read_snp(data.snp)
    if "alt" not in snps.columns:
        raise ValidationError(f".snp file {data.snp} has no ref/alt columns")

    alleles = zip(snps["ref"].str.upper(), snps["alt"].str.upper())
    is_transition = pd.Series([pair in TRANSITIONS for pair in alleles], index=snps.index)
    excluded = is_transition | snps["id"].isin(_excluded_ids(data))

    path = _new_file(outfile, "transversions", ".snp")
    snps[excluded].to_csv(path, sep="\t", header=False, index=False)

    return replace(data, exclude=str(path))


def count_snps(data: EigenstratData) -> int:
    """Number of SNPs in the dataset that are not excluded."""
    snps = read_snp(data.snp)
    return int((~snps["id"].isin(_excluded_ids(data))).sum())
