# SPDX-License-Identifier: Apache-2.0
"""
Report basic statistics of an EIGENSTRAT dataset:
- Number of samples
- Number of populations (and samples per population)
- Number of SNPs (excluding any 'badsnpname' SNPs)
"""

from __future__ import annotations

import pandas as pd

from admixtools_toolkit.data import EigenstratData, count_snps, read_ind


def population_counts(data: EigenstratData) -> pd.DataFrame:
    ind = read_ind(data.ind)
    counts = ind.groupby("label", sort=False).size().rename("n").reset_index()
    return counts.sort_values(["n", "label"], ascending=[False, True], ignore_index=True)


def run(data: EigenstratData, per_population: bool = False):
    counts = population_counts(data)

    print("Input type: EIGENSTRAT")
    print(f"Samples:     {int(counts['n'].sum())}")
    print(f"Populations: {len(counts)}")
    print(f"SNPs:        {count_snps(data)}")
    if data.exclude is not None:
        print(f"Excluded:    {data.exclude}")

    if per_population:
        print()
        print(counts.to_string(index=False))
