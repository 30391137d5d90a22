# SPDX-License-Identifier: Apache-2.0
"""
Main CLI entry point for the admixtools-toolkit.

Program name:
  admixtools-pipeline

f-statistics:
  - d                 D(W, X; Y, Z) with qpDstat
  - f4                f4(W, X; Y, Z) with qpDstat (f4mode)
  - f3                f3(C; A, B) with qp3Pop
  - f4ratio           f4-ratio admixture estimates with qpF4ratio

Admixture models:
  - qpadm             Ancestry proportions of target populations (qpAdm)
  - qpwave            Number of ancestry streams between left/right sets (qpWave)

Utilities:
  - dataset-stats     Sample/population/SNP counts of an EIGENSTRAT dataset
  - plot-stats        Forest plot of a d/f4/f3/f4ratio result table
"""

import argparse
import logging
import sys

import pandas as pd

from admixtools_toolkit.commands import (
    dstat,
    f3,
    f4ratio,
    qpadm,
    qpwave,
    dataset_stats,
    stat_plot,
)
from admixtools_toolkit.data import eigenstrat, transversions_only
from admixtools_toolkit.errors import AdmixtoolsError
from admixtools_toolkit.resources.resolver import resolve_tool

logger = logging.getLogger(__name__)

PROGRAM_OF = {
    "d": "qpDstat",
    "f4": "qpDstat",
    "f3": "qp3Pop",
    "f4ratio": "qpF4ratio",
    "qpadm": "qpAdm",
    "qpwave": "qpWave",
}


def require_tool(name: str):
    if resolve_tool(name) is None:
        sys.exit(f"ERROR: Required tool '{name}' not found in $ADMIXTOOLS_BIN or PATH.")


def _add_dataset_args(p):
    p.add_argument("--prefix", help="EIGENSTRAT prefix (<prefix>.geno/.snp/.ind)")
    p.add_argument("--geno", help="Genotype file (overrides <prefix>.geno)")
    p.add_argument("--snp", help="SNP file (overrides <prefix>.snp)")
    p.add_argument("--ind", help="Individual file (overrides <prefix>.ind)")
    p.add_argument("--exclude", help="SNPs to exclude, in .snp format ('badsnpname')")
    p.add_argument(
        "--transversions-only",
        action="store_true",
        help="Exclude transition SNPs (C<->T, G<->A)",
    )


def _add_run_args(p):
    p.add_argument(
        "--outdir",
        default=None,
        help="Where to put generated par/pop/log files "
        "(default: $ADMIXTOOLS_OUTDIR or a temporary directory)",
    )
    p.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds before the ADMIXTOOLS program is killed (default: $ADMIXTOOLS_TIMEOUT or none)",
    )
    p.add_argument(
        "--out",
        default=None,
        help="Output TSV (default: stdout). With --details, used as a prefix.",
    )


def _load_data(args):
    data = eigenstrat(
        prefix=args.prefix,
        ind=args.ind,
        snp=args.snp,
        geno=args.geno,
        exclude=args.exclude,
    )
    if args.transversions_only:
        data = transversions_only(data)
    return data


def _write_table(df: pd.DataFrame, out, index: bool = False):
    if out is None:
        df.to_csv(sys.stdout, sep="\t", index=index)
    else:
        df.to_csv(out, sep="\t", index=index)
        logger.info("Saved: %s", out)


def _write_tables(tables, out):
    """Write {name: DataFrame} (qpAdm details) or qpWave's {ranks, A, B}."""
    flat = {}
    for name, value in tables.items():
        if isinstance(value, dict):
            for rank, mat in value.items():
                flat[f"{name}.rank{rank}"] = (mat, True)
        else:
            flat[name] = (value, False)

    for name, (df, index) in flat.items():
        if out is None:
            sys.stdout.write(f"## {name}\n")
            _write_table(df, None, index=index)
            sys.stdout.write("\n")
        else:
            _write_table(df, f"{out}.{name}.tsv", index=index)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="admixtools-pipeline",
        description="Run ADMIXTOOLS f-statistics and admixture models on EIGENSTRAT data",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    # ------------------------------------------------------------------
    # D / f4
    # ------------------------------------------------------------------
    for cmd, help_text in (("d", "D statistics with qpDstat"), ("f4", "f4 statistics with qpDstat")):
        p = sub.add_parser(cmd, help=help_text)
        _add_dataset_args(p)
        for role in ("W", "X", "Y", "Z"):
            p.add_argument(f"-{role}", nargs="+", required=True, metavar="POP")
        _add_run_args(p)

    # ------------------------------------------------------------------
    # f3
    # ------------------------------------------------------------------
    p3 = sub.add_parser("f3", help="f3(C; A, B) with qp3Pop")
    _add_dataset_args(p3)
    for role in ("A", "B", "C"):
        p3.add_argument(f"-{role}", nargs="+", required=True, metavar="POP")
    p3.add_argument(
        "--inbreed",
        action="store_true",
        help="Set 'inbreed: YES' (see README.3PopTest in ADMIXTOOLS)",
    )
    _add_run_args(p3)

    # ------------------------------------------------------------------
    # f4-ratio
    # ------------------------------------------------------------------
    pr = sub.add_parser("f4ratio", help="f4(A, O; X, C) / f4(A, O; B, C) with qpF4ratio")
    _add_dataset_args(pr)
    pr.add_argument("-X", nargs="+", required=True, metavar="POP")
    for role in ("A", "B", "C", "O"):
        pr.add_argument(f"-{role}", required=True, metavar="POP")
    _add_run_args(pr)

    # ------------------------------------------------------------------
    # qpAdm
    # ------------------------------------------------------------------
    pa = sub.add_parser("qpadm", help="Ancestry proportions with qpAdm")
    _add_dataset_args(pa)
    pa.add_argument("--target", nargs="+", required=True, help="Target populations (run one at a time)")
    pa.add_argument("--sources", nargs="+", required=True)
    pa.add_argument("--outgroups", nargs="+", required=True)
    pa.add_argument(
        "--details",
        action="store_true",
        help="Also write rank-test and sub-model tables",
    )
    _add_run_args(pa)

    # ------------------------------------------------------------------
    # qpWave
    # ------------------------------------------------------------------
    pw = sub.add_parser("qpwave", help="Number of ancestry streams with qpWave")
    _add_dataset_args(pw)
    pw.add_argument("--left", nargs="+", required=True)
    pw.add_argument("--right", nargs="+", required=True)
    pw.add_argument("--maxrank", type=int, default=None)
    pw.add_argument("--details", action="store_true", help="Also write the A and B matrices")
    _add_run_args(pw)

    # ------------------------------------------------------------------
    # dataset-stats
    # ------------------------------------------------------------------
    ps = sub.add_parser(
        "dataset-stats",
        help="Report #samples, #populations and #SNPs of an EIGENSTRAT dataset",
    )
    _add_dataset_args(ps)
    ps.add_argument("--per-population", action="store_true", help="Also list samples per population")

    # ------------------------------------------------------------------
    # plot-stats
    # ------------------------------------------------------------------
    pp = sub.add_parser("plot-stats", help="Forest plot of a d/f4/f3/f4ratio result TSV")
    pp.add_argument("--table", required=True)
    pp.add_argument("--out", required=True, help="Output figure (e.g. dstats.pdf)")
    pp.add_argument("--stat", choices=sorted(stat_plot.LAYOUTS), default=None)
    pp.add_argument("--zmult", type=float, default=3.0, help="Error bar width in standard errors")
    pp.add_argument("--width", type=float, default=8.0)
    pp.add_argument("--height", type=float, default=None)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    # ==========================
    # Dispatch
    # ==========================
    try:
        if args.command == "plot-stats":
            stat_plot.run(
                table=args.table,
                out_pdf=args.out,
                stat=args.stat,
                zmult=args.zmult,
                width=args.width,
                height=args.height,
            )
            return

        data = _load_data(args)

        if args.command == "dataset-stats":
            dataset_stats.run(data, per_population=args.per_population)
            return

        require_tool(PROGRAM_OF[args.command])

        if args.command in ("d", "f4"):
            res = dstat.d(
                data, args.W, args.X, args.Y, args.Z,
                outdir=args.outdir,
                f4mode=args.command == "f4",
                timeout=args.timeout,
            )
            _write_table(res, args.out)

        elif args.command == "f3":
            res = f3.f3(
                data, args.A, args.B, args.C,
                outdir=args.outdir,
                inbreed=args.inbreed,
                timeout=args.timeout,
            )
            _write_table(res, args.out)

        elif args.command == "f4ratio":
            res = f4ratio.f4ratio(
                data, args.X, args.A, args.B, args.C, args.O,
                outdir=args.outdir,
                timeout=args.timeout,
            )
            _write_table(res, args.out)

        elif args.command == "qpadm":
            res = qpadm.qpAdm(
                data,
                target=args.target,
                sources=args.sources,
                outgroups=args.outgroups,
                details=args.details,
                outdir=args.outdir,
                timeout=args.timeout,
            )
            if args.details:
                _write_tables(res, args.out)
            else:
                _write_table(res, args.out)

        elif args.command == "qpwave":
            res = qpwave.qpWave(
                data,
                left=args.left,
                right=args.right,
                maxrank=args.maxrank,
                details=args.details,
                outdir=args.outdir,
                timeout=args.timeout,
            )
            if args.details:
                _write_tables(res, args.out)
            else:
                _write_table(res, args.out)

    except (AdmixtoolsError, FileNotFoundError, ValueError) as e:
        sys.exit(f"ERROR: {e}")


if __name__ == "__main__":
    main()
