from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest

from admixtools_toolkit.data import eigenstrat

DATA_DIR = Path(__file__).parent / "data"

IND = """\
S1 M French
S2 F French
S3 M Sardinian
S4 F Han
S5 M Yoruba
S6 F Mbuti
S7 M Papuan
S8 F Chimp
S9 M Karitiana
"""

SNP = """\
rs1 1 0.0 1000 A G
rs2 1 0.0 2000 C A
rs3 1 0.0 3000 C T
rs4 2 0.0 4000 G T
rs5 2 0.0 5000 T C
"""


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Generated files go under tmp_path; no real ADMIXTOOLS is ever picked up."""
    monkeypatch.setenv("ADMIXTOOLS_OUTDIR", str(tmp_path / "runs"))
    monkeypatch.setenv("ADMIXTOOLS_BIN", str(tmp_path / "bin"))
    monkeypatch.setenv("PATH", "/usr/bin:/bin")
    monkeypatch.delenv("ADMIXTOOLS_TIMEOUT", raising=False)


@pytest.fixture
def data_dir() -> Path:
    return DATA_DIR


@pytest.fixture
def dataset_prefix(tmp_path) -> Path:
    prefix = tmp_path / "dataset" / "example"
    prefix.parent.mkdir()
    Path(f"{prefix}.ind").write_text(IND)
    Path(f"{prefix}.snp").write_text(SNP)
    Path(f"{prefix}.geno").write_text("0\n" * 5)
    return prefix


@pytest.fixture
def dataset(dataset_prefix):
    return eigenstrat(dataset_prefix)


@pytest.fixture
def fake_tool(tmp_path):
    """
    Install a stand-in ADMIXTOOLS program into $ADMIXTOOLS_BIN.

    The script records its parameter file path in <bin>/<name>.calls,
    prints `log` (a fixture name or None), optionally writes to stderr,
    and exits with `code`.
    """
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir(exist_ok=True)

    def install(name, log=None, code=0, stderr=None, sleep=None):
        script = bin_dir / name
        calls = bin_dir / f"{name}.calls"
        lines = ["#!/bin/sh", f'echo "$2" >> "{calls}"']
        if stderr:
            lines.append(f'echo "{stderr}" 1>&2')
        if sleep:
            lines.append(f"exec sleep {sleep}")
        if log:
            lines.append(f'cat "{DATA_DIR / log}"')
        lines.append(f"exit {code}")
        script.write_text("\n".join(lines) + "\n")
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return calls

    return install


def read_calls(calls: Path) -> list:
    if not calls.exists():
        return []
    return calls.read_text().split()


def par_lines(path) -> list:
    with open(path) as fh:
        return [ln.rstrip("\n") for ln in fh if ln.strip()]


def runs_dir_files(tmp_path) -> list:
    runs = tmp_path / "runs"
    if not runs.exists():
        return []
    return sorted(os.listdir(runs))
