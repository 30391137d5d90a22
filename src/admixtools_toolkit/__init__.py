# SPDX-License-Identifier: Apache-2.0
"""
Python wrappers around the ADMIXTOOLS programs qpDstat, qpF4ratio, qp3Pop,
qpAdm and qpWave.
"""

from admixtools_toolkit.commands.dstat import d, f4
from admixtools_toolkit.commands.f3 import f3
from admixtools_toolkit.commands.f4ratio import f4ratio
from admixtools_toolkit.commands.qpadm import qpAdm
from admixtools_toolkit.commands.qpwave import qpWave
from admixtools_toolkit.data import (
    EigenstratData,
    count_snps,
    eigenstrat,
    relabel,
    transversions_only,
)
from admixtools_toolkit.errors import (
    AdmixtoolsError,
    ParseError,
    ProcessError,
    ValidationError,
)
from admixtools_toolkit.parsers import read_log

__version__ = "0.1.0"

__all__ = [
    "d",
    "f4",
    "f3",
    "f4ratio",
    "qpAdm",
    "qpWave",
    "EigenstratData",
    "eigenstrat",
    "relabel",
    "transversions_only",
    "count_snps",
    "read_log",
    "AdmixtoolsError",
    "ValidationError",
    "ProcessError",
    "ParseError",
]
