# SPDX-License-Identifier: Apache-2.0
"""
Exceptions raised by the ADMIXTOOLS wrappers.

Library code raises these; only the command-line layer turns them into
exit messages.
"""

from __future__ import annotations

from typing import Optional


class AdmixtoolsError(Exception):
    """Base class for every error raised by this package."""


class ValidationError(AdmixtoolsError, ValueError):
    """Invalid input detected before any file is written or program run."""


class ParseError(AdmixtoolsError):
    """An ADMIXTOOLS log did not contain the expected result block."""


class ProcessError(AdmixtoolsError, RuntimeError):
    """An ADMIXTOOLS program was missing, crashed, timed out or wrote nothing."""

    def __init__(
        self,
        program: str,
        message: str,
        returncode: Optional[int] = None,
        stderr: str = "",
    ) -> None:
        self.program = program
        self.returncode = returncode
        self.stderr = stderr
        text = f"{program}: {message}"
        if stderr.strip():
            text += f"\n{stderr.strip()}"
        super().__init__(text)
