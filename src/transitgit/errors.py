"""Base error type shared by every transitgit failure surfaced to the CLI."""

from __future__ import annotations


class TransitGitError(Exception):
    """Base class for fatal transitgit errors.

    Subclasses implement to_report() to render the diagnostic dump the
    CLI prints before exiting non-zero.
    """

    def to_report(self) -> str:
        """Format the error as a human-readable diagnostic report."""
        return str(self)
