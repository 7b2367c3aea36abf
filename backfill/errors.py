"""Backfill exception hierarchy.

Store adapters translate their native client errors into these types so the
pipeline and CLI only ever deal with one family of failures.
"""


class BackfillError(Exception):
    """Base exception for all backfill failures."""


class BackfillConfigError(BackfillError):
    """Raised for invalid runtime configuration (e.g. unknown store backend)."""


class ReadFailure(BackfillError):
    """Raised when a full scan or a chunked lookup query fails."""


class CommitFailure(BackfillError):
    """Raised when the bulk write could not be committed."""
