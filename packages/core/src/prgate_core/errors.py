"""Exception hierarchy for prgate.

Recoverable parsing ambiguity never reaches these types: it is resolved in
place with a documented default. Only structurally invalid top-level input
and upstream failures are raised.
"""

from __future__ import annotations


class PrgateError(Exception):
    """Base class for all errors raised by prgate."""


class InputError(PrgateError, ValueError):
    """A top-level input is not the shape the caller promised (not a record, not a sequence)."""


class InvalidStateRecord(PrgateError, ValueError):
    """A persisted state snapshot could not be read as a ledger record."""


class UpstreamTimeout(PrgateError):
    """The review provider did not answer within the configured deadline."""


class ProviderError(PrgateError):
    """The review provider failed for a reason other than a timeout."""
