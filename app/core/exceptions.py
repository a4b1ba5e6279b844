"""
Ledger error taxonomy.
"""


class LedgerError(Exception):
    """Base class for errors returned by the access ledger."""


class ResourceNotFound(LedgerError):
    """The resource id does not reference an existing resource."""

    def __init__(self, resource_id: int):
        self.resource_id = resource_id
        super().__init__(f"Resource {resource_id} not found")


class InvalidInput(LedgerError):
    """Unknown access kind or an unacceptable context payload."""


class StorageUnavailable(LedgerError):
    """The store could not be reached or the unit of work could not be committed.

    Nothing was written. Callers may retry the whole call.
    """


class PartialCommitDetected(LedgerError):
    """Internal invariant violation, rolled back before it can escape the ledger."""
