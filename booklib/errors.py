"""Error types raised by the catalog store and the remote client."""


class StorageFault(Exception):
    """Local catalog could not be opened, migrated or written."""


class RemoteFault(Exception):
    """Open Library could not be reached or returned an unusable payload.

    Only raised inside the remote client; its public methods turn it into
    an absent or partial result.
    """
