"""Domain errors raised by the progress and quota services."""


class InvalidArgument(ValueError):
    """Missing or invalid identifiers or limit values supplied by a caller."""


class StorageUnavailable(RuntimeError):
    """The relational store failed; the requested update did not happen."""
