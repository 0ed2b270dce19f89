"""Domain errors raised by the book repository."""


class RepositoryError(Exception):
    """Base class for repository failures."""


class RecordNotFound(RepositoryError):
    def __init__(self, message: str = "record not found"):
        super().__init__(message)


class EditConflict(RepositoryError):
    """The record changed (or vanished) since the caller read its version."""

    def __init__(self, message: str = "edit conflict"):
        super().__init__(message)


class StoreError(RepositoryError):
    """The database could not complete the operation.

    The driver exception is kept as ``__cause__``.
    """


class StoreTimeout(StoreError):
    """The operation's deadline elapsed before the database answered."""
