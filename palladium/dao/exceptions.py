"""Exceptions related to Data Access Objects (DAO) operations.

Classes:
    DAOError:
        Generic base class for DAO-related exceptions.

    DirectiveNotFoundError:
        Raised when a directive is absent or has expired in the data store.

    DataStoreError:
        Raised when there is an error in the data store (e.g., connection issues, OOM, etc.).

    DataStoreTimeoutError:
        Raised when a data store operation doesn't complete within its timeout.

Example:
    >>> from palladium.dao.exceptions import DirectiveNotFoundError
    >>> raise DirectiveNotFoundError("Directive 'abc' not found.")
    Traceback (most recent call last):
        ...
    palladium.dao.exceptions.DirectiveNotFoundError: Directive 'abc' not found.
"""


class DAOError(Exception):
    """Generic base class for DAO-related exceptions."""

    pass


class DirectiveNotFoundError(DAOError):
    """Exception raised when a directive is not found (or already expired) in the data store."""

    pass


class DataStoreError(DAOError):
    """Exception raised when there is an error in the data store.

    e.g. connection issues, OOM, etc.

    Attributes:
        operation (str | None):
            Name of the DAO operation which failed, e.g. 'get'.
        directive_id (str | None):
            Identifier of the directive the operation was working on, if any.
    """

    def __init__(self, message: str = '', *, operation: str | None = None, directive_id: str | None = None):
        super().__init__(message)
        self.operation = operation
        self.directive_id = directive_id


class DataStoreTimeoutError(DataStoreError):
    """Exception raised when a data store operation times out."""

    pass
