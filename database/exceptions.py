"""Database exception hierarchy."""


class DatabaseError(Exception):
    """Base class for database errors raised by this service."""
    pass


class DatabaseSchemaError(DatabaseError):
    """Raised when schema files are invalid or migrations fail."""
    pass


class TransactionConflictError(DatabaseError):
    """Raised when a transaction keeps losing write conflicts.

    The store aborted every attempt with a retryable error (serialization
    failure, deadlock or unique violation) until the attempt budget ran out.
    """
    pass
