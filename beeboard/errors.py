# errors.py

"""
Error taxonomy for the board core.

Controllers raise these; BoardSession turns them into user-visible
notifications. Storage-level errors (YAMLError, LockError) are wrapped into
PersistenceError by the YAML repository.
"""


class BoardError(Exception):
    pass


class ValidationError(BoardError):
    """A required field is missing or empty. Raised before any remote call."""
    pass


class PersistenceError(BoardError):
    """A repository call failed."""
    pass


class NotFoundError(BoardError):
    """A referenced project, column or task does not exist."""
    pass


class YAMLError(Exception):
    """Raised when YAML operations fail."""
    pass


class LockError(Exception):
    """Raised when lock operations fail."""
    pass
