class CinemaLogError(RuntimeError):
    """Base class for errors raised by the journal core."""
    pass


class PersistenceError(CinemaLogError):
    """Raised when the journal store fails to commit staged changes."""
    pass


class RecordNotFoundError(CinemaLogError):
    pass


class DuplicateFilmError(CinemaLogError):
    """Raised when a film with the same catalog id is already in the journal."""
    pass
