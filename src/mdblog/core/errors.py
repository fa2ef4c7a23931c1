"""Error taxonomy for the import/export pipeline"""


class MdblogError(Exception):
    """Base class for all pipeline errors."""


class ArchiveError(MdblogError):
    """The archive itself cannot be opened (corrupt or not a ZIP). Aborts the operation."""


class UploadError(MdblogError):
    """Malformed top-level input: no file, wrong file type, or a failed archive pre-check."""

    def __init__(self, message: str, details: list[str] | None = None):
        super().__init__(message)
        self.details = list(details or [])


class EntryDecodeError(MdblogError):
    """A single archive entry could not be read or decoded; the entry is dropped."""

    def __init__(self, path: str, cause: Exception):
        super().__init__(f"Failed to decode {path}: {cause}")
        self.path = path


class PostValidationError(MdblogError):
    """A candidate post violates content constraints; carries every violation."""

    def __init__(self, errors: list[str]):
        super().__init__(", ".join(errors))
        self.errors = list(errors)


class ConflictError(MdblogError):
    """A slug collides with one already in the batch or in storage."""

    def __init__(self, slug: str):
        super().__init__(f'Slug "{slug}" already exists')
        self.slug = slug


class PersistenceError(MdblogError):
    """Storage rejected a write (e.g. a unique-constraint violation)."""
