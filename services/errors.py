"""
Catalogue Errors

Everything the catalogue service reports back to a caller. Routes catch
these and re-render the relevant page; none of them is fatal.
"""


class CatalogueError(Exception):
    """Base class for errors surfaced to the user."""

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ValidationError(CatalogueError):
    """Submitted form data is missing or malformed."""

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__('; '.join(self.errors))


class MissingImage(ValidationError):
    """Neither a previous image nor a new upload is available."""

    def __init__(self, errors=None):
        super().__init__(errors or ['Image required'])


class NameConflict(CatalogueError):
    """An entry of the same kind already uses this name."""


class NotFound(CatalogueError):
    """No entry with the requested id."""


class Unauthorized(CatalogueError):
    """Admin password did not match."""


class ReferentialIntegrityFailure(CatalogueError):
    """Removing references to an entry failed; the delete was rolled back."""
