"""Domain exceptions raised by the catalog services.

The HTTP layer maps each of these to a response; services never build HTTP
responses themselves.
"""


class CatalogError(Exception):
    """Base class for all catalog domain errors."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(CatalogError):
    """Submitted data is invalid; ``errors`` maps field names to messages."""

    status_code = 422

    def __init__(self, errors: dict[str, str], message: str = "Invalid submission") -> None:
        super().__init__(message)
        self.errors = dict(errors)

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls({field: message}, message)


class AuthenticationError(CatalogError):
    """The request is not bound to a valid user."""

    status_code = 401


class AuthorizationError(CatalogError):
    """The acting user may not perform the requested action."""

    status_code = 403


class NotFoundError(CatalogError):
    """A record with the requested identifier does not exist."""

    status_code = 404


class StorageError(CatalogError):
    """A cover file could not be written, read or removed."""

    status_code = 500


class SessionStoreError(CatalogError):
    """The session backend could not be reached."""

    status_code = 503
