"""Error taxonomy of the claim registry.

Every error carries the message that is safe to return to the caller; the
HTTP layer maps each class to a status code.
"""


class RegistryError(Exception):
    """Base class for all registry errors."""

    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RegistryError):
    """Malformed or missing input."""


class NotFoundError(RegistryError):
    """No record matches the requested key."""

    status_code = 404


class ConflictError(RegistryError):
    """A uniqueness or claim-state precondition was violated."""


class AlreadyClaimedError(ConflictError):
    """The claim subject has already been credited to a record."""


class StorageError(RegistryError):
    """The backing store failed; the message never carries backend detail."""

    def __init__(self, message: str = "Storage operation failed"):
        super().__init__(message)
