"""Exceptions raised by the user service."""


class UserServiceError(RuntimeError):
    """Base for failures that are reported to callers as response errors."""


class ValidationFailure(UserServiceError):
    """Request data is malformed or violates a model constraint."""


class Unauthorized(UserServiceError):
    """Caller's claims do not permit the requested action."""


class NotFound(UserServiceError):
    """The requested user does not exist."""


class DuplicateKey(UserServiceError):
    """A user with the same identifier or e-mail address already exists."""


class HashingFailure(UserServiceError):
    """The password could not be hashed."""


class StorageFailure(UserServiceError):
    """The storage backend failed for a reason not otherwise classified."""


class InvalidCredentials(UserServiceError):
    """Password does not match, or the account cannot authenticate."""


class Cancelled(UserServiceError):
    """The caller cancelled the request, or its deadline passed."""


class NoSuchMethod(UserServiceError):
    """No handler is registered for the requested service method."""


class InvalidToken(UserServiceError):
    """A claims token could not be decoded."""
