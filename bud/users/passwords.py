"""Password hashing with bcrypt."""

import bcrypt

from . import config, logging
from .exceptions import HashingFailure

logger = logging.getLogger(__name__)

MAX_PASSWORD_BYTES = 72
"""bcrypt only considers this many bytes of input; longer passwords fail."""


def hash_password(password: str, cost: int = config.BCRYPT_COST) -> bytes:
    """
    Generate a salted bcrypt hash of a password.

    Parameters
    ----------
    password : str
        Plaintext password.
    cost : int
        bcrypt work factor (log2 rounds).

    Returns
    -------
    bytes

    Raises
    ------
    :class:`.HashingFailure`
        If the password is too long, or bcrypt rejects the input.

    """
    encoded = password.encode('utf-8')
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise HashingFailure(
            f'generatefrompassword: password length exceeds '
            f'{MAX_PASSWORD_BYTES} bytes'
        )
    try:
        return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=cost))
    except ValueError as e:
        raise HashingFailure(f'generatefrompassword: {e}') from e


def check_password(password: str, hashed: bytes) -> bool:
    """Check a password against a hash from :func:`hash_password`."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), hashed)
    except ValueError as e:
        logger.debug('Password check could not be performed: %s', e)
        return False
