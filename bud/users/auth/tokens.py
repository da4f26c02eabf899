"""Encode and decode caller claims as signed tokens."""

import jwt

from .. import config
from ..domain import Claims
from ..exceptions import InvalidToken


def encode(claims: Claims, secret: str = config.JWT_SECRET) -> str:
    """Encode claims as a signed JWT."""
    return jwt.encode({'sub': claims.user_id, 'roles': claims.roles},
                      secret, algorithm='HS256')


def decode(token: str, secret: str = config.JWT_SECRET) -> Claims:
    """Decode a token from :func:`encode` to get the caller's claims."""
    try:
        data: dict = jwt.decode(token, secret, algorithms=['HS256'])
    except jwt.exceptions.InvalidTokenError as e:
        raise InvalidToken('Not a valid token') from e
    return Claims(user_id=data.get('sub', ''), roles=data.get('roles', []))
