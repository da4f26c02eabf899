"""Configuration for the user service."""

import os

LOGFILE = os.environ.get('LOGFILE')
LOGLEVEL = os.environ.get('LOGLEVEL', 20)
LOG_FORMAT = os.environ.get('LOG_FORMAT', 'text')
"""Either ``text`` or ``json``."""

USER_DATABASE_URI = os.environ.get('USER_DATABASE_URI', 'sqlite:///:memory:')

BCRYPT_COST = int(os.environ.get('BCRYPT_COST', '12'))
"""Work factor passed to bcrypt when hashing passwords."""

JWT_SECRET = os.environ.get('JWT_SECRET', 'foosecret')

DEFAULT_ROWS_PER_PAGE = int(os.environ.get('DEFAULT_ROWS_PER_PAGE', '20'))
MAX_ROWS_PER_PAGE = int(os.environ.get('MAX_ROWS_PER_PAGE', '100'))
