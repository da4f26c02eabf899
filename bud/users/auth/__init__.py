"""Authorization of calls to the user service."""

from . import decorators, roles, tokens
