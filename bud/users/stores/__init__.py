"""
Persistence for user accounts.

:class:`.Storer` declares what the user service needs from a backend. Two
backends are provided: :class:`.MemoryStore`, which keeps everything in
process, and :class:`.SQLStore`, which uses SQLAlchemy.
"""

from .base import Storer
from .memory import MemoryStore
from .sql import SQLStore
