"""
Logging for the user service.

Use this module in place of :mod:`logging` so that every logger in the
package shares the same handlers and format, e.g.

.. code-block:: python

   from bud.users import logging

   logger = logging.getLogger(__name__)

Set ``LOG_FORMAT=json`` to emit structured records.
"""

import logging
import sys
from typing import Optional

from pythonjsonlogger import jsonlogger

from . import config

DEFAULT_FORMAT = '%(asctime)s - %(process)d: [%(name)s] %(levelname)s: ' \
                 '%(message)s'
JSON_FORMAT = '%(asctime)s %(levelname)s %(name)s %(message)s'


def _formatter() -> logging.Formatter:
    if config.LOG_FORMAT == 'json':
        return jsonlogger.JsonFormatter(
            JSON_FORMAT,
            rename_fields={'levelname': 'level', 'asctime': 'timestamp'}
        )
    return logging.Formatter(DEFAULT_FORMAT)


def getLogger(name: str, stream: Optional[object] = None) -> logging.Logger:
    """
    Get a logger configured from :mod:`bud.users.config`.

    Parameters
    ----------
    name : str
        Usually ``__name__`` of the calling module.
    stream : file-like
        Where to write records. Defaults to ``sys.stderr``.

    Returns
    -------
    :class:`logging.Logger`

    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(_formatter())
        logger.addHandler(handler)
        if config.LOGFILE:
            file_handler = logging.FileHandler(config.LOGFILE)
            file_handler.setFormatter(_formatter())
            logger.addHandler(file_handler)
    logger.setLevel(int(config.LOGLEVEL))
    return logger
