"""Configuration settings and constants for joplin-reader.

The constants live in `config.settings`; they are re-exported here so
application code can keep importing them as `from config import HEADER_SIZE`.
"""

from .settings import *  # noqa: F401,F403
from .settings import __all__  # noqa: F401
