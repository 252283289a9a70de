"""Project configuration settings.

Format constants for the item store and envelope, plus the few defaults
that can be overridden from the environment.
"""

from pathlib import Path
import os

# Store
DEFAULT_STORE_PATH = Path(os.environ.get("JOPLIN_DIR", "Joplin"))
KEY_FILE_EXTENSION = ".md"

# Cached note content is reloaded after this many seconds
REFRESH_INTERVAL = 60 * 60 * 12

# Envelope header: JED + version(2) + length(6) + method(2) + key id(32)
HEADER_IDENTIFIER = "JED"
HEADER_VERSION = 1
HEADER_LENGTH = 34
MASTER_KEY_ID_LENGTH = 32
HEADER_SIZE = 45
CHUNK_LENGTH_SIZE = 6
CHUNK_SIZE = 5000  # plaintext chars per chunk when sealing

# SJCL defaults for fields absent from a ciphertext object
SJCL_DEFAULT_ITERATIONS = 10_000
SJCL_DEFAULT_KEY_SIZE = 128  # bits
SJCL_DEFAULT_TAG_SIZE = 64   # bits
SJCL_IV_LENGTH = 16
SJCL_SALT_LENGTH = 8

# Logging
LOG_LEVEL = os.environ.get("LOG_LEVEL", "WARNING")

__all__ = [
	'DEFAULT_STORE_PATH','KEY_FILE_EXTENSION','REFRESH_INTERVAL',
	'HEADER_IDENTIFIER','HEADER_VERSION','HEADER_LENGTH','MASTER_KEY_ID_LENGTH','HEADER_SIZE',
	'CHUNK_LENGTH_SIZE','CHUNK_SIZE',
	'SJCL_DEFAULT_ITERATIONS','SJCL_DEFAULT_KEY_SIZE','SJCL_DEFAULT_TAG_SIZE','SJCL_IV_LENGTH','SJCL_SALT_LENGTH',
	'LOG_LEVEL'
]
