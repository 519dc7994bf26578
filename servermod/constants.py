"""Infrastructure and technical constants."""

from typing import Final

# Technical configuration constants
DEFAULT_PORT: Final = 8000
DEFAULT_DB_TIMEOUT_SECONDS: Final = 5.0
DEFAULT_BCRYPT_ROUNDS: Final = 12
DEFAULT_SERVER_CACHE_TTL_SECONDS: Final = 300

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_PASSWORD_BYTES: Final = 72
