"""Domain business rules and constants."""

from typing import Final

# Password re-proof for destructive moderation actions
MIN_PASSWORD_LENGTH: Final = 4
MAX_PASSWORD_LENGTH: Final = 72

# Audit log paging
DEFAULT_AUDIT_LOG_LIMIT: Final = 50
MAX_AUDIT_LOG_LIMIT: Final = 100
