"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_CODE_TTL_MINUTES = 10
# A code covers one class session; a full day is already generous.
MAX_CODE_TTL_MINUTES = 24 * 60
DEFAULT_HISTORY_LIMIT = 100
DEFAULT_LIST_LIMIT = 200

CODE_TOKEN_PREFIX = "QR-"
CODE_TOKEN_BYTES = 12

DEFAULT_UPLOAD_PREFIX = "/uploads/justifications"

# MySQL error number for "Duplicate entry ... for key ..."
MYSQL_DUPLICATE_KEY_ERRNO = 1062
# "Cannot add or update a child row: a foreign key constraint fails"
MYSQL_FOREIGN_KEY_ERRNO = 1452
