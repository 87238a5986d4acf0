"""Shared column limits and defaults."""

# String field lengths
MAX_EMAIL_LENGTH = 255
MAX_NAME_LENGTH = 255
MAX_CODE_LENGTH = 50
MAX_TYPE_LENGTH = 50
MAX_PHONE_LENGTH = 20
MAX_URL_LENGTH = 500
MAX_ROLE_NAME_LENGTH = 100
MAX_PERMISSION_RESOURCE_LENGTH = 100
MAX_PERMISSION_ACTION_LENGTH = 50
MAX_PERMISSION_NAME_LENGTH = 151
MAX_DESCRIPTION_LENGTH = 255

# Password requirements
MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 72  # bcrypt only reads the first 72 bytes
BCRYPT_ROUNDS = 12

# Pagination defaults
DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10

# Defaults for tenant records
DEFAULT_ORGANIZATION_TYPE = "general"
DEFAULT_UNIT_TYPE = "SMP"

# Secret key requirements
MIN_SECRET_KEY_LENGTH = 32
DEFAULT_INSECURE_SECRET = "change-me-in-production"

# Permission name wildcard
PERMISSION_WILDCARD = "*"
