"""Core constants: cache key prefixes and shared literal values."""

# Cache key prefixes (used with :id:<value>)
CACHE_PREFIX_PRINCIPAL = "principal"

# Delimiter for composite keys
CACHE_KEY_SEP = ":"

# Singleton row id for the external CRM credential
EXTERNAL_CREDENTIAL_ID = "default"

# Fields requested from the CRM for each syncable record
CRM_SYNC_FIELDS = ("Id", "FirstName", "LastName", "Email", "Phone")

# Minimum length for locally managed passwords
MIN_PASSWORD_LENGTH = 8
