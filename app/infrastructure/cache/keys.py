"""Cache key builders. Single place for key format.

Key components must not contain CACHE_KEY_SEP to avoid ambiguous or
colliding keys.
"""

from app.core.constants import CACHE_KEY_SEP, CACHE_PREFIX_PRINCIPAL


def _validate_key_component(value: str, name: str) -> None:
    """Raise ValueError if value contains the cache key separator."""
    if CACHE_KEY_SEP in value:
        raise ValueError(
            f"Cache key component {name!r} must not contain separator {CACHE_KEY_SEP!r}"
        )


def principal_key(principal_id: str) -> str:
    """Cache key for a principal read-model by ID."""
    _validate_key_component(principal_id, "principal_id")
    return f"{CACHE_PREFIX_PRINCIPAL}{CACHE_KEY_SEP}id{CACHE_KEY_SEP}{principal_id}"
