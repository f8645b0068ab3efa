"""
Vendor Record Priority

Decides which vendor's data may overwrite a shared product record.
Priority 1 is the highest; unknown or unset vendors get DEFAULT_PRIORITY.

Lookups are cached in-process for CACHE_TTL_SECONDS, keyed on the
lowercased, trimmed identifier.

Author: TM3
Date: 2025-10-17
"""
import time
import logging
from typing import Dict, Iterable, Optional, Tuple

from bestprice.repositories.supported_vendor_repository import SupportedVendorRepository

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY = 999
CACHE_TTL_SECONDS = 5 * 60

vendor_repository = SupportedVendorRepository()

# identifier -> (priority, cached_at)
_priority_cache: Dict[str, Tuple[int, float]] = {}


def _cache_key(identifier: Optional[str]) -> str:
    return (identifier or "").strip().lower()


def get_vendor_record_priority(identifier: Optional[str]) -> int:
    """
    Priority for a vendor short code or name

    Returns DEFAULT_PRIORITY for unknown vendors, NULL or non-positive
    priorities. A failed lookup falls back to the stale cached value.
    """
    key = _cache_key(identifier)
    if not key:
        return DEFAULT_PRIORITY

    cached = _priority_cache.get(key)
    now = time.time()
    if cached and now - cached[1] < CACHE_TTL_SECONDS:
        return cached[0]

    try:
        raw = vendor_repository.get_record_priority(key)
    except Exception as e:
        if cached:
            logger.warning(f"Priority lookup failed for '{key}', using cached value: {e}")
            return cached[0]
        logger.error(f"Priority lookup failed for '{key}': {e}")
        return DEFAULT_PRIORITY

    if raw is None:
        priority = DEFAULT_PRIORITY
    else:
        try:
            priority = int(raw)
        except (TypeError, ValueError):
            priority = DEFAULT_PRIORITY
        if priority < 1:
            logger.warning(f"Invalid record priority {raw} for vendor '{key}'")
            priority = DEFAULT_PRIORITY

    _priority_cache[key] = (priority, now)
    return priority


def should_replace_product_data(incoming_vendor: str, current_source: Optional[str]) -> bool:
    """
    True when incoming_vendor may overwrite a product last written by current_source

    A product with no source is always replaceable; otherwise the incoming
    priority number must be strictly lower.
    """
    if not current_source or not current_source.strip():
        return True
    return get_vendor_record_priority(incoming_vendor) < get_vendor_record_priority(current_source)


def invalidate_vendor_priority(identifier: str):
    _priority_cache.pop(_cache_key(identifier), None)


def clear_vendor_priority_cache():
    _priority_cache.clear()


def preload_vendor_priorities(identifiers: Iterable[str]) -> Dict[str, int]:
    """Warm the cache before a bulk import"""
    return {identifier: get_vendor_record_priority(identifier) for identifier in identifiers}
