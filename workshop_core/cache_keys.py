"""
Cache key construction.

Keys are URL-shaped strings so they read well in logs and could be handed
to an HTTP cache as-is.
"""

from typing import Iterable, Mapping
from urllib.parse import quote, urlencode

BATCH_CACHE_NAMESPACE = '/api/cached-v1/'
CATALOG_CACHE_NAMESPACE = '/api/catalog-v1'
KEY_SEPARATOR = ','


def build_batch_cache_key(identifiers: Iterable[str]) -> str:
    """
    Build an order-independent cache key for a batch of identifiers.

    Identifiers are percent-encoded before joining so the separator can
    never occur inside one, then sorted so any permutation of the same
    batch maps to the same key. `['a', 'b']`, `['a']` and `['b']` are three
    different keys.

    Examples:
        >>> build_batch_cache_key(['20', '10'])
        '/api/cached-v1/10,20'
    """
    encoded = sorted(quote(identifier, safe='') for identifier in identifiers)
    return BATCH_CACHE_NAMESPACE + KEY_SEPARATOR.join(encoded)


def build_catalog_cache_key(path: str, args: Mapping[str, str]) -> str:
    """Cache key for a catalog GET: path plus query parameters sorted by name."""
    query = urlencode(sorted(args.items()))
    return f"{CATALOG_CACHE_NAMESPACE}{path}?{query}"
