"""Shared pipeline for the workshop metadata functions."""

from .cache_keys import (
    BATCH_CACHE_NAMESPACE,
    build_batch_cache_key,
    build_catalog_cache_key,
)

from .errors import (
    WorkshopError,
    ClientInputError,
    MethodNotAllowedError,
    NotFoundError,
    UpstreamError,
)

from .html_signals import (
    scan_dependencies,
    extract_preview_images,
    resolve_dependency_scope,
)

from .identifiers import (
    normalize_identifier,
    parse_batch_request,
)

from .record_merge import (
    DO_NOT_DOWNLOAD_RESULT,
    build_detail_envelope,
    merge_batch_records,
    merge_previews,
)

from .response_cache import (
    CachingResponder,
    MemoryResponseCache,
)

from .upstream import (
    PageFetch,
    fetch_item_page,
    fetch_sources,
    post_file_details,
    query_files,
)

from .worker_response import (
    JSON_HEADERS,
    WorkerResponse,
    error_response,
    json_response,
)

__all__ = [
    # Cache keys
    'BATCH_CACHE_NAMESPACE',
    'build_batch_cache_key',
    'build_catalog_cache_key',
    # Errors
    'WorkshopError',
    'ClientInputError',
    'MethodNotAllowedError',
    'NotFoundError',
    'UpstreamError',
    # Page signals
    'scan_dependencies',
    'extract_preview_images',
    'resolve_dependency_scope',
    # Identifiers
    'normalize_identifier',
    'parse_batch_request',
    # Merging
    'DO_NOT_DOWNLOAD_RESULT',
    'build_detail_envelope',
    'merge_batch_records',
    'merge_previews',
    # Caching
    'CachingResponder',
    'MemoryResponseCache',
    # Upstream
    'PageFetch',
    'fetch_item_page',
    'fetch_sources',
    'post_file_details',
    'query_files',
    # Responses
    'JSON_HEADERS',
    'WorkerResponse',
    'error_response',
    'json_response',
]
