"""
Workshop Batch Cloud Function

Resolves a batch of workshop item ids into download-ready records for the
desktop client.

Responsibilities:
- Validate the JSON array of ids
- Fetch file details from the Steam API
- For single-item batches, scrape the item page for required items and
  add them to the record's children
- Mark collection thumbnails as not downloadable
- Cache responses for an hour, keyed by the sorted id set

Does NOT:
- Download any files (client's job)
- Retry failed upstream calls
"""

import functions_framework
import os
import sys
import traceback

# Add shared module to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
from workshop_core import event_loop
from workshop_core.cache_keys import build_batch_cache_key
from workshop_core.errors import ClientInputError, MethodNotAllowedError
from workshop_core.html_signals import scan_dependencies
from workshop_core.identifiers import parse_batch_request
from workshop_core.log_utils import log_event
from workshop_core.record_merge import merge_batch_records
from workshop_core.response_cache import CachingResponder, MemoryResponseCache
from workshop_core.upstream import fetch_sources
from workshop_core.worker_response import JSON_HEADERS, error_response, json_response

# Configuration
STEAM_API_KEY = os.environ.get('STEAM_API_KEY')  # Optional for file details
CACHE_TTL_SECONDS = int(os.environ.get('CACHE_TTL_SECONDS', '3600'))

PREFLIGHT_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Methods': 'POST, OPTIONS',
    'Access-Control-Allow-Headers': 'Content-Type',
    'Access-Control-Max-Age': '3600',
}

_responder = CachingResponder(
    MemoryResponseCache(),
    ttl_seconds=CACHE_TTL_SECONDS,
    cache_control=f'public, max-age={CACHE_TTL_SECONDS}',
)


def scrape_dependencies(page, own_id: str) -> list:
    """Extract required item ids from a fetched page and log what was found."""
    debug_info = {
        'html_length': 0,
        'scope_strategy': None,
        'block': '',
        'scraped': [],
        'fetch_error': page.error,
    }

    dependencies = []
    if page.available:
        scan = scan_dependencies(page.html, own_id)
        dependencies = scan.ids
        debug_info.update({
            'html_length': len(page.html),
            'scope_strategy': scan.scope.strategy,
            'block': scan.scope.text[:200],
            'scraped': dependencies,
        })

    log_event('Dependency scrape', item_id=own_id, **debug_info)
    return dependencies


async def resolve_batch_records(identifiers: list) -> list:
    """Fetch and merge records for a validated batch of ids."""
    with_page = len(identifiers) == 1
    records, page = await fetch_sources(identifiers, with_page, api_key=STEAM_API_KEY)

    dependencies = scrape_dependencies(page, identifiers[0]) if with_page else []
    return merge_batch_records(records, identifiers, dependencies)


async def handle_batch(identifiers: list):
    cache_key = build_batch_cache_key(identifiers)

    async def pipeline():
        records = await resolve_batch_records(identifiers)
        return json_response(records)

    return await _responder.respond(cache_key, pipeline)


@functions_framework.http
def resolve_batch(request):
    """
    Main Cloud Function entry point.

    Expected JSON input (ids as strings or numbers):
    ["123456789", 987654321]
    """
    # Handle CORS
    if request.method == 'OPTIONS':
        return ('', 204, PREFLIGHT_HEADERS)

    try:
        if request.method != 'POST':
            raise MethodNotAllowedError('Method Not Allowed')

        payload = request.get_json(force=True, silent=True)
        if payload is None:
            raise ClientInputError('Invalid JSON')

        identifiers = parse_batch_request(payload)
    except ClientInputError as e:
        return e.to_response(JSON_HEADERS)

    try:
        return event_loop.run(handle_batch(identifiers))
    except Exception as e:
        log_event('Unhandled error', severity='ERROR', error=str(e), traceback=traceback.format_exc())
        return error_response('Internal Server Error', 500, JSON_HEADERS)
