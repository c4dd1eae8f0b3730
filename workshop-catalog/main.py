"""
Workshop Catalog Cloud Function

Browse and detail endpoints for the workshop catalog view.

Routes:
- GET /list?q=&page=&sort=trend|recent|top&tags=a,b
- GET /detail?id=<item id>

Responsibilities:
- Map browse parameters onto the Steam QueryFiles API
- Combine file details with preview images scraped from the item page
- Cache successful responses for an hour

Does NOT:
- Resolve dependencies or downloads (workshop-batch's job)
- Retry failed upstream calls
"""

import asyncio
import functions_framework
import os
import sys
import traceback

# Add shared module to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
from workshop_core import event_loop
from workshop_core.cache_keys import build_catalog_cache_key
from workshop_core.errors import ClientInputError, MethodNotAllowedError, NotFoundError
from workshop_core.html_signals import extract_preview_images
from workshop_core.identifiers import normalize_identifier
from workshop_core.log_utils import log_event
from workshop_core.record_merge import build_detail_envelope, merge_previews
from workshop_core.response_cache import CachingResponder, MemoryResponseCache
from workshop_core.upstream import fetch_sources, query_files
from workshop_core.worker_response import JSON_HEADERS, error_response, json_response

# Configuration
STEAM_API_KEY = os.environ.get('STEAM_API_KEY')  # Required upstream for /list
WORKSHOP_APP_ID = os.environ.get('WORKSHOP_APP_ID', '550')
CATALOG_PAGE_SIZE = os.environ.get('CATALOG_PAGE_SIZE', '20')
CACHE_TTL_SECONDS = int(os.environ.get('CACHE_TTL_SECONDS', '3600'))

PREFLIGHT_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Methods': 'GET, OPTIONS',
    'Access-Control-Allow-Headers': 'Content-Type',
    'Access-Control-Max-Age': '3600',
}

# QueryFiles query_type values
QUERY_TYPE_BY_SORT = {
    'top': '0',  # RankedByVote
    'recent': '1',  # RankedByPublicationDate
    'trend': '3',  # RankedByTrend
}
DEFAULT_SORT = 'trend'
TEXT_SEARCH_QUERY_TYPE = '12'  # RankedByTextSearch

ROUTES = ('/list', '/detail')

_responder = CachingResponder(
    MemoryResponseCache(),
    ttl_seconds=CACHE_TTL_SECONDS,
    cache_control=f'public, max-age={CACHE_TTL_SECONDS}, s-maxage={CACHE_TTL_SECONDS}',
)


def build_query_params(args) -> dict:
    """
    Map browse query parameters onto QueryFiles parameters.

    A search term switches to text ranking and ignores `sort`. Unknown sort
    values fall back to trend. Tags are AND-matched.
    """
    params = {
        'appid': WORKSHOP_APP_ID,
        'return_details': 'true',
        'numperpage': CATALOG_PAGE_SIZE,
        'cache_max_age_seconds': '300',
    }
    if STEAM_API_KEY:
        params['key'] = STEAM_API_KEY

    search_text = args.get('q')
    if search_text:
        params['search_text'] = search_text
        params['query_type'] = TEXT_SEARCH_QUERY_TYPE
    else:
        sort = args.get('sort') or DEFAULT_SORT
        params['query_type'] = QUERY_TYPE_BY_SORT.get(sort, QUERY_TYPE_BY_SORT[DEFAULT_SORT])

    params['page'] = args.get('page') or '0'

    tags = args.get('tags')
    if tags:
        for index, tag in enumerate(tags.split(',')):
            params[f'requiredtags[{index}]'] = tag
        params['match_all_tags'] = 'true'

    return params


async def handle_list(args):
    data = await asyncio.to_thread(query_files, build_query_params(args))
    return json_response(data)


async def handle_detail(item_id: str):
    """Merge file details and scraped previews for one item."""
    records, page = await fetch_sources([item_id], with_page=True, api_key=STEAM_API_KEY)

    if not records:
        raise NotFoundError('Item not found')

    image_urls = extract_preview_images(page.html) if page.available else []
    log_event(
        'Preview scrape', item_id=item_id,
        images=len(image_urls), fetch_error=page.error
    )

    detail = merge_previews(records[0], image_urls)
    return json_response(build_detail_envelope(detail))


def route_request(request):
    """
    Validate the request and return (cache_key, pipeline).

    Raises:
        ClientInputError: unsupported method, unknown path or missing id
    """
    if request.method != 'GET':
        raise MethodNotAllowedError('Method Not Allowed')

    path = request.path
    if path not in ROUTES:
        raise NotFoundError('Not Found')

    args = dict(request.args.items())
    cache_key = build_catalog_cache_key(path, args)

    if path == '/list':
        return cache_key, lambda: handle_list(args)

    item_id = normalize_identifier(args.get('id'))
    if item_id is None:
        raise ClientInputError('Missing id parameter')
    return cache_key, lambda: handle_detail(item_id)


@functions_framework.http
def catalog(request):
    """
    Main Cloud Function entry point.

    GET /list?q=tank&page=1&sort=top&tags=Weapons,Maps
    GET /detail?id=123456789
    """
    # Handle CORS
    if request.method == 'OPTIONS':
        return ('', 204, PREFLIGHT_HEADERS)

    try:
        cache_key, pipeline = route_request(request)
    except ClientInputError as e:
        return e.to_response(JSON_HEADERS)

    try:
        return event_loop.run(_responder.respond(cache_key, pipeline))
    except Exception as e:
        log_event('Unhandled error', severity='ERROR', error=str(e), traceback=traceback.format_exc())
        return error_response('Internal Server Error', 500, JSON_HEADERS)
