"""
Outbound calls to the Steam Web API and the public workshop pages.

Responsibilities:
- POST file details for a batch of ids (authoritative, must succeed)
- GET an item's public page (optional enrichment, never fatal)
- GET catalog queries for the browse view
- Run the details call and the page fetch concurrently

Does NOT:
- Retry or back off (single attempt, best effort)
- Parse HTML (see html_signals)
"""

import asyncio
from typing import List, NamedTuple, Optional, Tuple

import requests

from .errors import UpstreamError
from .log_utils import log_event

FILE_DETAILS_URL = 'https://api.steampowered.com/ISteamRemoteStorage/GetPublishedFileDetails/v1/'
QUERY_FILES_URL = 'https://api.steampowered.com/IPublishedFileService/QueryFiles/v1/'
ITEM_PAGE_URL = 'https://steamcommunity.com/sharedfiles/filedetails/'

# Document servers reject default client signatures
USER_AGENT = 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'

API_TIMEOUT = 15
PAGE_TIMEOUT = 15


class PageFetch(NamedTuple):
    """Outcome of an item page fetch: html on success, error otherwise."""

    html: Optional[str]
    error: Optional[str] = None

    @property
    def available(self) -> bool:
        return self.html is not None


def page_unavailable(reason: str) -> PageFetch:
    return PageFetch(None, reason)


# Returned when no page fetch was requested at all
NOT_REQUESTED = page_unavailable('Page fetch not requested')


def post_file_details(identifiers: List[str], api_key: Optional[str] = None) -> List[dict]:
    """
    Fetch structured records for a batch of ids.

    Args:
        identifiers: Canonical identifier strings, in request order
        api_key: Optional Steam Web API key

    Returns:
        The `response.publishedfiledetails` list from the API envelope

    Raises:
        UpstreamError: non-success status, transport failure, or a body
            without the expected envelope
    """
    form = {'itemcount': str(len(identifiers))}
    if api_key:
        form['key'] = api_key
    for index, identifier in enumerate(identifiers):
        form[f'publishedfileids[{index}]'] = identifier

    try:
        response = requests.post(FILE_DETAILS_URL, data=form, timeout=API_TIMEOUT)
    except requests.exceptions.RequestException as e:
        log_event('File details request failed', severity='ERROR', error=str(e))
        raise UpstreamError(f'Steam API request failed: {e}')

    if not response.ok:
        log_event(
            'File details returned error status', severity='ERROR',
            status=response.status_code, url=FILE_DETAILS_URL
        )
        raise UpstreamError(
            f'Steam API Error: {response.status_code}',
            upstream_status=response.status_code
        )

    return _unwrap_details(response)


def _unwrap_details(response: requests.Response) -> List[dict]:
    try:
        data = response.json()
    except ValueError:
        raise UpstreamError('Invalid response from Steam')

    envelope = data.get('response') if isinstance(data, dict) else None
    if not isinstance(envelope, dict):
        raise UpstreamError('Invalid response from Steam')

    details = envelope.get('publishedfiledetails')
    if not isinstance(details, list):
        raise UpstreamError('Invalid response from Steam')

    return [item for item in details if isinstance(item, dict)]


def fetch_item_page(identifier: str) -> PageFetch:
    """Fetch an item's public page. Never raises; failures become unavailable."""
    headers = {
        'User-Agent': USER_AGENT,
        'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
        'Accept-Language': 'en-US,en;q=0.5',
    }

    try:
        response = requests.get(
            ITEM_PAGE_URL,
            params={'id': identifier},
            headers=headers,
            timeout=PAGE_TIMEOUT,
            allow_redirects=True
        )
        response.raise_for_status()
        return PageFetch(response.text)

    except requests.exceptions.Timeout:
        return page_unavailable('Request timed out')
    except requests.exceptions.HTTPError as e:
        return page_unavailable(f'HTTP error: {e.response.status_code}')
    except requests.exceptions.RequestException as e:
        return page_unavailable(f'Request failed: {str(e)}')


def query_files(params: dict) -> dict:
    """
    Run a catalog query and return the upstream JSON unchanged.

    Raises:
        UpstreamError: transport failure, non-success status or non-JSON body
    """
    try:
        response = requests.get(QUERY_FILES_URL, params=params, timeout=API_TIMEOUT)
    except requests.exceptions.RequestException as e:
        log_event('Catalog query failed', severity='ERROR', error=str(e))
        raise UpstreamError(f'Steam API request failed: {e}')

    if not response.ok:
        log_event(
            'Catalog query returned error status', severity='ERROR',
            status=response.status_code, url=QUERY_FILES_URL
        )
        raise UpstreamError(
            f'Steam API Error: {response.status_code}',
            upstream_status=response.status_code
        )

    try:
        return response.json()
    except ValueError:
        raise UpstreamError('Invalid response from Steam')


async def fetch_sources(
    identifiers: List[str],
    with_page: bool,
    api_key: Optional[str] = None
) -> Tuple[List[dict], PageFetch]:
    """
    Fetch file details and, optionally, the page of the first identifier.

    Both calls run at the same time and are joined, so latency is bounded
    by the slower of the two. A page failure comes back as an unavailable
    PageFetch; a details failure raises UpstreamError once both finished.
    """
    details_call = asyncio.to_thread(post_file_details, identifiers, api_key)

    if not with_page:
        return await details_call, NOT_REQUESTED

    page_call = asyncio.to_thread(fetch_item_page, identifiers[0])
    details, page = await asyncio.gather(details_call, page_call, return_exceptions=True)

    if isinstance(page, BaseException):
        page = page_unavailable(f'Page fetch failed: {page}')
    if isinstance(details, BaseException):
        raise details
    return details, page
