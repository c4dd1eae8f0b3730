"""
Signal extraction from workshop item pages.

The pages have no schema, so each signal is recovered by an ordered chain
of strategies. The first strategy that produces something wins and the
rest of the chain is skipped. Extraction never raises: no match anywhere
is a valid, empty result.

Signals:
- dependency ids ("Required items" block), for single-item batches
- preview image URLs, for the detail view
"""

import re
from typing import Callable, List, NamedTuple, Optional, Tuple

# Dependency block markers
CONTAINER_MARKER = '<div class="requiredItemsContainer">'
REQUIRED_ITEMS_MARKER = 'id="RequiredItems"'

# Large enough to hold every dependency entry, small enough to stay out of
# the recommendation and sidebar regions further down the page
SCOPE_WINDOW = 5000

# Sections known to follow the dependency block
STOP_MARKERS = [
    '<div class="workshopItemDescriptionTitle">',  # description
    '<div id="Comments_Area">',  # comments
    '<div class="see_all_collections">',  # collections
    '<div class="game_area_purchase_game_wrapper">',  # purchase panel
    '<div style="clear: left;"></div>',  # layout clear
    '<div class="share_block">',  # share panel
]

ITEM_LINK_PATTERN = re.compile(r'href="[^"]*/filedetails/\?id=(\d+)')

SCREENSHOT_ARRAY_PATTERN = re.compile(r'var\s+rgFullScreenshotURLs\s*=\s*\[([\s\S]+?)\];')
SCREENSHOT_URL_PATTERN = re.compile(r'[\'"]url[\'"]\s*:\s*[\'"]([^\'"]+)[\'"]')
ENLARGED_PREVIEW_PATTERN = re.compile(r'ShowEnlargedImagePreview\(\s*\'([^\']+)\'')
MAIN_PREVIEW_PATTERN = re.compile(r'<img\s+id="previewImageMain"[^>]+src="([^"]+)"', re.IGNORECASE)

URL_SCHEMES = ('http://', 'https://')


class DependencyScope(NamedTuple):
    """The slice of the page searched for dependency links."""

    text: str
    strategy: Optional[str]  # None when no marker was found


# =============================================================================
# Dependency scope strategies
# =============================================================================

def _truncate_at_stop_markers(window: str) -> str:
    stop = len(window)
    for marker in STOP_MARKERS:
        index = window.find(marker)
        if index != -1 and index < stop:
            stop = index
    return window[:stop]


def scope_from_container(html: str) -> Optional[str]:
    """Window after the required-items container, cut at the first stop marker."""
    start = html.find(CONTAINER_MARKER)
    if start == -1:
        return None
    return _truncate_at_stop_markers(html[start:start + SCOPE_WINDOW])


def scope_from_required_items_id(html: str) -> Optional[str]:
    """Window after the RequiredItems element id. No stop-marker truncation."""
    start = html.find(REQUIRED_ITEMS_MARKER)
    if start == -1:
        return None
    return html[start:start + SCOPE_WINDOW]


# Priority order. No whole-document fallback: an unscoped search picks up
# "more from this author" and sidebar links.
DEPENDENCY_SCOPE_STRATEGIES: List[Tuple[str, Callable[[str], Optional[str]]]] = [
    ('container', scope_from_container),
    ('required_items_id', scope_from_required_items_id),
]


def resolve_dependency_scope(html: str) -> DependencyScope:
    """Run the scope strategies in order and return the first match."""
    if not html:
        return DependencyScope('', None)

    for name, strategy in DEPENDENCY_SCOPE_STRATEGIES:
        scope = strategy(html)
        if scope is not None:
            return DependencyScope(scope, name)

    return DependencyScope('', None)


def extract_item_links(scope: str, exclude_id: Optional[str] = None) -> List[str]:
    """
    Collect item ids linked from `scope`, in page order.

    Ids are deduplicated and `exclude_id` (the page's own item) is dropped.
    """
    found = []
    for match in ITEM_LINK_PATTERN.finditer(scope):
        identifier = match.group(1)
        if identifier == exclude_id or identifier in found:
            continue
        found.append(identifier)
    return found


class DependencyScan(NamedTuple):
    """Dependency ids found on a page, with the scope they came from."""

    scope: DependencyScope
    ids: List[str]


def scan_dependencies(html: Optional[str], own_id: str) -> DependencyScan:
    """
    Extract dependency ids from an item page.

    Args:
        html: Page HTML (None or empty yields no dependencies)
        own_id: Canonical id of the page's item, never returned

    Returns:
        DependencyScan with ids as strings, in page order, without duplicates
    """
    scope = resolve_dependency_scope(html or '')
    return DependencyScan(scope, extract_item_links(scope.text, exclude_id=str(own_id)))


# =============================================================================
# Preview image strategies
# =============================================================================

def images_from_screenshot_array(html: str) -> List[str]:
    """Every `url` entry of the embedded rgFullScreenshotURLs array, in order."""
    match = SCREENSHOT_ARRAY_PATTERN.search(html)
    if not match:
        return []
    return SCREENSHOT_URL_PATTERN.findall(match.group(1))


def images_from_enlarge_calls(html: str) -> List[str]:
    """Absolute URLs passed to ShowEnlargedImagePreview(); other arguments are ids."""
    return [
        url for url in ENLARGED_PREVIEW_PATTERN.findall(html)
        if url.startswith(URL_SCHEMES)
    ]


def images_from_main_preview(html: str) -> List[str]:
    match = MAIN_PREVIEW_PATTERN.search(html)
    return [match.group(1)] if match else []


PREVIEW_IMAGE_STRATEGIES: List[Tuple[str, Callable[[str], List[str]]]] = [
    ('screenshot_array', images_from_screenshot_array),
    ('enlarge_calls', images_from_enlarge_calls),
    ('main_preview', images_from_main_preview),
]


def extract_preview_images(html: Optional[str]) -> List[str]:
    """
    Extract preview image URLs from an item page.

    Returns the result of the first strategy that finds at least one URL,
    or an empty list. Index 0 is the cover image.
    """
    if not html:
        return []

    for _name, strategy in PREVIEW_IMAGE_STRATEGIES:
        urls = strategy(html)
        if urls:
            return urls

    return []
