"""
Shared pytest fixtures for the workshop metadata function tests.
"""

import pytest
import sys
import importlib.util
from pathlib import Path

# Project root for finding Cloud Function modules
PROJECT_ROOT = Path(__file__).parent.parent

from workshop_core import event_loop
from workshop_core.response_cache import CachingResponder, MemoryResponseCache


def _load_module_from_path(module_name: str, file_path: Path):
    """Load a module from a specific file path."""
    spec = importlib.util.spec_from_file_location(module_name, file_path)
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    spec.loader.exec_module(module)
    return module


# Load Cloud Function modules with unique names at module load time
_batch_module = _load_module_from_path(
    'workshop_batch_main',
    PROJECT_ROOT / 'workshop-batch' / 'main.py'
)

_catalog_module = _load_module_from_path(
    'workshop_catalog_main',
    PROJECT_ROOT / 'workshop-catalog' / 'main.py'
)


# ============================================================================
# Function Module Fixtures
# ============================================================================

@pytest.fixture
def batch_module(monkeypatch):
    """Batch function module with a fresh, empty response cache."""
    responder = CachingResponder(
        MemoryResponseCache(),
        ttl_seconds=_batch_module.CACHE_TTL_SECONDS,
        cache_control=f'public, max-age={_batch_module.CACHE_TTL_SECONDS}',
    )
    monkeypatch.setattr(_batch_module, '_responder', responder)
    return _batch_module


@pytest.fixture
def catalog_module(monkeypatch):
    """Catalog function module with a fresh, empty response cache."""
    ttl = _catalog_module.CACHE_TTL_SECONDS
    responder = CachingResponder(
        MemoryResponseCache(),
        ttl_seconds=ttl,
        cache_control=f'public, max-age={ttl}, s-maxage={ttl}',
    )
    monkeypatch.setattr(_catalog_module, '_responder', responder)
    return _catalog_module


@pytest.fixture
def resolve_batch(batch_module):
    """Returns main entry point from workshop-batch."""
    return batch_module.resolve_batch


@pytest.fixture
def catalog(catalog_module):
    """Returns main entry point from workshop-catalog."""
    return catalog_module.catalog


@pytest.fixture
def drain_cache_writes():
    """Waits for a module's scheduled cache writes on the shared loop."""
    def drain(module):
        event_loop.run(module._responder.drain(), timeout=5)
    return drain


@pytest.fixture
def build_query_params(catalog_module):
    """Returns the /list parameter mapping from workshop-catalog."""
    return catalog_module.build_query_params


# ============================================================================
# Request Fixtures
# ============================================================================

@pytest.fixture
def mock_flask_request():
    """Factory for creating mock Flask request objects."""
    class MockRequest:
        def __init__(self, json_data=None, method='POST', path='/', args=None):
            self._json = json_data
            self.method = method
            self.path = path
            self.args = args or {}
            self.data = b''

        def get_json(self, force=False, silent=False):
            return self._json

    return MockRequest


# ============================================================================
# Upstream Payload Fixtures
# ============================================================================

@pytest.fixture
def file_details_factory():
    """Builds a GetPublishedFileDetails envelope from partial records."""
    def build(*records):
        details = []
        for record in records:
            item = {
                'result': 1,
                'publishedfileid': '123',
                'creator': '76561198000000000',
                'filename': 'mod.vpk',
                'file_size': 1048576,
                'file_url': 'https://cdn.example.com/mod.vpk',
                'preview_url': 'https://images.example.com/preview.jpg',
                'title': 'Test Mod',
                'description': 'A mod used in tests',
                'subscriptions': 42,
            }
            item.update(record)
            details.append(item)
        return {
            'response': {
                'result': 1,
                'resultcount': len(details),
                'publishedfiledetails': details,
            }
        }
    return build


def _item_link(item_id: str) -> str:
    return (
        f'<a href="https://steamcommunity.com/workshop/filedetails/?id={item_id}">'
        f'<div class="requiredItem">Item {item_id}</div></a>'
    )


@pytest.fixture
def item_link():
    return _item_link


@pytest.fixture
def dependency_page_html():
    """Item page with two required items, then unrelated links after a stop marker."""
    return f"""
    <html>
    <body>
        <div class="workshopItemTitle">Test Mod</div>
        <div class="requiredItemsContainer">
            {_item_link('111')}
            {_item_link('222')}
        </div>
        <div class="workshopItemDescriptionTitle">Description</div>
        <div class="workshopItemDescription">
            See also {_item_link('333')} and {_item_link('444')}
        </div>
    </body>
    </html>
    """


@pytest.fixture
def preview_page_html():
    """Item page satisfying all three preview strategies with different URLs."""
    return """
    <html>
    <head>
    <script>
        var rgFullScreenshotURLs = [
            { 'previewid' : '1001', 'url': 'https://images.example.com/shot1.jpg' },
            { 'previewid' : '1002', 'url': 'https://images.example.com/shot2.jpg' }
        ];
    </script>
    </head>
    <body>
        <img id="previewImageMain" class="workshopItemPreviewImageMain" src="https://images.example.com/main.jpg">
        <a onclick="ShowEnlargedImagePreview( 'https://images.example.com/enlarged.jpg' );">zoom</a>
    </body>
    </html>
    """
