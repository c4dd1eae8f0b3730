"""
Unit tests for the /list parameter mapping in workshop-catalog.

build_query_params is pure, so these run without any HTTP mocking.
Plain dicts stand in for Flask's request.args; both support .get().
"""


class TestBuildQueryParams:
    """Tests for build_query_params()"""

    def test_fixed_parameters(self, build_query_params, catalog_module):
        """App, page size, details flag and upstream cache age are always sent."""
        params = build_query_params({})

        assert params['appid'] == catalog_module.WORKSHOP_APP_ID
        assert params['numperpage'] == catalog_module.CATALOG_PAGE_SIZE
        assert params['return_details'] == 'true'
        assert params['cache_max_age_seconds'] == '300'

    def test_default_sort_is_trend(self, build_query_params):
        """No sort and no search ranks by trend."""
        assert build_query_params({})['query_type'] == '3'

    def test_sort_top(self, build_query_params):
        """sort=top ranks by vote."""
        assert build_query_params({'sort': 'top'})['query_type'] == '0'

    def test_sort_recent(self, build_query_params):
        """sort=recent ranks by publication date."""
        assert build_query_params({'sort': 'recent'})['query_type'] == '1'

    def test_sort_trend(self, build_query_params):
        """sort=trend is explicit trend ranking."""
        assert build_query_params({'sort': 'trend'})['query_type'] == '3'

    def test_unknown_sort_falls_back_to_trend(self, build_query_params):
        """Unrecognized sort values rank by trend."""
        assert build_query_params({'sort': 'bogus'})['query_type'] == '3'

    def test_empty_sort_falls_back_to_trend(self, build_query_params):
        """An empty sort value is treated as missing."""
        assert build_query_params({'sort': ''})['query_type'] == '3'

    def test_search_switches_to_text_ranking(self, build_query_params):
        """q sets search_text and ranks by text search."""
        params = build_query_params({'q': 'zombie'})

        assert params['query_type'] == '12'
        assert params['search_text'] == 'zombie'

    def test_search_ignores_sort(self, build_query_params):
        """When q is present the sort value has no effect."""
        params = build_query_params({'q': 'zombie', 'sort': 'top'})

        assert params['query_type'] == '12'
        assert params['search_text'] == 'zombie'

    def test_empty_search_uses_sort(self, build_query_params):
        """An empty q does not trigger text search."""
        params = build_query_params({'q': '', 'sort': 'recent'})

        assert params['query_type'] == '1'
        assert 'search_text' not in params

    def test_page_defaults_to_zero(self, build_query_params):
        """Without page the first page is requested."""
        assert build_query_params({})['page'] == '0'

    def test_page_forwarded(self, build_query_params):
        """An explicit page is forwarded unchanged."""
        assert build_query_params({'page': '4'})['page'] == '4'

    def test_tags_become_required_tags(self, build_query_params):
        """Comma-separated tags are indexed and all must match."""
        params = build_query_params({'tags': 'Survivors,Weapons'})

        assert params['requiredtags[0]'] == 'Survivors'
        assert params['requiredtags[1]'] == 'Weapons'
        assert params['match_all_tags'] == 'true'

    def test_no_tags_no_tag_filter(self, build_query_params):
        """Without tags no tag filter is sent."""
        params = build_query_params({})

        assert 'match_all_tags' not in params
        assert not any(key.startswith('requiredtags') for key in params)

    def test_key_sent_when_configured(self, build_query_params, catalog_module, monkeypatch):
        """A configured API key is included."""
        monkeypatch.setattr(catalog_module, 'STEAM_API_KEY', 'secret')
        assert build_query_params({})['key'] == 'secret'

    def test_key_omitted_when_unset(self, build_query_params, catalog_module, monkeypatch):
        """No key parameter without a configured key."""
        monkeypatch.setattr(catalog_module, 'STEAM_API_KEY', None)
        assert 'key' not in build_query_params({})
