"""
Тесты выбора сервера каталога
"""
import pytest

from auth.endpoint import select_endpoint
from auth.exceptions import NoValidEndpointError
from tests.fixtures.test_data import ENDPOINT, ENDPOINTS


class TestSelectEndpoint:
    """Тесты select_endpoint"""

    @pytest.mark.parametrize('url', [ENDPOINT, 'ldaps://dc.example.com', 'ldap://10.0.0.1'])
    def test_single_string_returned_unchanged(self, url):
        assert select_endpoint(url) == url

    def test_list_returns_member(self):
        for _ in range(50):
            assert select_endpoint(ENDPOINTS) in ENDPOINTS

    def test_list_drops_falsy_entries(self):
        endpoints = ['', None, ENDPOINTS[1], '']
        for _ in range(20):
            assert select_endpoint(endpoints) == ENDPOINTS[1]

    def test_list_uses_every_server(self):
        """Балансировка: за много вызовов выбирается каждый сервер"""
        seen = {select_endpoint(ENDPOINTS) for _ in range(200)}
        assert seen == set(ENDPOINTS)

    def test_tuple_is_accepted(self):
        assert select_endpoint(tuple(ENDPOINTS)) in ENDPOINTS

    @pytest.mark.parametrize('endpoint', [[], ['', None], '', None, 389, {'url': ENDPOINT}])
    def test_invalid_endpoint(self, endpoint):
        with pytest.raises(NoValidEndpointError):
            select_endpoint(endpoint)
