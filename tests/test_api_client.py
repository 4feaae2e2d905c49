import unittest

import requests

from crypto_explorer.errors import ApiError, OperationCancelled
from crypto_explorer.explorer.api_client import ExplorerApiClient
from crypto_explorer.explorer.cancellation import CancellationToken
from crypto_explorer.favorites_store.base import AddOutcome


class DummyResp:
    def __init__(self, payload=None, status_code=200, text=""):
        self._payload = payload
        self.status_code = status_code
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class RecordingSession:
    def __init__(self, *responses, exc=None):
        self.responses = list(responses)
        self.exc = exc
        self.calls = []

    def request(self, method, url, headers=None, timeout=None, **kwargs):
        self.calls.append({"method": method, "url": url, "headers": headers, **kwargs})
        if self.exc is not None:
            raise self.exc
        return self.responses.pop(0)


def _client(session, api_key=None):
    return ExplorerApiClient("http://api.test/api/", session=session, timeout=2, api_key=api_key)


class TestExplorerApiClient(unittest.TestCase):
    def test_list_assets_parses_page(self):
        session = RecordingSession(
            DummyResp(
                {
                    "assets": [{"id": "bitcoin", "name": "Bitcoin", "symbol": "btc"}],
                    "page": 2,
                    "perPage": 1,
                    "hasMore": True,
                }
            )
        )
        page = _client(session).list_assets(2, 1)

        self.assertEqual(page.assets[0].id, "bitcoin")
        self.assertTrue(page.has_more)
        self.assertEqual(session.calls[0]["url"], "http://api.test/api/assets")
        self.assertEqual(session.calls[0]["params"], {"page": 2, "per_page": 1})

    def test_list_assets_omits_unset_params(self):
        session = RecordingSession(DummyResp({"assets": [], "page": 1, "perPage": 10, "hasMore": False}))
        _client(session).list_assets()
        self.assertEqual(session.calls[0]["params"], {})

    def test_api_key_header(self):
        session = RecordingSession(DummyResp({"favorites": []}))
        _client(session, api_key="k").list_favorites()
        self.assertEqual(session.calls[0]["headers"]["X-API-Key"], "k")

    def test_rate_limit_status_carried(self):
        session = RecordingSession(DummyResp({"error": "Failed to fetch crypto assets"}, status_code=429))
        with self.assertRaises(ApiError) as ctx:
            _client(session).list_assets(2, 10)
        self.assertTrue(ctx.exception.rate_limited)
        self.assertEqual(ctx.exception.message, "Failed to fetch crypto assets")

    def test_error_body_on_success_status(self):
        session = RecordingSession(DummyResp({"error": "upstream"}, status_code=200))
        with self.assertRaises(ApiError) as ctx:
            _client(session).list_assets()
        self.assertEqual(ctx.exception.status_code, 200)

    def test_network_failure_has_no_status(self):
        session = RecordingSession(exc=requests.exceptions.ConnectionError("refused"))
        with self.assertRaises(ApiError) as ctx:
            _client(session).list_favorites()
        self.assertIsNone(ctx.exception.status_code)

    def test_add_favorite_outcomes(self):
        created = {"favorite": {"id": "1", "asset_id": "bitcoin", "created_at": "2024-01-01T00:00:00Z"}}
        session = RecordingSession(
            DummyResp(created, status_code=201),
            DummyResp({"message": "Asset already in favorites"}, status_code=200),
        )
        client = _client(session)
        self.assertEqual(client.add_favorite("bitcoin"), AddOutcome.CREATED)
        self.assertEqual(client.add_favorite("bitcoin"), AddOutcome.ALREADY_EXISTS)
        self.assertEqual(session.calls[0]["json"], {"asset_id": "bitcoin"})

    def test_remove_favorite_sends_query(self):
        session = RecordingSession(DummyResp({"message": "Favorite removed successfully"}))
        _client(session).remove_favorite("bitcoin")
        self.assertEqual(session.calls[0]["method"], "DELETE")
        self.assertEqual(session.calls[0]["params"], {"asset_id": "bitcoin"})

    def test_history_and_detail(self):
        session = RecordingSession(
            DummyResp([{"timestamp": 1, "price": 2.5}]),
            DummyResp({"id": "bitcoin", "name": "Bitcoin", "symbol": "btc"}),
        )
        client = _client(session)
        self.assertEqual(client.get_asset_history("bitcoin")[0].price, 2.5)
        self.assertEqual(client.get_asset_detail("bitcoin").name, "Bitcoin")
        self.assertEqual(session.calls[0]["url"], "http://api.test/api/assets/bitcoin/chart")

    def test_asset_id_is_path_encoded(self):
        session = RecordingSession(
            DummyResp({"id": "a/b?c", "name": "Odd", "symbol": "odd"}),
            DummyResp([]),
        )
        client = _client(session)
        client.get_asset_detail("a/b?c")
        client.get_asset_history("a/b?c")
        self.assertEqual(session.calls[0]["url"], "http://api.test/api/assets/a%2Fb%3Fc")
        self.assertEqual(session.calls[1]["url"], "http://api.test/api/assets/a%2Fb%3Fc/chart")

    def test_cancelled_token_skips_request(self):
        session = RecordingSession()
        token = CancellationToken()
        token.cancel()
        with self.assertRaises(OperationCancelled):
            _client(session).list_assets(token=token)
        self.assertEqual(session.calls, [])


if __name__ == "__main__":
    unittest.main()
