import unittest

import requests

from crypto_explorer.config import settings
from crypto_explorer.data_sources import coingecko_client
from crypto_explorer.errors import FetchFailedError


class DummyResp:
    def __init__(self, payload=None, status_code=200, bad_json=False):
        self._payload = payload
        self.status_code = status_code
        self._bad_json = bad_json

    def json(self):
        if self._bad_json:
            raise ValueError("not json")
        return self._payload


class RecordingSession:
    def __init__(self, resp=None, exc=None):
        self.resp = resp
        self.exc = exc
        self.calls = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append({"url": url, "params": params, "headers": headers, "timeout": timeout})
        if self.exc is not None:
            raise self.exc
        return self.resp


class TestCoinGeckoClient(unittest.TestCase):
    def setUp(self):
        self._orig_session = coingecko_client.session
        self._orig_key = settings.coingecko_api_key
        self._orig_base = settings.coingecko_base_url
        settings.coingecko_base_url = "https://cg.test/api/v3"
        settings.coingecko_api_key = None

    def tearDown(self):
        coingecko_client.session = self._orig_session
        settings.coingecko_api_key = self._orig_key
        settings.coingecko_base_url = self._orig_base

    def _install(self, **kwargs):
        fake = RecordingSession(**kwargs)
        coingecko_client.session = fake
        return fake

    def test_fetch_markets_sends_listing_params(self):
        fake = self._install(resp=DummyResp([{"id": "bitcoin"}]))

        rows = coingecko_client.fetch_markets(2, 25)

        self.assertEqual(rows, [{"id": "bitcoin"}])
        call = fake.calls[0]
        self.assertEqual(call["url"], "https://cg.test/api/v3/coins/markets")
        self.assertEqual(
            call["params"],
            {"vs_currency": "usd", "order": "market_cap_desc", "per_page": 25, "page": 2, "sparkline": "false"},
        )
        self.assertNotIn("x-cg-demo-api-key", call["headers"])

    def test_api_key_header_when_configured(self):
        settings.coingecko_api_key = "demo-key"
        fake = self._install(resp=DummyResp([]))
        coingecko_client.fetch_markets(1, 10)
        self.assertEqual(fake.calls[0]["headers"]["x-cg-demo-api-key"], "demo-key")

    def test_fetch_coin_excludes_heavy_sections(self):
        fake = self._install(resp=DummyResp({"id": "bitcoin"}))

        data = coingecko_client.fetch_coin("bitcoin")

        self.assertEqual(data["id"], "bitcoin")
        call = fake.calls[0]
        self.assertEqual(call["url"], "https://cg.test/api/v3/coins/bitcoin")
        for flag in ("localization", "tickers", "community_data", "developer_data", "sparkline"):
            self.assertEqual(call["params"][flag], "false")

    def test_fetch_market_chart_requests_daily_prices(self):
        fake = self._install(resp=DummyResp({"prices": []}))

        coingecko_client.fetch_market_chart("ethereum", 7)

        call = fake.calls[0]
        self.assertEqual(call["url"], "https://cg.test/api/v3/coins/ethereum/market_chart")
        self.assertEqual(call["params"], {"vs_currency": "usd", "days": 7, "interval": "daily"})

    def test_rate_limit_status_is_kept(self):
        self._install(resp=DummyResp({"status": "throttled"}, status_code=429))
        with self.assertRaises(FetchFailedError) as ctx:
            coingecko_client.fetch_markets(1, 10)
        self.assertEqual(ctx.exception.status_code, 429)
        self.assertTrue(ctx.exception.rate_limited)

    def test_server_error_is_fetch_failure(self):
        self._install(resp=DummyResp({}, status_code=503))
        with self.assertRaises(FetchFailedError) as ctx:
            coingecko_client.fetch_coin("bitcoin")
        self.assertFalse(ctx.exception.rate_limited)

    def test_network_error_is_fetch_failure(self):
        self._install(exc=requests.exceptions.ConnectionError("boom"))
        with self.assertRaises(FetchFailedError) as ctx:
            coingecko_client.fetch_market_chart("bitcoin", 7)
        self.assertIsNone(ctx.exception.status_code)

    def test_invalid_json_is_fetch_failure(self):
        self._install(resp=DummyResp(bad_json=True))
        with self.assertRaises(FetchFailedError):
            coingecko_client.fetch_markets(1, 10)

    def test_listing_must_be_array(self):
        self._install(resp=DummyResp({"error": "nope"}))
        with self.assertRaises(FetchFailedError):
            coingecko_client.fetch_markets(1, 10)


if __name__ == "__main__":
    unittest.main()
