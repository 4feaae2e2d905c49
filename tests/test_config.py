import os
import unittest

from crypto_explorer.config import Settings


class TestConfig(unittest.TestCase):
    def _with_env(self, name, value):
        previous = os.environ.get(name)
        os.environ[name] = value

        def restore():
            if previous is None:
                os.environ.pop(name, None)
            else:
                os.environ[name] = previous

        self.addCleanup(restore)

    def test_settings_defaults(self):
        previous = os.environ.pop("EXPLORER_COINGECKO_BASE_URL", None)
        try:
            s = Settings()
            self.assertEqual(s.coingecko_base_url, "https://api.coingecko.com/api/v3")
            self.assertEqual(s.list_cache_ttl_seconds, 60)
            self.assertEqual(s.detail_cache_ttl_seconds, 300)
            self.assertEqual(s.history_cache_ttl_seconds, 300)
            self.assertEqual(s.list_cache_max_entries, 10)
            self.assertEqual(s.history_days, 7)
        finally:
            if previous is not None:
                os.environ["EXPLORER_COINGECKO_BASE_URL"] = previous

    def test_base_url_trailing_slash_stripped(self):
        self._with_env("EXPLORER_COINGECKO_BASE_URL", "http://example.com/api/")
        self._with_env("EXPLORER_API_BASE_URL", "http://localhost:9000/api/")
        s = Settings()
        self.assertEqual(s.coingecko_base_url, "http://example.com/api")
        self.assertEqual(s.api_base_url, "http://localhost:9000/api")

    def test_cache_backend_override(self):
        self._with_env("EXPLORER_CACHE_BACKEND", "redis")
        self._with_env("EXPLORER_CACHE_REDIS_URL", "redis://localhost:6379/0")
        s = Settings()
        self.assertEqual(s.cache_backend, "redis")
        self.assertEqual(s.cache_redis_url, "redis://localhost:6379/0")

    def test_numeric_override(self):
        self._with_env("EXPLORER_SEARCH_DEBOUNCE_SECONDS", "0.5")
        self._with_env("EXPLORER_PAGE_SIZE", "25")
        s = Settings()
        self.assertEqual(s.search_debounce_seconds, 0.5)
        self.assertEqual(s.page_size, 25)


if __name__ == "__main__":
    unittest.main()
