import unittest

from fastapi.testclient import TestClient

from crypto_explorer.main import app


class TestMain(unittest.TestCase):
    def test_app_metadata(self):
        self.assertEqual(app.title, "Crypto Explorer")
        paths = set(app.openapi()["paths"])
        self.assertIn("/api/assets", paths)
        self.assertIn("/api/assets/{asset_id}", paths)
        self.assertIn("/api/assets/{asset_id}/chart", paths)
        self.assertIn("/api/favorites", paths)

    def test_unknown_route_uses_error_body(self):
        client = TestClient(app)
        resp = client.get("/api/does-not-exist/x/y")
        self.assertEqual(resp.status_code, 404)
        self.assertIn("error", resp.json())


if __name__ == "__main__":
    unittest.main()
