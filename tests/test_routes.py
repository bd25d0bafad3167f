import threading
import unittest
from datetime import datetime, timezone
from unittest.mock import patch

from fastapi import FastAPI
from fastapi.testclient import TestClient

from candle_cache.api.middleware import log_requests
from candle_cache.api.routes import get_store, router
from candle_cache.candles.store import CandleStore

from fakes import make_candles

T0 = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class TestRoutes(unittest.TestCase):
    def setUp(self):
        self.store = CandleStore()
        app = FastAPI()
        app.middleware("http")(log_requests)
        app.include_router(router)
        app.dependency_overrides[get_store] = lambda: self.store
        self.client = TestClient(app)

    def test_each_request_is_logged(self):
        with self.assertLogs("candle_cache", level="INFO") as logs:
            self.client.get("/api/candles/xyz")
            self.client.get("/health")

        self.assertEqual(len(logs.output), 2)
        self.assertIn("GET /api/candles/xyz -> 404", logs.output[0])
        self.assertIn("GET /health -> 200", logs.output[1])

    def test_all_candles_with_etag(self):
        with patch("candle_cache.candles.store.utcnow", return_value=T0):
            self.store.set_candles("BTC", make_candles(2))
            self.store.set_candles("ETH", [])

        resp = self.client.get("/api/candles")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.headers["etag"], f'"{int(T0.timestamp())}"')
        body = resp.json()
        self.assertEqual(sorted(body), ["BTC", "ETH"])
        self.assertEqual(body["BTC"]["symbol"], "BTC")
        self.assertEqual(
            set(body["BTC"]["candles"][0]),
            {"timestamp", "open", "high", "low", "close", "volume"},
        )
        self.assertEqual(body["BTC"]["candles"][0]["timestamp"], 1_700_000_000_000)
        self.assertEqual(body["ETH"]["candles"], [])

    def test_all_candles_without_data_has_no_etag(self):
        resp = self.client.get("/api/candles")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {})
        self.assertNotIn("etag", resp.headers)

    def test_symbol_lookup_is_case_insensitive(self):
        with patch("candle_cache.candles.store.utcnow", return_value=T0):
            self.store.set_candles("BTC", make_candles(3))

        resp = self.client.get("/api/candles/btc")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.headers["etag"], f'"{int(T0.timestamp())}"')
        body = resp.json()
        self.assertEqual(body["symbol"], "BTC")
        self.assertEqual(len(body["candles"]), 3)
        self.assertEqual(datetime.fromisoformat(body["last_update"].replace("Z", "+00:00")), T0)

    def test_empty_entry_is_200_not_404(self):
        self.store.set_candles("BTC", [])

        resp = self.client.get("/api/candles/BTC")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["candles"], [])

    def test_unknown_symbol_is_404(self):
        resp = self.client.get("/api/candles/xyz")

        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["detail"], "Symbol not found")

    def test_blank_symbol_is_400(self):
        resp = self.client.get("/api/candles/%20")

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["detail"], "Symbol required")

    def test_symbols(self):
        self.store.set_symbols(["BTC", "ETH", "kPEPE"])

        resp = self.client.get("/api/symbols")

        self.assertEqual(resp.json(), {"symbols": ["BTC", "ETH", "kPEPE"], "count": 3})

    def test_health_omits_unset_timestamps(self):
        resp = self.client.get("/health")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"status": "healthy", "symbol_count": 0})

    def test_health_reports_freshness(self):
        self.store.set_symbols(["BTC", "ETH"])
        self.store.set_candles("BTC", [])

        body = self.client.get("/health").json()

        self.assertEqual(body["status"], "healthy")
        self.assertEqual(body["symbol_count"], 2)
        self.assertIn("last_update", body)
        self.assertIn("symbol_update", body)

    def test_concurrent_writes_then_snapshot(self):
        writers = [
            threading.Thread(target=self.store.set_candles, args=(sym, make_candles(1)))
            for sym in ("BTC", "ETH")
        ]
        for t in writers:
            t.start()
        for t in writers:
            t.join()

        body = self.client.get("/api/candles").json()

        self.assertEqual(sorted(body), ["BTC", "ETH"])


if __name__ == "__main__":
    unittest.main()
