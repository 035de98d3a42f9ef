import os
import unittest
from unittest.mock import patch
from uuid import uuid4

# sets DATABASE_URL before database is imported
from tests.fakes import FakeAggregator, FakeLLM, make_session_factory, quote

from fastapi.testclient import TestClient

from database import get_db
from main import create_app
from middleware.rate_limit import limiter
from routers.ai_routes import get_advisor
from routers.portfolio_routes import get_aggregator
from services.portfolio.advisor import PortfolioAdvisor
from services.pricing.types import AssetType, PriceQuery

DEVICE = "device-1234567890abcdef"


class ApiTestCase(unittest.TestCase):
    rate_limit = "1000/minute"

    def setUp(self):
        env = patch.dict(os.environ, {"RATE_LIMIT_DEFAULT": self.rate_limit})
        env.start()
        self.addCleanup(env.stop)
        enabled = patch.object(limiter, "enabled", True)
        enabled.start()
        self.addCleanup(enabled.stop)
        limiter.reset()

        Session = make_session_factory()

        def override_get_db():
            db = Session()
            try:
                yield db
            finally:
                db.close()

        self.aggregator = FakeAggregator(
            {
                PriceQuery(AssetType.CRYPTO, "BTC"): quote("BTC", 15000),
                PriceQuery(AssetType.STOCK, "AAPL"): quote("AAPL", 200),
            }
        )
        self.llm = FakeLLM(error=RuntimeError("provider down"))

        self.app = create_app()
        self.app.dependency_overrides[get_db] = override_get_db
        self.app.dependency_overrides[get_aggregator] = lambda: self.aggregator
        self.app.dependency_overrides[get_advisor] = lambda: PortfolioAdvisor(self.llm)
        self.client = TestClient(self.app)

    def register(self, device_id=DEVICE):
        return self.client.post("/api/users/register", json={"deviceId": device_id})

    def headers(self, device_id=DEVICE):
        return {"x-device-id": device_id}

    def setup_account(self):
        user = self.register().json()["data"]
        account = self.client.post("/api/accounts", json={"name": "Main"}, headers=self.headers())
        return user, account.json()["data"]

    def add_asset(self, account_id, **body):
        body.setdefault("accountId", account_id)
        return self.client.post("/api/assets", json=body, headers=self.headers())


class UserAndAccountApiTests(ApiTestCase):
    def test_register_is_idempotent(self):
        first = self.register()
        self.assertEqual(first.status_code, 201)
        self.assertTrue(first.json()["success"])
        self.assertTrue(first.json()["data"]["isNew"])

        second = self.register()
        self.assertEqual(second.status_code, 200)
        self.assertFalse(second.json()["data"]["isNew"])
        self.assertEqual(second.json()["data"]["id"], first.json()["data"]["id"])
        self.assertIn("x-request-id", second.headers)

    def test_short_device_id_is_rejected(self):
        res = self.register("short")
        self.assertEqual(res.status_code, 400)
        body = res.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["code"], "VALIDATION_ERROR")
        self.assertTrue(body["error"].startswith("deviceId"))

    def test_missing_or_unknown_device_is_unauthorized(self):
        res = self.client.get("/api/accounts")
        self.assertEqual(res.status_code, 401)
        self.assertEqual(res.json(), {"success": False, "error": "x-device-id header is required", "code": "UNAUTHORIZED"})

        res = self.client.get("/api/accounts", headers=self.headers("device-unknown-000000"))
        self.assertEqual(res.status_code, 401)
        self.assertEqual(res.json()["error"], "User not found. Please register first.")

    def test_accounts(self):
        _, account = self.setup_account()
        self.assertEqual(account["name"], "Main")
        res = self.client.get("/api/accounts", headers=self.headers())
        self.assertEqual([a["id"] for a in res.json()["data"]], [account["id"]])


class AssetApiTests(ApiTestCase):
    def test_asset_lifecycle(self):
        _, account = self.setup_account()
        created = self.add_asset(account["id"], type="CRYPTO", symbol="btc", quantity=2, buyPrice=10000)
        self.assertEqual(created.status_code, 201)
        asset = created.json()["data"]
        self.assertEqual(asset["symbol"], "BTC")

        listed = self.client.get("/api/assets", headers=self.headers()).json()["data"]
        self.assertEqual(len(listed), 1)
        self.assertEqual(listed[0]["currentPrice"], 15000)
        self.assertEqual(listed[0]["totalValue"], 30000)
        self.assertEqual(listed[0]["profitLossPercent"], 50.0)
        self.assertIsNone(listed[0]["priceError"])

        single = self.client.get(f"/api/assets/{asset['id']}", headers=self.headers())
        self.assertEqual(single.json()["data"]["id"], asset["id"])

        rule = self.client.post(
            f"/api/assets/{asset['id']}/notification",
            json={"thresholdPercent": 10, "direction": "UP"},
            headers=self.headers(),
        )
        self.assertEqual(rule.status_code, 201)
        self.assertFalse(rule.json()["data"]["triggered"])

        deleted = self.client.delete(f"/api/assets/{asset['id']}", headers=self.headers())
        self.assertEqual(deleted.json()["data"]["deletedId"], asset["id"])

        missing = self.client.get(f"/api/assets/{asset['id']}", headers=self.headers())
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(missing.json()["error"], "Asset not found")

    def test_invalid_asset_payloads(self):
        _, account = self.setup_account()

        res = self.add_asset(account["id"], type="STOCK", quantity=1, buyPrice=10)
        self.assertEqual(res.status_code, 400)
        self.assertIn("symbol is required", res.json()["error"])

        res = self.add_asset(account["id"], type="GOLD", quantity=0, buyPrice=10)
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json()["code"], "VALIDATION_ERROR")

        res = self.add_asset(str(uuid4()), type="GOLD", quantity=1, buyPrice=10)
        self.assertEqual(res.status_code, 404)
        self.assertEqual(res.json()["error"], "Account not found")

    def test_price_failure_degrades_to_buy_price(self):
        _, account = self.setup_account()
        self.add_asset(account["id"], type="STOCK", symbol="TSLA", quantity=4, buyPrice=250)

        listed = self.client.get("/api/assets", headers=self.headers()).json()["data"]
        self.assertEqual(listed[0]["currentPrice"], 250)
        self.assertEqual(listed[0]["profitLoss"], 0)
        self.assertEqual(listed[0]["priceError"], "Price not resolved")


class PortfolioApiTests(ApiTestCase):
    def test_summary(self):
        _, account = self.setup_account()
        self.add_asset(account["id"], type="CRYPTO", symbol="BTC", quantity=1, buyPrice=10000)
        self.add_asset(account["id"], type="STOCK", symbol="AAPL", quantity=25, buyPrice=100)

        res = self.client.get("/api/portfolio/summary", headers=self.headers())
        self.assertEqual(res.status_code, 200)
        data = res.json()["data"]
        self.assertEqual(data["totalValue"], 20000)
        self.assertEqual(data["totalInvested"], 12500)
        self.assertEqual(data["distribution"]["CRYPTO"], {"value": 15000, "percent": 75.0})
        self.assertEqual(data["distribution"]["STOCK"], {"value": 5000, "percent": 25.0})
        self.assertEqual(data["distribution"]["GOLD"], {"value": 0, "percent": 0})
        self.assertEqual(data["assetCount"], 2)
        # one batch per request
        self.assertEqual(len(self.aggregator.calls), 1)

    def test_analysis_falls_back_when_provider_fails(self):
        user, account = self.setup_account()
        self.add_asset(account["id"], type="CRYPTO", symbol="BTC", quantity=1, buyPrice=10000)

        res = self.client.post("/api/ai/portfolio-analysis", json={"userId": user["id"]}, headers=self.headers())
        self.assertEqual(res.status_code, 200)
        data = res.json()["data"]
        self.assertEqual(data["source"], "heuristic")
        self.assertEqual(data["riskScore"], 100)
        self.assertEqual(data["portfolioMetrics"]["assetCount"], 1)
        self.assertEqual(len(self.llm.prompts), 1)

    def test_analysis_of_empty_portfolio(self):
        user, _ = self.setup_account()
        res = self.client.post("/api/ai/portfolio-analysis", json={"userId": user["id"]}, headers=self.headers())
        data = res.json()["data"]
        self.assertEqual(data["riskScore"], 0)
        self.assertNotIn("portfolioMetrics", data)
        self.assertEqual(self.llm.prompts, [])

    def test_analysis_user_mismatch(self):
        self.setup_account()
        res = self.client.post("/api/ai/portfolio-analysis", json={"userId": str(uuid4())}, headers=self.headers())
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json()["error"], "User ID mismatch")


class CronApiTests(ApiTestCase):
    def test_cron_requires_secret(self):
        with patch.dict(os.environ, {"CRON_SECRET": "s3cret"}):
            res = self.client.get("/api/cron/update-prices")
            self.assertEqual(res.status_code, 401)

            res = self.client.get("/api/cron/update-prices", headers={"Authorization": "Bearer wrong"})
            self.assertEqual(res.status_code, 401)

            _, account = self.setup_account()
            self.add_asset(account["id"], type="CRYPTO", symbol="BTC", quantity=1, buyPrice=10000)
            res = self.client.get("/api/cron/update-prices", headers={"Authorization": "Bearer s3cret"})

        self.assertEqual(res.status_code, 200)
        body = res.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["stats"]["assetsProcessed"], 1)
        self.assertEqual(body["stats"]["pricesUpdated"], 1)


class RateLimitApiTests(ApiTestCase):
    rate_limit = "2/minute"

    def test_requests_over_the_limit_are_rejected(self):
        self.register()
        headers = self.headers()
        self.assertEqual(self.client.get("/api/accounts", headers=headers).status_code, 200)
        self.assertEqual(self.client.get("/api/accounts", headers=headers).status_code, 200)

        res = self.client.get("/api/accounts", headers=headers)
        self.assertEqual(res.status_code, 429)
        self.assertEqual(res.json()["code"], "RATE_LIMIT_EXCEEDED")

        # a different device has its own window
        self.register("device-fedcba0987654321")
        other = self.client.get("/api/accounts", headers=self.headers("device-fedcba0987654321"))
        self.assertEqual(other.status_code, 200)


if __name__ == "__main__":
    unittest.main()
