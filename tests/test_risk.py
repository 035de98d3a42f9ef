import random
import unittest

from services.portfolio.risk import (
    assess_risk,
    calculate_base_risk,
    concentration_warnings,
    empty_assessment,
    fallback_recommendations,
    volatility_alerts,
)
from services.portfolio.valuation import valuate
from services.pricing.types import AssetType, PriceQuery
from tests.fakes import position, quote


def build(*specs):
    """specs: (type, symbol, quantity, buy_price, live_price_or_None)"""
    positions = []
    prices = {}
    for i, (t, sym, qty, buy, live) in enumerate(specs):
        extra = {}
        if t == AssetType.REAL_ESTATE and live is not None:
            extra["current_valuation"] = live
        positions.append(position(t, sym, qty, buy, id=f"p{i}", **extra))
        if live is not None and t != AssetType.REAL_ESTATE:
            prices[PriceQuery(t, sym)] = quote(sym or "CUSTOM", live)
    return valuate(positions, prices)


class RiskScoreTests(unittest.TestCase):
    def test_single_all_crypto_position_is_high_risk(self):
        assets, agg = build((AssetType.CRYPTO, "BTC", 1, 100, 100))
        score = calculate_base_risk(assets, agg)
        self.assertGreaterEqual(score, 80)
        self.assertLessEqual(score, 100)
        # 50 + 30 crypto + 15 single type + 15 single position, clamped
        self.assertEqual(score, 100)

    def test_spread_portfolio_scores_lower(self):
        assets, agg = build(
            (AssetType.CRYPTO, "BTC", 1, 1000, 1000),
            (AssetType.STOCK, "AAPL", 10, 100, 100),
            (AssetType.GOLD, "XAU", 1, 1000, 1000),
            (AssetType.REAL_ESTATE, None, 1, 1000, 1000),
            (AssetType.OTHER, "ART", 1, 1000, 1000),
        )
        # 50 + 10 (crypto 20%) - 10 (five types)
        self.assertEqual(calculate_base_risk(assets, agg), 50)

    def test_few_symbols_many_positions(self):
        assets, agg = build(
            (AssetType.STOCK, "AAPL", 1, 100, 100),
            (AssetType.STOCK, "AAPL", 1, 100, 100),
            (AssetType.STOCK, "MSFT", 1, 100, 100),
        )
        # 50 + 10 stock>70 + 15 one type + 10 few symbols + 5 largest 33%
        self.assertEqual(calculate_base_risk(assets, agg), 90)

    def test_tiny_holding_still_counts_as_a_held_type(self):
        assets, agg = build(
            (AssetType.STOCK, "AAPL", 1, 50000, 50000),
            (AssetType.GOLD, "XAU", 1, 50000, 50000),
            (AssetType.CRYPTO, "BTC", 1, 0.01, 0.01),
        )
        # shown as 0.00% but still held
        self.assertEqual(agg.percent_of(AssetType.CRYPTO), 0.0)
        self.assertGreater(agg.share_of(AssetType.CRYPTO), 0)
        # 50 + 0 (three types) + 5 (largest just under 50%)
        self.assertEqual(calculate_base_risk(assets, agg), 55)

    def test_crypto_tier_uses_unrounded_share(self):
        assets, agg = build(
            (AssetType.CRYPTO, "BTC", 1, 50004, 50004),
            (AssetType.STOCK, "AAPL", 1, 49996, 49996),
        )
        self.assertEqual(agg.percent_of(AssetType.CRYPTO), 50.0)
        self.assertGreater(agg.share_of(AssetType.CRYPTO), 50)
        # 50 + 30 crypto>50 + 5 two types + 15 largest>50
        self.assertEqual(calculate_base_risk(assets, agg), 100)
        self.assertTrue(any(w.startswith("Crypto assets make up") for w in concentration_warnings(assets, agg)))

    def test_score_always_within_bounds(self):
        rng = random.Random(11)
        types = list(AssetType)
        symbols = ["BTC", "ETH", "DOGE", "AAPL", "XAU", None, "ART", "PEPE"]
        for _ in range(200):
            specs = []
            for _ in range(rng.randint(1, 10)):
                t = rng.choice(types)
                buy = rng.uniform(0.01, 5000)
                live = rng.choice([None, rng.uniform(0.01, 10000)])
                specs.append((t, rng.choice(symbols), rng.uniform(0.01, 100), buy, live))
            assets, agg = build(*specs)
            score = calculate_base_risk(assets, agg)
            self.assertGreaterEqual(score, 0)
            self.assertLessEqual(score, 100)
            self.assertIsInstance(score, int)


class WarningAndAlertTests(unittest.TestCase):
    def test_all_crypto_concentration(self):
        assets, agg = build((AssetType.CRYPTO, "BTC", 1, 100, 100))
        warnings = concentration_warnings(assets, agg)
        self.assertEqual(len(warnings), 3)
        self.assertTrue(warnings[0].startswith("BTC makes up 100.0%"))
        self.assertIn("Crypto assets make up 100.0%", warnings[1])
        self.assertIn("insufficient diversification", warnings[2])

    def test_real_estate_liquidity_warning(self):
        assets, agg = build(
            (AssetType.REAL_ESTATE, None, 1, 6000, 7000),
            (AssetType.STOCK, "AAPL", 30, 100, 100),
        )
        warnings = concentration_warnings(assets, agg)
        self.assertTrue(any("Real estate makes up 70.0%" in w for w in warnings))
        self.assertTrue(any(w.startswith("REAL_ESTATE makes up 70.0%") for w in warnings))

    def test_meme_coin_and_large_move_alerts(self):
        assets, agg = build(
            (AssetType.CRYPTO, "DOGE", 1000, 0.1, 0.1),
            (AssetType.STOCK, "AAPL", 6, 100, 150),
        )
        alerts = volatility_alerts(assets, agg)
        self.assertEqual(len(alerts), 2)
        self.assertTrue(alerts[0].startswith("DOGE is a highly volatile meme coin"))
        self.assertIn("10.0%", alerts[0])
        self.assertEqual(alerts[1], "AAPL: 50.0% gain. Review this position.")

    def test_small_meme_position_is_quiet(self):
        assets, agg = build(
            (AssetType.CRYPTO, "SHIB", 100, 0.1, 0.1),
            (AssetType.STOCK, "AAPL", 10, 100, 100),
        )
        self.assertEqual(volatility_alerts(assets, agg), [])


class FallbackRecommendationTests(unittest.TestCase):
    def test_concentrated_crypto_portfolio(self):
        assets, agg = build((AssetType.CRYPTO, "BTC", 1, 5000, 5000))
        recs = fallback_recommendations(assets, agg)
        self.assertEqual(len(recs), 4)
        self.assertIn("at least 3 different asset classes", recs[0])
        self.assertIn("20-30%", recs[1])
        self.assertIn("gold", recs[2])
        self.assertIn("equity", recs[3])

    def test_large_gain_suggests_taking_profit(self):
        assets, agg = build(
            (AssetType.STOCK, "AAPL", 10, 100, 200),
            (AssetType.GOLD, "XAU", 1, 500, 1000),
            (AssetType.CRYPTO, "BTC", 1, 500, 1000),
        )
        recs = fallback_recommendations(assets, agg)
        self.assertTrue(any("large gain" in r for r in recs))

    def test_balanced_portfolio(self):
        assets, agg = build(
            (AssetType.STOCK, "AAPL", 40, 100, 100),
            (AssetType.GOLD, "XAU", 1, 2000, 2000),
            (AssetType.CRYPTO, "BTC", 1, 2000, 2000),
            (AssetType.REAL_ESTATE, None, 1, 2000, 2000),
        )
        recs = fallback_recommendations(assets, agg)
        self.assertEqual(len(recs), 1)
        self.assertIn("well balanced", recs[0])

    def test_assess_risk_is_deterministic(self):
        assets, agg = build(
            (AssetType.CRYPTO, "ETH", 2, 1500, 3000),
            (AssetType.STOCK, "MSFT", 5, 300, 280),
        )
        first = assess_risk(assets, agg).to_dict()
        second = assess_risk(assets, agg).to_dict()
        self.assertEqual(first, second)
        self.assertEqual(first["source"], "heuristic")

    def test_empty_assessment(self):
        res = empty_assessment()
        self.assertEqual(res.risk_score, 0)
        self.assertEqual(res.concentration_warnings, [])
        self.assertEqual(len(res.recommendations), 1)


if __name__ == "__main__":
    unittest.main()
