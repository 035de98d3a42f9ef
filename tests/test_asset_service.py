import unittest
from uuid import uuid4

from pydantic import ValidationError as SchemaError

from schemas.account import AccountCreate
from schemas.asset import AssetCreate, NotificationCreate
from schemas.user import UserRegister
from services.account_service import create_account, list_accounts
from services.asset_service import (
    asset_to_dict,
    create_asset,
    create_notification_rule,
    delete_asset,
    get_asset,
    list_positions,
    rule_to_dict,
)
from services.errors import NotFoundError
from services.pricing.types import AssetType
from services.user_service import register_user, user_to_dict
from tests.fakes import make_session_factory


class SchemaTests(unittest.TestCase):
    def test_symbol_is_normalized(self):
        payload = AssetCreate(accountId=uuid4(), type="CRYPTO", symbol=" btc ", quantity=1, buyPrice=10)
        self.assertEqual(payload.symbol, "BTC")
        self.assertEqual(payload.type, AssetType.CRYPTO)

    def test_symbol_required_for_market_types(self):
        for t in ("STOCK", "CRYPTO"):
            with self.assertRaises(SchemaError):
                AssetCreate(accountId=uuid4(), type=t, symbol="  ", quantity=1, buyPrice=10)
        gold = AssetCreate(accountId=uuid4(), type="GOLD", quantity=1, buyPrice=10)
        self.assertIsNone(gold.symbol)

    def test_amounts_must_be_positive(self):
        with self.assertRaises(SchemaError):
            AssetCreate(accountId=uuid4(), type="OTHER", quantity=0, buyPrice=10)
        with self.assertRaises(SchemaError):
            AssetCreate(accountId=uuid4(), type="OTHER", quantity=1, buyPrice=-5)

    def test_unknown_type_rejected(self):
        with self.assertRaises(SchemaError):
            AssetCreate(accountId=uuid4(), type="BOND", quantity=1, buyPrice=10)

    def test_notification_bounds(self):
        self.assertEqual(NotificationCreate(thresholdPercent=10, direction="UP").threshold_percent, 10)
        for bad in ({"thresholdPercent": 0, "direction": "UP"}, {"thresholdPercent": 5, "direction": "SIDEWAYS"}):
            with self.assertRaises(SchemaError):
                NotificationCreate(**bad)

    def test_register_and_account_names(self):
        with self.assertRaises(SchemaError):
            UserRegister(deviceId="short")
        with self.assertRaises(SchemaError):
            AccountCreate(name="   ")
        self.assertEqual(AccountCreate(name="  Broker ").name, "Broker")


class AssetServiceTests(unittest.TestCase):
    def setUp(self):
        self.db = make_session_factory()()
        self.user, _ = register_user(self.db, "device-aaaaaaaaaaaaaaaa")
        self.other, _ = register_user(self.db, "device-bbbbbbbbbbbbbbbb")
        self.account = create_account(self.db, self.user.id, name="Main")
        self.other_account = create_account(self.db, self.other.id, name="Theirs")

    def tearDown(self):
        self.db.close()

    def add(self, user_id=None, account_id=None, **fields):
        payload = AssetCreate(accountId=account_id or self.account.id, **fields)
        return create_asset(self.db, user_id or self.user.id, payload)

    def test_register_is_idempotent(self):
        again, is_new = register_user(self.db, "device-aaaaaaaaaaaaaaaa")
        self.assertFalse(is_new)
        self.assertEqual(again.id, self.user.id)
        d = user_to_dict(again, is_new=is_new)
        self.assertEqual([a["name"] for a in d["accounts"]], ["Main"])

    def test_create_and_read_back(self):
        asset = self.add(type="STOCK", symbol="aapl", quantity=3, buyPrice=150.5)
        d = asset_to_dict(asset)
        self.assertEqual(d["symbol"], "AAPL")
        self.assertEqual(d["quantity"], 3)
        self.assertEqual(d["buyPrice"], 150.5)
        self.assertEqual(d["accountName"], "Main")
        self.assertNotIn("location", d)

    def test_real_estate_fields_only_kept_for_real_estate(self):
        house = self.add(
            type="REAL_ESTATE",
            quantity=1,
            buyPrice=200000,
            location="Izmir",
            currentValuation=250000,
            propertyType="villa",
        )
        stock = self.add(type="STOCK", symbol="MSFT", quantity=1, buyPrice=300, location="Nowhere")

        self.assertEqual(house.location, "Izmir")
        self.assertEqual(asset_to_dict(house)["currentValuation"], 250000)
        self.assertIsNone(stock.location)

    def test_foreign_account_is_not_found(self):
        with self.assertRaises(NotFoundError) as ctx:
            self.add(account_id=self.other_account.id, type="GOLD", quantity=1, buyPrice=10)
        self.assertEqual(ctx.exception.message, "Account not found")

    def test_assets_are_scoped_to_owner(self):
        mine = self.add(type="GOLD", quantity=2, buyPrice=1900)
        with self.assertRaises(NotFoundError):
            get_asset(self.db, self.other.id, mine.id)
        with self.assertRaises(NotFoundError):
            delete_asset(self.db, self.other.id, mine.id)
        self.assertEqual([p.id for p in list_positions(self.db, self.user.id)], [mine.id])
        self.assertEqual(list_positions(self.db, self.other.id), [])

    def test_delete_removes_rules(self):
        asset = self.add(type="CRYPTO", symbol="ETH", quantity=1, buyPrice=3000)
        rule = create_notification_rule(
            self.db, self.user.id, asset.id, NotificationCreate(thresholdPercent=15, direction="DOWN")
        )
        d = rule_to_dict(rule)
        self.assertEqual(d["direction"], "DOWN")
        self.assertFalse(d["triggered"])
        self.assertIsNone(d["lastTriggeredAt"])

        self.assertEqual(delete_asset(self.db, self.user.id, asset.id), asset.id)
        with self.assertRaises(NotFoundError):
            get_asset(self.db, self.user.id, asset.id)

    def test_accounts_listed_per_user(self):
        create_account(self.db, self.user.id, name="Savings")
        names = [a.name for a in list_accounts(self.db, self.user.id)]
        self.assertEqual(sorted(names), ["Main", "Savings"])


if __name__ == "__main__":
    unittest.main()
