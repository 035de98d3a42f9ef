from .user import User
from .account import Account
from .asset import Asset
from .notification_rule import NotificationRule, Direction
from .asset_price_history import AssetPriceHistory
