"""
Terminal state that outlives a single sale: the cart, the product cache,
POS settings and device configuration.

The cart is written to local storage after every change so a restart
picks up where the cashier left off.
"""
from __future__ import annotations

import logging
from typing import Any

from .cart import Cart
from .checkout import PosSettings
from .config import TerminalConfig
from .storage import LocalStore

logger = logging.getLogger(__name__)

CART_KEY = "currentCart"
DEVICE_CONFIG_KEY = "deviceConfig"


class TerminalSession:
    def __init__(self, store: LocalStore, config: TerminalConfig | None = None):
        self.store = store
        self.config = config or TerminalConfig()
        self.cart = Cart(debounce_seconds=self.config.scan_debounce_seconds, on_change=self.save)
        self.device_config: dict = {}
        self.pos_settings = PosSettings()
        self.products: list[dict] = []
        self.user: dict | None = None
        self.token: str | None = None

    def load(self) -> None:
        """Restore the cart and device configuration from local storage."""
        self.cart.load(self.store.get(CART_KEY, []))
        self.device_config = self.store.get(DEVICE_CONFIG_KEY, {}) or {}
        if self.cart.lines:
            logger.info("Restored cart with %d line(s)", len(self.cart))

    def save(self, cart: Cart | None = None) -> None:
        self.store.set(CART_KEY, (cart or self.cart).to_list())

    def save_device_config(self, config: dict) -> None:
        self.device_config = dict(config)
        self.store.set(DEVICE_CONFIG_KEY, self.device_config)

    def set_products(self, products: list[dict]) -> None:
        self.products = list(products)

    def set_settings(self, settings: dict | None) -> None:
        self.pos_settings = PosSettings.from_api(settings)

    def find_product(self, code: Any) -> dict | None:
        """Look up a cached product by SKU or barcode."""
        code = str(code).strip()
        if not code:
            return None
        for product in self.products:
            if code in (product.get("sku"), product.get("barcode")):
                return product
        return None

    def apply_sold_stock(self, sold: dict[int, int]) -> None:
        """Take sold quantities off the cached stock after a completed sale."""
        for product in self.products:
            quantity = sold.get(product.get("id"))
            if quantity:
                product["stock"] = max(0, (product.get("stock") or 0) - quantity)
