"""
Cart held by the terminal until checkout.

Lines are kept in the order they were added. Three kinds exist:

- "product": a catalogue product, id == product id, merges on repeat adds
- "weighed": a product sold by weight, priced at add time (price x kg),
  always quantity 1, sent to the backend as an ad-hoc line
- "plastic_bag": a non-inventory charge, merges by name

`max_stock` is the stock snapshot when the line was added. Hitting it
produces a warning for the cashier; the backend's stock check is the one
that counts.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Callable, Iterator

logger = logging.getLogger(__name__)

KIND_PRODUCT = "product"
KIND_WEIGHED = "weighed"
KIND_PLASTIC_BAG = "plastic_bag"

PLASTIC_BAG_NAMES = {
    "small": "Kantong Plastik Kecil",
    "large": "Kantong Plastik Besar",
}

CENT = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(str(value))


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class CartLine:
    id: Any
    name: str
    price: Decimal
    quantity: int = 1
    max_stock: int | None = None
    kind: str = KIND_PRODUCT
    product_id: int | None = None
    sku: str | None = None

    @property
    def is_plastic_bag(self) -> bool:
        return self.kind == KIND_PLASTIC_BAG

    @property
    def is_inventory(self) -> bool:
        return self.kind == KIND_PRODUCT and self.product_id is not None

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "price": str(self.price),
            "quantity": self.quantity,
            "maxStock": self.max_stock,
            "kind": self.kind,
            "isPlasticBag": self.is_plastic_bag,
            "productId": self.product_id,
            "sku": self.sku,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CartLine":
        kind = data.get("kind") or (KIND_PLASTIC_BAG if data.get("isPlasticBag") else KIND_PRODUCT)
        return cls(
            id=data["id"],
            name=data["name"],
            price=to_decimal(data["price"]),
            quantity=int(data.get("quantity", 1)),
            max_stock=data.get("maxStock"),
            kind=kind,
            product_id=data.get("productId"),
            sku=data.get("sku"),
        )


@dataclass
class AddResult:
    line: CartLine | None = None
    added: bool = False
    # Debounced duplicate scan
    ignored: bool = False
    warning: str | None = None


@dataclass
class Cart:
    lines: list[CartLine] = field(default_factory=list)
    debounce_seconds: float = 0.3
    clock: Callable[[], float] = time.monotonic
    # Called after every mutation (the session persists the cart here)
    on_change: Callable[["Cart"], None] | None = None
    _last_scan: tuple[Any, float] | None = field(default=None, repr=False)

    def __len__(self) -> int:
        return len(self.lines)

    def __iter__(self) -> Iterator[CartLine]:
        return iter(self.lines)

    def __getitem__(self, index: int) -> CartLine:
        return self.lines[index]

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change(self)

    def _find(self, predicate: Callable[[CartLine], bool]) -> int:
        for i, line in enumerate(self.lines):
            if predicate(line):
                return i
        return -1

    def _is_duplicate_scan(self, product_id: Any) -> bool:
        now = self.clock()
        last = self._last_scan
        self._last_scan = (product_id, now)
        return last is not None and last[0] == product_id and now - last[1] < self.debounce_seconds

    def add_product(self, product: dict) -> AddResult:
        """
        Add one unit of a catalogue product (as returned by the POS product
        listing: id, name, price, stock, sku).
        """
        product_id = product["id"]
        if self._is_duplicate_scan(product_id):
            logger.debug("Ignoring repeat scan of product %s", product_id)
            return AddResult(ignored=True)

        stock = product.get("stock")
        index = self._find(lambda l: l.kind == KIND_PRODUCT and l.product_id == product_id)
        if index >= 0:
            line = self.lines[index]
            if stock is not None and line.quantity >= stock:
                return AddResult(line=line, warning=f"Insufficient stock! Available: {stock}")
            line.quantity += 1
            line.max_stock = stock
        else:
            line = CartLine(
                id=product_id,
                name=product["name"],
                price=to_decimal(product["price"]),
                quantity=1,
                max_stock=stock,
                kind=KIND_PRODUCT,
                product_id=product_id,
                sku=product.get("sku"),
            )
            self.lines.append(line)

        logger.debug("Cart: %s x%s", line.name, line.quantity)
        self._changed()
        return AddResult(line=line, added=True)

    def add_weighed(self, product: dict, weight_kg: Any) -> CartLine:
        weight = to_decimal(weight_kg)
        if weight <= 0:
            raise ValueError("Weight must be greater than 0")

        price = (to_decimal(product["price"]) * weight).quantize(CENT, rounding=ROUND_HALF_UP)
        line = CartLine(
            id=f"weighed_{product['id']}_{_now_ms()}",
            name=f"{product['name']} ({weight_kg} kg)",
            price=price,
            quantity=1,
            max_stock=1,
            kind=KIND_WEIGHED,
            sku=product.get("sku"),
        )
        self.lines.append(line)
        self._changed()
        return line

    def add_plastic_bag(self, size: str, price: Any) -> CartLine:
        if size not in PLASTIC_BAG_NAMES:
            raise ValueError(f"Unknown plastic bag size: {size}")

        name = PLASTIC_BAG_NAMES[size]
        index = self._find(lambda l: l.name == name)
        if index >= 0:
            line = self.lines[index]
            line.quantity += 1
        else:
            line = CartLine(
                id=f"plastic_{size}_{_now_ms()}",
                name=name,
                price=to_decimal(price),
                quantity=1,
                kind=KIND_PLASTIC_BAG,
            )
            self.lines.append(line)

        self._changed()
        return line

    def increment(self, index: int) -> str | None:
        """Returns a warning instead of incrementing when max_stock is reached."""
        line = self.lines[index]
        if line.max_stock is not None and line.quantity >= line.max_stock:
            return f"Insufficient stock! Available: {line.max_stock}"
        line.quantity += 1
        self._changed()
        return None

    def decrement(self, index: int, confirm: Callable[[CartLine], bool] = lambda line: True) -> bool:
        """
        Take one unit off a line. The last unit removes the line only if
        `confirm(line)` returns True. Returns True if the line was removed.
        """
        line = self.lines[index]
        if line.quantity > 1:
            line.quantity -= 1
            self._changed()
            return False

        if not confirm(line):
            return False
        del self.lines[index]
        self._changed()
        return True

    def set_quantity(self, index: int, quantity: Any) -> str | None:
        try:
            quantity = int(str(quantity).strip())
        except ValueError:
            raise ValueError("Quantity must be a whole number")
        if quantity <= 0:
            raise ValueError("Quantity must be greater than 0")

        line = self.lines[index]
        line.quantity = quantity
        self._changed()
        if line.max_stock is not None and quantity > line.max_stock:
            return f"Insufficient stock! Available: {line.max_stock}"
        return None

    def remove(self, index: int) -> CartLine:
        line = self.lines.pop(index)
        self._changed()
        return line

    def clear(self) -> None:
        self.lines = []
        self._last_scan = None
        self._changed()

    def subtotal(self) -> Decimal:
        return sum((line.line_total for line in self.lines), Decimal("0"))

    def to_list(self) -> list[dict]:
        return [line.to_dict() for line in self.lines]

    def load(self, data: list[dict] | None) -> None:
        """Replace the lines from a stored list, without firing on_change."""
        self.lines = [CartLine.from_dict(d) for d in (data or [])]
