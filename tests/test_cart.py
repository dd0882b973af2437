# TokoPOS Terminal Tests - Cart
#
# Tests for:
# - Adding catalogue products, weighed goods and plastic bags
# - Stock snapshot warnings
# - Repeat-scan debouncing
# - Quantity edits and removal

from decimal import Decimal

import pytest

from pos_terminal.cart import Cart, CartLine, KIND_PLASTIC_BAG, KIND_WEIGHED


class TestAddProduct:

    @pytest.mark.cart
    def test_repeat_adds_merge(self, session, catalogue, clock):
        cart = session.cart
        cart.add_product(catalogue[1])
        clock.advance(1)
        result = cart.add_product(catalogue[1])

        assert result.added
        assert len(cart) == 1
        assert cart[0].quantity == 2
        assert cart.subtotal() == Decimal("500000.00")

    @pytest.mark.cart
    def test_stock_snapshot_warning(self, session, catalogue, clock):
        """
        SCENARIO: add rice (stock 3) four times
        EXPECTED: the fourth add warns and leaves the quantity at 3
        """
        cart = session.cart
        for _ in range(3):
            cart.add_product(catalogue[0])
            clock.advance(1)

        result = cart.add_product(catalogue[0])

        assert not result.added
        assert result.warning == "Insufficient stock! Available: 3"
        assert cart[0].quantity == 3

    @pytest.mark.cart
    def test_repeat_scan_inside_window_is_ignored(self, session, catalogue, clock):
        cart = session.cart
        cart.add_product(catalogue[1])
        clock.advance(0.1)
        result = cart.add_product(catalogue[1])

        assert result.ignored
        assert cart[0].quantity == 1

    @pytest.mark.cart
    def test_other_product_is_not_debounced(self, session, catalogue):
        cart = session.cart
        cart.add_product(catalogue[0])
        result = cart.add_product(catalogue[1])

        assert result.added
        assert len(cart) == 2


class TestSpecialLines:

    @pytest.mark.cart
    def test_weighed_line(self, session, catalogue):
        line = session.cart.add_weighed(catalogue[2], "1.25")

        assert line.kind == KIND_WEIGHED
        assert line.name == "Apel Fuji (1.25 kg)"
        assert line.price == Decimal("52500.00")
        assert line.quantity == 1
        assert line.max_stock == 1
        assert line.product_id is None
        assert line.id.startswith("weighed_3_")

    @pytest.mark.cart
    def test_weighed_lines_do_not_merge(self, session, catalogue):
        session.cart.add_weighed(catalogue[2], "0.5")
        session.cart.add_weighed(catalogue[2], "0.5")
        assert len(session.cart) == 2

    @pytest.mark.cart
    @pytest.mark.parametrize("weight", ["0", "-1"])
    def test_weight_must_be_positive(self, session, catalogue, weight):
        with pytest.raises(ValueError):
            session.cart.add_weighed(catalogue[2], weight)

    @pytest.mark.cart
    def test_plastic_bags_merge_by_name(self, session):
        cart = session.cart
        cart.add_plastic_bag("small", Decimal("200"))
        cart.add_plastic_bag("small", Decimal("200"))
        cart.add_plastic_bag("large", Decimal("500"))

        assert [(line.name, line.quantity) for line in cart] == [
            ("Kantong Plastik Kecil", 2),
            ("Kantong Plastik Besar", 1),
        ]
        assert all(line.kind == KIND_PLASTIC_BAG for line in cart)
        assert cart.subtotal() == Decimal("900")

    @pytest.mark.cart
    def test_unknown_bag_size(self, session):
        with pytest.raises(ValueError):
            session.cart.add_plastic_bag("medium", 300)


class TestEditing:

    @pytest.fixture
    def cart(self, session, catalogue):
        session.cart.add_product(catalogue[0])
        return session.cart

    @pytest.mark.cart
    def test_increment_up_to_snapshot(self, cart):
        assert cart.increment(0) is None
        assert cart.increment(0) is None
        assert cart.increment(0) == "Insufficient stock! Available: 3"
        assert cart[0].quantity == 3

    @pytest.mark.cart
    def test_decrement_last_unit_needs_confirmation(self, cart):
        assert cart.decrement(0, confirm=lambda line: False) is False
        assert len(cart) == 1

        assert cart.decrement(0) is True
        assert cart.is_empty

    @pytest.mark.cart
    def test_decrement_above_one(self, cart):
        cart.increment(0)
        assert cart.decrement(0) is False
        assert cart[0].quantity == 1

    @pytest.mark.cart
    def test_set_quantity_over_snapshot_warns(self, cart):
        assert cart.set_quantity(0, " 5 ") == "Insufficient stock! Available: 3"
        assert cart[0].quantity == 5

    @pytest.mark.cart
    @pytest.mark.parametrize("bad", ["0", "-2", "abc", "1.5"])
    def test_set_quantity_rejects(self, cart, bad):
        with pytest.raises(ValueError):
            cart.set_quantity(0, bad)
        assert cart[0].quantity == 1

    @pytest.mark.cart
    def test_remove_and_clear(self, cart, catalogue):
        cart.add_product(catalogue[1])
        removed = cart.remove(0)
        assert removed.name == "Beras 5kg"
        cart.clear()
        assert cart.is_empty


class TestSerialization:

    @pytest.mark.cart
    def test_line_dict_shape(self):
        line = CartLine(id=1, name="Beras 5kg", price=Decimal("100000.00"), quantity=2, max_stock=3, product_id=1, sku="BRS-001")
        assert line.to_dict() == {
            "id": 1,
            "name": "Beras 5kg",
            "price": "100000.00",
            "quantity": 2,
            "maxStock": 3,
            "kind": "product",
            "isPlasticBag": False,
            "productId": 1,
            "sku": "BRS-001",
        }

    @pytest.mark.cart
    def test_legacy_plastic_bag_flag(self):
        line = CartLine.from_dict({"id": "plastic_small_1", "name": "Kantong Plastik Kecil", "price": 200, "isPlasticBag": True})
        assert line.is_plastic_bag
        assert line.quantity == 1

    @pytest.mark.cart
    def test_on_change_fires_on_every_mutation(self, catalogue):
        seen = []
        cart = Cart(on_change=lambda c: seen.append(len(c)))
        cart.add_product(catalogue[1])
        cart.add_plastic_bag("small", 200)
        cart.increment(0)
        cart.remove(1)
        assert seen == [1, 2, 2, 1]
