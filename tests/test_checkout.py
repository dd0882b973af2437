# TokoPOS Terminal Tests - Checkout
#
# Tests for:
# - Display totals (discount, tax, whole-unit display total)
# - Cash pre-check and change
# - Sale request body sent to the backend
# - Cart handling on success and failure

from decimal import Decimal

import pytest

from pos_terminal import ApiError, Checkout, CheckoutError, PosSettings, RequestTimeout
from pos_terminal.checkout import build_sale_request, compute_display_totals, plastic_bag_notes, precheck_cash


D = Decimal


class RecordingClient:
    """Stands in for PosApiClient.create_sale."""

    def __init__(self, error=None):
        self.error = error
        self.requests = []

    def create_sale(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return {"success": True, "data": {"id": 1, "saleNumber": "SALE-20261019-0001"}}


@pytest.fixture
def settings():
    return PosSettings(tax_rate=D("10"), default_discount=D("20"))


@pytest.fixture
def filled(session, catalogue, clock, settings):
    session.pos_settings = settings
    session.cart.add_product(catalogue[1])
    clock.advance(1)
    session.cart.add_product(catalogue[0])
    clock.advance(1)
    session.cart.add_product(catalogue[0])
    return session


class TestPosSettings:

    @pytest.mark.checkout
    def test_from_api(self):
        settings = PosSettings.from_api({
            "pos.tax_rate": {"value": 11},
            "pos.default_discount": {"value": 5},
            "pos.enable_tax": {"value": False},
            "pos.plastic_bag_small_price": {"value": 300},
            "store.name": {"value": "Toko Makmur"},
        })
        assert settings.tax_rate == D("11")
        assert settings.effective_tax_rate == D("0")
        assert settings.effective_discount == D("5")
        assert settings.bag_price("small") == D("300")
        assert settings.bag_price("large") == D("500")
        assert settings.store["name"] == "Toko Makmur"

    @pytest.mark.checkout
    def test_defaults_when_missing(self):
        settings = PosSettings.from_api(None)
        assert settings.tax_rate == D("11")
        assert settings.enable_discount is True


class TestTotals:

    @pytest.mark.checkout
    def test_same_order_as_backend(self, filled, settings):
        totals = compute_display_totals(filled.cart, settings)

        assert totals.subtotal == D("450000.00")
        assert totals.discount == D("90000")
        assert totals.tax == D("36000")
        assert totals.total == D("396000")
        assert totals.display_total == D("396000")
        assert totals.amount_due == D("396000")

    @pytest.mark.checkout
    def test_display_total_rounds_to_whole_units(self, session):
        session.cart.add_plastic_bag("small", D("200.50"))
        totals = compute_display_totals(session.cart, PosSettings(tax_rate=D("0")))
        assert totals.display_total == D("201")
        assert totals.amount_due == D("201")

    @pytest.mark.checkout
    def test_amount_due_never_below_exact_total(self, session):
        session.cart.add_plastic_bag("small", D("200.40"))
        totals = compute_display_totals(session.cart, PosSettings(tax_rate=D("0")))
        assert totals.display_total == D("200")
        assert totals.amount_due == D("200.40")

    @pytest.mark.checkout
    def test_disabled_tax_and_discount(self, filled):
        settings = PosSettings(tax_rate=D("10"), default_discount=D("20"), enable_tax=False, enable_discount=False)
        assert compute_display_totals(filled.cart, settings).total == D("450000.00")


class TestCashPrecheck:

    @pytest.mark.checkout
    def test_change(self, filled, settings):
        totals = compute_display_totals(filled.cart, settings)
        assert precheck_cash("500000", totals) == D("104000")

    @pytest.mark.checkout
    @pytest.mark.parametrize("amount", ["395999", "", "abc", None])
    def test_insufficient(self, filled, settings, amount):
        totals = compute_display_totals(filled.cart, settings)
        with pytest.raises(CheckoutError):
            precheck_cash(amount, totals)


class TestSaleRequest:

    @pytest.mark.checkout
    def test_body(self, filled, settings):
        filled.cart.add_plastic_bag("small", D("200"))
        body = build_sale_request(filled.cart, settings, "cash", D("500200"))

        assert body["discount"] == "20"
        assert body["discountType"] == "percentage"
        assert body["taxRate"] == "10"
        assert body["paymentMethod"] == "cash"
        assert body["amountPaid"] == "500200"
        assert body["notes"] == "Kantong plastik: Kantong Plastik Kecil (1)"
        assert [i["productId"] for i in body["items"]] == [2, 1, None]
        assert body["items"][1]["quantity"] == 2
        assert body["items"][2]["productName"] == "Kantong Plastik Kecil"

    @pytest.mark.checkout
    def test_weighed_goods_go_as_ad_hoc_lines(self, session, catalogue, settings):
        session.cart.add_weighed(catalogue[2], "0.5")
        body = build_sale_request(session.cart, settings, "card", D("1"))
        assert body["items"][0]["productId"] is None
        assert body["items"][0]["productName"] == "Apel Fuji (0.5 kg)"

    @pytest.mark.checkout
    def test_no_notes_without_bags(self, filled):
        assert plastic_bag_notes(filled.cart) is None


class TestSubmit:

    @pytest.mark.checkout
    def test_cash_success_clears_cart_and_updates_stock(self, filled):
        client = RecordingClient()
        result = Checkout(filled, client).submit("cash", "500000")

        assert result.change == D("104000")
        assert result.sale["saleNumber"] == "SALE-20261019-0001"
        assert filled.cart.is_empty
        assert filled.find_product("BRS-001")["stock"] == 1
        assert filled.find_product("MYK-001")["stock"] == 19
        assert client.requests[0]["amountPaid"] == "500000"

    @pytest.mark.checkout
    def test_card_pays_amount_due(self, filled):
        client = RecordingClient()
        result = Checkout(filled, client).submit("card")

        assert result.change == D("0")
        assert client.requests[0]["amountPaid"] == "396000"

    @pytest.mark.checkout
    def test_short_cash_never_reaches_backend(self, filled):
        client = RecordingClient()
        with pytest.raises(CheckoutError, match="Insufficient cash amount!"):
            Checkout(filled, client).submit("cash", "1000")
        assert client.requests == []
        assert len(filled.cart) == 2

    @pytest.mark.checkout
    def test_empty_cart(self, session):
        with pytest.raises(CheckoutError, match="Cart is empty!"):
            Checkout(session, RecordingClient()).submit("cash", "1000")

    @pytest.mark.checkout
    def test_unknown_method(self, filled):
        with pytest.raises(CheckoutError):
            Checkout(filled, RecordingClient()).submit("cheque")

    @pytest.mark.checkout
    @pytest.mark.parametrize("error", [
        ApiError("Error creating sale", status_code=400, error="Insufficient stock for product Beras 5kg. Available: 1, Requested: 2"),
        RequestTimeout(),
    ])
    def test_backend_failure_keeps_cart(self, filled, error):
        with pytest.raises(type(error)):
            Checkout(filled, RecordingClient(error=error)).submit("cash", "500000")

        assert len(filled.cart) == 2
        assert filled.find_product("BRS-001")["stock"] == 3
