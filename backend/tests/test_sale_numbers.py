from datetime import datetime

import pytest

from tokopos.models import SaleNumberSequence
from tokopos.services.sale_number_service import (
    SaleNumberError,
    format_sale_number,
    next_sale_number,
    parse_sale_number,
)


def test_format_pads_to_four_digits():
    assert format_sale_number("SALE", "20261019", 1) == "SALE-20261019-0001"
    assert format_sale_number("SALE", "20261019", 10000) == "SALE-20261019-10000"


def test_parse_round_trip():
    assert parse_sale_number("SALE-20261019-0042") == ("20261019", 42)


@pytest.mark.parametrize("bad", ["", "SALE-2026-0001", "SALE-20261019-1", "20261019-0001"])
def test_parse_rejects_malformed(bad):
    with pytest.raises(SaleNumberError):
        parse_sale_number(bad)


def test_sequence_increments_within_a_day(db_session):
    now = datetime(2026, 10, 19, 9, 30)
    numbers = [next_sale_number(now) for _ in range(3)]
    db_session.commit()

    assert numbers == [
        "SALE-20261019-0001",
        "SALE-20261019-0002",
        "SALE-20261019-0003",
    ]
    counter = db_session.query(SaleNumberSequence).filter_by(day="20261019").one()
    assert counter.next_number == 4


def test_sequence_restarts_each_day(db_session):
    assert next_sale_number(datetime(2026, 10, 19, 23, 59)).endswith("-0001")
    assert next_sale_number(datetime(2026, 10, 20, 0, 1)) == "SALE-20261020-0001"
    db_session.commit()


def test_rolled_back_allocation_is_not_consumed(db_session):
    now = datetime(2026, 10, 19, 12, 0)
    assert next_sale_number(now) == "SALE-20261019-0001"
    db_session.commit()

    assert next_sale_number(now) == "SALE-20261019-0002"
    db_session.rollback()

    assert next_sale_number(now) == "SALE-20261019-0002"
    db_session.commit()


def test_day_follows_store_timezone(app, db_session):
    app.config["STORE_TIMEZONE"] = "Asia/Jakarta"
    try:
        # 18:30 UTC is already the next day in Jakarta (UTC+7)
        number = next_sale_number(datetime(2026, 10, 19, 18, 30))
    finally:
        app.config["STORE_TIMEZONE"] = "UTC"
    db_session.commit()
    assert number == "SALE-20261020-0001"


def test_prefix_from_config(app, db_session):
    app.config["SALE_NUMBER_PREFIX"] = "TKP"
    try:
        number = next_sale_number(datetime(2026, 10, 19, 8, 0))
    finally:
        app.config["SALE_NUMBER_PREFIX"] = "SALE"
    db_session.commit()
    assert number == "TKP-20261019-0001"
