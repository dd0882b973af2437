from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..extensions import db
from ..models import Setting


@dataclass(frozen=True)
class SettingDefault:
    key: str
    value: str
    value_type: str
    description: str
    category: str


DEFAULT_SETTINGS: tuple[SettingDefault, ...] = (
    SettingDefault("pos.plastic_bag_small_price", "200", "number", "Price of a small plastic bag", "pos"),
    SettingDefault("pos.plastic_bag_large_price", "500", "number", "Price of a large plastic bag", "pos"),
    SettingDefault("pos.tax_rate", "11", "number", "Default tax rate (percent)", "pos"),
    SettingDefault("pos.default_discount", "0", "number", "Default sale discount (percent)", "pos"),
    SettingDefault("pos.enable_tax", "true", "boolean", "Apply tax at checkout", "pos"),
    SettingDefault("pos.enable_discount", "true", "boolean", "Allow sale discounts", "pos"),
    SettingDefault("store.name", "TokoPOS", "string", "Store name printed on receipts", "store"),
    SettingDefault("store.address", "", "string", "Store address", "store"),
    SettingDefault("store.phone", "", "string", "Store phone number", "store"),
    SettingDefault("store.email", "", "string", "Store email address", "store"),
)


def list_settings(category: str | None = None) -> dict:
    """
    Settings keyed by name: {key: {value, type, description, category}}.

    Values are typed (numbers, booleans, parsed JSON).
    """
    q = db.session.query(Setting)
    if category:
        q = q.filter(Setting.category == category)

    return {
        s.key: {
            "value": s.typed_value(),
            "type": s.value_type,
            "description": s.description,
            "category": s.category,
        }
        for s in q.order_by(Setting.key.asc()).all()
    }


def get_setting(key: str, default: Any = None) -> Any:
    setting = db.session.query(Setting).filter_by(key=key).first()
    if setting is None:
        return default
    return setting.typed_value()


def seed_default_settings() -> int:
    """
    Insert missing default settings. Existing rows are left untouched.

    Returns the number of rows created.
    """
    existing = {k for (k,) in db.session.query(Setting.key).all()}
    created = 0
    for default in DEFAULT_SETTINGS:
        if default.key in existing:
            continue
        db.session.add(Setting(
            key=default.key,
            value=default.value,
            value_type=default.value_type,
            description=default.description,
            category=default.category,
        ))
        created += 1

    if created:
        db.session.commit()
    return created
