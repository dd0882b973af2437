from __future__ import annotations

import json

from ..extensions import db
from ..time_utils import to_utc_z


SETTING_TYPES = ("string", "number", "boolean", "json")


class Setting(db.Model):
    """
    Global key-value settings, stored as text with a declared type.

    Keys are dotted and grouped by category, e.g. "pos.tax_rate" in "pos".
    """
    __tablename__ = "settings"
    __table_args__ = (
        db.UniqueConstraint("key", name="uq_settings_key"),
        db.Index("ix_settings_category", "category"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(128), nullable=False)
    value = db.Column(db.Text, nullable=False)
    value_type = db.Column("type", db.String(16), nullable=False, default="string")
    description = db.Column(db.String(255), nullable=True)
    category = db.Column(db.String(64), nullable=False, default="general")

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def typed_value(self):
        if self.value_type == "number":
            try:
                number = float(self.value)
            except ValueError:
                return None
            return int(number) if number.is_integer() else number
        if self.value_type == "boolean":
            return self.value.strip().lower() == "true"
        if self.value_type == "json":
            try:
                return json.loads(self.value)
            except ValueError:
                return self.value
        return self.value

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "value": self.typed_value(),
            "type": self.value_type,
            "description": self.description,
            "category": self.category,
            "updatedAt": to_utc_z(self.updated_at),
        }
