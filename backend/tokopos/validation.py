from __future__ import annotations

from typing import Mapping


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate SKU)."""


def parse_int_arg(args: Mapping, name: str, default: int | None = None, *, minimum: int | None = None) -> int | None:
    """
    Integer query parameter. Missing or blank -> default.

    Raises ValidationError for non-integers or values below `minimum`.
    """
    raw = args.get(name)
    if raw is None or str(raw).strip() == "":
        return default
    raw = str(raw).strip()
    # Reject decimals and scientific notation ("1.5", "1e3")
    if not raw.lstrip("-").isdigit():
        raise ValidationError(f"{name} must be an integer")
    value = int(raw)
    if minimum is not None and value < minimum:
        raise ValidationError(f"{name} must be >= {minimum}")
    return value


def parse_pagination(args: Mapping, *, default_limit: int = 10) -> tuple[int, int]:
    page = parse_int_arg(args, "page", 1, minimum=1)
    limit = parse_int_arg(args, "limit", default_limit, minimum=1)
    return page, limit
