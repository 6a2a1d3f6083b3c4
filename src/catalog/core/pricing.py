"""Conversion between decimal-comma price text and integer cents.

Prices are typed the way they are written in pt-BR ("10,99") and persisted as
integer cents. The conversion works on the digits of the text, so no floating
point value is ever involved.
"""

import re

from src.catalog.core.errors import ValidationError
from src.catalog.entities.service.book.entity import MAX_PRICE_IN_CENTS

_PRICE_PATTERN = re.compile(r"^(?P<units>[0-9]+)(?:,(?P<fraction>[0-9]{1,2}))?$")

PRICE_FIELD = "price"


def parse_price(text: str | None) -> int:
    """Convert a decimal-comma price string into cents.

    ``"10,99"`` -> ``1099``; ``"10"`` -> ``1000``; ``"10,9"`` -> ``1090``.

    Raises:
        ValidationError: empty, negative, non-numeric input, a dot separator,
            more than one comma, more than two fractional digits or a price
            above ``MAX_PRICE_IN_CENTS``.
    """
    if text is None or not text.strip():
        raise ValidationError.for_field(PRICE_FIELD, "Informe o preço.")

    match = _PRICE_PATTERN.match(text.strip())
    if match is None:
        raise ValidationError.for_field(
            PRICE_FIELD, "Preço inválido. Use o formato 10,99."
        )

    units = int(match.group("units"))
    fraction = (match.group("fraction") or "").ljust(2, "0")
    cents = units * 100 + int(fraction)
    if cents > MAX_PRICE_IN_CENTS:
        raise ValidationError.for_field(
            PRICE_FIELD,
            f"Preço inválido. O máximo é {format_price(MAX_PRICE_IN_CENTS)}.",
        )
    return cents


def format_price(cents: int) -> str:
    """Render cents as decimal-comma text: ``1099`` -> ``"10,99"``."""
    if cents < 0:
        raise ValueError("price in cents cannot be negative")
    units, fraction = divmod(cents, 100)
    return f"{units},{fraction:02d}"
