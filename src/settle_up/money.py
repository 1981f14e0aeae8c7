"""Decimal helpers for currency amounts."""

import logging
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation

logger = logging.getLogger(__name__)

# Residual imbalance at or below this is rounding noise, not an error
TOLERANCE = Decimal("0.01")

DEFAULT_PLACES = 2

ZERO = Decimal("0")


def minor_unit(places: int = DEFAULT_PLACES) -> Decimal:
    """Smallest currency unit for the given number of decimal places."""
    return Decimal(1).scaleb(-places)


def quantize(amount: Decimal, places: int = DEFAULT_PLACES) -> Decimal:
    """
    Round an amount to the currency's minor unit.
    Uses ROUND_HALF_UP for consistency.

    Args:
        amount: Amount as Decimal
        places: Decimal places of the currency

    Returns:
        Rounded amount
    """
    return amount.quantize(minor_unit(places), rounding=ROUND_HALF_UP)


def floor_to_unit(amount: Decimal, places: int = DEFAULT_PLACES) -> Decimal:
    """Truncate a non-negative amount down to the currency's minor unit."""
    return amount.quantize(minor_unit(places), rounding=ROUND_DOWN)


def parse_decimal(raw: str | Decimal | int | None, default: Decimal = ZERO) -> Decimal:
    """
    Parse user-entered numeric text into a Decimal.

    Blank or unparseable input falls back to ``default``, the way a form
    field that was left empty or mistyped is read as zero.

    Args:
        raw: The text (or number) to parse
        default: Value used when ``raw`` is missing or not a finite number

    Returns:
        Parsed Decimal
    """
    if raw is None:
        return default
    if isinstance(raw, Decimal):
        value = raw
    else:
        text = str(raw).strip()
        if not text:
            return default
        try:
            value = Decimal(text)
        except InvalidOperation:
            logger.debug(f"Could not parse '{raw}' as a number, using {default}")
            return default
    if not value.is_finite():
        return default
    return value

