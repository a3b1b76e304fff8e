from core.imports import Decimal, ROUND_HALF_UP

CENTS = Decimal("0.01")


def to_money(value):
    """Quantize a price or total to two fractional digits."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def format_money(value):
    if value is None:
        return None
    return f"{to_money(value):.2f}"
