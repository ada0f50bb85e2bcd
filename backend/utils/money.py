from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
# Two amounts closer than this are treated as equal.
TOLERANCE = Decimal("0.01")


def round_amount(v) -> Decimal:
    """Quantize to cents with standard (half-up) rounding. None counts as zero."""
    if v is None:
        return ZERO
    if not isinstance(v, Decimal):
        v = Decimal(str(v))
    return v.quantize(CENT, rounding=ROUND_HALF_UP)


def differs(a, b) -> bool:
    return abs(round_amount(a) - round_amount(b)) > TOLERANCE
