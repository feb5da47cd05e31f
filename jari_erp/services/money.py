from decimal import Decimal, ROUND_HALF_UP


def D(x) -> Decimal:
    return Decimal(str(x or 0))


def rupees(x) -> int:
    """Round to whole rupees, halves away from zero."""
    return int(D(x).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def percent_of(amount, pct) -> int:
    return rupees(D(amount) * D(pct) / Decimal("100"))
