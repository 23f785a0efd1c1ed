from decimal import Decimal, ROUND_HALF_UP

CENTS = Decimal("0.01")


def format_money(value: float | None) -> str:
    """Two decimals, halves rounded away from zero on the exact binary value."""
    if value is None:
        value = 0.0
    return str(Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP))


def format_date(value: str | None) -> str:
    """ISO date (optionally with a time part) as MM-DD-YYYY, taken literally."""
    if not value:
        return ""
    year, month, day = value.split("T")[0].split("-")
    return f"{month}-{day}-{year}"
