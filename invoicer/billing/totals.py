from typing import Iterable

from invoicer.schemas.fees import FeeConfiguration, Totals
from invoicer.schemas.line_item import LineItem


def compute_subtotal(items: Iterable[LineItem]) -> float:
    # Plain left-to-right accumulation; sum() compensates rounding error on newer
    # interpreters and would drift from stored values.
    subtotal = 0.0
    for item in items:
        subtotal += item.amount
    return subtotal


def compute_totals(items: Iterable[LineItem], fees: FeeConfiguration) -> Totals:
    subtotal = compute_subtotal(items)
    surcharge = subtotal * (fees.surcharge_percent / 100) if fees.has_surcharge else 0.0
    convenience_fee = fees.convenience_fee if fees.has_convenience_fee else 0.0
    tax = 0.0 if fees.is_tax_free else (subtotal + surcharge + convenience_fee) * (fees.tax_rate / 100)
    total = subtotal + surcharge + convenience_fee + tax
    return Totals(
        subtotal=subtotal,
        surcharge=surcharge,
        convenience_fee=convenience_fee,
        tax=tax,
        total=total,
    )
