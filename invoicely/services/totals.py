"""
Invoice totals — subtotal, discount, tax and grand total from line items.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Mapping, Union

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def to_decimal(value) -> Decimal:
    """Convert a number (or numeric string) to Decimal; None becomes 0."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    # str() first so 0.1 stays 0.1 instead of its binary expansion
    return Decimal(str(value))


def quantize_amount(value) -> Decimal:
    """Round a currency amount to cents."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class LineItem:
    quantity: Decimal
    unit_price: Decimal

    def __post_init__(self):
        object.__setattr__(self, "quantity", to_decimal(self.quantity))
        object.__setattr__(self, "unit_price", to_decimal(self.unit_price))

    @property
    def line_total(self) -> Decimal:
        return self.quantity * self.unit_price

    @classmethod
    def coerce(cls, item: Union["LineItem", Mapping]) -> "LineItem":
        if isinstance(item, cls):
            return item
        if isinstance(item, Mapping):
            return cls(quantity=item.get("quantity"), unit_price=item.get("unit_price"))
        # embedded documents and other objects exposing the same attributes
        return cls(quantity=item.quantity, unit_price=item.unit_price)


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: Decimal
    discount_amount: Decimal
    taxable_amount: Decimal
    tax_amount: Decimal
    total: Decimal

    def quantized(self) -> "InvoiceTotals":
        """Return a copy with every amount rounded to cents."""
        return InvoiceTotals(
            subtotal=quantize_amount(self.subtotal),
            discount_amount=quantize_amount(self.discount_amount),
            taxable_amount=quantize_amount(self.taxable_amount),
            tax_amount=quantize_amount(self.tax_amount),
            total=quantize_amount(self.total),
        )

    def as_dict(self) -> dict:
        return {
            "subtotal": self.subtotal,
            "discount_amount": self.discount_amount,
            "taxable_amount": self.taxable_amount,
            "tax_amount": self.tax_amount,
            "total": self.total,
        }


def calculate_totals(
    items: Iterable[Union[LineItem, Mapping]],
    discount_percent=0,
    tax_rate_percent=0,
) -> InvoiceTotals:
    """Derive invoice totals from *items*.

    Evaluated as subtotal → discount → taxable amount → tax → total, with
    the discount applied before tax. Percentages are not range-checked here;
    the API validates them before calling.
    """
    line_items = [LineItem.coerce(item) for item in items]

    subtotal = sum((item.line_total for item in line_items), Decimal("0"))
    discount_amount = subtotal * to_decimal(discount_percent) / HUNDRED
    taxable_amount = subtotal - discount_amount
    tax_amount = taxable_amount * to_decimal(tax_rate_percent) / HUNDRED
    total = taxable_amount + tax_amount

    return InvoiceTotals(
        subtotal=subtotal,
        discount_amount=discount_amount,
        taxable_amount=taxable_amount,
        tax_amount=tax_amount,
        total=total,
    )
