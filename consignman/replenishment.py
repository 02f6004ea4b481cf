"""
Replenishment math — isolated, testable, reusable.

Determines how much to ship to bring counted stock back up to the
agreed ceiling, and how document consecutives are formatted.

Examples:
    - max_stock=50, counted=20  → 30
    - max_stock=50, counted=80  → 0   (never negative)
    - max_stock=0,  counted=5   → 0   (no automatic replenishment)
"""

from decimal import Decimal, InvalidOperation

from consignman.exceptions import ValidationError

ZERO = Decimal('0')

CONSECUTIVE_DIGITS = 4


def as_decimal(value) -> Decimal:
    """
    Coerce int/float/str/Decimal to a finite Decimal (floats via str to avoid binary noise).

    Raises:
        ValidationError('INVALID_QUANTITY'): None, unparseable, NaN or infinite input
    """
    if isinstance(value, float):
        value = str(value)
    try:
        result = value if isinstance(value, Decimal) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError('INVALID_QUANTITY', requested=value) from None
    if not result.is_finite():
        raise ValidationError('INVALID_QUANTITY', requested=str(result))
    return result


def compute_replenish_quantity(max_stock, counted_quantity) -> Decimal:
    """
    Quantity to replenish for one product.

    Args:
        max_stock: Agreed ceiling (0 disables automatic replenishment)
        counted_quantity: Physically counted quantity

    Returns:
        max(0, max_stock - counted) when max_stock > 0, else 0
    """
    ceiling = as_decimal(max_stock)
    if ceiling <= ZERO:
        return ZERO
    return max(ZERO, ceiling - as_decimal(counted_quantity))


def format_consecutive(client_id: str, number: int) -> str:
    """
    Human-readable document code: ``{client_id}-{number:04d}``.

    Printed and emailed documents depend on this exact shape.
    """
    return f"{client_id}-{number:0{CONSECUTIVE_DIGITS}d}"


def refresh_line(line, rule) -> None:
    """
    Refresh a DocumentLine from the agreement's current rule, in memory.

    - rule found: max_stock/price/client code follow the rule, blanks included
    - rule missing: the stale snapshot is kept
    - manually edited lines keep their replenish_quantity
    """
    if rule is not None:
        line.max_stock = rule.max_stock
        line.price = rule.price
        line.client_product_code = rule.client_product_code

    if not line.is_manually_edited:
        line.replenish_quantity = compute_replenish_quantity(line.max_stock, line.counted_quantity)
