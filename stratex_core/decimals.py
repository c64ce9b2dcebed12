from decimal import (
    ROUND_FLOOR,
    Decimal,
    InvalidOperation,
    localcontext,
)
from typing import Any, Final

from beartype import beartype
from ccxt.base.decimal_to_precision import (  # type: ignore[import-untyped]
    DECIMAL_PLACES,
    NO_PADDING,
    TRUNCATE,
    decimal_to_precision,
)

# Enough significant digits for any uint256 base-unit amount
_BASE_UNITS_PRECISION: Final[int] = 80

DECIMAL_TOLERANCE: Final[Decimal] = Decimal("1e-9")


@beartype
def to_decimal(value: Any) -> Decimal:
    """
    Convert a value to a Decimal with strict error handling.

    Strings are parsed after stripping surrounding whitespace. Floats are
    rejected: every money-bearing value must arrive as text or as a Decimal.
    Raises ValueError for invalid or non-finite strings.
    """
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValueError(f"Non-finite decimal: {value}")
        return value

    if isinstance(value, bool):
        raise TypeError("Cannot convert bool to Decimal")

    if isinstance(value, int):
        return Decimal(value)

    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("Cannot convert empty string to Decimal")
        try:
            parsed = Decimal(text)
        except InvalidOperation as e:
            raise ValueError(f"Invalid decimal string: {value!r}") from e
        if not parsed.is_finite():
            raise ValueError(f"Non-finite decimal string: {value!r}")
        return parsed

    raise TypeError(f"Cannot convert type {type(value).__name__} to Decimal")


@beartype
def truncate_to_precision(value: Decimal, precision: int) -> Decimal:
    """Truncate toward zero to `precision` decimal places, never rounding up."""
    if precision < 0:
        raise ValueError(f"Precision must be non-negative, got {precision}")
    truncated: str = decimal_to_precision(
        format(value, "f"),
        TRUNCATE,
        precision,
        DECIMAL_PLACES,
        NO_PADDING,
    )
    return Decimal(truncated)


@beartype
def normalize_amount(value: str | Decimal, precision: int) -> Decimal:
    """
    Parse a textual amount and truncate it to a venue's decimal precision.

    Args:
        value: Amount as supplied by the strategy (e.g. "0.5").
        precision: Number of decimal places the venue accepts.

    Returns:
        Fixed-point value truncated toward zero.

    Raises:
        ValueError: If the text is not a finite decimal, or the truncated
            result is zero or negative.
    """
    amount = to_decimal(value)
    normalized = truncate_to_precision(amount, precision)
    if normalized <= 0:
        raise ValueError(f"Amount {value!r} is not positive at precision {precision}")
    return normalized


@beartype
def to_base_units(amount: Decimal, decimals: int) -> int:
    """Scale a human amount by 10^decimals and floor it to an integer."""
    if decimals < 0:
        raise ValueError(f"Token decimals must be non-negative, got {decimals}")
    with localcontext() as ctx:
        ctx.prec = _BASE_UNITS_PRECISION
        scaled = amount.scaleb(decimals)
        return int(scaled.to_integral_value(rounding=ROUND_FLOOR))


@beartype
def format_decimal(value: Decimal) -> str:
    """Plain (non-scientific) text rendering used on the wire."""
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


@beartype
def is_zero(value: Decimal, tol: Decimal | None = None) -> bool:
    """Check if a Decimal is effectively zero within tolerance."""
    if tol is None:
        tol = DECIMAL_TOLERANCE
    return abs(value) <= tol
