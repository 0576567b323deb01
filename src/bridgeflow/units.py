"""Fixed-point conversion between decimal strings and base units.

Everything goes through Decimal with an explicit precision; floats are never
involved in amount handling.
"""

from decimal import Decimal, DecimalException, localcontext

MAX_UINT256 = 2**256 - 1

# Enough digits for any uint256 amount plus its fractional part
PRECISION = 100


def parse_units(amount: str, decimals: int) -> int:
    """Convert a decimal string (e.g. "0.5") to integer base units.

    Raises:
        ValueError: If the string is not a finite, non-negative decimal, has
            more fractional digits than the asset supports, or does not fit
            in a uint256.
    """
    if not isinstance(amount, str):
        raise ValueError("Amount must be a decimal string")

    with localcontext() as ctx:
        ctx.prec = PRECISION
        try:
            value = Decimal(amount.strip())
            if not value.is_finite():
                raise ValueError(f"Invalid amount: {amount!r}")
            if value < 0:
                raise ValueError("Amount must not be negative")
            # Compare before scaling so huge exponents never reach normalize()
            if value > Decimal(MAX_UINT256).scaleb(-decimals):
                raise ValueError("Amount is too large")

            exponent = value.normalize().as_tuple().exponent
            if isinstance(exponent, int) and -exponent > decimals:
                raise ValueError(f"Amount has more than {decimals} decimal places")

            return int(value.scaleb(decimals))
        except DecimalException:
            raise ValueError(f"Invalid amount: {amount!r}") from None


def format_units(value: int, decimals: int) -> str:
    """Convert integer base units to a plain decimal string."""
    with localcontext() as ctx:
        ctx.prec = PRECISION
        text = format(Decimal(value).scaleb(-decimals), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


def to_decimal(value: int, decimals: int) -> Decimal:
    """Convert integer base units to a Decimal."""
    with localcontext() as ctx:
        ctx.prec = PRECISION
        return Decimal(value).scaleb(-decimals)
